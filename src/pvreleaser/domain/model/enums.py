"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class ClaimPhase(StrEnum):
    PENDING = "Pending"
    BOUND = "Bound"
    LOST = "Lost"


class VolumePhase(StrEnum):
    PENDING = "Pending"
    AVAILABLE = "Available"
    BOUND = "Bound"
    RELEASED = "Released"
    FAILED = "Failed"


class ReclaimPolicy(StrEnum):
    RETAIN = "Retain"
    DELETE = "Delete"
    RECYCLE = "Recycle"


class ClaimConditionType(StrEnum):
    """Condition types the API server publishes on claims.

    Conditions with other types are kept as plain strings on the model.
    """

    RESIZING = "Resizing"
    FILE_SYSTEM_RESIZE_PENDING = "FileSystemResizePending"
    CONTROLLER_RESIZE_ERROR = "ControllerResizeError"
    NODE_RESIZE_ERROR = "NodeResizeError"

"""Storage domain model."""

from __future__ import annotations

from .enums import ClaimConditionType, ClaimPhase, ReclaimPolicy, VolumePhase
from .storage import (
    ClaimCondition,
    ClaimReference,
    ObjectIdentity,
    PersistentVolume,
    PersistentVolumeClaim,
)

__all__ = [
    "ClaimCondition",
    "ClaimConditionType",
    "ClaimPhase",
    "ClaimReference",
    "ObjectIdentity",
    "PersistentVolume",
    "PersistentVolumeClaim",
    "ReclaimPolicy",
    "VolumePhase",
]

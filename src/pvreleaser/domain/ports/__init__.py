"""Domain port definitions for adapters."""

from __future__ import annotations

from .store import ClusterStore, StoreError, VolumeConflictError

__all__ = [
    "ClusterStore",
    "StoreError",
    "VolumeConflictError",
]

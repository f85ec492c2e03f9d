"""Ports for reading and patching cluster state."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pvreleaser.domain.model import (
        ClaimReference,
        ObjectIdentity,
        PersistentVolume,
        PersistentVolumeClaim,
    )


class StoreError(RuntimeError):
    """Raised when the cluster store rejects or fails a request."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class VolumeConflictError(StoreError):
    """Raised when a volume changed since it was read (optimistic concurrency)."""


@runtime_checkable
class ClusterStore(Protocol):
    """Reads claims and volumes and applies the one patch the resolver issues."""

    async def get_claim(self, identity: ObjectIdentity) -> PersistentVolumeClaim | None:
        """Return the claim, or ``None`` when it does not exist."""
        ...

    async def list_volumes(self) -> Sequence[PersistentVolume]:
        """Return every volume in the cluster, in the order the store returns them."""
        ...

    async def patch_volume_claim_ref(
        self,
        volume: PersistentVolume,
        claim_ref: ClaimReference,
    ) -> PersistentVolume:
        """Merge ``claim_ref`` into ``volume`` against its observed resource version."""
        ...


__all__ = [
    "ClusterStore",
    "StoreError",
    "VolumeConflictError",
]

"""Decide which claim change events schedule a reconcile pass.

Admission only cuts down how often passes run. The resolver re-checks the claim
itself, so a spurious pass is a no-op.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from pvreleaser.domain.model import ClaimPhase

if TYPE_CHECKING:
    from pvreleaser.domain.model import ObjectIdentity, PersistentVolumeClaim


@dataclass(slots=True, frozen=True)
class CreateEvent:
    obj: PersistentVolumeClaim

    @property
    def identity(self) -> ObjectIdentity:
        return self.obj.identity


@dataclass(slots=True, frozen=True)
class UpdateEvent:
    old: PersistentVolumeClaim
    new: PersistentVolumeClaim

    @property
    def identity(self) -> ObjectIdentity:
        return self.new.identity


@dataclass(slots=True, frozen=True)
class DeleteEvent:
    obj: PersistentVolumeClaim

    @property
    def identity(self) -> ObjectIdentity:
        return self.obj.identity


@dataclass(slots=True, frozen=True)
class GenericEvent:
    obj: PersistentVolumeClaim

    @property
    def identity(self) -> ObjectIdentity:
        return self.obj.identity


type ClaimEvent = CreateEvent | UpdateEvent | DeleteEvent | GenericEvent


def admit(event: ClaimEvent) -> bool:
    """Return whether ``event`` should schedule a reconcile pass for its claim."""

    match event:
        case CreateEvent():
            return True
        case UpdateEvent(old=old, new=new):
            return old.phase != ClaimPhase.PENDING and new.phase == ClaimPhase.PENDING
        case _:
            return False

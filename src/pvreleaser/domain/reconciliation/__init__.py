"""Reconciliation core: conflict detection, event admission and the resolver."""

from __future__ import annotations

from .admission import ClaimEvent, CreateEvent, DeleteEvent, GenericEvent, UpdateEvent, admit
from .conflicts import BINDING_CONFLICT_MARKER, has_binding_conflict
from .context import CandidatePolicy, ReconcilerContext
from .resolver import ReconcileResult, StaleBindingResolver

__all__ = [
    "BINDING_CONFLICT_MARKER",
    "CandidatePolicy",
    "ClaimEvent",
    "CreateEvent",
    "DeleteEvent",
    "GenericEvent",
    "ReconcileResult",
    "ReconcilerContext",
    "StaleBindingResolver",
    "UpdateEvent",
    "admit",
    "has_binding_conflict",
]

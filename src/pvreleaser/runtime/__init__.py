"""Controller runtime: kopf handlers and operator wiring."""

from __future__ import annotations

from .handlers import ClaimReconciler, backoff_delay, claim_entered_pending
from .operator import build_registry, configure_settings, connection_info, run_operator

__all__ = [
    "ClaimReconciler",
    "backoff_delay",
    "build_registry",
    "claim_entered_pending",
    "configure_settings",
    "connection_info",
    "run_operator",
]

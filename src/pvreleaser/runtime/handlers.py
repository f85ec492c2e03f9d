"""kopf handlers that turn claim changes into reconcile passes.

kopf owns watching, per-object serialization and retry scheduling. A pass that
released a volume, or hit a store error, raises ``kopf.TemporaryError`` with a
delay that doubles with every retry of the same change.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from logging import getLogger
from typing import TYPE_CHECKING, Any

import kopf

from pvreleaser.domain.model import ClaimPhase, ObjectIdentity, PersistentVolumeClaim
from pvreleaser.domain.ports import StoreError
from pvreleaser.domain.reconciliation import UpdateEvent, admit

if TYPE_CHECKING:
    from pvreleaser.domain.reconciliation import StaleBindingResolver

log = getLogger(__name__)


def backoff_delay(retry: int, *, base: float, maximum: float) -> float:
    return min(base * (2 ** max(retry, 0)), maximum)


def _phase_of(value: object) -> ClaimPhase | None:
    # Field handlers see the narrowed ``status.phase`` value, others the whole body.
    if isinstance(value, Mapping):
        status = value.get("status")
        value = status.get("phase") if isinstance(status, Mapping) else None
    if not isinstance(value, str):
        return None
    try:
        return ClaimPhase(value)
    except ValueError:
        return None


def _snapshot(name: str, namespace: str, value: object) -> PersistentVolumeClaim:
    return PersistentVolumeClaim(name=name, namespace=namespace, phase=_phase_of(value))


def claim_entered_pending(
    *,
    name: str,
    namespace: str,
    old: object,
    new: object,
    **_: Any,
) -> bool:
    """``when=`` filter for updates: only a transition into ``Pending`` schedules a pass."""

    return admit(
        UpdateEvent(
            old=_snapshot(name, namespace, old),
            new=_snapshot(name, namespace, new),
        )
    )


class ClaimReconciler:
    """Adapt ``StaleBindingResolver.reconcile`` to the kopf handler protocol.

    At most ``workers`` passes run at once across all claims.
    """

    def __init__(
        self,
        resolver: StaleBindingResolver,
        *,
        workers: int,
        requeue_after_seconds: float,
        max_backoff_seconds: float,
    ) -> None:
        self._resolver = resolver
        self._slots = asyncio.Semaphore(workers)
        self._requeue_after_seconds = requeue_after_seconds
        self._max_backoff_seconds = max_backoff_seconds

    def delay_for(self, retry: int) -> float:
        return backoff_delay(
            retry, base=self._requeue_after_seconds, maximum=self._max_backoff_seconds
        )

    async def reconcile(self, *, name: str, namespace: str, retry: int = 0, **_: Any) -> None:
        identity = ObjectIdentity(namespace=namespace, name=name)
        async with self._slots:
            try:
                result = await self._resolver.reconcile(identity)
            except StoreError as exc:
                delay = self.delay_for(retry)
                log.warning(
                    "Reconcile of claim %s failed; retrying in %.3fs: %s", identity, delay, exc
                )
                raise kopf.TemporaryError(f"store error: {exc}", delay=delay) from exc

        if result.requeue:
            delay = self.delay_for(retry)
            log.debug("Requeueing claim %s in %.3fs", identity, delay)
            raise kopf.TemporaryError(
                f"released {result.released_volume}; re-checking", delay=delay
            )

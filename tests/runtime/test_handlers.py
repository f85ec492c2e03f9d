from __future__ import annotations

import asyncio

import kopf
import pytest

from pvreleaser.domain.model import ObjectIdentity
from pvreleaser.domain.ports import StoreError, VolumeConflictError
from pvreleaser.domain.reconciliation import (
    ReconcileResult,
    ReconcilerContext,
    StaleBindingResolver,
)
from pvreleaser.runtime import ClaimReconciler, backoff_delay, claim_entered_pending
from tests.support.storage import FakeClusterStore, make_claim, make_volume


class _ScriptedResolver:
    """Resolver stand-in returning queued results and counting overlapping passes."""

    def __init__(self, *results: ReconcileResult | Exception, pause: float = 0.0) -> None:
        self._results = list(results)
        self._pause = pause
        self.calls: list[ObjectIdentity] = []
        self.active = 0
        self.peak = 0

    async def reconcile(self, identity: ObjectIdentity) -> ReconcileResult:
        self.calls.append(identity)
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(self._pause)
            result = self._results.pop(0) if self._results else ReconcileResult()
            if isinstance(result, Exception):
                raise result
            return result
        finally:
            self.active -= 1


def _reconciler(
    resolver: object,
    *,
    workers: int = 2,
    requeue_after_seconds: float = 1.0,
    max_backoff_seconds: float = 300.0,
) -> ClaimReconciler:
    return ClaimReconciler(
        resolver,  # type: ignore[arg-type]
        workers=workers,
        requeue_after_seconds=requeue_after_seconds,
        max_backoff_seconds=max_backoff_seconds,
    )


@pytest.mark.parametrize(
    ("retry", "expected"),
    [(0, 0.5), (1, 1.0), (3, 4.0), (10, 30.0), (-1, 0.5)],
)
def test_backoff_delay_doubles_up_to_maximum(retry: int, expected: float) -> None:
    assert backoff_delay(retry, base=0.5, maximum=30.0) == expected


@pytest.mark.parametrize(
    ("old", "new", "expected"),
    [
        ("Bound", "Pending", True),
        (None, "Pending", True),
        ("Pending", "Pending", False),
        ("Pending", "Bound", False),
        ("Pending", None, False),
        ("Bound", "Unknown", False),
        ({"status": {"phase": "Bound"}}, {"status": {"phase": "Pending"}}, True),
        ({"status": {"phase": "Pending"}}, {"status": {"phase": "Pending"}}, False),
        ({}, {"status": {"phase": "Pending"}}, True),
    ],
)
def test_claim_entered_pending_filters_updates(old: object, new: object, expected: bool) -> None:
    assert claim_entered_pending(name="data", namespace="team", old=old, new=new) is expected


def test_reconcile_without_release_returns_quietly() -> None:
    resolver = _ScriptedResolver(ReconcileResult())

    outcome = asyncio.run(_reconciler(resolver).reconcile(name="data", namespace="team"))

    assert outcome is None
    assert resolver.calls == [ObjectIdentity(namespace="team", name="data")]


@pytest.mark.parametrize(("retry", "delay"), [(0, 1.0), (2, 4.0), (20, 300.0)])
def test_release_is_rechecked_after_growing_delay(retry: int, delay: float) -> None:
    resolver = _ScriptedResolver(ReconcileResult(requeue=True, released_volume="pv-a"))

    with pytest.raises(kopf.TemporaryError, match="released pv-a") as exc:
        asyncio.run(
            _reconciler(resolver).reconcile(name="data", namespace="team", retry=retry)
        )

    assert exc.value.delay == delay


def test_store_error_becomes_temporary_error() -> None:
    failure = StoreError("server busy", status_code=503)
    resolver = _ScriptedResolver(failure)

    with pytest.raises(kopf.TemporaryError, match="server busy") as exc:
        asyncio.run(_reconciler(resolver).reconcile(name="data", namespace="team", retry=1))

    assert exc.value.delay == 2.0
    assert exc.value.__cause__ is failure


def test_volume_conflict_is_retried_like_other_store_errors() -> None:
    resolver = _ScriptedResolver(VolumeConflictError("modified", status_code=409))

    with pytest.raises(kopf.TemporaryError):
        asyncio.run(_reconciler(resolver).reconcile(name="data", namespace="team"))


def test_unexpected_errors_propagate_unchanged() -> None:
    resolver = _ScriptedResolver(RuntimeError("bug"))

    with pytest.raises(RuntimeError, match="bug"):
        asyncio.run(_reconciler(resolver).reconcile(name="data", namespace="team"))


def test_worker_limit_bounds_concurrent_passes() -> None:
    resolver = _ScriptedResolver(pause=0.01)
    reconciler = _reconciler(resolver, workers=2)

    async def scenario() -> None:
        await asyncio.gather(
            *(reconciler.reconcile(name=f"claim-{index}", namespace="team") for index in range(6))
        )

    asyncio.run(scenario())

    assert len(resolver.calls) == 6
    assert resolver.peak == 2


def test_reconcile_accepts_extra_kopf_kwargs() -> None:
    resolver = _ScriptedResolver()

    asyncio.run(
        _reconciler(resolver).reconcile(
            name="data", namespace="team", retry=0, body={}, patch={}, logger=None
        )
    )

    assert len(resolver.calls) == 1


def test_handler_drives_real_resolver_until_nothing_is_left() -> None:
    store = FakeClusterStore(volumes=[make_volume("pv-a", claim_name="old-data")])
    store.add_claim(make_claim())
    reconciler = _reconciler(StaleBindingResolver(ReconcilerContext(store=store)))

    with pytest.raises(kopf.TemporaryError):
        asyncio.run(reconciler.reconcile(name="data", namespace="default"))

    claim_ref = store.volumes[0].claim_ref
    assert claim_ref is not None
    assert claim_ref.uid is None
    assert len(store.patches) == 1

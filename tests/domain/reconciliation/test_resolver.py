from __future__ import annotations

import asyncio
import logging

import pytest

from pvreleaser.domain.model import ClaimPhase, ObjectIdentity, ReclaimPolicy, VolumePhase
from pvreleaser.domain.ports import StoreError, VolumeConflictError
from pvreleaser.domain.reconciliation import (
    CandidatePolicy,
    ReconcileResult,
    ReconcilerContext,
    StaleBindingResolver,
)
from tests.support.storage import FakeClusterStore, make_claim, make_volume


def _resolver(
    store: FakeClusterStore,
    *,
    policy: CandidatePolicy = CandidatePolicy.STRICT,
) -> StaleBindingResolver:
    return StaleBindingResolver(ReconcilerContext(store=store, candidate_policy=policy))


def _reconcile(resolver: StaleBindingResolver, identity: ObjectIdentity) -> ReconcileResult:
    return asyncio.run(resolver.reconcile(identity))


@pytest.mark.parametrize("phase", [ClaimPhase.BOUND, ClaimPhase.LOST, None])
def test_non_pending_claim_is_left_alone(phase: ClaimPhase | None) -> None:
    store = FakeClusterStore(volumes=[make_volume()])
    identity = store.add_claim(make_claim(phase=phase))

    result = _reconcile(_resolver(store), identity)

    assert result == ReconcileResult()
    assert store.list_calls == 0
    assert store.patches == []


def test_pending_claim_without_conflict_is_left_alone() -> None:
    store = FakeClusterStore(volumes=[make_volume()])
    identity = store.add_claim(make_claim(messages=("waiting for first consumer",)))

    result = _reconcile(_resolver(store), identity)

    assert result == ReconcileResult()
    assert store.get_calls == [identity]
    assert store.list_calls == 0
    assert store.patches == []


def test_missing_claim_is_not_an_error() -> None:
    store = FakeClusterStore(volumes=[make_volume()])

    result = _reconcile(_resolver(store), ObjectIdentity(namespace="default", name="gone"))

    assert result == ReconcileResult()
    assert store.list_calls == 0
    assert store.patches == []


def test_no_qualifying_volume_lists_but_does_not_patch() -> None:
    store = FakeClusterStore(
        volumes=[
            make_volume("pv-unbound", claim_name=None),
            make_volume("pv-delete", reclaim_policy=ReclaimPolicy.DELETE),
            make_volume("pv-bound", phase=VolumePhase.BOUND),
            make_volume("pv-own", claim_name="data"),
        ]
    )
    identity = store.add_claim(make_claim())

    result = _reconcile(_resolver(store), identity)

    assert result == ReconcileResult()
    assert store.list_calls == 1
    assert store.patches == []


def test_single_candidate_gets_binding_tokens_cleared() -> None:
    volume = make_volume("pv-a", claim_name="old-data", claim_namespace="team")
    store = FakeClusterStore(volumes=[volume])
    identity = store.add_claim(make_claim())

    result = _reconcile(_resolver(store), identity)

    assert result == ReconcileResult(requeue=True, released_volume="pv-a")
    assert len(store.patches) == 1
    patch = store.patches[0]
    assert patch.volume == volume
    assert patch.claim_ref.name == "old-data"
    assert patch.claim_ref.namespace == "team"
    assert patch.claim_ref.uid is None
    assert patch.claim_ref.resource_version is None

    patched = store.volumes[0]
    assert patched.phase is VolumePhase.RELEASED
    assert patched.reclaim_policy is ReclaimPolicy.RETAIN


def test_claim_ref_in_other_namespace_with_same_name_is_stale() -> None:
    store = FakeClusterStore(volumes=[make_volume(claim_name="data", claim_namespace="other")])
    identity = store.add_claim(make_claim(name="data", namespace="default"))

    result = _reconcile(_resolver(store), identity)

    assert result.requeue is True
    assert len(store.patches) == 1


def test_only_first_candidate_in_list_order_is_patched() -> None:
    store = FakeClusterStore(
        volumes=[
            make_volume("pv-skip", phase=VolumePhase.AVAILABLE),
            make_volume("pv-first", claim_name="one"),
            make_volume("pv-second", claim_name="two"),
        ]
    )
    identity = store.add_claim(make_claim())

    result = _reconcile(_resolver(store), identity)

    assert result.released_volume == "pv-first"
    assert [call.volume.name for call in store.patches] == ["pv-first"]
    assert store.volumes[2].claim_ref is not None
    assert store.volumes[2].claim_ref.uid == "uid-default-two"


def test_rerun_after_patch_is_idempotent() -> None:
    store = FakeClusterStore(volumes=[make_volume("pv-a", claim_name="old-data")])
    identity = store.add_claim(make_claim())
    resolver = _resolver(store)

    first = _reconcile(resolver, identity)
    second = _reconcile(resolver, identity)

    assert first.requeue is True
    assert second.requeue is True
    assert len(store.patches) == 2
    assert store.patches[0].claim_ref == store.patches[1].claim_ref
    claim_ref = store.volumes[0].claim_ref
    assert claim_ref is not None
    assert (claim_ref.name, claim_ref.namespace) == ("old-data", "default")
    assert (claim_ref.uid, claim_ref.resource_version) == (None, None)


def test_loose_policy_accepts_bound_volumes() -> None:
    live = make_volume("pv-live", reclaim_policy=ReclaimPolicy.DELETE, phase=VolumePhase.BOUND)
    store = FakeClusterStore(volumes=[live])
    identity = store.add_claim(make_claim())

    strict = _reconcile(_resolver(store), identity)
    loose = _reconcile(_resolver(store, policy=CandidatePolicy.LOOSE), identity)

    assert strict == ReconcileResult()
    assert loose.released_volume == "pv-live"
    assert len(store.patches) == 1


def test_loose_policy_logs_warning(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        _resolver(FakeClusterStore(), policy=CandidatePolicy.LOOSE)

    assert "loose" in caplog.text


def test_fetch_error_propagates() -> None:
    store = FakeClusterStore(get_error=StoreError("connection refused"))

    with pytest.raises(StoreError):
        _reconcile(_resolver(store), ObjectIdentity(namespace="default", name="data"))


def test_list_error_propagates() -> None:
    store = FakeClusterStore(list_error=StoreError("server busy", status_code=503))
    identity = store.add_claim(make_claim())

    with pytest.raises(StoreError):
        _reconcile(_resolver(store), identity)
    assert store.patches == []


def test_patch_conflict_propagates() -> None:
    store = FakeClusterStore(
        volumes=[make_volume()],
        patch_error=VolumeConflictError("the object has been modified", status_code=409),
    )
    identity = store.add_claim(make_claim())

    with pytest.raises(VolumeConflictError):
        _reconcile(_resolver(store), identity)
    assert store.volumes[0].claim_ref is not None
    assert store.volumes[0].claim_ref.uid == "uid-default-old-data"


def test_cancellation_aborts_before_patch() -> None:
    started = asyncio.Event()

    class _SlowListStore(FakeClusterStore):
        async def list_volumes(self):  # type: ignore[override]
            started.set()
            await asyncio.sleep(3600)
            return await super().list_volumes()

    store = _SlowListStore(volumes=[make_volume()])
    identity = store.add_claim(make_claim())
    resolver = _resolver(store)

    async def scenario() -> None:
        task = asyncio.create_task(resolver.reconcile(identity))
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())
    assert store.patches == []


def test_select_candidate_skips_volumes_pointing_at_claim() -> None:
    resolver = _resolver(FakeClusterStore())
    identity = ObjectIdentity(namespace="default", name="data")

    own = make_volume("pv-own", claim_name="data")
    stale = make_volume("pv-stale", claim_name="previous")

    assert resolver.select_candidate(identity, [own]) is None
    assert resolver.select_candidate(identity, [own, stale]) is stale


def test_skipped_volumes_log_their_reason(caplog: pytest.LogCaptureFixture) -> None:
    resolver = _resolver(FakeClusterStore())
    identity = ObjectIdentity(namespace="default", name="data")
    volumes = [
        make_volume("pv-unbound", claim_name=None),
        make_volume("pv-delete", reclaim_policy=ReclaimPolicy.DELETE),
        make_volume("pv-bound", phase=VolumePhase.BOUND),
        make_volume("pv-own", claim_name="data"),
    ]

    with caplog.at_level(logging.DEBUG, logger="pvreleaser.reconciler"):
        assert resolver.select_candidate(identity, volumes) is None

    messages = [record.getMessage() for record in caplog.records]
    assert messages == [
        "Skipping PV pv-unbound: no claimRef",
        "Skipping PV pv-delete: reclaim policy is Delete, not Retain",
        "Skipping PV pv-bound: phase is Bound, not Released",
        "Skipping PV pv-own: claimRef already points at default/data",
    ]

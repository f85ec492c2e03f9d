"""Release stale claimRefs that keep a pending claim from binding.

A claim can stay ``Pending`` with an "already bound" condition when a retained
volume still names an older incarnation of some claim in its ``claimRef``. The
resolver clears that reference's ``uid`` and ``resourceVersion`` so the binding
controller re-evaluates the volume. The name/namespace the reference points at
are left untouched, as are the volume's phase and reclaim policy.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from pvreleaser.domain.model import ClaimPhase, ReclaimPolicy, VolumePhase

from .conflicts import has_binding_conflict
from .context import CandidatePolicy

if TYPE_CHECKING:
    from collections.abc import Iterable

    from pvreleaser.domain.model import ObjectIdentity, PersistentVolume

    from .context import ReconcilerContext


@dataclass(slots=True, frozen=True)
class ReconcileResult:
    """Outcome of one pass.

    ``requeue`` asks the caller to run the same claim again after a short,
    delay.
    """

    requeue: bool = False
    released_volume: str | None = None


class StaleBindingResolver:
    """Reconcile one claim identity against all volumes in the cluster."""

    def __init__(self, context: ReconcilerContext) -> None:
        self._context = context
        if context.candidate_policy is CandidatePolicy.LOOSE:
            context.log.warning(
                "Candidate policy 'loose' selected: volumes bound to other claims may be released"
            )

    @property
    def context(self) -> ReconcilerContext:
        return self._context

    async def reconcile(self, identity: ObjectIdentity) -> ReconcileResult:
        store = self._context.store
        log = self._context.log

        claim = await store.get_claim(identity)
        if claim is None:
            log.debug("Claim %s no longer exists", identity)
            return ReconcileResult()

        if claim.phase != ClaimPhase.PENDING:
            return ReconcileResult()

        if not has_binding_conflict(claim.conditions):
            return ReconcileResult()

        volumes = await store.list_volumes()
        candidate = self.select_candidate(identity, volumes)
        if candidate is None or candidate.claim_ref is None:
            log.debug("No stale claimRef found for pending claim %s", identity)
            return ReconcileResult()

        log.info(
            "Releasing PV claimRef: pv=%s, old_pvc=%s, pvc=%s",
            candidate.name,
            candidate.claim_ref,
            identity,
        )
        await store.patch_volume_claim_ref(candidate, candidate.claim_ref.without_binding_tokens())
        return ReconcileResult(requeue=True, released_volume=candidate.name)

    def select_candidate(
        self,
        identity: ObjectIdentity,
        volumes: Iterable[PersistentVolume],
    ) -> PersistentVolume | None:
        """Return the first volume, in iteration order, whose claimRef is stale for ``identity``."""

        for volume in volumes:
            if self._is_candidate(identity, volume):
                return volume
        return None

    def _is_candidate(self, identity: ObjectIdentity, volume: PersistentVolume) -> bool:
        log = self._context.log
        if volume.claim_ref is None:
            log.debug("Skipping PV %s: no claimRef", volume.name)
            return False
        if self._context.candidate_policy is CandidatePolicy.STRICT:
            if volume.reclaim_policy != ReclaimPolicy.RETAIN:
                log.debug(
                    "Skipping PV %s: reclaim policy is %s, not Retain",
                    volume.name,
                    volume.reclaim_policy,
                )
                return False
            if volume.phase != VolumePhase.RELEASED:
                log.debug("Skipping PV %s: phase is %s, not Released", volume.name, volume.phase)
                return False
        if volume.claim_ref.points_at(identity):
            log.debug("Skipping PV %s: claimRef already points at %s", volume.name, identity)
            return False
        return True

"""Dependencies handed to the resolver at start-up."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pvreleaser.domain.ports import ClusterStore


class CandidatePolicy(StrEnum):
    """Which volumes may have their claimRef released.

    ``STRICT`` only touches ``Retain`` volumes in the ``Released`` phase.
    ``LOOSE`` touches any volume whose claimRef names a different claim, which
    includes volumes actively bound elsewhere.
    """

    STRICT = "strict"
    LOOSE = "loose"


@dataclass(slots=True, frozen=True)
class ReconcilerContext:
    store: ClusterStore
    log: logging.Logger = field(
        default_factory=lambda: logging.getLogger("pvreleaser.reconciler")
    )
    candidate_policy: CandidatePolicy = CandidatePolicy.STRICT

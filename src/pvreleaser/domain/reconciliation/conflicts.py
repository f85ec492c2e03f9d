"""Detect claims the binding controller refuses because a volume is already bound.

The binding controller does not publish a structured condition for this case;
it only leaves a human readable message. Matching on ``"already bound"`` is
therefore a coarse text signal and will miss the case if the wording upstream
changes. That limitation is accepted.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from pvreleaser.domain.model import ClaimConditionType

if TYPE_CHECKING:
    from collections.abc import Iterable

    from pvreleaser.domain.model import ClaimCondition

BINDING_CONFLICT_MARKER: Final[str] = "already bound"


def has_binding_conflict(conditions: Iterable[ClaimCondition]) -> bool:
    """Return ``True`` if any non-resize condition reports an already-bound volume."""

    for condition in conditions:
        if condition.type == ClaimConditionType.RESIZING:
            continue
        if BINDING_CONFLICT_MARKER in condition.message:
            return True
    return False

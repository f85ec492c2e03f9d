"""Translate core/v1 payloads into domain entities and merge patches."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from pvreleaser.domain.model import (
    ClaimCondition,
    ClaimConditionType,
    ClaimPhase,
    ClaimReference,
    PersistentVolume,
    PersistentVolumeClaim,
    ReclaimPolicy,
    VolumePhase,
)

from .schema import ClaimPayload, VolumePayload

if TYPE_CHECKING:
    from enum import StrEnum

    from .schema import ClaimPayloadInput, ClaimReferencePayload, VolumePayloadInput

log = getLogger(__name__)


def _parse_enum[E: StrEnum](enum_type: type[E], value: str | None, *, field: str) -> E | None:
    if value is None:
        return None
    try:
        return enum_type(value)
    except ValueError:
        log.warning("Ignoring unknown %s value %r", field, value)
        return None


def _parse_condition_type(value: str) -> ClaimConditionType | str:
    try:
        return ClaimConditionType(value)
    except ValueError:
        return value


def _ensure_claim_payload(payload: ClaimPayloadInput) -> ClaimPayload:
    if isinstance(payload, ClaimPayload):
        return payload
    return ClaimPayload.model_validate(payload)


def _ensure_volume_payload(payload: VolumePayloadInput) -> VolumePayload:
    if isinstance(payload, VolumePayload):
        return payload
    return VolumePayload.model_validate(payload)


def parse_claim(payload: ClaimPayloadInput) -> PersistentVolumeClaim:
    validated = _ensure_claim_payload(payload)
    metadata = validated.metadata
    return PersistentVolumeClaim(
        name=metadata.name,
        namespace=metadata.namespace or "",
        phase=_parse_enum(ClaimPhase, validated.status.phase, field="claim phase"),
        conditions=tuple(
            ClaimCondition(
                type=_parse_condition_type(condition.type),
                message=condition.message or "",
            )
            for condition in validated.status.conditions
        ),
        uid=metadata.uid,
        resource_version=metadata.resource_version,
    )


def _parse_claim_ref(payload: ClaimReferencePayload | None) -> ClaimReference | None:
    if payload is None:
        return None
    return ClaimReference(
        name=payload.name,
        namespace=payload.namespace,
        uid=payload.uid,
        resource_version=payload.resource_version,
    )


def parse_volume(payload: VolumePayloadInput) -> PersistentVolume:
    validated = _ensure_volume_payload(payload)
    return PersistentVolume(
        name=validated.metadata.name,
        reclaim_policy=_parse_enum(
            ReclaimPolicy, validated.spec.reclaim_policy, field="reclaim policy"
        ),
        phase=_parse_enum(VolumePhase, validated.status.phase, field="volume phase"),
        claim_ref=_parse_claim_ref(validated.spec.claim_ref),
        resource_version=validated.metadata.resource_version,
    )


def build_claim_ref_patch(volume: PersistentVolume, claim_ref: ClaimReference) -> dict[str, object]:
    """Return a JSON merge patch that rewrites only the claimRef binding tokens.

    ``null`` removes a key under merge-patch semantics. Name and namespace are
    never part of the patch. ``metadata.resourceVersion`` makes the API server
    reject the patch with 409 if the volume changed after it was listed.
    """

    patch: dict[str, object] = {
        "spec": {
            "claimRef": {
                "uid": claim_ref.uid,
                "resourceVersion": claim_ref.resource_version,
            }
        }
    }
    if volume.resource_version is not None:
        patch["metadata"] = {"resourceVersion": volume.resource_version}
    return patch

"""Pydantic models describing the core/v1 payloads the controller reads."""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class KubernetesBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ObjectMeta(KubernetesBaseModel):
    name: str
    namespace: str | None = None
    uid: str | None = None
    resource_version: str | None = Field(default=None, alias="resourceVersion")

    _normalize_tokens = field_validator("uid", "resource_version", mode="before")(_blank_to_none)


class ListMeta(KubernetesBaseModel):
    resource_version: str | None = Field(default=None, alias="resourceVersion")
    continue_token: str | None = Field(default=None, alias="continue")

    _normalize_continue = field_validator("continue_token", mode="before")(_blank_to_none)


class ClaimConditionPayload(KubernetesBaseModel):
    type: str
    status: str | None = None
    reason: str | None = None
    message: str | None = None


class ClaimStatusPayload(KubernetesBaseModel):
    phase: str | None = None
    conditions: list[ClaimConditionPayload] = Field(default_factory=list)

    @field_validator("conditions", mode="before")
    @classmethod
    def _null_to_empty(cls, value: object) -> object:
        return [] if value is None else value


class ClaimPayload(KubernetesBaseModel):
    metadata: ObjectMeta
    status: ClaimStatusPayload = Field(default_factory=ClaimStatusPayload)


class ClaimReferencePayload(KubernetesBaseModel):
    name: str = ""
    namespace: str = ""
    uid: str | None = None
    resource_version: str | None = Field(default=None, alias="resourceVersion")
    kind: str | None = None
    api_version: str | None = Field(default=None, alias="apiVersion")

    _normalize_tokens = field_validator("uid", "resource_version", mode="before")(_blank_to_none)


class VolumeSpecPayload(KubernetesBaseModel):
    reclaim_policy: str | None = Field(default=None, alias="persistentVolumeReclaimPolicy")
    claim_ref: ClaimReferencePayload | None = Field(default=None, alias="claimRef")


class VolumeStatusPayload(KubernetesBaseModel):
    phase: str | None = None


class VolumePayload(KubernetesBaseModel):
    metadata: ObjectMeta
    spec: VolumeSpecPayload = Field(default_factory=VolumeSpecPayload)
    status: VolumeStatusPayload = Field(default_factory=VolumeStatusPayload)


class VolumeListPayload(KubernetesBaseModel):
    metadata: ListMeta = Field(default_factory=ListMeta)
    items: list[VolumePayload] = Field(default_factory=list)


class StatusPayload(KubernetesBaseModel):
    """``metav1.Status`` returned for failed requests."""

    kind: str | None = None
    status: str | None = None
    message: str = ""
    reason: str | None = None
    code: int | None = None


ClaimPayloadInput = ClaimPayload | Mapping[str, object]
VolumePayloadInput = VolumePayload | Mapping[str, object]

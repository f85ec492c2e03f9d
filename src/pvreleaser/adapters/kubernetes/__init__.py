"""Public interface for the Kubernetes adapter."""

from __future__ import annotations

from .auth import BearerTokenAuth
from .client import KubernetesClient
from .schema import ClaimPayload, VolumePayload
from .translator import build_claim_ref_patch, parse_claim, parse_volume

__all__ = [
    "BearerTokenAuth",
    "ClaimPayload",
    "KubernetesClient",
    "VolumePayload",
    "build_claim_ref_patch",
    "parse_claim",
    "parse_volume",
]

"""HTTP client for the core/v1 claim and volume endpoints."""

from __future__ import annotations

import json
from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

import httpx
from pydantic import ValidationError

from pvreleaser.adapters.http_resilience import ResilientClient
from pvreleaser.domain.ports.store import ClusterStore, StoreError, VolumeConflictError

from .auth import BearerTokenAuth
from .schema import StatusPayload, VolumeListPayload
from .translator import build_claim_ref_patch, parse_claim, parse_volume

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pvreleaser.config.http_resilience import ResilienceConfig
    from pvreleaser.config.kubernetes import KubernetesConfig
    from pvreleaser.domain.model import (
        ClaimReference,
        ObjectIdentity,
        PersistentVolume,
        PersistentVolumeClaim,
    )

log = getLogger(__name__)

CORE_V1: Final[str] = "/api/v1"
MERGE_PATCH_CONTENT_TYPE: Final[str] = "application/merge-patch+json"
DEFAULT_PAGE_SIZE: Final[int] = 500

ClientFactory = Callable[["ResilienceConfig", "httpx.Auth | None"], ResilientClient]


def _default_client_factory(config: ResilienceConfig, auth: httpx.Auth | None) -> ResilientClient:
    return ResilientClient(config, auth=auth)


def _claim_path(identity: ObjectIdentity) -> str:
    return f"{CORE_V1}/namespaces/{identity.namespace}/persistentvolumeclaims/{identity.name}"


def _status_from_response(response: httpx.Response) -> StatusPayload:
    try:
        return StatusPayload.model_validate(response.json())
    except (ValueError, ValidationError):
        return StatusPayload(message=response.text.strip(), code=response.status_code)


def _raise_for_status(response: httpx.Response, *, action: str) -> None:
    if response.is_success:
        return
    status = _status_from_response(response)
    message = f"{action} failed with HTTP {response.status_code}: {status.message or status.reason}"
    if response.status_code == httpx.codes.CONFLICT:
        raise VolumeConflictError(message, status_code=response.status_code)
    raise StoreError(message, status_code=response.status_code)


def _decode[T](response: httpx.Response, *, action: str, parse: Callable[[Any], T]) -> T:
    try:
        return parse(response.json())
    except (ValueError, ValidationError) as exc:
        raise StoreError(
            f"{action} returned an unreadable body: {exc}", status_code=response.status_code
        ) from exc


class KubernetesClient:
    """Cluster store backed by the Kubernetes API server."""

    def __init__(
        self,
        *,
        config: KubernetesConfig,
        client_factory: ClientFactory | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self._config = config
        self._client_factory = client_factory or _default_client_factory
        self._page_size = page_size
        self._client: ResilientClient | None = None

    async def __aenter__(self) -> KubernetesClient:
        return self

    async def __aexit__(self, *_exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> ResilientClient:
        if self._client is None:
            auth: httpx.Auth | None = None
            if self._config.token is not None or self._config.token_path is not None:
                auth = BearerTokenAuth(
                    token=self._config.token, token_path=self._config.token_path
                )
            self._client = self._client_factory(self._config.resilience, auth)
        return self._client

    async def get_claim(self, identity: ObjectIdentity) -> PersistentVolumeClaim | None:
        response = await self._request("GET", _claim_path(identity), action=f"get claim {identity}")
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        _raise_for_status(response, action=f"get claim {identity}")
        return _decode(response, action=f"get claim {identity}", parse=parse_claim)

    async def list_volumes(self) -> Sequence[PersistentVolume]:
        volumes: list[PersistentVolume] = []
        continue_token: str | None = None
        while True:
            params: dict[str, str | int] = {"limit": self._page_size}
            if continue_token:
                params["continue"] = continue_token
            response = await self._request(
                "GET", f"{CORE_V1}/persistentvolumes", action="list volumes", params=params
            )
            _raise_for_status(response, action="list volumes")
            page = _decode(response, action="list volumes", parse=VolumeListPayload.model_validate)
            volumes.extend(parse_volume(item) for item in page.items)
            continue_token = page.metadata.continue_token
            if not continue_token:
                return volumes

    async def patch_volume_claim_ref(
        self,
        volume: PersistentVolume,
        claim_ref: ClaimReference,
    ) -> PersistentVolume:
        action = f"patch volume {volume.name}"
        response = await self._request(
            "PATCH",
            f"{CORE_V1}/persistentvolumes/{volume.name}",
            action=action,
            content=json.dumps(build_claim_ref_patch(volume, claim_ref)).encode(),
            headers={"Content-Type": MERGE_PATCH_CONTENT_TYPE},
        )
        _raise_for_status(response, action=action)
        return _decode(response, action=action, parse=parse_volume)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        action: str,
        params: dict[str, str | int] | None = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            return await self.client.request(
                method, path, params=params, content=content, headers=headers
            )
        except httpx.HTTPError as exc:
            log.warning("%s failed: %s", action, exc)
            raise StoreError(f"{action} failed: {exc}") from exc


if TYPE_CHECKING:
    _store_check: ClusterStore = KubernetesClient(config=...)  # type: ignore[arg-type]

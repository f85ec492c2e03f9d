from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from pvreleaser.adapters.kubernetes import KubernetesClient
from pvreleaser.config import KubernetesConfig, ResilienceConfig
from tests.support.kubernetes_payloads import API_SERVER, make_client_factory

if TYPE_CHECKING:
    from collections.abc import Callable

    from tests.support.kubernetes_payloads import Handler


@pytest.fixture
def kubernetes_config() -> KubernetesConfig:
    return KubernetesConfig(
        api_server=API_SERVER,
        resilience=ResilienceConfig(name="kubernetes", base_url=API_SERVER),
        token="test-token",
    )


@pytest.fixture
def make_kubernetes_client(
    kubernetes_config: KubernetesConfig,
) -> Callable[..., KubernetesClient]:
    def build(handler: Handler, **kwargs: int) -> KubernetesClient:
        return KubernetesClient(
            config=kubernetes_config,
            client_factory=make_client_factory(handler),
            **kwargs,
        )

    return build

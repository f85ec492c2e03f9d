"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from pvreleaser.adapters.kubernetes import KubernetesClient
from pvreleaser.config import (
    ControllerConfig,
    KubernetesConfig,
    get_controller_config,
    get_kubernetes_config,
)
from pvreleaser.domain.reconciliation import ReconcilerContext, StaleBindingResolver
from pvreleaser.runtime import run_operator

if TYPE_CHECKING:
    from pvreleaser.domain.model import ObjectIdentity
    from pvreleaser.domain.reconciliation import ReconcileResult

StoreFactory = Callable[[KubernetesConfig], KubernetesClient]


log = getLogger(__name__)


def _default_store_factory(config: KubernetesConfig) -> KubernetesClient:
    return KubernetesClient(config=config)


def build_resolver(
    store: KubernetesClient,
    controller_config: ControllerConfig,
) -> StaleBindingResolver:
    context = ReconcilerContext(
        store=store,
        log=logging.getLogger("pvreleaser.reconciler"),
        candidate_policy=controller_config.candidate_policy,
    )
    return StaleBindingResolver(context)


async def run_controller_async(
    *,
    kubernetes_config: KubernetesConfig | None = None,
    controller_config: ControllerConfig | None = None,
    store_factory: StoreFactory | None = None,
) -> None:
    """Watch claims and reconcile them until the operator stops."""

    effective_kubernetes = kubernetes_config or get_kubernetes_config()
    effective_controller = controller_config or get_controller_config()
    factory = store_factory or _default_store_factory

    log.info(
        "Starting pvreleaser: api_server=%s, namespace=%s, workers=%s, candidate_policy=%s",
        effective_kubernetes.api_server,
        effective_controller.namespace or "<all>",
        effective_controller.workers,
        effective_controller.candidate_policy,
    )

    async with factory(effective_kubernetes) as store:
        await run_operator(
            build_resolver(store, effective_controller),
            kubernetes_config=effective_kubernetes,
            controller_config=effective_controller,
        )


def run_controller(
    *,
    kubernetes_config: KubernetesConfig | None = None,
    controller_config: ControllerConfig | None = None,
    store_factory: StoreFactory | None = None,
) -> None:
    asyncio.run(
        run_controller_async(
            kubernetes_config=kubernetes_config,
            controller_config=controller_config,
            store_factory=store_factory,
        )
    )


async def reconcile_claim_async(
    identity: ObjectIdentity,
    *,
    kubernetes_config: KubernetesConfig | None = None,
    controller_config: ControllerConfig | None = None,
    store_factory: StoreFactory | None = None,
) -> ReconcileResult:
    """Run a single reconcile pass for ``identity`` and return its result."""

    effective_kubernetes = kubernetes_config or get_kubernetes_config()
    effective_controller = controller_config or get_controller_config()
    factory = store_factory or _default_store_factory

    async with factory(effective_kubernetes) as store:
        result = await build_resolver(store, effective_controller).reconcile(identity)

    log.info(
        "Reconciled claim %s: released_volume=%s, requeue=%s",
        identity,
        result.released_volume,
        result.requeue,
    )
    return result


def reconcile_claim(
    identity: ObjectIdentity,
    *,
    kubernetes_config: KubernetesConfig | None = None,
    controller_config: ControllerConfig | None = None,
    store_factory: StoreFactory | None = None,
) -> ReconcileResult:
    return asyncio.run(
        reconcile_claim_async(
            identity,
            kubernetes_config=kubernetes_config,
            controller_config=controller_config,
            store_factory=store_factory,
        )
    )

"""Build and run the kopf operator that drives claim reconciliation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Final

import kopf

from .handlers import ClaimReconciler, claim_entered_pending

if TYPE_CHECKING:
    from pvreleaser.config import ControllerConfig, KubernetesConfig
    from pvreleaser.domain.reconciliation import StaleBindingResolver

log = logging.getLogger(__name__)

CLAIMS: Final[str] = "persistentvolumeclaims"
ANNOTATION_PREFIX: Final[str] = "pvreleaser.io"
WATCH_TIMEOUT_SECONDS: Final[int] = 300


def connection_info(config: KubernetesConfig) -> kopf.ConnectionInfo:
    """Credentials for kopf's own watch connection, taken from the same settings as the store."""

    token = config.token
    if token is None and config.token_path is not None:
        token = config.token_path.read_text(encoding="utf-8").strip()
    return kopf.ConnectionInfo(
        server=config.api_server,
        ca_path=str(config.ca_cert_path) if config.ca_cert_path is not None else None,
        insecure=not config.verify_tls,
        token=token,
    )


def configure_settings(settings: kopf.OperatorSettings) -> None:
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage(
        prefix=ANNOTATION_PREFIX
    )
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage(
        prefix=ANNOTATION_PREFIX,
        key="last-handled-configuration",
    )
    settings.posting.level = logging.WARNING
    settings.watching.server_timeout = WATCH_TIMEOUT_SECONDS


def build_registry(
    resolver: StaleBindingResolver,
    *,
    kubernetes_config: KubernetesConfig,
    controller_config: ControllerConfig,
) -> kopf.OperatorRegistry:
    """Register login, startup and claim handlers on a fresh registry.

    Creates and resumes always schedule a pass; updates only when the claim's
    phase moves into ``Pending``. Deletions are not watched.
    """

    registry = kopf.OperatorRegistry()
    reconciler = ClaimReconciler(
        resolver,
        workers=controller_config.workers,
        requeue_after_seconds=controller_config.requeue_after_seconds,
        max_backoff_seconds=controller_config.max_backoff_seconds,
    )

    @kopf.on.login(registry=registry)
    def login(**_: Any) -> kopf.ConnectionInfo:
        return connection_info(kubernetes_config)

    @kopf.on.startup(registry=registry)
    def configure(settings: kopf.OperatorSettings, **_: Any) -> None:
        configure_settings(settings)
        log.info(
            "Operator started (workers=%d, candidate_policy=%s)",
            controller_config.workers,
            controller_config.candidate_policy,
        )

    backoff = controller_config.max_backoff_seconds
    kopf.on.create(CLAIMS, id="claim-created", backoff=backoff, registry=registry)(
        reconciler.reconcile
    )
    kopf.on.resume(CLAIMS, id="claim-resumed", backoff=backoff, registry=registry)(
        reconciler.reconcile
    )
    kopf.on.update(
        CLAIMS,
        id="claim-entered-pending",
        field="status.phase",
        when=claim_entered_pending,
        backoff=backoff,
        registry=registry,
    )(reconciler.reconcile)
    return registry


async def run_operator(
    resolver: StaleBindingResolver,
    *,
    kubernetes_config: KubernetesConfig,
    controller_config: ControllerConfig,
) -> None:
    """Run until kopf is stopped by a signal or the task is cancelled."""

    registry = build_registry(
        resolver,
        kubernetes_config=kubernetes_config,
        controller_config=controller_config,
    )
    namespace = controller_config.namespace
    await kopf.operator(
        registry=registry,
        clusterwide=namespace is None,
        namespaces=[namespace] if namespace is not None else [],
        standalone=True,
    )
    log.info("Operator stopped")

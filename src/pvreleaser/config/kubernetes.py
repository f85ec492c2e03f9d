"""Kubernetes API server connection settings."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import env_bool, env_float, optional_env_var
from .errors import MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig

SERVICE_ACCOUNT_DIR: Final[Path] = Path("/var/run/secrets/kubernetes.io/serviceaccount")
KUBERNETES_TIMEOUT_SECONDS: Final[float] = 30.0


@dataclass(frozen=True, slots=True)
class KubernetesConfig:
    """Where and how to reach the API server.

    Exactly one of ``token`` and ``token_path`` is normally set. ``token_path``
    is re-read on every request so projected service account tokens can rotate.
    """

    api_server: str
    resilience: ResilienceConfig
    token: str | None = None
    token_path: Path | None = None
    ca_cert_path: Path | None = None
    verify_tls: bool = True


def _default_resilience(api_server: str, *, verify: str | bool) -> ResilienceConfig:
    return ResilienceConfig(
        name="kubernetes",
        base_url=api_server,
        timeout_seconds=env_float("PVRELEASER_API_TIMEOUT", KUBERNETES_TIMEOUT_SECONDS),
        ratelimit=RateLimit(max_calls=20, per_seconds=1.0),
        default_headers={"Accept": "application/json"},
        verify=verify,
    )


def _in_cluster_api_server() -> str | None:
    host = optional_env_var("KUBERNETES_SERVICE_HOST")
    port = optional_env_var("KUBERNETES_SERVICE_PORT")
    if host is None or port is None:
        return None
    if ":" in host:
        host = f"[{host}]"
    return f"https://{host}:{port}"


def get_kubernetes_config(
    *,
    resilience: ResilienceConfig | None = None,
    service_account_dir: Path = SERVICE_ACCOUNT_DIR,
) -> KubernetesConfig:
    """Resolve API server settings from explicit variables, then the in-cluster environment."""

    verify_tls = env_bool("PVRELEASER_VERIFY_TLS", default=True)
    api_server = optional_env_var("PVRELEASER_API_SERVER")

    if api_server is not None:
        ca_value = optional_env_var("PVRELEASER_CA_CERT")
        ca_cert_path = Path(ca_value) if ca_value else None
        token = optional_env_var("PVRELEASER_TOKEN")
        token_file = optional_env_var("PVRELEASER_TOKEN_FILE")
        token_path = Path(token_file) if token_file else None
    else:
        api_server = _in_cluster_api_server()
        if api_server is None:
            raise MissingConfigurationError(
                "Missing configuration for: PVRELEASER_API_SERVER (not running in a cluster)"
            )
        token = None
        token_path = service_account_dir / "token"
        if not token_path.exists():
            raise MissingConfigurationError(f"Service account token not found at {token_path}")
        ca_path = service_account_dir / "ca.crt"
        ca_cert_path = ca_path if ca_path.exists() else None

    api_server = api_server.rstrip("/")
    verify: str | bool = False
    if verify_tls:
        verify = str(ca_cert_path) if ca_cert_path is not None else True

    return KubernetesConfig(
        api_server=api_server,
        resilience=resilience or _default_resilience(api_server, verify=verify),
        token=token,
        token_path=token_path,
        ca_cert_path=ca_cert_path,
        verify_tls=verify_tls,
    )

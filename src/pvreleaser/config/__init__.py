"""Application configuration helpers."""

from __future__ import annotations

from .controller import ControllerConfig, get_controller_config, parse_candidate_policy
from .env import env_bool, env_float, env_int, optional_env_var
from .errors import ConfigurationError, InvalidConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .kubernetes import KubernetesConfig, get_kubernetes_config
from .logging import LOG_LEVELS, configure_logging, parse_log_level

__all__ = [
    "LOG_LEVELS",
    "ConfigurationError",
    "ControllerConfig",
    "InvalidConfigurationError",
    "KubernetesConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "configure_logging",
    "env_bool",
    "env_float",
    "env_int",
    "get_controller_config",
    "get_kubernetes_config",
    "optional_env_var",
    "parse_candidate_policy",
    "parse_log_level",
]

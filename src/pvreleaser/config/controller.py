"""Controller runtime settings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from pvreleaser.domain.reconciliation import CandidatePolicy

from .env import env_float, env_int, optional_env_var
from .errors import InvalidConfigurationError

DEFAULT_WORKERS: Final[int] = 2
DEFAULT_REQUEUE_AFTER_SECONDS: Final[float] = 1.0
DEFAULT_MAX_BACKOFF_SECONDS: Final[float] = 300.0


@dataclass(frozen=True, slots=True)
class ControllerConfig:
    """Scope and pacing of the reconcile loop.

    ``namespace`` of ``None`` watches claims in every namespace. Volumes are
    cluster-scoped and always listed in full.
    """

    namespace: str | None = None
    workers: int = DEFAULT_WORKERS
    requeue_after_seconds: float = DEFAULT_REQUEUE_AFTER_SECONDS
    max_backoff_seconds: float = DEFAULT_MAX_BACKOFF_SECONDS
    candidate_policy: CandidatePolicy = CandidatePolicy.STRICT

    def __post_init__(self) -> None:
        if self.workers < 1:
            raise InvalidConfigurationError("workers", str(self.workers), "at least 1")
        if self.requeue_after_seconds <= 0:
            raise InvalidConfigurationError(
                "requeue_after_seconds", str(self.requeue_after_seconds), "positive"
            )
        if self.max_backoff_seconds < self.requeue_after_seconds:
            raise InvalidConfigurationError(
                "max_backoff_seconds",
                str(self.max_backoff_seconds),
                "no smaller than requeue_after_seconds",
            )


def parse_candidate_policy(value: str, *, name: str = "candidate_policy") -> CandidatePolicy:
    try:
        return CandidatePolicy(value.strip().lower())
    except ValueError as exc:
        choices = "|".join(policy.value for policy in CandidatePolicy)
        raise InvalidConfigurationError(name, value, f"one of {choices}") from exc


def get_controller_config() -> ControllerConfig:
    policy_value = optional_env_var("PVRELEASER_CANDIDATE_POLICY")
    return ControllerConfig(
        namespace=optional_env_var("PVRELEASER_NAMESPACE"),
        workers=env_int("PVRELEASER_WORKERS", DEFAULT_WORKERS),
        requeue_after_seconds=env_float(
            "PVRELEASER_REQUEUE_AFTER", DEFAULT_REQUEUE_AFTER_SECONDS
        ),
        max_backoff_seconds=env_float("PVRELEASER_MAX_BACKOFF", DEFAULT_MAX_BACKOFF_SECONDS),
        candidate_policy=(
            parse_candidate_policy(policy_value, name="PVRELEASER_CANDIDATE_POLICY")
            if policy_value is not None
            else CandidatePolicy.STRICT
        ),
    )

# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from pvreleaser.app import reconcile_claim, run_controller
from pvreleaser.config import (
    LOG_LEVELS,
    ConfigurationError,
    ControllerConfig,
    configure_logging,
    get_controller_config,
    parse_candidate_policy,
    parse_log_level,
)
from pvreleaser.domain.model import ObjectIdentity
from pvreleaser.domain.reconciliation import CandidatePolicy

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=LOG_LEVELS,
        help="Root log level (default: %(default)s)",
    )
    parser.add_argument(
        "--candidate-policy",
        type=str,
        choices=[policy.value for policy in CandidatePolicy],
        help="Which volumes may be released (defaults to config, 'strict' if unset)",
    )


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Release stale PersistentVolume claimRefs blocking pending claims"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Watch claims and reconcile until stopped")
    _add_common_arguments(run)
    run.add_argument(
        "--namespace",
        type=str,
        help="Only watch claims in this namespace (defaults to config, all if unset)",
    )
    run.add_argument(
        "--workers",
        type=int,
        help="Number of concurrent reconcile workers (defaults to config)",
    )
    run.add_argument(
        "--requeue-after",
        type=float,
        help="Seconds before the first requeue of a claim (defaults to config)",
    )

    reconcile = subparsers.add_parser("reconcile", help="Run one reconcile pass for a claim")
    _add_common_arguments(reconcile)
    reconcile.add_argument("claim", type=str, help="Claim to reconcile as NAMESPACE/NAME")

    return parser.parse_args(list(argv))


def _override[T](value: T | None, default: T) -> T:
    return default if value is None else value


def _build_controller_config(args: argparse.Namespace) -> ControllerConfig:
    base = get_controller_config()
    return ControllerConfig(
        namespace=_override(getattr(args, "namespace", None), base.namespace),
        workers=_override(getattr(args, "workers", None), base.workers),
        requeue_after_seconds=_override(
            getattr(args, "requeue_after", None), base.requeue_after_seconds
        ),
        max_backoff_seconds=base.max_backoff_seconds,
        candidate_policy=(
            parse_candidate_policy(args.candidate_policy)
            if args.candidate_policy
            else base.candidate_policy
        ),
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv()
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=parse_log_level(parsed_args.log_level), force=True)
        controller_config = _build_controller_config(parsed_args)
        identity = (
            ObjectIdentity.parse(parsed_args.claim) if parsed_args.command == "reconcile" else None
        )
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "run":
            run_controller(controller_config=controller_config)
        elif identity is not None:
            result = reconcile_claim(identity, controller_config=controller_config)
            if result.released_volume is None:
                print(f"No stale claimRef released for {identity}")
            else:
                print(f"Released claimRef on {result.released_volume} for {identity}")
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except KeyboardInterrupt:
        log.info("Shutting down")
    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    signal(SIGINT, sigint_handler)
    main()

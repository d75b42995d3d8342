"""!
@brief Primary entry point for the Office Deploy CLI.
@details Parses arguments, assembles the deployment configuration, sets up
logging and runs the selected flow. This is the outermost error boundary:
bootstrap problems, cancellations and unexpected exceptions are logged here
and translated into the documented exit codes.
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Callable, Iterable, Optional

from . import constants, deploy, logging_ext, version
from .config import ConfigurationError, DeploymentConfig, DeployMode, build_config
from .session import DeploymentCancelled, DeploymentSession, InsufficientDiskSpaceError


def build_arg_parser() -> argparse.ArgumentParser:
    """!
    @brief Create the top-level argument parser.
    @details Options left unset default to ``None`` so values from a
    ``--config`` file are only overridden by arguments the caller supplied.
    """

    parser = argparse.ArgumentParser(
        prog="office-deploy",
        description="Install, migrate or uninstall Microsoft 365 Apps, Visio and Project editions.",
    )
    metadata = version.build_info()
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"{metadata['version']} ({metadata['build']})",
    )
    parser.add_argument(
        "--product",
        metavar="ID",
        choices=[product.value for product in constants.ProductId],
        help="Product edition to deploy: %(choices)s.",
    )
    parser.add_argument(
        "--deployment-type",
        choices=["install", "uninstall"],
        help="Install (default) or uninstall the product.",
    )
    parser.add_argument(
        "--deploy-mode",
        choices=["interactive", "silent", "noninteractive"],
        help="Prompting behaviour (default: interactive).",
    )
    parser.add_argument("--config", metavar="FILE", help="JSON file with deployment options.")
    parser.add_argument("--support-files", metavar="DIR", help="Directory with setup.exe and OffScrub scripts.")
    parser.add_argument("--setup", metavar="PATH", help="Explicit path to the Office Deployment Tool setup.exe.")
    parser.add_argument("--logdir", metavar="DIR", help="Directory for human/JSONL log output.")
    parser.add_argument("--architecture", choices=["32", "64", "x86", "x64"], help="Office bitness to install.")
    parser.add_argument("--channel", metavar="NAME", help="Update channel, e.g. MonthlyEnterprise or Current.")
    parser.add_argument("--timeout", metavar="SEC", type=int, help="Per-command timeout in seconds.")
    parser.add_argument("--dry-run", action="store_true", help="Log external commands without running them.")
    parser.add_argument("--quiet", action="store_true", help="Minimal console output (errors only).")
    parser.add_argument("--json", action="store_true", help="Mirror structured events to stdout.")
    return parser


def _bootstrap_logging(args: argparse.Namespace, config: DeploymentConfig) -> tuple[logging.Logger, logging.Logger]:
    """!
    @brief Initialise the human and machine loggers in the configured directory.
    """

    console = config.deploy_mode is not DeployMode.SILENT
    human_logger, machine_logger = logging_ext.setup_logging(
        config.log_dir,
        json_to_stdout=bool(getattr(args, "json", False)),
        console=console,
    )
    if getattr(args, "quiet", False):
        for handler in human_logger.handlers:
            if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
                handler.setLevel(logging.ERROR)
    return human_logger, machine_logger


def main(
    argv: Optional[Iterable[str]] = None,
    *,
    input_func: Callable[[str], str] | None = None,
) -> int:
    """!
    @brief Entry point used by the ``office-deploy`` console script.
    @returns Process exit code integer.
    """

    parser = build_arg_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        config = build_config(args)
    except ConfigurationError as exc:
        print(f"office-deploy: {exc}", file=sys.stderr)
        return constants.EXIT_BOOTSTRAP_FAILURE

    try:
        human_log, machine_log = _bootstrap_logging(args, config)
    except OSError as exc:
        print(f"office-deploy: cannot initialise logging in {config.log_dir}: {exc}", file=sys.stderr)
        return constants.EXIT_BOOTSTRAP_FAILURE

    machine_log.info("startup", extra={"event": "startup", "config": config.to_dict()})
    session = DeploymentSession(config, input_func=input_func)

    try:
        outcome = deploy.run_deployment(session)
    except deploy.BootstrapError as exc:
        human_log.error("Bootstrap failed: %s", exc)
        machine_log.error("bootstrap_failed", extra={"event": "bootstrap_failed", "error": str(exc)})
        return constants.EXIT_BOOTSTRAP_FAILURE
    except DeploymentCancelled as exc:
        human_log.warning("%s", exc)
        machine_log.warning("cancelled", extra={"event": "cancelled"})
        return constants.EXIT_USER_CANCELLED
    except InsufficientDiskSpaceError as exc:
        human_log.error("%s", exc)
        machine_log.error(
            "insufficient_disk_space",
            extra={
                "event": "insufficient_disk_space",
                "free_mb": exc.free_mb,
                "required_mb": exc.required_mb,
                "drive": exc.drive,
            },
        )
        session.show_error(str(exc))
        return constants.EXIT_INSUFFICIENT_DISK_SPACE
    except Exception as exc:
        human_log.exception("Unexpected failure during deployment")
        machine_log.error("unexpected_error", extra={"event": "unexpected_error", "error": repr(exc)})
        session.show_error(f"{type(exc).__name__}: {exc}")
        return constants.EXIT_GENERIC_FAILURE

    machine_log.info("run_complete", extra={"event": "run_complete", "outcome": outcome.to_dict()})
    human_log.info("Deployment finished with exit code %s", outcome.exit_code)
    return outcome.exit_code


if __name__ == "__main__":  # pragma: no cover - for manual execution
    sys.exit(main())

"""!
@brief Install and uninstall flows.
@details Sequences one deployment run: bootstrap checks, the welcome step,
inventory and reconciliation, legacy-suite removal, the optional
Click-to-Run scrub, configuration generation and the terminal ``setup.exe``
call. Every step runs to completion before the next starts. A failing
removal step is logged and remembered but does not stop the run; the exit
code of ``setup.exe`` becomes the result of the run.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict

from . import constants, legacy, odt_config
from .config import DeploymentType
from .constants import LegacyVersion
from .detect import InstalledInventory, read_installed_inventory
from .reconcile import ReconcileResult, reconcile
from .session import DeploymentSession

LEGACY_NAME_FILTER = "Microsoft Office"
"""!
@brief Installed-application filter shared by every legacy suite label.
"""


class BootstrapError(RuntimeError):
    """!
    @brief Raised when files the run depends on are missing.
    """


@dataclass
class DeploymentOutcome:
    """!
    @brief Record of what one run did and the exit code it ends with.
    """

    deployment_type: DeploymentType
    exit_code: int = constants.EXIT_SUCCESS
    reconciliation: ReconcileResult | None = None
    legacy_results: Dict[LegacyVersion, int] = field(default_factory=dict)
    c2r_removal_exit_code: int | None = None
    config_path: Path | None = None
    setup_exit_code: int | None = None
    step_failures: Dict[str, int] = field(default_factory=dict)

    def record_step(self, step: str, exit_code: int) -> None:
        """!
        @brief Remember a non-terminal step's exit code.
        @details Failures set the run's exit code; a later step may replace it.
        """

        if exit_code not in constants.SUCCESS_EXIT_CODES:
            self.step_failures[step] = exit_code
            self.exit_code = exit_code

    def to_dict(self) -> dict:
        return {
            "deployment_type": self.deployment_type.value,
            "exit_code": self.exit_code,
            "reconciliation": self.reconciliation.to_dict() if self.reconciliation else None,
            "legacy_results": {str(version.value): code for version, code in self.legacy_results.items()},
            "c2r_removal_exit_code": self.c2r_removal_exit_code,
            "config_path": str(self.config_path) if self.config_path else None,
            "setup_exit_code": self.setup_exit_code,
            "step_failures": dict(self.step_failures),
        }


def verify_bootstrap(session: DeploymentSession) -> None:
    """!
    @brief Check the support-files directory and ``setup.exe`` exist.
    @throws BootstrapError When either is missing.
    """

    config = session.config
    if not config.support_files_dir.is_dir():
        raise BootstrapError(f"Support files directory not found: {config.support_files_dir}")
    setup_path = config.resolved_setup_path
    if not setup_path.is_file():
        raise BootstrapError(f"Office Deployment Tool not found: {setup_path}")


def _log_reconciliation(session: DeploymentSession, result: ReconcileResult, inventory: InstalledInventory) -> None:
    for migration in result.product_migrations:
        session.log(
            f"Migrating {migration.source.info.name} ({migration.source.value}) "
            f"to {migration.target.info.name} ({migration.target.value})",
            source="Reconcile",
        )
    if result.platform_migration:
        session.log(
            f"Platform migration: installed {inventory.platform.value if inventory.platform else 'unknown'}, "
            f"requested {session.config.architecture.value}",
            source="Reconcile",
        )
    if result.channel_migration:
        session.log(
            f"Channel migration: installed {inventory.channel_url}, requested {session.config.channel.value}",
            source="Reconcile",
        )
    session.log(
        "Products to install: " + ", ".join(product.value for product in result.target_set),
        source="Reconcile",
    )


def _run_setup(session: DeploymentSession, config_path: Path, outcome: DeploymentOutcome, *, event: str) -> None:
    command = odt_config.build_setup_command(session.config.resolved_setup_path, config_path)
    exit_code = session.execute_process(command[0], command[1:], event=event)
    outcome.setup_exit_code = exit_code
    outcome.exit_code = exit_code
    if exit_code == constants.EXIT_REBOOT_REQUIRED:
        session.log("Setup completed; a restart is required", severity=2, source="Setup")
    elif exit_code in constants.SUCCESS_EXIT_CODES:
        session.log("Setup completed successfully", source="Setup")
    else:
        session.log(f"Setup exited with code {exit_code}", severity=3, source="Setup")


def run_install(
    session: DeploymentSession,
    *,
    inventory_reader: Callable[[], InstalledInventory] = read_installed_inventory,
) -> DeploymentOutcome:
    """!
    @brief Install or migrate to the configured product edition.
    """

    config = session.config
    if config.product is None:
        raise ValueError("No product selected for deployment")
    outcome = DeploymentOutcome(DeploymentType.INSTALL)

    session.show_welcome(close_apps=config.close_apps, check_disk_space=True)
    session.show_progress()

    inventory = inventory_reader()
    result = reconcile(
        config.product,
        inventory,
        platform=config.architecture,
        channel=config.channel,
    )
    outcome.reconciliation = result
    _log_reconciliation(session, result, inventory)

    installed = session.get_installed_applications(LEGACY_NAME_FILTER)
    detected = legacy.detect_legacy(installed)
    if detected:
        session.log(
            "Legacy Office detected: " + ", ".join(str(v.value) for v in legacy.removal_order(detected)),
            source="Legacy",
        )
    outcome.legacy_results = legacy.remove_legacy(
        detected,
        config.support_files_dir,
        config.log_dir,
        runner=session.runner,
    )
    for version, exit_code in outcome.legacy_results.items():
        outcome.record_step(f"legacy_{version.value}", exit_code)

    if legacy.should_remove_click_to_run(
        bool(outcome.legacy_results),
        result.channel_migration,
        result.platform_migration,
    ):
        session.log("Removing the existing Click-to-Run installation", source="Legacy")
        outcome.c2r_removal_exit_code = legacy.remove_click_to_run(
            config.support_files_dir,
            config.log_dir,
            runner=session.runner,
        )
        outcome.record_step("c2r_remove", outcome.c2r_removal_exit_code)

    content = odt_config.build_install_xml(
        result.target_set,
        architecture=config.architecture,
        channel=config.channel,
        log_dir=config.log_dir,
        languages=config.languages,
        product_keys=config.product_keys,
    )
    outcome.config_path = odt_config.write_configuration(content, config.config_xml_path)
    _run_setup(session, outcome.config_path, outcome, event="odt_install")
    return outcome


def run_uninstall(session: DeploymentSession) -> DeploymentOutcome:
    """!
    @brief Remove the configured product edition and nothing else.
    """

    config = session.config
    if config.product is None:
        raise ValueError("No product selected for deployment")
    outcome = DeploymentOutcome(DeploymentType.UNINSTALL)

    session.show_welcome(close_apps=config.close_apps)
    session.show_progress("Uninstallation in progress. Please wait...")

    content = odt_config.build_uninstall_xml([config.product], log_dir=config.log_dir)
    outcome.config_path = odt_config.write_configuration(content, config.config_xml_path)
    _run_setup(session, outcome.config_path, outcome, event="odt_uninstall")
    return outcome


def run_deployment(
    session: DeploymentSession,
    *,
    inventory_reader: Callable[[], InstalledInventory] = read_installed_inventory,
) -> DeploymentOutcome:
    """!
    @brief Verify the bootstrap files and dispatch on the deployment type.
    """

    verify_bootstrap(session)
    if session.config.deployment_type is DeploymentType.UNINSTALL:
        return run_uninstall(session)
    return run_install(session, inventory_reader=inventory_reader)


__all__ = [
    "BootstrapError",
    "DeploymentOutcome",
    "LEGACY_NAME_FILTER",
    "run_deployment",
    "run_install",
    "run_uninstall",
    "verify_bootstrap",
]

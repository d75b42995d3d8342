"""!
@brief Deployment session services.
@details :class:`DeploymentSession` bundles the small set of services the
deployment flows call: the welcome step (close applications, disk-space
check, confirmation), progress notices, process execution, logging, and the
installed-application listing. Each service delegates to the matching helper
module so tests can swap the process runner and prompt function.
"""
from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from typing import Callable, List, Sequence

from . import detect, logging_ext, processes, ui
from .command_runner import ProcessRunner
from .config import DeploymentConfig


class DeploymentCancelled(RuntimeError):
    """!
    @brief Raised when the operator declines the welcome prompt.
    """


class InsufficientDiskSpaceError(RuntimeError):
    """!
    @brief Raised when the system drive has less free space than required.
    """

    def __init__(self, free_mb: int, required_mb: int, drive: str) -> None:
        super().__init__(
            f"{drive} has {free_mb} MB free; {required_mb} MB are required for the deployment"
        )
        self.free_mb = free_mb
        self.required_mb = required_mb
        self.drive = drive


def system_drive() -> str:
    """!
    @brief Root of the drive Office installs to.
    """

    drive = os.environ.get("SystemDrive")
    if drive:
        return drive.rstrip("\\/") + os.sep
    return Path(tempfile.gettempdir()).anchor or os.sep


class DeploymentSession:
    """!
    @brief Services shared by the install and uninstall flows.
    """

    def __init__(
        self,
        config: DeploymentConfig,
        *,
        runner: ProcessRunner | None = None,
        input_func: Callable[[str], str] | None = None,
        installed_applications: Callable[[str | None], List[str]] | None = None,
    ) -> None:
        self.config = config
        self.runner = runner or ProcessRunner(dry_run=config.dry_run, timeout=config.timeout)
        self._input_func = input_func
        self._installed_applications = installed_applications or detect.get_installed_applications

    def show_welcome(
        self,
        *,
        close_apps: Sequence[str] = (),
        check_disk_space: bool = False,
        required_mb: int | None = None,
        title: str = "Microsoft Office deployment",
    ) -> None:
        """!
        @brief Run the pre-deployment checks and close running applications.
        @param close_apps Executable names to close when running.
        @param check_disk_space When ``True`` verify free space on the system drive.
        @param required_mb Free space needed; defaults to the configured value.
        @throws InsufficientDiskSpaceError When the disk-space check fails.
        @throws DeploymentCancelled When the operator declines the prompt.
        """

        if check_disk_space:
            self.check_disk_space(required_mb if required_mb is not None else self.config.required_disk_space_mb)

        running = processes.find_running_processes(close_apps) if close_apps else []
        if self.config.interactive:
            accepted = ui.request_welcome_confirmation(
                title,
                running,
                input_func=self._input_func,
                interactive=self._prompt_mode(),
            )
            if not accepted:
                raise DeploymentCancelled("The deployment was cancelled at the welcome prompt")

        if running:
            if self.config.dry_run:
                self.log(f"Dry-run: would close {', '.join(running)}", source="ShowWelcome")
            else:
                processes.terminate_processes(running)

    def check_disk_space(self, required_mb: int) -> None:
        """!
        @brief Compare free space on the system drive with ``required_mb``.
        """

        drive = system_drive()
        try:
            usage = shutil.disk_usage(drive)
        except OSError as exc:
            self.log(f"Unable to query free space on {drive}: {exc}", severity=2, source="DiskSpace")
            return
        free_mb = usage.free // (1024 * 1024)
        logging_ext.get_machine_logger().info(
            "disk_space",
            extra={"event": "disk_space", "drive": drive, "free_mb": free_mb, "required_mb": required_mb},
        )
        if free_mb < required_mb:
            raise InsufficientDiskSpaceError(free_mb, required_mb, drive)

    def show_progress(self, message: str = "Installation in progress. Please wait...") -> None:
        self.log(message, source="Progress")

    def execute_process(
        self,
        path: str | Path,
        arguments: Sequence[str] = (),
        *,
        event: str = "process",
    ) -> int:
        """!
        @brief Launch a program, wait for it and return its exit code.
        """

        return self.runner.execute(path, arguments, event=event)

    def log(self, message: str, severity: int = 1, source: str = "") -> None:
        logging_ext.log_message(message, severity, source)

    def get_installed_applications(self, name_filter: str | None = None) -> List[str]:
        return self._installed_applications(name_filter)

    def show_error(self, message: str) -> None:
        """!
        @brief Surface a fatal error; blocks only in interactive mode.
        """

        ui.show_error_dialog(message, input_func=self._input_func, interactive=self._prompt_mode())

    def _prompt_mode(self) -> bool | None:
        """!
        @brief ``False`` suppresses prompts, ``None`` lets :mod:`ui` probe the console.
        @details An injected prompt function always counts as interactive.
        """

        if not self.config.interactive:
            return False
        return True if self._input_func is not None else None


__all__ = [
    "DeploymentCancelled",
    "DeploymentSession",
    "InsufficientDiskSpaceError",
    "system_drive",
]

"""!
@brief Shared subprocess execution helpers.
@details Wraps :func:`subprocess.run` so every external program this tool
launches (OffScrub scripts, ``setup.exe``) is logged the same way: a
``*_plan`` event before the call and a ``*_result`` (or ``*_missing``,
``*_timeout``, ``*_error``) event afterwards. :class:`ProcessRunner` exposes
the narrow "run and return the exit code" capability the deployment flows
depend on, so tests can substitute a fake.
"""
from __future__ import annotations

import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import MutableMapping, Sequence

from . import logging_ext


@dataclass
class CommandResult:
    """!
    @brief Outcome metadata returned by :func:`run_command`.
    @details ``skipped`` is ``True`` when dry-run mode bypassed execution and
    ``timed_out`` is ``True`` when the command exceeded its timeout.
    """

    command: Sequence[str]
    returncode: int
    stdout: str
    stderr: str
    duration: float
    skipped: bool = False
    timed_out: bool = False
    error: str | None = None


def run_command(
    command: Sequence[str],
    *,
    event: str,
    timeout: int | float | None = None,
    dry_run: bool = False,
    human_message: str | None = None,
) -> CommandResult:
    """!
    @brief Execute ``command`` while emitting structured telemetry records.
    @param command Command sequence to execute.
    @param event Base event identifier recorded in machine logs.
    @param timeout Optional timeout in seconds for the subprocess.
    @param dry_run When ``True`` skip execution and return a ``skipped`` result.
    @param human_message Optional message logged to the human channel before
    execution.
    @returns :class:`CommandResult` describing the observed outcome.
    """

    human_logger = logging_ext.get_human_logger()
    machine_logger = logging_ext.get_machine_logger()

    command_list = [str(part) for part in command]

    def _meta(suffix: str, **fields: object) -> dict:
        metadata: MutableMapping[str, object] = {"event": f"{event}_{suffix}", "command": command_list}
        metadata.update(fields)
        return dict(metadata)

    machine_logger.info(f"{event}_plan", extra=_meta("plan"))

    if dry_run:
        human_logger.info("Dry-run: would execute %s", " ".join(command_list))
        machine_logger.info(f"{event}_dry_run", extra=_meta("dry_run"))
        return CommandResult(
            command=command_list,
            returncode=0,
            stdout="",
            stderr="",
            duration=0.0,
            skipped=True,
        )

    if human_message:
        human_logger.info(human_message)

    start = time.monotonic()
    try:
        completed = subprocess.run(  # noqa: S603 - intentional command execution
            command_list,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as exc:
        duration = time.monotonic() - start
        human_logger.error("Command not found: %s", command_list[0])
        machine_logger.error(
            f"{event}_missing", extra=_meta("missing", duration=duration, error=str(exc))
        )
        return CommandResult(
            command=command_list,
            returncode=127,
            stdout="",
            stderr="",
            duration=duration,
            error=str(exc),
        )
    except subprocess.TimeoutExpired as exc:
        duration = time.monotonic() - start
        human_logger.error("Command timed out after %.1fs: %s", duration, command_list[0])
        stdout = exc.stdout if isinstance(exc.stdout, str) else ""
        stderr = exc.stderr if isinstance(exc.stderr, str) else ""
        machine_logger.error(
            f"{event}_timeout",
            extra=_meta("timeout", duration=duration, stdout=stdout, stderr=stderr),
        )
        return CommandResult(
            command=command_list,
            returncode=1,
            stdout=stdout,
            stderr=stderr,
            duration=duration,
            timed_out=True,
            error="timeout",
        )
    except OSError as exc:
        duration = time.monotonic() - start
        human_logger.error("Failed to execute %s: %s", command_list[0], exc)
        machine_logger.error(
            f"{event}_error", extra=_meta("error", duration=duration, error=str(exc))
        )
        return CommandResult(
            command=command_list,
            returncode=1,
            stdout="",
            stderr="",
            duration=duration,
            error=str(exc),
        )

    duration = time.monotonic() - start
    machine_logger.info(
        f"{event}_result",
        extra=_meta(
            "result",
            return_code=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
            duration=duration,
        ),
    )

    if completed.returncode != 0:
        human_logger.warning("Command %s exited with %s", command_list[0], completed.returncode)

    return CommandResult(
        command=command_list,
        returncode=completed.returncode,
        stdout=completed.stdout,
        stderr=completed.stderr,
        duration=duration,
    )


class ProcessRunner:
    """!
    @brief Synchronous "run external command, capture exit code" capability.
    @details The deployment flows only ever need the exit code of a blocking
    call. Tests pass any object with a compatible :meth:`execute` method.
    """

    def __init__(self, *, dry_run: bool = False, timeout: int | float | None = None) -> None:
        self.dry_run = dry_run
        self.timeout = timeout

    def execute(
        self,
        path: str | Path,
        arguments: Sequence[str] = (),
        *,
        event: str = "process",
        human_message: str | None = None,
    ) -> int:
        """!
        @brief Launch ``path`` with ``arguments`` and wait for it to exit.
        @returns The process exit code (``0`` in dry-run mode).
        """

        result = run_command(
            [str(path), *arguments],
            event=event,
            timeout=self.timeout,
            dry_run=self.dry_run,
            human_message=human_message,
        )
        return result.returncode


__all__ = ["CommandResult", "ProcessRunner", "run_command"]

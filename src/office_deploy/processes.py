"""!
@brief Running-application helpers.
@details Lists running Office executables with ``tasklist`` and stops them
with ``taskkill`` before ``setup.exe`` or the OffScrub scripts touch the
installation. Both tools are optional: on hosts without them the helpers
log and return.
"""
from __future__ import annotations

import subprocess
from typing import Iterable, List

from . import logging_ext


def find_running_processes(names: Iterable[str], *, timeout: int = 30) -> List[str]:
    """!
    @brief Return the subset of ``names`` that currently have a running process.
    @details Names are compared case-insensitively against the ``tasklist``
    image-name column.
    """

    human_logger = logging_ext.get_human_logger()

    wanted = [name.strip().lower() for name in names if name and name.strip()]
    if not wanted:
        return []

    try:
        listing = subprocess.run(
            ["tasklist.exe", "/FO", "CSV", "/NH"],
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError:  # pragma: no cover - non-Windows test environment.
        human_logger.debug("tasklist.exe unavailable; assuming no Office processes are running")
        return []
    except subprocess.TimeoutExpired:
        human_logger.warning("Timed out enumerating running processes")
        return []

    if listing.returncode != 0:
        human_logger.debug("tasklist returned %s; assuming no Office processes are running", listing.returncode)
        return []

    running = set()
    for line in listing.stdout.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        image = stripped.split(",", 1)[0].strip().strip('"').lower()
        running.add(image)

    return [name for name in wanted if name in running]


def terminate_processes(names: Iterable[str], *, timeout: int = 30) -> None:
    """!
    @brief Stop the named processes with ``taskkill /F /T``.
    """
    human_logger = logging_ext.get_human_logger()
    machine_logger = logging_ext.get_machine_logger()

    processes: List[str] = [name for name in (str(name).strip() for name in names) if name]
    if not processes:
        return

    human_logger.info("Closing %d running application(s): %s", len(processes), ", ".join(processes))
    for process in processes:
        command = ["taskkill.exe", "/IM", process, "/F", "/T"]
        machine_logger.info(
            "terminate_process_plan",
            extra={"event": "terminate_process_plan", "process_name": process, "command": command},
        )
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=timeout,
                check=False,
            )
        except FileNotFoundError:  # pragma: no cover - non-Windows fallback.
            human_logger.debug("taskkill.exe is unavailable; skipping termination for %s", process)
            continue
        except subprocess.TimeoutExpired:
            human_logger.warning("Timed out attempting to stop %s", process)
            machine_logger.warning(
                "terminate_process_timeout",
                extra={"event": "terminate_process_timeout", "process_name": process},
            )
            continue

        machine_logger.info(
            "terminate_process_result",
            extra={
                "event": "terminate_process_result",
                "process_name": process,
                "return_code": result.returncode,
                "stderr": result.stderr,
            },
        )
        if result.returncode != 0:
            human_logger.debug("taskkill exited with %s for %s", result.returncode, process)
        else:
            human_logger.info("Closed %s", process)


__all__ = ["find_running_processes", "terminate_processes"]

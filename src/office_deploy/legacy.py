"""!
@brief Legacy MSI suite detection and removal sequencing.
@details Legacy suites are found by matching uninstall display names against
fixed labels and removed oldest first with the matching OffScrub script.
Each removal is isolated: a failing or missing script is recorded and the
next version is still attempted. Any existing Click-to-Run installation is
scrubbed afterwards when a legacy suite was removed or the platform or
channel changes.
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List

from . import constants, logging_ext
from .constants import LegacyVersion


def detect_legacy(display_names: Iterable[str]) -> FrozenSet[LegacyVersion]:
    """!
    @brief Match installed application names against the legacy suite labels.
    @details Matching is a case-insensitive substring test. Every matching
    version is returned, not only the first.
    """

    lowered = [str(name).lower() for name in display_names if name]
    found = {
        version
        for version in LegacyVersion
        if any(version.label.lower() in name for name in lowered)
    }
    return frozenset(found)


def removal_order(versions: Iterable[LegacyVersion]) -> List[LegacyVersion]:
    """!
    @brief Sort versions by ascending release year.
    """

    return sorted(set(versions), key=lambda version: version.value)


def build_offscrub_command(script_path: Path, log_dir: Path) -> List[str]:
    """!
    @brief Command line for running an OffScrub script through ``cscript.exe``.
    """

    return [
        constants.SCRIPT_HOST,
        "//Nologo",
        str(script_path),
        *constants.OFFSCRUB_ARGUMENTS,
        "/Log",
        str(log_dir),
    ]


def _run_offscrub(script_path: Path, log_dir: Path, runner, *, event: str, label: str) -> int:
    human_logger = logging_ext.get_human_logger()
    machine_logger = logging_ext.get_machine_logger()

    if not script_path.is_file():
        human_logger.error("Removal script not found: %s", script_path)
        machine_logger.error(
            f"{event}_missing",
            extra={"event": f"{event}_missing", "script": str(script_path), "label": label},
        )
        return constants.EXIT_FILE_NOT_FOUND

    command = build_offscrub_command(script_path, log_dir)
    exit_code = runner.execute(
        command[0],
        command[1:],
        event=event,
        human_message=f"Removing {label}",
    )
    if exit_code in constants.SUCCESS_EXIT_CODES:
        human_logger.info("Removed %s (exit code %s)", label, exit_code)
    else:
        human_logger.warning("Removal of %s exited with code %s", label, exit_code)
    return exit_code


def remove_legacy(
    versions: Iterable[LegacyVersion],
    support_files_dir: Path | str,
    log_dir: Path | str,
    *,
    runner,
) -> Dict[LegacyVersion, int]:
    """!
    @brief Remove each detected legacy suite, oldest first.
    @param versions Tags returned by :func:`detect_legacy`.
    @param support_files_dir Directory containing the OffScrub scripts.
    @param log_dir Directory passed to the scripts for their own logs.
    @param runner Object exposing ``execute(path, arguments, *, event,
    human_message)`` returning an exit code.
    @returns Mapping of version to the exit code of its removal attempt.
    """

    support = Path(support_files_dir)
    logs = Path(log_dir)
    results: Dict[LegacyVersion, int] = {}
    for version in removal_order(versions):
        results[version] = _run_offscrub(
            support / version.script,
            logs,
            runner,
            event=f"legacy_remove_{version.value}",
            label=version.label,
        )
    return results


def should_remove_click_to_run(
    legacy_removed: bool,
    channel_migration: bool,
    platform_migration: bool,
) -> bool:
    """!
    @brief Any one of the three triggers requires scrubbing Click-to-Run first.
    """

    return legacy_removed or channel_migration or platform_migration


def remove_click_to_run(support_files_dir: Path | str, log_dir: Path | str, *, runner) -> int:
    """!
    @brief Scrub the existing Click-to-Run installation with ``OffScrubc2r.vbs``.
    @returns Exit code of the removal script.
    """

    return _run_offscrub(
        Path(support_files_dir) / constants.C2R_REMOVAL_SCRIPT,
        Path(log_dir),
        runner,
        event="c2r_remove",
        label="Click-to-Run Office",
    )


__all__ = [
    "build_offscrub_command",
    "detect_legacy",
    "remove_click_to_run",
    "remove_legacy",
    "removal_order",
    "should_remove_click_to_run",
]

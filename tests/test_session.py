"""!
@brief Tests for the deployment session services and console prompts.
"""

from __future__ import annotations

import io
import sys
from collections import namedtuple
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from office_deploy import session as session_module  # noqa: E402
from office_deploy import ui  # noqa: E402
from office_deploy.config import DeploymentConfig, DeployMode  # noqa: E402
from office_deploy.constants import ProductId  # noqa: E402
from office_deploy.session import (  # noqa: E402
    DeploymentCancelled,
    DeploymentSession,
    InsufficientDiskSpaceError,
)

DiskUsage = namedtuple("DiskUsage", "total used free")


def _config(tmp_path: Path, **overrides) -> DeploymentConfig:
    options = {
        "product": ProductId.VISIO_PRO_RETAIL,
        "deploy_mode": DeployMode.NONINTERACTIVE,
        "support_files_dir": tmp_path,
        "log_dir": tmp_path / "logs",
        "required_disk_space_mb": 0,
        "close_apps": ("visio.exe", "winword.exe"),
    }
    options.update(overrides)
    return DeploymentConfig(**options)


@pytest.fixture
def process_calls(monkeypatch):
    """!
    @brief Patch process enumeration and termination; record terminations.
    """

    calls = {"running": ["visio.exe"], "terminated": []}
    monkeypatch.setattr(
        session_module.processes,
        "find_running_processes",
        lambda names: [name for name in names if name in calls["running"]],
    )
    monkeypatch.setattr(
        session_module.processes,
        "terminate_processes",
        lambda names: calls["terminated"].extend(names),
    )
    return calls


class TestShowWelcome:
    """!
    @brief Welcome step behaviour per deploy mode.
    """

    def test_noninteractive_closes_running_apps(self, tmp_path: Path, process_calls) -> None:
        session = DeploymentSession(_config(tmp_path))

        session.show_welcome(close_apps=session.config.close_apps)

        assert process_calls["terminated"] == ["visio.exe"]

    def test_dry_run_leaves_apps_running(self, tmp_path: Path, process_calls) -> None:
        session = DeploymentSession(_config(tmp_path, dry_run=True))

        session.show_welcome(close_apps=session.config.close_apps)

        assert process_calls["terminated"] == []

    def test_interactive_decline_cancels(self, tmp_path: Path, process_calls) -> None:
        prompts = []

        def answer(prompt: str) -> str:
            prompts.append(prompt)
            return "n"

        session = DeploymentSession(_config(tmp_path, deploy_mode=DeployMode.INTERACTIVE), input_func=answer)

        with pytest.raises(DeploymentCancelled):
            session.show_welcome(close_apps=session.config.close_apps)

        assert prompts
        assert process_calls["terminated"] == []

    def test_interactive_accept_proceeds(self, tmp_path: Path, process_calls) -> None:
        session = DeploymentSession(
            _config(tmp_path, deploy_mode=DeployMode.INTERACTIVE),
            input_func=lambda prompt: "",
        )

        session.show_welcome(close_apps=session.config.close_apps)

        assert process_calls["terminated"] == ["visio.exe"]

    def test_silent_never_prompts(self, tmp_path: Path, process_calls) -> None:
        def fail(prompt: str) -> str:
            raise AssertionError("silent runs must not prompt")

        session = DeploymentSession(_config(tmp_path, deploy_mode=DeployMode.SILENT), input_func=fail)

        session.show_welcome(close_apps=session.config.close_apps)

        assert process_calls["terminated"] == ["visio.exe"]


class TestDiskSpace:
    """!
    @brief Free-space check on the system drive.
    """

    def test_insufficient_space_raises(self, tmp_path: Path, monkeypatch, process_calls) -> None:
        monkeypatch.setattr(
            session_module.shutil,
            "disk_usage",
            lambda drive: DiskUsage(total=0, used=0, free=100 * 1024 * 1024),
        )
        session = DeploymentSession(_config(tmp_path, required_disk_space_mb=4096))

        with pytest.raises(InsufficientDiskSpaceError) as excinfo:
            session.show_welcome(close_apps=(), check_disk_space=True)

        assert excinfo.value.free_mb == 100
        assert excinfo.value.required_mb == 4096

    def test_enough_space_passes(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setattr(
            session_module.shutil,
            "disk_usage",
            lambda drive: DiskUsage(total=0, used=0, free=8192 * 1024 * 1024),
        )
        session = DeploymentSession(_config(tmp_path))

        session.check_disk_space(4096)

    def test_unreadable_drive_is_logged_not_fatal(self, tmp_path: Path, monkeypatch) -> None:
        def broken(drive):
            raise OSError("device not ready")

        monkeypatch.setattr(session_module.shutil, "disk_usage", broken)
        session = DeploymentSession(_config(tmp_path))

        session.check_disk_space(4096)

    def test_system_drive_from_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("SystemDrive", "D:")

        assert session_module.system_drive().startswith("D:")


class TestServices:
    """!
    @brief Pass-through services.
    """

    def test_execute_process_uses_runner(self, tmp_path: Path) -> None:
        calls = []

        class Runner:
            def execute(self, path, arguments=(), *, event="process", human_message=None):
                calls.append((str(path), list(arguments), event))
                return 17

        session = DeploymentSession(_config(tmp_path), runner=Runner())

        assert session.execute_process("setup.exe", ["/configure", "x.xml"], event="odt_install") == 17
        assert calls == [("setup.exe", ["/configure", "x.xml"], "odt_install")]

    def test_installed_applications_are_injectable(self, tmp_path: Path) -> None:
        seen = []

        def listing(name_filter):
            seen.append(name_filter)
            return ["Microsoft Office Professional Plus 2013"]

        session = DeploymentSession(_config(tmp_path), installed_applications=listing)

        assert session.get_installed_applications("Microsoft Office") == ["Microsoft Office Professional Plus 2013"]
        assert seen == ["Microsoft Office"]

    def test_show_error_blocks_only_when_interactive(self, tmp_path: Path) -> None:
        prompts = []
        session = DeploymentSession(
            _config(tmp_path, deploy_mode=DeployMode.INTERACTIVE),
            input_func=lambda prompt: prompts.append(prompt) or "",
        )
        quiet = DeploymentSession(_config(tmp_path), input_func=lambda prompt: prompts.append(prompt) or "")

        quiet.show_error("boom")
        assert prompts == []
        session.show_error("boom")
        assert len(prompts) == 1


class TestPrompts:
    """!
    @brief Console prompt helpers in :mod:`office_deploy.ui`.
    """

    @pytest.mark.parametrize("answer,expected", [("", True), ("Y", True), ("yes", True), ("n", False), ("later", False)])
    def test_welcome_answers(self, answer: str, expected: bool) -> None:
        output = io.StringIO()

        accepted = ui.request_welcome_confirmation(
            "Deploy",
            ["winword.exe"],
            input_func=lambda prompt: answer,
            output=output,
            interactive=True,
        )

        assert accepted is expected
        assert "winword.exe" in output.getvalue()

    def test_eof_declines(self) -> None:
        def eof(prompt: str) -> str:
            raise EOFError

        assert not ui.request_welcome_confirmation("Deploy", input_func=eof, output=io.StringIO(), interactive=True)

    def test_non_interactive_console_accepts(self) -> None:
        assert ui.request_welcome_confirmation("Deploy", interactive=False)

    def test_error_dialog_prints_message(self) -> None:
        output = io.StringIO()

        ui.show_error_dialog("setup failed", input_func=lambda prompt: "", output=output, interactive=True)

        assert "setup failed" in output.getvalue()

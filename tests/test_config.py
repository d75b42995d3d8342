"""!
@brief Configuration file and CLI merge tests.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from office_deploy import config as config_module  # noqa: E402
from office_deploy.config import (  # noqa: E402
    ConfigurationError,
    DeploymentConfig,
    DeploymentType,
    DeployMode,
)
from office_deploy.constants import Architecture, ProductId, UpdateChannel  # noqa: E402
from office_deploy.main import build_arg_parser  # noqa: E402


def _args(*argv: str) -> argparse.Namespace:
    return build_arg_parser().parse_args(list(argv))


def _write_config(tmp_path: Path, payload: dict) -> Path:
    path = tmp_path / "deploy.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


class TestBuildConfig:
    """!
    @brief Assembling :class:`DeploymentConfig` from file and arguments.
    """

    def test_cli_only(self, tmp_path: Path) -> None:
        config = config_module.build_config(
            _args(
                "--product",
                "VisioProRetail",
                "--deployment-type",
                "uninstall",
                "--deploy-mode",
                "silent",
                "--support-files",
                str(tmp_path),
                "--architecture",
                "32",
                "--channel",
                "Current",
                "--dry-run",
            )
        )

        assert config.product is ProductId.VISIO_PRO_RETAIL
        assert config.deployment_type is DeploymentType.UNINSTALL
        assert config.deploy_mode is DeployMode.SILENT
        assert not config.interactive
        assert config.support_files_dir == tmp_path
        assert config.resolved_setup_path == tmp_path / "setup.exe"
        assert config.architecture is Architecture.X86
        assert config.channel is UpdateChannel.CURRENT
        assert config.dry_run

    def test_defaults(self) -> None:
        config = config_module.build_config(_args("--product", "O365ProPlusRetail"))

        assert config.deployment_type is DeploymentType.INSTALL
        assert config.deploy_mode is DeployMode.INTERACTIVE
        assert config.architecture is Architecture.X64
        assert config.channel is UpdateChannel.MONTHLY_ENTERPRISE
        assert config.languages == ("MatchOS",)
        assert config.config_xml_path.name == "configuration.xml"
        assert config.config_xml_path.parent.name == "office-deploy"

    def test_file_values_are_overridden_by_cli(self, tmp_path: Path) -> None:
        path = _write_config(
            tmp_path,
            {
                "product": "ProjectStdXVolume",
                "channel": "SemiAnnual",
                "languages": "en-us, fr-fr",
                "product_keys": {"projectstdxvolume": "AAAAA-BBBBB-CCCCC-DDDDD-EEEEE"},
                "required_disk_space_mb": 1024,
                "close_apps": ["winproj.exe"],
            },
        )

        config = config_module.build_config(_args("--config", str(path), "--channel", "Current"))

        assert config.product is ProductId.PROJECT_STD_X_VOLUME
        assert config.channel is UpdateChannel.CURRENT
        assert config.languages == ("en-us", "fr-fr")
        assert config.product_keys == {"ProjectStdXVolume": "AAAAA-BBBBB-CCCCC-DDDDD-EEEEE"}
        assert config.required_disk_space_mb == 1024
        assert config.close_apps == ("winproj.exe",)

    def test_product_is_required(self) -> None:
        with pytest.raises(ConfigurationError, match="product"):
            config_module.build_config(_args())

    @pytest.mark.parametrize(
        "payload",
        [
            {"product": "AccessRetail"},
            {"product": "VisioProRetail", "architecture": "arm64"},
            {"product": "VisioProRetail", "deploy_mode": "loud"},
            {"product": "VisioProRetail", "required_disk_space_mb": -1},
            {"product": "VisioProRetail", "product_keys": ["nope"]},
            {"product": "VisioProRetail", "colour": "blue"},
        ],
    )
    def test_invalid_values(self, tmp_path: Path, payload: dict) -> None:
        path = _write_config(tmp_path, payload)

        with pytest.raises(ConfigurationError):
            config_module.build_config(_args("--config", str(path)))


class TestDryRunOption:
    """!
    @brief ``dry_run`` accepts booleans and boolean spellings only.
    """

    @pytest.mark.parametrize(
        "value,expected",
        [(True, True), (False, False), ("false", False), ("FALSE", False), ("0", False), ("true", True), ("1", True), (0, False)],
    )
    def test_boolean_spellings(self, value, expected: bool) -> None:
        config = config_module.merge_options(DeploymentConfig(dry_run=not expected), {"dry_run": value})

        assert config.dry_run is expected

    @pytest.mark.parametrize("value", ["maybe", "", 2, [True]])
    def test_invalid_values_rejected(self, value) -> None:
        with pytest.raises(ConfigurationError, match="dry_run"):
            config_module.merge_options(DeploymentConfig(), {"dry_run": value})

    def test_false_string_in_file_keeps_real_run(self, tmp_path: Path) -> None:
        path = _write_config(tmp_path, {"product": "VisioProRetail", "dry_run": "false"})

        assert not config_module.build_config(_args("--config", str(path))).dry_run


class TestLoadConfigFile:
    """!
    @brief Reading the JSON file itself.
    """

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            config_module.load_config_file(tmp_path / "absent.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="not valid JSON"):
            config_module.load_config_file(path)

    def test_top_level_must_be_object(self, tmp_path: Path) -> None:
        path = tmp_path / "list.json"
        path.write_text("[]", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="JSON object"):
            config_module.load_config_file(path)


def test_to_dict_hides_product_keys(tmp_path: Path) -> None:
    config = DeploymentConfig(
        product=ProductId.VISIO_STD_X_VOLUME,
        support_files_dir=tmp_path,
        product_keys={"VisioStdXVolume": "SECRET"},
    )

    payload = config.to_dict()

    assert payload["product"] == "VisioStdXVolume"
    assert payload["product_keys"] == ["VisioStdXVolume"]
    assert "SECRET" not in json.dumps(payload)
    assert payload["setup_path"] == str(tmp_path / "setup.exe")

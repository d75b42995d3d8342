"""!
@brief Deployment configuration.
@details A :class:`DeploymentConfig` is assembled from an optional JSON file
and then overridden by explicit command-line arguments. Values are validated
and converted to the catalog enumerations here so the deployment flows never
see free-form strings.
"""
from __future__ import annotations

import argparse
import json
import os
import tempfile
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple

from . import constants
from .constants import Architecture, ProductId, UpdateChannel


class ConfigurationError(ValueError):
    """!
    @brief Raised when a configuration file or value cannot be used.
    """


class DeploymentType(Enum):
    INSTALL = "install"
    UNINSTALL = "uninstall"


class DeployMode(Enum):
    """!
    @brief How much the run may interact with the logged-on user.
    @details Only ``interactive`` prompts. ``silent`` also keeps the console
    quiet; ``noninteractive`` still reports progress on the console. Running
    Office applications are closed in every mode.
    """

    INTERACTIVE = "interactive"
    SILENT = "silent"
    NONINTERACTIVE = "noninteractive"


def default_log_directory() -> Path:
    """!
    @brief Default directory for this tool's logs and the ODT logs.
    """

    base = os.environ.get("ProgramData") or tempfile.gettempdir()
    return Path(base) / "OfficeDeploy" / "logs"


def default_config_xml_path() -> Path:
    """!
    @brief Fixed location of the generated ODT configuration document.
    """

    return Path(tempfile.gettempdir()) / "office-deploy" / "configuration.xml"


@dataclass(frozen=True)
class DeploymentConfig:
    """!
    @brief Complete set of options for one deployment run.
    """

    product: ProductId | None = None
    deployment_type: DeploymentType = DeploymentType.INSTALL
    deploy_mode: DeployMode = DeployMode.INTERACTIVE
    support_files_dir: Path = field(default_factory=lambda: Path.cwd() / "SupportFiles")
    log_dir: Path = field(default_factory=default_log_directory)
    setup_path: Path | None = None
    config_xml_path: Path = field(default_factory=default_config_xml_path)
    architecture: Architecture = constants.DEFAULT_ARCHITECTURE
    channel: UpdateChannel = constants.DEFAULT_CHANNEL
    languages: Tuple[str, ...] = constants.DEFAULT_LANGUAGES
    product_keys: Mapping[str, str] = field(default_factory=dict)
    required_disk_space_mb: int = constants.DEFAULT_REQUIRED_DISK_SPACE_MB
    timeout: int | None = None
    close_apps: Tuple[str, ...] = constants.OFFICE_PROCESSES
    dry_run: bool = False

    @property
    def resolved_setup_path(self) -> Path:
        return self.setup_path or (self.support_files_dir / constants.SETUP_EXECUTABLE)

    @property
    def interactive(self) -> bool:
        return self.deploy_mode is DeployMode.INTERACTIVE

    def to_dict(self) -> Dict[str, object]:
        """!
        @brief JSON-serialisable view, used for the run's startup event.
        @details Product keys are reported by product id only.
        """

        payload: Dict[str, object] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, Path):
                value = str(value)
            elif isinstance(value, tuple):
                value = list(value)
            payload[item.name] = value
        payload["product_keys"] = sorted(self.product_keys)
        payload["setup_path"] = str(self.resolved_setup_path)
        return payload


_TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})
_FALSE_STRINGS = frozenset({"false", "0", "no", "off"})


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ValueError(f"expected true or false, got {value!r}")


def _convert(name: str, value: Any) -> Any:
    """!
    @brief Convert one raw option value to its typed form.
    @throws ConfigurationError When the value is invalid for ``name``.
    """

    try:
        if name == "product":
            return ProductId.parse(value)
        if name == "deployment_type":
            return DeploymentType(str(value).strip().lower())
        if name == "deploy_mode":
            return DeployMode(str(value).strip().lower())
        if name == "architecture":
            return Architecture.parse(value)
        if name == "channel":
            return UpdateChannel.parse(value)
        if name in ("support_files_dir", "log_dir", "setup_path", "config_xml_path"):
            return Path(str(value)).expanduser()
        if name in ("languages", "close_apps"):
            if isinstance(value, str):
                value = [part for part in value.split(",")]
            return tuple(str(part).strip() for part in value if str(part).strip())
        if name == "product_keys":
            if not isinstance(value, Mapping):
                raise ConfigurationError("product_keys must be an object of product id to key")
            keys: Dict[str, str] = {}
            for product_name, key in value.items():
                keys[ProductId.parse(product_name).value] = str(key)
            return keys
        if name == "required_disk_space_mb":
            number = int(value)
            if number < 0:
                raise ConfigurationError("required_disk_space_mb must not be negative")
            return number
        if name == "timeout":
            return None if value in (None, "", 0) else int(value)
        if name == "dry_run":
            return _parse_bool(value)
    except ConfigurationError:
        raise
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid value for {name}: {exc}") from exc
    raise ConfigurationError(f"Unknown configuration option: {name}")


def merge_options(base: DeploymentConfig, options: Mapping[str, Any]) -> DeploymentConfig:
    """!
    @brief Return ``base`` with every non-``None`` entry of ``options`` applied.
    """

    known = {item.name for item in fields(DeploymentConfig)}
    updates: Dict[str, Any] = {}
    for name, value in options.items():
        if value is None:
            continue
        if name not in known:
            raise ConfigurationError(f"Unknown configuration option: {name}")
        updates[name] = _convert(name, value)
    return replace(base, **updates)


def load_config_file(path: Path | str) -> Dict[str, Any]:
    """!
    @brief Read a JSON configuration file into a mapping.
    @throws ConfigurationError When the file is missing, unreadable or not a
    JSON object.
    """

    config_path = Path(path)
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Configuration file not found: {config_path}") from exc
    except OSError as exc:
        raise ConfigurationError(f"Cannot read configuration file {config_path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Configuration file {config_path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {config_path} must contain a JSON object")
    return data


def build_config(args: argparse.Namespace) -> DeploymentConfig:
    """!
    @brief Combine the optional ``--config`` file with explicit CLI arguments.
    @details CLI values win over file values; unset CLI options are ``None``
    and therefore leave file values in place.
    """

    config = DeploymentConfig()
    config_file = getattr(args, "config", None)
    if config_file:
        config = merge_options(config, load_config_file(config_file))

    cli_options = {
        "product": getattr(args, "product", None),
        "deployment_type": getattr(args, "deployment_type", None),
        "deploy_mode": getattr(args, "deploy_mode", None),
        "support_files_dir": getattr(args, "support_files", None),
        "log_dir": getattr(args, "logdir", None),
        "setup_path": getattr(args, "setup", None),
        "architecture": getattr(args, "architecture", None),
        "channel": getattr(args, "channel", None),
        "timeout": getattr(args, "timeout", None),
        "dry_run": True if getattr(args, "dry_run", False) else None,
    }
    config = merge_options(config, cli_options)

    if config.product is None:
        raise ConfigurationError("A product must be selected with --product or the configuration file")
    return config


__all__ = [
    "ConfigurationError",
    "DeployMode",
    "DeploymentConfig",
    "DeploymentType",
    "build_config",
    "default_config_xml_path",
    "default_log_directory",
    "load_config_file",
    "merge_options",
]

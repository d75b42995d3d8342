"""!
@brief Read-only registry helpers.
@details Thin ``winreg`` wrappers used by detection to read the Click-to-Run
configuration and the uninstall inventory. Nothing in this project writes to
the registry.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, Tuple

try:  # pragma: no cover - exercised through mocks on non-Windows platforms.
    import winreg
except ImportError:  # pragma: no cover - handled gracefully during tests.
    winreg = None  # type: ignore[assignment]


def _ensure_winreg() -> None:
    """!
    @brief Raise an informative error when ``winreg`` is unavailable.
    """

    if winreg is None:  # pragma: no cover - simplifies non-Windows test runs.
        raise FileNotFoundError("Windows registry APIs are unavailable on this platform")


@contextmanager
def open_key(root: int, path: str, access: int | None = None) -> Iterator[Any]:
    """!
    @brief Context manager that mirrors ``winreg.OpenKey`` and always closes
    the handle.
    """

    _ensure_winreg()
    access_mask = access if access is not None else winreg.KEY_READ  # type: ignore[union-attr]
    handle = winreg.OpenKey(root, path, 0, access_mask)  # type: ignore[union-attr]
    try:
        yield handle
    finally:
        winreg.CloseKey(handle)  # type: ignore[union-attr]


def iter_subkeys(root: int, path: str) -> Iterator[str]:
    """!
    @brief Yield subkey names for ``root``/``path``.
    """

    _ensure_winreg()
    with open_key(root, path) as handle:
        subkey_count, _, _ = winreg.QueryInfoKey(handle)  # type: ignore[union-attr]
        for index in range(subkey_count):
            yield winreg.EnumKey(handle, index)  # type: ignore[union-attr]


def iter_values(root: int, path: str) -> Iterator[Tuple[str, Any]]:
    """!
    @brief Yield value name/value pairs for ``root``/``path``.
    """

    _ensure_winreg()
    with open_key(root, path) as handle:
        _, value_count, _ = winreg.QueryInfoKey(handle)  # type: ignore[union-attr]
        for index in range(value_count):
            name, value, _ = winreg.EnumValue(handle, index)  # type: ignore[union-attr]
            yield name, value


def read_values(root: int, path: str) -> Dict[str, Any]:
    """!
    @brief Read all values beneath ``root``/``path`` into a dictionary.
    @details Missing keys and access failures both yield an empty mapping.
    """

    data: Dict[str, Any] = {}
    try:
        for name, value in iter_values(root, path):
            data[name] = value
    except OSError:
        return {}
    return data


def list_subkeys(root: int, path: str) -> list[str]:
    """!
    @brief Return subkey names, or an empty list when the key is unreadable.
    """

    try:
        return list(iter_subkeys(root, path))
    except OSError:
        return []


def hive_name(root: int) -> str:
    """!
    @brief Provide a friendly identifier for a registry hive.
    """

    mapping = {
        getattr(winreg, "HKEY_LOCAL_MACHINE", 0x80000002): "HKLM",
        getattr(winreg, "HKEY_CURRENT_USER", 0x80000001): "HKCU",
    }
    return mapping.get(root, hex(root))


__all__ = [
    "hive_name",
    "iter_subkeys",
    "iter_values",
    "list_subkeys",
    "open_key",
    "read_values",
]

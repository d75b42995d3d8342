"""!
@brief Detection helpers for Click-to-Run and installed applications.
@details Reads the persisted Click-to-Run configuration into an immutable
:class:`InstalledInventory` and enumerates uninstall-key display names for
legacy-suite detection. Both reads happen once per run; nothing here writes
to the system.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, FrozenSet, List, Mapping, Tuple

from . import constants, logging_ext, registry_tools
from .constants import Architecture, ProductId


@dataclass(frozen=True)
class InstalledInventory:
    """!
    @brief Snapshot of the Click-to-Run installation on the target machine.
    @details ``products`` holds only catalog members. Release ids outside the
    catalog (language packs, other suites) are kept in ``other_release_ids``
    so they can be logged.
    """

    products: FrozenSet[ProductId] = frozenset()
    platform: Architecture | None = None
    channel_url: str | None = None
    other_release_ids: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.products

    @property
    def has_click_to_run(self) -> bool:
        """!
        @brief ``True`` when any Click-to-Run release is installed.
        @details Counts release ids outside the catalog too, so a machine with
        only other suites or language packs still reports its platform and
        channel.
        """

        return bool(self.products or self.other_release_ids)

    def __contains__(self, product: object) -> bool:
        return product in self.products

    def to_dict(self) -> dict:
        """!
        @brief Convert the inventory to a JSON-serialisable dictionary.
        """

        return {
            "products": sorted(product.value for product in self.products),
            "platform": self.platform.value if self.platform else None,
            "channel_url": self.channel_url,
            "other_release_ids": list(self.other_release_ids),
        }


def parse_c2r_configuration(values: Mapping[str, Any]) -> InstalledInventory:
    """!
    @brief Build an :class:`InstalledInventory` from raw configuration values.
    @param values Mapping of registry value names (``Platform``,
    ``CDNBaseUrl``, ``ProductReleaseIds``) to their data.
    """

    raw_release_ids = str(values.get("ProductReleaseIds") or "").split(",")
    products: set[ProductId] = set()
    others: list[str] = []
    for raw in raw_release_ids:
        release_id = raw.strip()
        if not release_id:
            continue
        try:
            products.add(ProductId.parse(release_id))
        except ValueError:
            if release_id not in others:
                others.append(release_id)

    platform: Architecture | None = None
    raw_platform = values.get("Platform")
    if raw_platform:
        try:
            platform = Architecture.parse(str(raw_platform))
        except ValueError:
            platform = None

    channel_url = str(values.get("CDNBaseUrl") or "").strip() or None

    return InstalledInventory(
        products=frozenset(products),
        platform=platform,
        channel_url=channel_url,
        other_release_ids=tuple(others),
    )


def read_installed_inventory() -> InstalledInventory:
    """!
    @brief Read the Click-to-Run configuration key and parse it.
    @details A missing key (fresh machine, or MSI-only Office) produces an
    empty inventory.
    """

    human_logger = logging_ext.get_human_logger()
    machine_logger = logging_ext.get_machine_logger()

    hive, path = constants.C2R_CONFIGURATION_KEY
    values = registry_tools.read_values(hive, path)
    inventory = parse_c2r_configuration(values)

    if inventory.is_empty:
        human_logger.info("No Click-to-Run products from the catalog are installed.")
    else:
        human_logger.info(
            "Installed Click-to-Run products: %s (platform %s)",
            ", ".join(sorted(product.value for product in inventory.products)),
            inventory.platform.value if inventory.platform else "unknown",
        )
    if inventory.other_release_ids:
        human_logger.info(
            "Ignoring release ids outside the catalog: %s", ", ".join(inventory.other_release_ids)
        )

    machine_logger.info(
        "c2r_inventory",
        extra={
            "event": "c2r_inventory",
            "key": f"{registry_tools.hive_name(hive)}\\{path}",
            "inventory": inventory.to_dict(),
        },
    )
    return inventory


def get_installed_applications(name_filter: str | None = None) -> List[str]:
    """!
    @brief Enumerate ``DisplayName`` values from the uninstall registry keys.
    @param name_filter Optional case-insensitive substring the name must
    contain.
    @returns Display names in registry order, without duplicates.
    """

    needle = name_filter.lower() if name_filter else None
    names: List[str] = []
    for hive, root in constants.UNINSTALL_ROOTS:
        for subkey in registry_tools.list_subkeys(hive, root):
            values = registry_tools.read_values(hive, f"{root}\\{subkey}")
            display_name = str(values.get("DisplayName") or "").strip()
            if not display_name:
                continue
            if needle is not None and needle not in display_name.lower():
                continue
            if display_name not in names:
                names.append(display_name)
    return names


__all__ = [
    "InstalledInventory",
    "get_installed_applications",
    "parse_c2r_configuration",
    "read_installed_inventory",
]

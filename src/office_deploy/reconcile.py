"""!
@brief Product-edition reconciliation.
@details Computes which Click-to-Run products to request from the Office
Deployment Tool given the requested edition and the installed inventory.
Installed products are preserved unless a substitution rule replaces them
with the requested edition of the same family. The rule table is fixed and
intentionally asymmetric: a subscription Pro edition may be converted down to
Pro volume, but not to Standard volume.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple

from .constants import Architecture, ProductId, UpdateChannel, normalise_cdn_url
from .detect import InstalledInventory


@dataclass(frozen=True)
class SubstitutionRule:
    """!
    @brief ``source`` installed and ``target`` requested implies ``source`` is dropped.
    """

    source: ProductId
    target: ProductId

    def applies(self, requested: ProductId, inventory: InstalledInventory) -> bool:
        return requested is self.target and self.source in inventory.products


def _family_rules(std_volume: ProductId, pro_volume: ProductId, pro_retail: ProductId) -> Tuple[SubstitutionRule, ...]:
    return (
        SubstitutionRule(std_volume, pro_retail),
        SubstitutionRule(pro_volume, pro_retail),
        SubstitutionRule(std_volume, pro_volume),
        SubstitutionRule(pro_volume, std_volume),
        SubstitutionRule(pro_retail, pro_volume),
    )


SUBSTITUTION_RULES: Tuple[SubstitutionRule, ...] = _family_rules(
    ProductId.VISIO_STD_X_VOLUME,
    ProductId.VISIO_PRO_X_VOLUME,
    ProductId.VISIO_PRO_RETAIL,
) + _family_rules(
    ProductId.PROJECT_STD_X_VOLUME,
    ProductId.PROJECT_PRO_X_VOLUME,
    ProductId.PROJECT_PRO_RETAIL,
)
"""!
@brief The ten directional migrations, five per companion family.
"""


@dataclass(frozen=True)
class ProductMigration:
    """!
    @brief A fired substitution: ``source`` is replaced by ``target``.
    """

    source: ProductId
    target: ProductId


@dataclass(frozen=True)
class ReconcileResult:
    """!
    @brief Immutable outcome of :func:`reconcile`.
    @details ``target_set`` lists the requested edition first followed by the
    preserved products in catalog order. The migration flags are informational
    and have no further effect on ``target_set``.
    """

    requested: ProductId
    target_set: Tuple[ProductId, ...]
    product_migrations: Tuple[ProductMigration, ...] = ()
    platform_migration: bool = False
    channel_migration: bool = False

    @property
    def product_migration(self) -> bool:
        return bool(self.product_migrations)

    @property
    def removed(self) -> Tuple[ProductId, ...]:
        return tuple(migration.source for migration in self.product_migrations)

    def to_dict(self) -> dict:
        return {
            "requested": self.requested.value,
            "target_set": [product.value for product in self.target_set],
            "product_migrations": [
                {"source": item.source.value, "target": item.target.value}
                for item in self.product_migrations
            ],
            "platform_migration": self.platform_migration,
            "channel_migration": self.channel_migration,
        }


def _catalog_order(products: Iterable[ProductId]) -> list[ProductId]:
    order = list(ProductId)
    return sorted(set(products), key=order.index)


def reconcile(
    requested: ProductId,
    inventory: InstalledInventory,
    *,
    platform: Architecture | None = None,
    channel: UpdateChannel | None = None,
    rules: Sequence[SubstitutionRule] = SUBSTITUTION_RULES,
) -> ReconcileResult:
    """!
    @brief Compute the product set to request from the installer.
    @param requested Edition the caller wants installed.
    @param inventory Click-to-Run products currently installed.
    @param platform Target bitness; a difference from the installed platform
    raises the platform-migration flag.
    @param channel Target update channel; a different installed CDN URL raises
    the channel-migration flag.
    @param rules Substitution table, exposed so ordering can be exercised.
    @returns :class:`ReconcileResult` with the final product set and flags.
    """

    target: set[ProductId] = {requested}
    if not inventory.is_empty:
        target.update(product for product in inventory.products if product is not requested)

    migrations: list[ProductMigration] = []
    for rule in rules:
        if rule.applies(requested, inventory):
            target.discard(rule.source)
            migrations.append(ProductMigration(rule.source, rule.target))

    platform_migration = False
    channel_migration = False
    if inventory.has_click_to_run:
        if platform is not None and inventory.platform is not None:
            platform_migration = inventory.platform is not platform
        if channel is not None and inventory.channel_url:
            channel_migration = normalise_cdn_url(inventory.channel_url) != normalise_cdn_url(
                channel.cdn_url
            )

    preserved = [product for product in _catalog_order(target) if product is not requested]
    return ReconcileResult(
        requested=requested,
        target_set=(requested, *preserved),
        product_migrations=tuple(migrations),
        platform_migration=platform_migration,
        channel_migration=channel_migration,
    )


__all__ = [
    "ProductMigration",
    "ReconcileResult",
    "SUBSTITUTION_RULES",
    "SubstitutionRule",
    "reconcile",
]

"""
Pricing and bill-of-materials engine.

Assembles BOM lines in a fixed order and totals them. Line items keep
full precision; only the list and net totals are rounded to cents. A
missing price key is an error, never a zero-priced line.
"""

import logging
from typing import Optional

from pump_cpq.schemas.quote_schema import BOMItem, Pricing, PumpConfiguration
from pump_cpq.tools.catalog import DEFAULT_CATALOG, Catalog, PricedPart

logger = logging.getLogger(__name__)


class PricingError(Exception):
    """Raised when a configuration cannot be priced from the catalog tables."""


def motor_key(motor_hp: float, voltage: str) -> str:
    """Motor price-table key, e.g. ``"7.5|460V_3ph"`` or ``"3|230V_1ph"``."""
    return f"{motor_hp:g}|{voltage}"


def _line(sku: str, description: str, unit_price: float, quantity: int = 1) -> BOMItem:
    return BOMItem(
        sku=sku,
        description=description,
        quantity=quantity,
        unit_price=unit_price,
        extended_price=unit_price * quantity,
    )


def _part_line(part: PricedPart) -> BOMItem:
    return _line(part.sku, part.description, part.price, part.quantity)


def _lookup(table: dict[str, PricedPart], key: str, table_name: str) -> PricedPart:
    try:
        return table[key]
    except KeyError:
        raise PricingError(f"No {table_name} price for key {key!r}") from None


def build_bom(config: PumpConfiguration, catalog: Catalog = DEFAULT_CATALOG) -> list[BOMItem]:
    """Expand a configuration into priced BOM lines in assembly order."""
    missing = [
        name
        for name in ("family", "impeller", "motor_hp", "voltage", "seal_type", "material", "mount")
        if getattr(config, name) in (None, "")
    ]
    if missing:
        raise PricingError(f"Configuration is missing fields required for pricing: {', '.join(missing)}")

    rules = catalog.bom
    material = config.material.value
    voltage = config.voltage.value

    casing = rules.casing
    try:
        casing_price = casing.unit_price[config.family][material]
    except KeyError:
        raise PricingError(f"No casing price for {config.family} in {material}") from None

    bom = [
        _line(
            casing.sku.format(family=config.family, material=material),
            casing.description.format(family=config.family, material=material),
            casing_price,
            casing.quantity,
        ),
        _part_line(_lookup(rules.impellers, config.impeller, "impeller")),
        _part_line(_lookup(rules.motors, motor_key(config.motor_hp, voltage), "motor")),
        _part_line(_lookup(rules.seal_kits, f"{config.seal_type.value}|{material}", "seal kit")),
        _part_line(_lookup(rules.mounts, config.mount.value, "mount")),
        _part_line(rules.coupling),
    ]
    if config.atex:
        bom.append(_part_line(rules.atex))
    bom.append(_part_line(rules.fasteners))
    bom.append(_part_line(rules.finish))
    return bom


def calculate_pricing(
    config: PumpConfiguration,
    catalog: Catalog = DEFAULT_CATALOG,
    discount_percent: Optional[float] = None,
) -> Pricing:
    """
    Price a configuration.

    Args:
        config: A fully selected configuration.
        catalog: Price tables to use.
        discount_percent: Override for the catalog's default discount.

    Returns:
        Pricing with the BOM, list total, discount and net total.

    Raises:
        ValueError: If the discount is outside 0-100.
        PricingError: If any price key is missing from the catalog.
    """
    if discount_percent is None:
        discount_percent = catalog.default_discount_pct
    if not 0 <= discount_percent <= 100:
        raise ValueError(f"Discount must be between 0 and 100, got {discount_percent}")

    bom = build_bom(config, catalog)
    list_total = round(sum(item.extended_price for item in bom), 2)
    net_total = round(list_total * (1 - discount_percent / 100), 2)

    logger.info(
        "Priced %s: list %.2f, net %.2f at %s%% discount (%d lines)",
        config.family, list_total, net_total, discount_percent, len(bom),
    )
    return Pricing(
        list_total=list_total,
        discount_percent=discount_percent,
        net_total=net_total,
        bom=bom,
    )

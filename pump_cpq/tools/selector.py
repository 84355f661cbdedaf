"""Configuration selector: complete requirements in, proposed pump build out."""

import logging
from dataclasses import dataclass

from pump_cpq.schemas.quote_schema import MountType, PumpConfiguration, SealType
from pump_cpq.schemas.requirement_schema import (
    Environment,
    MaintenanceBias,
    Material,
    PumpRequirements,
)
from pump_cpq.tools.catalog import DEFAULT_CATALOG, Catalog, FlowHeadRow

logger = logging.getLogger(__name__)

CLOSE_COUPLED_MAX_HP = 7.5


@dataclass
class SelectionResult:
    """Selected configuration plus the row it came from."""
    configuration: PumpConfiguration
    row: FlowHeadRow
    used_fallback: bool = False


def match_flow_head(catalog: Catalog, gpm: float, head_ft: float) -> tuple[FlowHeadRow, bool]:
    """Return the first row containing (gpm, head_ft), or the first row as a fallback.

    Table order is significant and is never re-sorted.
    """
    for row in catalog.flow_head_map:
        if row.contains(gpm, head_ft):
            return row, False
    return catalog.flow_head_map[0], True


def select_configuration(
    requirements: PumpRequirements, catalog: Catalog = DEFAULT_CATALOG
) -> SelectionResult:
    """Derive a pump configuration from complete requirements."""
    if not requirements.is_complete():
        raise ValueError("Cannot select a configuration before all requirements are known")

    row, used_fallback = match_flow_head(catalog, requirements.gpm, requirements.head_ft)
    if used_fallback:
        logger.warning(
            "No flow/head row matches %s gpm at %s ft, falling back to %s",
            requirements.gpm, requirements.head_ft, row.family,
        )

    if requirements.material_pref is not None:
        material = requirements.material_pref
    elif requirements.environment == Environment.ATEX:
        material = Material.STAINLESS
    else:
        material = Material.CAST_IRON

    configuration = PumpConfiguration(
        family=row.family,
        impeller=row.impeller_code,
        motor_hp=row.motor_hp,
        voltage=requirements.power_available,
        seal_type=(
            SealType.MECHANICAL
            if requirements.maintenance_bias == MaintenanceBias.LOW_MAINTENANCE
            else SealType.PACKING
        ),
        material=material,
        mount=MountType.CLOSE_COUPLED if row.motor_hp <= CLOSE_COUPLED_MAX_HP else MountType.BASE,
        atex=requirements.environment == Environment.ATEX,
    )
    logger.info(
        "Selected %s with %s HP motor (%s)",
        configuration.family, configuration.motor_hp, configuration.impeller,
    )
    return SelectionResult(configuration=configuration, row=row, used_fallback=used_fallback)

"""Constraint validator for proposed pump configurations.

Every rule is evaluated independently so a configuration that breaks
several rules reports all of them, not just the first.
"""

import logging

from pump_cpq.schemas.quote_schema import MountType, PumpConfiguration, SealType, ValidationResult
from pump_cpq.schemas.requirement_schema import (
    Environment,
    Material,
    PowerSupply,
    PumpRequirements,
)

logger = logging.getLogger(__name__)

SINGLE_PHASE_MAX_HP = 3
THREE_PHASE_MIN_HP = 5
CLOSE_COUPLED_MAX_HP = 7.5
ATEX_MIN_HP = 5

INVALID_SUGGESTION = "Please adjust the configuration to meet all constraints."
VALID_SUGGESTION = "Configuration is valid."
ATEX_VIOLATION = (
    "ATEX compliance requires: Stainless material, Mechanical seal, "
    "460V 3-phase, Base mount, and Motor HP >= 5"
)

_REQUIRED_FIELDS: list[tuple[str, str]] = [
    ("family", "Pump family is required"),
    ("motor_hp", "Motor HP is required"),
    ("voltage", "Voltage is required"),
    ("seal_type", "Seal type is required"),
    ("material", "Material is required"),
    ("mount", "Mount type is required"),
]


def _atex_compliant(config: PumpConfiguration) -> bool:
    return (
        config.material == Material.STAINLESS
        and config.seal_type == SealType.MECHANICAL
        and config.voltage == PowerSupply.THREE_PHASE_460V
        and config.mount == MountType.BASE
        and (config.motor_hp or 0) >= ATEX_MIN_HP
    )


def validate_configuration(
    config: PumpConfiguration, requirements: PumpRequirements
) -> ValidationResult:
    """Check a configuration against electrical, mounting and ATEX rules."""
    violations = [message for attr, message in _REQUIRED_FIELDS if not getattr(config, attr)]

    hp = config.motor_hp or 0
    if config.voltage == PowerSupply.SINGLE_PHASE_230V and hp > SINGLE_PHASE_MAX_HP:
        violations.append("230V 1-phase requires Motor HP <= 3")
    if config.voltage == PowerSupply.THREE_PHASE_460V and hp < THREE_PHASE_MIN_HP:
        violations.append("460V 3-phase requires Motor HP >= 5")
    if config.mount == MountType.CLOSE_COUPLED and hp > CLOSE_COUPLED_MAX_HP:
        violations.append("Close coupled mount requires Motor HP <= 7.5")

    if requirements.environment == Environment.ATEX and config.atex and not _atex_compliant(config):
        violations.append(ATEX_VIOLATION)

    if violations:
        logger.info("Configuration failed %d constraint(s)", len(violations))

    return ValidationResult(
        is_valid=not violations,
        violations=violations,
        suggestion=INVALID_SUGGESTION if violations else VALID_SUGGESTION,
    )

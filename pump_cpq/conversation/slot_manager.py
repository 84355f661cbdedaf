"""
Field manager for requirement and contact slots.

Owns the canonical question order, per-field normalization, and the
first-write-wins merge used by every extraction strategy. Merging never
removes or overwrites a value that is already set, so applying the same
update twice leaves the state unchanged after the first time.

Usage:
    manager = SlotManager()
    merged = manager.merge(customer, requirements, {"gpm": "50", "headFt": 80})
    next_key = manager.missing_requirements(requirements)[0]
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from pump_cpq.schemas.customer_schema import CustomerInfo
from pump_cpq.schemas.requirement_schema import (
    Environment,
    MaintenanceBias,
    Material,
    PowerSupply,
    PumpRequirements,
)
from pump_cpq.utils import normalize_phone

logger = logging.getLogger(__name__)

# Validation thresholds
MIN_NAME_LENGTH = 2
MIN_PHONE_DIGITS = 7
MAX_PHONE_DIGITS = 15

EMAIL_PATTERN = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
_NUMBER_PATTERN = re.compile(r"-?\d+(?:\.\d+)?")

# Values an extractor may emit that mean "nothing here"
EMPTY_MARKERS = frozenset({"", "null", "none", "n/a", "na", "unknown", "undefined", "not provided"})

NO_PREFERENCE_PATTERN = re.compile(
    r"\b(no preference|no pref|don'?t care|doesn'?t matter|either|any|whatever|"
    r"not sure|no idea|up to you)\b"
)


class SlotGroup(str, Enum):
    REQUIREMENT = "requirement"
    CUSTOMER = "customer"


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip().lower() in EMPTY_MARKERS
    return False


def means_no_preference(text: str) -> bool:
    return NO_PREFERENCE_PATTERN.search(text.lower()) is not None


def _normalize_positive_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = _NUMBER_PATTERN.search(str(value).replace(",", ""))
        if not match:
            return None
        number = float(match.group())
    return number if number > 0 else None


def _normalize_fluid(value: Any) -> Optional[str]:
    text = str(value).strip()
    return text.lower() if text else None


def _normalize_power(value: Any) -> Optional[PowerSupply]:
    text = str(value).strip().lower().replace(" ", "").replace("-", "").replace("_", "")
    if "230" in text or "single" in text or "1ph" in text or "1phase" in text:
        return PowerSupply.SINGLE_PHASE_230V
    if "460" in text or "480" in text or "three" in text or "3ph" in text or "3phase" in text:
        return PowerSupply.THREE_PHASE_460V
    return None


def _normalize_environment(value: Any) -> Optional[Environment]:
    text = str(value).strip().lower()
    compact = text.replace(" ", "").replace("-", "").replace("_", "")
    if compact.startswith("non") or compact in ("standard", "safe", "normal", "no", "false"):
        return Environment.NON_ATEX
    if "atex" in compact or "explosi" in compact or "hazard" in compact or compact in ("yes", "true"):
        return Environment.ATEX
    return None


def _normalize_material(value: Any) -> Optional[Material]:
    text = str(value).strip().lower()
    compact = text.replace(" ", "").replace("-", "").replace("_", "")
    if "stainless" in compact or compact in ("ss", "316", "304"):
        return Material.STAINLESS
    if "castiron" in compact or compact in ("iron", "ci"):
        return Material.CAST_IRON
    if means_no_preference(text):
        return Material.CAST_IRON
    return None


def _normalize_maintenance(value: Any) -> Optional[MaintenanceBias]:
    text = str(value).strip().lower()
    compact = text.replace(" ", "").replace("-", "").replace("_", "")
    if "lowmaint" in compact or "reliab" in compact or "minimal" in compact or "longlife" in compact:
        return MaintenanceBias.LOW_MAINTENANCE
    if "budget" in compact or "cheap" in compact or "lowcost" in compact or "economy" in compact:
        return MaintenanceBias.BUDGET
    if means_no_preference(text):
        return MaintenanceBias.BUDGET
    return None


def _normalize_name(value: Any) -> Optional[str]:
    text = " ".join(str(value).split())
    if len(text) < MIN_NAME_LENGTH:
        return None
    return text.title() if text.islower() else text


def _normalize_company(value: Any) -> Optional[str]:
    text = " ".join(str(value).split())
    return text or None


def _normalize_email(value: Any) -> Optional[str]:
    match = EMAIL_PATTERN.search(str(value))
    return match.group().lower() if match else None


def _normalize_phone(value: Any) -> Optional[str]:
    phone = normalize_phone(str(value))
    digits = phone.lstrip("+")
    if not MIN_PHONE_DIGITS <= len(digits) <= MAX_PHONE_DIGITS:
        return None
    return phone


@dataclass(frozen=True)
class SlotDefinition:
    """Schema for a single field to collect."""

    key: str
    attr: str
    group: SlotGroup
    display_name: str
    prompt_hint: str = ""
    normalizer: Optional[Callable[[Any], Any]] = None


class SlotManager:
    """
    Canonical field order, normalization and first-write-wins merging.

    Extraction strategies hand in raw ``{key: value}`` updates using the
    wire keys below; the manager decides which of them become state.
    """

    REQUIREMENT_SLOTS: list[SlotDefinition] = [
        SlotDefinition(
            key="gpm", attr="gpm", group=SlotGroup.REQUIREMENT,
            display_name="flow rate (GPM)",
            prompt_hint="flow rate in GPM (gallons per minute), typically between 10 and 400 GPM",
            normalizer=_normalize_positive_number,
        ),
        SlotDefinition(
            key="headFt", attr="head_ft", group=SlotGroup.REQUIREMENT,
            display_name="head (feet)",
            prompt_hint="head pressure in feet, the vertical distance the pump needs to move fluid",
            normalizer=_normalize_positive_number,
        ),
        SlotDefinition(
            key="fluid", attr="fluid", group=SlotGroup.REQUIREMENT,
            display_name="fluid",
            prompt_hint="type of fluid being pumped (water, oil, chemicals, etc.)",
            normalizer=_normalize_fluid,
        ),
        SlotDefinition(
            key="powerAvailable", attr="power_available", group=SlotGroup.REQUIREMENT,
            display_name="power supply",
            prompt_hint="available power supply (230V single-phase or 460V three-phase)",
            normalizer=_normalize_power,
        ),
        SlotDefinition(
            key="environment", attr="environment", group=SlotGroup.REQUIREMENT,
            display_name="environment",
            prompt_hint="environment type (ATEX explosive atmosphere or standard non-ATEX)",
            normalizer=_normalize_environment,
        ),
        SlotDefinition(
            key="materialPref", attr="material_pref", group=SlotGroup.REQUIREMENT,
            display_name="material preference",
            prompt_hint="material preference (cast iron for budget or stainless steel for corrosion resistance)",
            normalizer=_normalize_material,
        ),
        SlotDefinition(
            key="maintenanceBias", attr="maintenance_bias", group=SlotGroup.REQUIREMENT,
            display_name="maintenance preference",
            prompt_hint="maintenance preference (budget-friendly or low maintenance)",
            normalizer=_normalize_maintenance,
        ),
    ]

    CUSTOMER_SLOTS: list[SlotDefinition] = [
        SlotDefinition(
            key="name", attr="name", group=SlotGroup.CUSTOMER,
            display_name="name", prompt_hint="the customer's name",
            normalizer=_normalize_name,
        ),
        SlotDefinition(
            key="company", attr="company", group=SlotGroup.CUSTOMER,
            display_name="company", prompt_hint="the company the pump is for (optional)",
            normalizer=_normalize_company,
        ),
        SlotDefinition(
            key="email", attr="email", group=SlotGroup.CUSTOMER,
            display_name="email address", prompt_hint="an email address for the quote",
            normalizer=_normalize_email,
        ),
        SlotDefinition(
            key="phone", attr="phone", group=SlotGroup.CUSTOMER,
            display_name="phone number", prompt_hint="a phone number for the quote",
            normalizer=_normalize_phone,
        ),
    ]

    # Question keys for contact details; email and phone are asked as one
    CUSTOMER_QUESTION_ORDER: list[str] = ["name", "company", "email_or_phone"]

    def __init__(self) -> None:
        self._by_key: dict[str, SlotDefinition] = {
            defn.key: defn for defn in self.REQUIREMENT_SLOTS + self.CUSTOMER_SLOTS
        }

    def get_definition(self, key: str) -> SlotDefinition:
        try:
            return self._by_key[key]
        except KeyError:
            raise ValueError(f"Unknown slot: {key}") from None

    def display_name(self, key: str) -> str:
        if key == "email_or_phone":
            return "email address or phone number"
        return self.get_definition(key).display_name

    def prompt_hint(self, key: str) -> str:
        if key == "email_or_phone":
            return "an email address or phone number so the quote can be sent"
        return self.get_definition(key).prompt_hint

    def normalize(self, key: str, value: Any) -> Any:
        """Sanitize and normalize one raw value. Returns None when unusable."""
        if _is_empty(value):
            return None
        defn = self.get_definition(key)
        return defn.normalizer(value) if defn.normalizer else value

    def merge(
        self,
        customer: CustomerInfo,
        requirements: PumpRequirements,
        updates: dict[str, Any],
        *,
        overwrite: bool = False,
    ) -> list[str]:
        """
        Merge raw updates into state.

        Unknown keys and unusable values are ignored. Without ``overwrite``,
        a field that already holds a value is left untouched.

        Returns:
            Keys whose value was actually written.
        """
        merged: list[str] = []
        for key, raw in updates.items():
            if key not in self._by_key:
                continue
            value = self.normalize(key, raw)
            if value is None:
                continue
            defn = self._by_key[key]
            target = requirements if defn.group == SlotGroup.REQUIREMENT else customer
            current = getattr(target, defn.attr)
            if current is not None and not overwrite:
                continue
            if current == value:
                continue
            setattr(target, defn.attr, value)
            merged.append(key)
            logger.debug("Slot '%s' set to %r", key, value)
        return merged

    def missing_requirements(self, requirements: PumpRequirements) -> list[str]:
        """Unset requirement keys in canonical question order."""
        return [
            defn.key for defn in self.REQUIREMENT_SLOTS
            if getattr(requirements, defn.attr) is None
        ]

    def missing_customer_info(self, customer: CustomerInfo) -> list[str]:
        """Unresolved contact items in question order.

        Company counts as missing only while it is literally unset.
        """
        missing: list[str] = []
        if not customer.name:
            missing.append("name")
        if customer.company is None:
            missing.append("company")
        if not customer.has_contact:
            missing.append("email_or_phone")
        return missing

    def is_resolved(self, key: str, customer: CustomerInfo, requirements: PumpRequirements) -> bool:
        """Whether the field behind a question key now holds a value."""
        if key == "email_or_phone":
            return customer.has_contact
        defn = self.get_definition(key)
        target = requirements if defn.group == SlotGroup.REQUIREMENT else customer
        return getattr(target, defn.attr) is not None

    def gathered_summary(self, customer: CustomerInfo, requirements: PumpRequirements) -> list[str]:
        """Human-readable lines for everything collected so far."""
        lines: list[str] = []
        for defn in self.CUSTOMER_SLOTS + self.REQUIREMENT_SLOTS:
            target = requirements if defn.group == SlotGroup.REQUIREMENT else customer
            value = getattr(target, defn.attr)
            if value in (None, ""):
                continue
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, float):
                value = f"{value:g}"
            lines.append(f"{defn.display_name}: {value}")
        return lines

    def get_stats(self, customer: CustomerInfo, requirements: PumpRequirements) -> dict[str, Any]:
        """Slot fill statistics for logging."""
        required = len(self.REQUIREMENT_SLOTS)
        filled = required - len(self.missing_requirements(requirements))
        return {
            "requirements_filled": filled,
            "requirements_total": required,
            "fill_rate": filled / required,
            "contact_missing": self.missing_customer_info(customer),
        }

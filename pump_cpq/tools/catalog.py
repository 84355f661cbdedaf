"""Pump catalog: families, flow/head selection map, options, and BOM price tables.

The catalog is read-only lookup data. An external loader may build one
with ``Catalog.model_validate(data)``; ``DEFAULT_CATALOG`` is the
built-in table used when none is supplied.
"""

import logging
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from pump_cpq.utils import parse_range

logger = logging.getLogger(__name__)


class FamilyEntry(BaseModel):
    """One pump family and its operating envelope."""
    family: str
    min_gpm: float
    max_gpm: float
    max_head_ft: float
    max_hp: float
    note: str = ""


class FlowHeadRow(BaseModel):
    """Selection row mapping a flow/head window to a family build.

    Rows are scanned in declared order and the first match wins.
    """
    gpm_range: str
    head_range: str
    family: str
    motor_hp: float
    impeller_code: str

    @field_validator("gpm_range", "head_range")
    @classmethod
    def _check_range(cls, value: str) -> str:
        parse_range(value)
        return value

    def contains(self, gpm: float, head_ft: float) -> bool:
        """Closed-interval check on both flow and head."""
        gpm_min, gpm_max = parse_range(self.gpm_range)
        head_min, head_max = parse_range(self.head_range)
        return gpm_min <= gpm <= gpm_max and head_min <= head_ft <= head_max


class OptionEntry(BaseModel):
    """Configurable option with its compatibility note."""
    option_type: str
    option_value: str
    constraints: Optional[str] = None
    price_adder: Optional[float] = None


class PricedPart(BaseModel):
    """A BOM part with a single list price."""
    sku: str
    description: str
    price: float
    quantity: int = 1


class CasingRule(BaseModel):
    """Base casing, priced by family then material."""
    sku: str = "CASE-{family}-{material}"
    description: str = "{family} pump casing, {material}"
    quantity: int = 1
    unit_price: dict[str, dict[str, float]]


class BOMRules(BaseModel):
    """Price tables used to assemble a bill of materials."""
    casing: CasingRule
    impellers: dict[str, PricedPart]
    motors: dict[str, PricedPart]
    seal_kits: dict[str, PricedPart]
    mounts: dict[str, PricedPart]
    coupling: PricedPart
    atex: PricedPart
    fasteners: PricedPart
    finish: PricedPart


class Catalog(BaseModel):
    """Complete read-only catalog consumed by selection and pricing."""
    families: list[FamilyEntry]
    flow_head_map: list[FlowHeadRow] = Field(min_length=1)
    options: list[OptionEntry] = Field(default_factory=list)
    bom: BOMRules
    default_discount_pct: float = Field(ge=0, le=100)

    def get_family(self, family: str) -> Optional[FamilyEntry]:
        for entry in self.families:
            if entry.family == family:
                return entry
        return None


class CatalogSearchResult(BaseModel):
    """Result of a keyword search over families and options."""
    families: Optional[list[str]] = None
    options: Optional[list[OptionEntry]] = None


_DEFAULT_CATALOG_DATA: dict = {
    "families": [
        {"family": "P100", "min_gpm": 10, "max_gpm": 100, "max_head_ft": 150, "max_hp": 7.5,
         "note": "Compact end-suction pump for light industrial duty"},
        {"family": "P200", "min_gpm": 80, "max_gpm": 200, "max_head_ft": 250, "max_hp": 15,
         "note": "Mid-range process pump, ATEX-capable"},
        {"family": "P300", "min_gpm": 200, "max_gpm": 400, "max_head_ft": 300, "max_hp": 25,
         "note": "Heavy-duty high-flow pump, base mount only"},
    ],
    "flow_head_map": [
        {"gpm_range": "10-50", "head_range": "10-80", "family": "P100",
         "motor_hp": 3, "impeller_code": "IMP-100-S"},
        {"gpm_range": "51-100", "head_range": "10-80", "family": "P100",
         "motor_hp": 5, "impeller_code": "IMP-110-M"},
        {"gpm_range": "10-100", "head_range": "81-120", "family": "P100",
         "motor_hp": 5, "impeller_code": "IMP-120-M"},
        {"gpm_range": "10-100", "head_range": "121-150", "family": "P100",
         "motor_hp": 7.5, "impeller_code": "IMP-130-L"},
        {"gpm_range": "101-200", "head_range": "20-120", "family": "P200",
         "motor_hp": 7.5, "impeller_code": "IMP-160-L"},
        {"gpm_range": "101-200", "head_range": "121-250", "family": "P200",
         "motor_hp": 10, "impeller_code": "IMP-180-XL"},
        {"gpm_range": "201-400", "head_range": "20-300", "family": "P300",
         "motor_hp": 20, "impeller_code": "IMP-250-XXL"},
    ],
    "options": [
        {"option_type": "motor_hp", "option_value": "3", "constraints": "230V_1ph or 460V_3ph"},
        {"option_type": "motor_hp", "option_value": "5", "constraints": "460V_3ph only"},
        {"option_type": "motor_hp", "option_value": "7.5", "constraints": "460V_3ph only"},
        {"option_type": "motor_hp", "option_value": "10", "constraints": "460V_3ph, Base mount"},
        {"option_type": "motor_hp", "option_value": "20", "constraints": "460V_3ph, Base mount"},
        {"option_type": "voltage", "option_value": "230V_1ph", "constraints": "Motor HP <= 3"},
        {"option_type": "voltage", "option_value": "460V_3ph", "constraints": "Motor HP >= 5"},
        {"option_type": "seal", "option_value": "Mechanical", "constraints": "Required for ATEX",
         "price_adder": 300},
        {"option_type": "seal", "option_value": "Packing", "constraints": "Not ATEX rated"},
        {"option_type": "material", "option_value": "CastIron", "constraints": "Not ATEX rated"},
        {"option_type": "material", "option_value": "Stainless", "constraints": "Required for ATEX",
         "price_adder": 450},
        {"option_type": "mount", "option_value": "CloseCoupled", "constraints": "Motor HP <= 7.5"},
        {"option_type": "mount", "option_value": "Base", "constraints": "Required for ATEX"},
        {"option_type": "atex", "option_value": "ATEX Zone 1 package",
         "constraints": "Stainless, Mechanical seal, 460V_3ph, Base mount, Motor HP >= 5",
         "price_adder": 1070},
    ],
    "bom": {
        "casing": {
            "unit_price": {
                "P100": {"CastIron": 650, "Stainless": 1100},
                "P200": {"CastIron": 1200, "Stainless": 1850},
                "P300": {"CastIron": 2100, "Stainless": 3200},
            },
        },
        "impellers": {
            "IMP-100-S": {"sku": "IMP-100-S", "description": "Impeller 100 small", "price": 180},
            "IMP-110-M": {"sku": "IMP-110-M", "description": "Impeller 110 medium", "price": 210},
            "IMP-120-M": {"sku": "IMP-120-M", "description": "Impeller 120 medium", "price": 240},
            "IMP-130-L": {"sku": "IMP-130-L", "description": "Impeller 130 large", "price": 290},
            "IMP-160-L": {"sku": "IMP-160-L", "description": "Impeller 160 large", "price": 360},
            "IMP-180-XL": {"sku": "IMP-180-XL", "description": "Impeller 180 extra large", "price": 420},
            "IMP-250-XXL": {"sku": "IMP-250-XXL", "description": "Impeller 250 double extra large",
                            "price": 610},
        },
        "motors": {
            "3|230V_1ph": {"sku": "MTR-3-1PH", "description": "3 HP motor, 230V single phase", "price": 520},
            "3|460V_3ph": {"sku": "MTR-3-3PH", "description": "3 HP motor, 460V three phase", "price": 560},
            "5|230V_1ph": {"sku": "MTR-5-1PH", "description": "5 HP motor, 230V single phase", "price": 760},
            "5|460V_3ph": {"sku": "MTR-5-3PH", "description": "5 HP motor, 460V three phase", "price": 780},
            "7.5|230V_1ph": {"sku": "MTR-7.5-1PH", "description": "7.5 HP motor, 230V single phase",
                             "price": 980},
            "7.5|460V_3ph": {"sku": "MTR-7.5-3PH", "description": "7.5 HP motor, 460V three phase",
                             "price": 940},
            "10|230V_1ph": {"sku": "MTR-10-1PH", "description": "10 HP motor, 230V single phase",
                            "price": 1350},
            "10|460V_3ph": {"sku": "MTR-10-3PH", "description": "10 HP motor, 460V three phase",
                            "price": 1180},
            "20|230V_1ph": {"sku": "MTR-20-1PH", "description": "20 HP motor, 230V single phase",
                            "price": 2300},
            "20|460V_3ph": {"sku": "MTR-20-3PH", "description": "20 HP motor, 460V three phase",
                            "price": 1950},
        },
        "seal_kits": {
            "Mechanical|CastIron": {"sku": "SEAL-MECH-CI", "description": "Mechanical seal kit, cast iron",
                                    "price": 345},
            "Mechanical|Stainless": {"sku": "SEAL-MECH-SS", "description": "Mechanical seal kit, stainless",
                                     "price": 425},
            "Packing|CastIron": {"sku": "SEAL-PACK-CI", "description": "Gland packing kit, cast iron",
                                 "price": 45},
            "Packing|Stainless": {"sku": "SEAL-PACK-SS", "description": "Gland packing kit, stainless",
                                  "price": 95},
        },
        "mounts": {
            "CloseCoupled": {"sku": "MNT-CC", "description": "Close-coupled mounting kit", "price": 200},
            "Base": {"sku": "MNT-BASE", "description": "Fabricated steel baseplate", "price": 300},
        },
        "coupling": {"sku": "CPL-STD", "description": "Flexible shaft coupling", "price": 85},
        "atex": {"sku": "ATEX-PKG", "description": "ATEX Zone 1 certification package", "price": 1070},
        "fasteners": {"sku": "FST-KIT", "description": "Fastener kit", "price": 25},
        "finish": {"sku": "FIN-EPOXY", "description": "Epoxy paint finish", "price": 60},
    },
    "default_discount_pct": 20,
}

DEFAULT_CATALOG = Catalog.model_validate(_DEFAULT_CATALOG_DATA)

_OPTION_KEYWORDS = ("option", "motor", "voltage", "seal", "material", "mount", "atex")


def search_catalog(query: str, catalog: Catalog = DEFAULT_CATALOG) -> CatalogSearchResult:
    """Search families and options by keyword.

    "family" in the query returns every family name. Any option keyword
    returns the options whose type or value contains one of the query terms.
    """
    normalized = query.lower().strip()
    result = CatalogSearchResult()

    if "family" in normalized:
        result.families = [entry.family for entry in catalog.families]

    if any(keyword in normalized for keyword in _OPTION_KEYWORDS):
        terms = [term for term in normalized.split() if term]
        result.options = [
            option
            for option in catalog.options
            if any(
                term in option.option_type.lower() or term in option.option_value.lower()
                for term in terms
            )
        ]

    logger.debug(
        "Catalog search %r: %d families, %d options",
        query,
        len(result.families or []),
        len(result.options or []),
    )
    return result

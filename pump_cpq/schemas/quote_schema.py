"""Configuration, validation, pricing and canvas models."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from pump_cpq.schemas.customer_schema import CustomerInfo
from pump_cpq.schemas.requirement_schema import Material, PowerSupply, PumpRequirements


class SealType(str, Enum):
    MECHANICAL = "Mechanical"
    PACKING = "Packing"


class MountType(str, Enum):
    BASE = "Base"
    CLOSE_COUPLED = "CloseCoupled"


class PumpConfiguration(BaseModel):
    """Selected pump build. Fields stay optional so partial builds can be validated."""
    family: Optional[str] = None
    impeller: Optional[str] = None
    motor_hp: Optional[float] = None
    voltage: Optional[PowerSupply] = None
    seal_type: Optional[SealType] = None
    material: Optional[Material] = None
    mount: Optional[MountType] = None
    atex: bool = False


class ValidationResult(BaseModel):
    """Outcome of a constraint check."""
    is_valid: bool
    violations: list[str] = Field(default_factory=list)
    suggestion: str = ""


class BOMItem(BaseModel):
    """Single bill-of-materials line."""
    sku: str
    description: str
    quantity: int = 1
    unit_price: float
    extended_price: float


class Pricing(BaseModel):
    """Priced bill of materials."""
    list_total: float
    discount_percent: float
    net_total: float
    bom: list[BOMItem] = Field(default_factory=list)


class QuoteCanvas(BaseModel):
    """Finalized quote bundle handed to a persistence collaborator."""
    customer: CustomerInfo
    requirements: PumpRequirements
    configuration: PumpConfiguration
    rationale: str
    violations: list[str] = Field(default_factory=list)
    bom: list[BOMItem] = Field(default_factory=list)
    pricing: Pricing
    open_questions: list[str] = Field(default_factory=list)
    next_steps: list[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        """Export as a JSON-ready dict with the ATEX flag rendered for humans."""
        data = self.model_dump(mode="json")
        data["configuration"]["atex"] = "Yes" if self.configuration.atex else "No"
        return data

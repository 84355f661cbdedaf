"""Pump sizing requirement models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class PowerSupply(str, Enum):
    SINGLE_PHASE_230V = "230V_1ph"
    THREE_PHASE_460V = "460V_3ph"


class Environment(str, Enum):
    ATEX = "ATEX"
    NON_ATEX = "non-ATEX"


class Material(str, Enum):
    CAST_IRON = "CastIron"
    STAINLESS = "Stainless"


class MaintenanceBias(str, Enum):
    BUDGET = "budget"
    LOW_MAINTENANCE = "low-maintenance"


class PumpRequirements(BaseModel):
    """Customer requirements, filled in one answer at a time."""
    gpm: Optional[float] = Field(default=None, gt=0)
    head_ft: Optional[float] = Field(default=None, gt=0)
    fluid: Optional[str] = None
    power_available: Optional[PowerSupply] = None
    environment: Optional[Environment] = None
    material_pref: Optional[Material] = None
    maintenance_bias: Optional[MaintenanceBias] = None

    def is_complete(self) -> bool:
        return all(getattr(self, name) is not None for name in type(self).model_fields)

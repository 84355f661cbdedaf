"""Per-session conversation state and transcript models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from pump_cpq.conversation.state_machine import QuotePhase
from pump_cpq.schemas.customer_schema import CustomerInfo
from pump_cpq.schemas.quote_schema import (
    PumpConfiguration,
    Pricing,
    QuoteCanvas,
    ValidationResult,
)
from pump_cpq.schemas.requirement_schema import PumpRequirements


class Role(str, Enum):
    ASSISTANT = "assistant"
    USER = "user"


class ApprovalOutcome(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"
    TIMED_OUT = "timed_out"


class TranscriptTurn(BaseModel):
    """A single turn in a quote conversation."""

    role: Role
    text: str


class ToolCall(BaseModel):
    """Recorded invocation of a catalog, selection, validation or pricing tool."""

    tool: str
    input: dict[str, Any] = Field(default_factory=dict)
    output: Any = None
    duration_ms: float = 0.0
    success: bool = True
    error: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class AgentState:
    """
    Per-session structured data owned by one QuoteAgent.

    Created once at agent construction and mutated in place by every
    step. Callers only ever see deep-copied snapshots.
    """
    session_id: str
    phase: QuotePhase = QuotePhase.GATHERING
    customer: CustomerInfo = field(default_factory=CustomerInfo)
    requirements: PumpRequirements = field(default_factory=PumpRequirements)
    configuration: Optional[PumpConfiguration] = None
    validation: Optional[ValidationResult] = None
    pricing: Optional[Pricing] = None
    canvas: Optional[QuoteCanvas] = None
    transcript: list[TranscriptTurn] = field(default_factory=list)
    retry_count: int = 0
    pending_field: Optional[str] = None
    name_requested: bool = False
    selection_used_fallback: bool = False
    approval_outcome: Optional[ApprovalOutcome] = None
    tool_calls: list[ToolCall] = field(default_factory=list)
    phase_trace: list[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return self.phase == QuotePhase.COMPLETE

    def last_assistant_text(self) -> str:
        for turn in reversed(self.transcript):
            if turn.role == Role.ASSISTANT:
                return turn.text
        return ""

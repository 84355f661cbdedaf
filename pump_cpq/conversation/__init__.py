from pump_cpq.conversation.slot_manager import SlotManager
from pump_cpq.conversation.state_machine import (
    InvalidTransitionError,
    PhaseTrigger,
    QuotePhase,
    QuotePhaseMachine,
)

__all__ = [
    "QuotePhaseMachine",
    "QuotePhase",
    "PhaseTrigger",
    "InvalidTransitionError",
    "SlotManager",
]

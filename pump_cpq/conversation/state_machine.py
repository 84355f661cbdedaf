"""
Finite state machine for the quote conversation phases.

Defines the six quote phases and the explicit transitions between them.
Every session follows a deterministic path through the phase graph,
so the order of questions and tool calls never depends on LLM output.

Usage:
    sm = QuotePhaseMachine()
    sm.transition(PhaseTrigger.CONTACT_MISSING)
    assert sm.current_phase == QuotePhase.CUSTOMER_INFO
"""

import logging
from enum import Enum
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger(__name__)


class QuotePhase(str, Enum):
    """All phases in a quote session lifecycle."""
    GATHERING = "gathering"
    CUSTOMER_INFO = "customer_info"
    PROPOSING = "proposing"
    VALIDATING = "validating"
    PRICING = "pricing"
    COMPLETE = "complete"


class PhaseTrigger(str, Enum):
    """Events that cause phase transitions."""
    CONTACT_MISSING = "contact_missing"
    REQUIREMENTS_READY = "requirements_ready"
    REQUIREMENTS_MISSING = "requirements_missing"
    CONFIGURATION_SELECTED = "configuration_selected"
    VALIDATION_PASSED = "validation_passed"
    APPROVAL_RECEIVED = "approval_received"
    APPROVAL_TIMED_OUT = "approval_timed_out"
    QUOTE_PRICED = "quote_priced"
    REQUIREMENTS_CHANGED = "requirements_changed"


@dataclass
class Transition:
    """A single valid phase transition."""
    from_phase: QuotePhase
    to_phase: QuotePhase
    trigger: PhaseTrigger


@dataclass
class PhaseEntry:
    """Recorded history entry for a phase visit."""
    phase: QuotePhase
    entered_at: datetime
    trigger: Optional[PhaseTrigger] = None


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current phase."""


class QuotePhaseMachine:
    """
    Deterministic phase machine controlling the quote flow.

    Every transition must be explicitly defined. A trigger with no
    matching transition from the current phase is rejected with an
    error listing the triggers that are allowed.
    """

    TRANSITIONS: list[Transition] = [
        # --- Requirement gathering ---
        Transition(QuotePhase.GATHERING, QuotePhase.CUSTOMER_INFO,
                   PhaseTrigger.CONTACT_MISSING),
        Transition(QuotePhase.GATHERING, QuotePhase.PROPOSING,
                   PhaseTrigger.REQUIREMENTS_READY),

        # --- Contact details ---
        Transition(QuotePhase.CUSTOMER_INFO, QuotePhase.PROPOSING,
                   PhaseTrigger.REQUIREMENTS_READY),
        Transition(QuotePhase.CUSTOMER_INFO, QuotePhase.GATHERING,
                   PhaseTrigger.REQUIREMENTS_MISSING),

        # --- Selection and validation ---
        Transition(QuotePhase.PROPOSING, QuotePhase.VALIDATING,
                   PhaseTrigger.CONFIGURATION_SELECTED),
        Transition(QuotePhase.VALIDATING, QuotePhase.PRICING,
                   PhaseTrigger.VALIDATION_PASSED),
        Transition(QuotePhase.VALIDATING, QuotePhase.PRICING,
                   PhaseTrigger.APPROVAL_RECEIVED),
        Transition(QuotePhase.VALIDATING, QuotePhase.PRICING,
                   PhaseTrigger.APPROVAL_TIMED_OUT),

        # --- Pricing ---
        Transition(QuotePhase.PRICING, QuotePhase.COMPLETE,
                   PhaseTrigger.QUOTE_PRICED),

        # --- Requirement updates before completion ---
        Transition(QuotePhase.GATHERING, QuotePhase.GATHERING,
                   PhaseTrigger.REQUIREMENTS_CHANGED),
        Transition(QuotePhase.CUSTOMER_INFO, QuotePhase.GATHERING,
                   PhaseTrigger.REQUIREMENTS_CHANGED),
        Transition(QuotePhase.PROPOSING, QuotePhase.GATHERING,
                   PhaseTrigger.REQUIREMENTS_CHANGED),
        Transition(QuotePhase.VALIDATING, QuotePhase.GATHERING,
                   PhaseTrigger.REQUIREMENTS_CHANGED),
        Transition(QuotePhase.PRICING, QuotePhase.GATHERING,
                   PhaseTrigger.REQUIREMENTS_CHANGED),
    ]

    def __init__(self, initial: QuotePhase = QuotePhase.GATHERING) -> None:
        self._current_phase = initial
        self._history: list[PhaseEntry] = [
            PhaseEntry(phase=initial, entered_at=datetime.now(timezone.utc))
        ]

    @property
    def current_phase(self) -> QuotePhase:
        return self._current_phase

    def transition(self, trigger: PhaseTrigger) -> QuotePhase:
        """
        Execute a phase transition.

        Args:
            trigger: The event triggering the transition.

        Returns:
            The new quote phase.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_phase == self._current_phase and t.trigger == trigger:
                old_phase = self._current_phase
                self._current_phase = t.to_phase

                self._history.append(PhaseEntry(
                    phase=self._current_phase,
                    entered_at=datetime.now(timezone.utc),
                    trigger=trigger,
                ))

                logger.debug(
                    "Phase transition: %s -> %s (trigger: %s)",
                    old_phase.value, self._current_phase.value, trigger.value,
                )
                return self._current_phase

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransitionError(
            f"No valid transition from '{self._current_phase.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def get_valid_triggers(self) -> list[PhaseTrigger]:
        """Return all triggers valid from the current phase."""
        return [t.trigger for t in self.TRANSITIONS if t.from_phase == self._current_phase]

    def get_history(self) -> list[PhaseEntry]:
        """Return the full phase transition history."""
        return list(self._history)

    def get_phase_trace(self) -> list[str]:
        """Return ordered list of phase names visited."""
        return [entry.phase.value for entry in self._history]

    def is_terminal(self) -> bool:
        """Check if the quote has reached the terminal phase."""
        return self._current_phase == QuotePhase.COMPLETE

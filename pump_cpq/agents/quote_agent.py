"""
Quote agent: one conversational configure-price-quote session.

Each call to ``step`` absorbs the customer's answer, then walks the phase
machine until it either needs another answer or the quote is complete.
Question order and tool calls are decided here, never by the model; the
model is only used to read answers and to phrase questions.
"""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass
from typing import Any, Optional, Union

from pump_cpq.config import settings
from pump_cpq.conversation.approval import ApprovalGate
from pump_cpq.conversation.extractor import Extractor, LLMExtractionStrategy
from pump_cpq.conversation.heuristics import HeuristicExtractionStrategy
from pump_cpq.conversation.question_writer import (
    LLMQuestionWriter,
    QuestionGenerationError,
    QuestionWriter,
    TemplateQuestionWriter,
)
from pump_cpq.conversation.slot_manager import SlotManager
from pump_cpq.conversation.state_machine import PhaseTrigger, QuotePhase, QuotePhaseMachine
from pump_cpq.conversation.trace import ToolTrace
from pump_cpq.llm.provider import ChatProvider
from pump_cpq.llm.provider_factory import create_provider
from pump_cpq.logging_context import get_session_logger, set_session_id
from pump_cpq.schemas.conversation_schema import (
    AgentState,
    ApprovalOutcome,
    Role,
    TranscriptTurn,
)
from pump_cpq.schemas.customer_schema import CustomerInfo
from pump_cpq.schemas.quote_schema import PumpConfiguration, Pricing, QuoteCanvas
from pump_cpq.tools.catalog import DEFAULT_CATALOG, Catalog, search_catalog
from pump_cpq.tools.pricing import PricingError, calculate_pricing
from pump_cpq.tools.selector import select_configuration
from pump_cpq.tools.validator import validate_configuration

logger = get_session_logger(__name__)

NEXT_STEPS = ["Review and approve the quote"]
ALREADY_COMPLETE = "This quote is already complete. Start a new session for another quote."


@dataclass
class StepResult:
    """What one conversational turn produced."""
    response: str
    done: bool = False
    error: Optional[str] = None


class SessionFailedError(Exception):
    """Raised when stepping a session that already failed fatally."""


class QuoteAgent:
    """
    Owns one quote session: its state, phase machine and collaborators.

    Calls must be serialized by the caller. The only method safe to call
    from another thread is ``approve``.
    """

    def __init__(
        self,
        customer_seed: Union[CustomerInfo, dict[str, Any], None] = None,
        provider: Union[str, ChatProvider, None] = None,
        *,
        extractor: Optional[Extractor] = None,
        writer: Optional[QuestionWriter] = None,
        catalog: Optional[Catalog] = None,
        slot_manager: Optional[SlotManager] = None,
        approval_timeout: Optional[float] = None,
        max_transitions: Optional[int] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self.session_id = session_id or f"quote-{uuid.uuid4().hex[:8]}"
        set_session_id(self.session_id)

        if isinstance(provider, str):
            provider = create_provider(provider)
        self.provider: Optional[ChatProvider] = provider

        self.slot_manager = slot_manager or SlotManager()
        if extractor is None:
            strategies = [HeuristicExtractionStrategy()]
            if provider is not None:
                strategies.insert(0, LLMExtractionStrategy(provider))
            extractor = Extractor(strategies, self.slot_manager)
        self.extractor = extractor

        if writer is None:
            writer = (
                LLMQuestionWriter(provider, self.slot_manager)
                if provider is not None
                else TemplateQuestionWriter(self.slot_manager)
            )
        self.writer = writer

        self.catalog = catalog or DEFAULT_CATALOG
        self.approval_timeout = (
            approval_timeout if approval_timeout is not None else settings.quote.approval_timeout_sec
        )
        self.max_transitions = max_transitions or settings.quote.max_transitions_per_step

        self._machine = QuotePhaseMachine()
        self._gate = ApprovalGate()
        self._state = AgentState(session_id=self.session_id)
        self._state.phase_trace = self._machine.get_phase_trace()
        self._trace = ToolTrace(self._state.tool_calls)

        if customer_seed is not None:
            self._seed_customer(customer_seed)

        logger.info(
            "Quote session started (provider: %s)",
            self.provider.name if self.provider is not None else "offline",
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def welcome(self) -> str:
        """Generate and record the opening message."""
        set_session_id(self.session_id)
        text = self.writer.welcome(self._state)
        self._say(text)
        return text

    def step(self, user_text: Optional[str] = None) -> StepResult:
        """
        Process one customer turn.

        Args:
            user_text: The customer's answer, or None to just advance.

        Returns:
            StepResult with the reply text and whether the quote is done.

        Raises:
            PricingError: If the configuration cannot be priced.
            SessionFailedError: If a previous step already failed fatally.
        """
        set_session_id(self.session_id)
        state = self._state

        if state.error:
            raise SessionFailedError(f"Session {self.session_id} failed: {state.error}")
        if state.is_complete:
            return StepResult(response=ALREADY_COMPLETE, done=True)

        if user_text is not None:
            state.transcript.append(TranscriptTurn(role=Role.USER, text=user_text))
            unresolved = self._absorb(user_text)
            if unresolved is not None:
                state.retry_count += 1
                reminder = self.writer.remind(unresolved, state)
                self._say(reminder)
                logger.info("No usable %s in answer (retry %d)", unresolved, state.retry_count)
                return StepResult(response=reminder, done=False)

        machine_snapshot = copy.deepcopy(self._machine)
        try:
            messages = self._run_transitions()
        except QuestionGenerationError as e:
            self._machine = machine_snapshot
            self._sync_phase()
            logger.error("Question generation failed: %s", e)
            return StepResult(response=f"Error: {e}", done=False, error=str(e))
        except PricingError as e:
            state.error = str(e)
            logger.error("Pricing failed, session cannot continue: %s", e)
            raise

        return StepResult(response="\n\n".join(messages), done=state.is_complete)

    def approve(self, approved: bool = True) -> None:
        """Signal approval of a configuration with violations. Thread-safe."""
        self._gate.approve(approved)

    def update_requirements(self, **fields: Any) -> list[str]:
        """
        Overwrite requirement fields and restart from gathering.

        Accepts wire keys (``headFt``) or attribute names (``head_ft``).
        Any derived configuration, validation and pricing is discarded.

        Returns:
            Keys whose value actually changed.

        Raises:
            InvalidTransitionError: If the quote is already complete.
            ValueError: If a field is not a requirement.
        """
        set_session_id(self.session_id)
        updates = {self._requirement_key(name): value for name, value in fields.items()}
        self._transition(PhaseTrigger.REQUIREMENTS_CHANGED)

        state = self._state
        merged = self.slot_manager.merge(state.customer, state.requirements, updates, overwrite=True)
        state.configuration = None
        state.validation = None
        state.pricing = None
        state.canvas = None
        state.approval_outcome = None
        state.selection_used_fallback = False
        state.pending_field = None
        self._gate.reset()
        logger.info("Requirements updated: %s", merged)
        return merged

    def get_state(self) -> AgentState:
        """Deep-copied snapshot of the session state."""
        return copy.deepcopy(self._state)

    def get_canvas(self) -> Optional[QuoteCanvas]:
        if self._state.canvas is None:
            return None
        return self._state.canvas.model_copy(deep=True)

    def get_trace_summary(self) -> dict[str, Any]:
        return self._trace.summary()

    def close(self) -> None:
        """Release the provider's HTTP client."""
        if self.provider is not None:
            self.provider.close()
        logger.info("Quote session closed")

    # ------------------------------------------------------------------
    # Answer handling
    # ------------------------------------------------------------------

    def _absorb(self, user_text: str) -> Optional[str]:
        """Extract an answer into state. Returns the pending key if it is still unresolved."""
        state = self._state
        pending = state.pending_field
        result = self.extractor.extract(state.phase, state.last_assistant_text(), state, user_text)

        if pending is None:
            return None
        # The opening name question is asked once and never chased
        if pending == "name" and state.phase == QuotePhase.GATHERING:
            state.pending_field = None
            return None
        if result.skipped_optional == pending or self.slot_manager.is_resolved(
            pending, state.customer, state.requirements
        ):
            state.pending_field = None
            state.retry_count = 0
            return None
        return pending

    # ------------------------------------------------------------------
    # Phase machine
    # ------------------------------------------------------------------

    def _run_transitions(self) -> list[str]:
        messages: list[str] = []
        for _ in range(self.max_transitions):
            message, keep_going = self._advance()
            if message:
                messages.append(message)
            if not keep_going:
                return messages
        logger.warning(
            "Stopped after %d transitions in phase %s", self.max_transitions, self._state.phase.value
        )
        return messages

    def _advance(self) -> tuple[Optional[str], bool]:
        """Run the rule for the current phase. Returns (message, keep going)."""
        phase = self._state.phase
        if phase == QuotePhase.GATHERING:
            return self._gather()
        if phase == QuotePhase.CUSTOMER_INFO:
            return self._collect_contact()
        if phase == QuotePhase.PROPOSING:
            return self._propose(), True
        if phase == QuotePhase.VALIDATING:
            return self._validate(), True
        if phase == QuotePhase.PRICING:
            return self._price(), False
        return ALREADY_COMPLETE, False

    def _gather(self) -> tuple[Optional[str], bool]:
        customer = self._state.customer
        requirements = self._state.requirements

        if not customer.name and not self._state.name_requested:
            return self._ask("name"), False

        missing = self.slot_manager.missing_requirements(requirements)
        if missing:
            return self._ask(missing[0]), False

        if not customer.has_contact:
            self._transition(PhaseTrigger.CONTACT_MISSING)
        else:
            self._transition(PhaseTrigger.REQUIREMENTS_READY)
        return None, True

    def _collect_contact(self) -> tuple[Optional[str], bool]:
        missing = self.slot_manager.missing_customer_info(self._state.customer)
        if missing:
            return self._ask(missing[0]), False

        if self._state.requirements.is_complete():
            self._transition(PhaseTrigger.REQUIREMENTS_READY)
        else:
            self._transition(PhaseTrigger.REQUIREMENTS_MISSING)
        return None, True

    def _propose(self) -> str:
        state = self._state
        state.pending_field = None
        self._trace.run("search_catalog", {"query": "family"}, search_catalog, "family", self.catalog)
        selection = self._trace.run(
            "select_configuration",
            {"requirements": state.requirements},
            select_configuration,
            state.requirements,
            self.catalog,
        )
        state.configuration = selection.configuration
        state.selection_used_fallback = selection.used_fallback
        self._transition(PhaseTrigger.CONFIGURATION_SELECTED)

        questions_asked = sum(1 for turn in state.transcript if turn.role == Role.ASSISTANT)
        opener = "Perfect! I have all the information I need. " if questions_asked <= 2 else ""
        return self._say(
            opener + "Based on your requirements, I recommend:\n\n" + _describe(selection.configuration)
        )

    def _validate(self) -> str:
        state = self._state
        validation = self._trace.run(
            "validate_configuration",
            {"configuration": state.configuration, "requirements": state.requirements},
            validate_configuration,
            state.configuration,
            state.requirements,
        )
        state.validation = validation

        if validation.is_valid:
            self._transition(PhaseTrigger.VALIDATION_PASSED)
            return self._say("Configuration validated successfully!")

        explanation = (
            "**Configuration Issues:**\n\n"
            + "\n".join(f"- {violation}" for violation in validation.violations)
            + "\n\nThe quote will be priced as configured; these items stay open for review."
        )
        outcome = self._gate.wait(self.approval_timeout)
        state.approval_outcome = outcome
        logger.info("Approval wait finished: %s", outcome.value)
        self._transition(
            PhaseTrigger.APPROVAL_RECEIVED
            if outcome == ApprovalOutcome.APPROVED
            else PhaseTrigger.APPROVAL_TIMED_OUT
        )
        return self._say(explanation)

    def _price(self) -> str:
        state = self._state
        pricing = self._trace.run(
            "calculate_pricing",
            {"configuration": state.configuration},
            calculate_pricing,
            state.configuration,
            self.catalog,
        )
        state.pricing = pricing
        if state.customer.has_contact:
            state.canvas = self._build_canvas()
        self._transition(PhaseTrigger.QUOTE_PRICED)
        logger.info("Quote complete: net %.2f", pricing.net_total)
        return self._say(_pricing_summary(pricing))

    def _build_canvas(self) -> QuoteCanvas:
        state = self._state
        validation = state.validation
        violations = list(validation.violations) if validation else []
        return QuoteCanvas(
            customer=state.customer.model_copy(),
            requirements=state.requirements.model_copy(),
            configuration=state.configuration.model_copy(),
            rationale=(
                validation.suggestion
                if validation and validation.suggestion
                else "Configuration meets all requirements"
            ),
            violations=violations,
            bom=list(state.pricing.bom),
            pricing=state.pricing.model_copy(deep=True),
            open_questions=violations,
            next_steps=list(NEXT_STEPS),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _ask(self, key: str) -> str:
        text = self.writer.ask(key, self._state)
        self._state.pending_field = key
        if key == "name" and self._state.phase == QuotePhase.GATHERING:
            self._state.name_requested = True
        logger.debug("Asked for %s", key)
        return self._say(text)

    def _say(self, text: str) -> str:
        self._state.transcript.append(TranscriptTurn(role=Role.ASSISTANT, text=text))
        return text

    def _transition(self, trigger: PhaseTrigger) -> None:
        old_phase = self._machine.current_phase
        self._machine.transition(trigger)
        self._sync_phase()
        logger.info("Phase %s -> %s", old_phase.value, self._state.phase.value)

    def _sync_phase(self) -> None:
        self._state.phase = self._machine.current_phase
        self._state.phase_trace = self._machine.get_phase_trace()

    def _requirement_key(self, name: str) -> str:
        for defn in self.slot_manager.REQUIREMENT_SLOTS:
            if name in (defn.key, defn.attr):
                return defn.key
        raise ValueError(f"Not a requirement field: {name}")

    def _seed_customer(self, seed: Union[CustomerInfo, dict[str, Any]]) -> None:
        data = seed.model_dump() if isinstance(seed, CustomerInfo) else dict(seed)
        customer = self._state.customer
        self.slot_manager.merge(
            customer,
            self._state.requirements,
            {key: data.get(key) for key in ("name", "company", "email", "phone")},
        )
        if data.get("company") == "":
            customer.company = ""


def _describe(config: PumpConfiguration) -> str:
    return (
        "**Pump Configuration:**\n"
        f"- Family: {config.family}\n"
        f"- Motor: {config.motor_hp:g} HP\n"
        f"- Voltage: {config.voltage.value}\n"
        f"- Material: {config.material.value}\n"
        f"- Seal: {config.seal_type.value}\n"
        f"- Mount: {config.mount.value}\n"
        f"- ATEX: {'Yes' if config.atex else 'No'}"
    )


def _pricing_summary(pricing: Pricing) -> str:
    lines = [
        "**Pricing Summary:**",
        "",
        f"- List Price: ${pricing.list_total:,.2f}",
        f"- Discount: {pricing.discount_percent:g}%",
        f"- **Net Price: ${pricing.net_total:,.2f}**",
        "",
        "**Bill of Materials:**",
    ]
    for item in pricing.bom:
        quantity = f" x{item.quantity}" if item.quantity > 1 else ""
        lines.append(f"- {item.sku}: {item.description} - ${item.unit_price:,.2f}{quantity}")
    return "\n".join(lines)


def create_quote_agent(
    customer_seed: Union[CustomerInfo, dict[str, Any], None] = None,
    provider: Union[str, ChatProvider, None] = None,
    *,
    offline: bool = False,
    **kwargs: Any,
) -> QuoteAgent:
    """
    Build a quote agent.

    Unlike the constructor, the factory defaults to the configured
    AI_PROVIDER. Pass ``offline=True`` for heuristic extraction and
    template questions only.
    """
    if offline:
        provider = None
    elif provider is None:
        provider = settings.provider.name
    return QuoteAgent(customer_seed, provider, **kwargs)

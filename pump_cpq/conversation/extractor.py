"""
Requirement and contact extraction from free-text answers.

Extraction is a chain of strategies tried in order: the language-model
strategy first, then deterministic heuristics. The first strategy whose
candidates actually change state wins. Candidates are merged through the
SlotManager, so extraction only ever fills unset fields.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Sequence

from pump_cpq.config import settings
from pump_cpq.conversation.output_parser import parse_json_object
from pump_cpq.conversation.slot_manager import SlotManager
from pump_cpq.conversation.state_machine import QuotePhase
from pump_cpq.llm.provider import ChatProvider
from pump_cpq.llm.types import ProviderError
from pump_cpq.logging_context import get_session_logger
from pump_cpq.prompts.prompt_templates import build_extraction_prompt
from pump_cpq.prompts.system_prompts import EXTRACTION_SYSTEM_PROMPT
from pump_cpq.schemas.conversation_schema import AgentState
from pump_cpq.schemas.customer_schema import CustomerInfo
from pump_cpq.schemas.requirement_schema import PumpRequirements

logger = get_session_logger(__name__)

CUSTOMER_KEYS = frozenset({"name", "company", "email", "phone", "email_or_phone"})

_SKIP_ANSWERS = frozenset({
    "", "skip", "no", "nope", "none", "n/a", "na", "pass", "-", "no company",
    "not applicable", "rather not say", "prefer not to say", "no thanks", "nothing",
})

_SKIP_PREFIX = re.compile(r"^\s*skip\w*(?:\s+(?:it|that|this|please))*\b[\s,.;:!-]*", re.IGNORECASE)

_PERSONAL_USE = re.compile(
    r"\b(personal use|private use|home use|residential|for myself|"
    r"for (?:my|our) (?:home|house|garden|backyard|yard|pool|farm|cabin|cottage|residence)|"
    r"at (?:my|our)? ?home|my house|my residence|not for a (?:company|business))\b",
    re.IGNORECASE,
)


def is_skip_answer(text: Optional[str]) -> bool:
    """Whether an answer explicitly declines an optional question."""
    normalized = (text or "").strip().lower().rstrip(".!")
    return normalized in _SKIP_ANSWERS or normalized.startswith("skip")


def skip_remainder(text: str) -> str:
    """The rest of a skip answer, e.g. the email in ``"skip, email me at jo@x.com"``."""
    normalized = text.strip().lower().rstrip(".!")
    if normalized in _SKIP_ANSWERS:
        return ""
    return _SKIP_PREFIX.sub("", text, count=1).strip()


def detect_personal_use(text: str) -> bool:
    """Whether an utterance clearly indicates home or private use."""
    return bool(text) and _PERSONAL_USE.search(text) is not None


@dataclass
class ExtractionRequest:
    """Everything a strategy may look at for one answer."""
    phase: QuotePhase
    last_question: str
    pending_field: Optional[str]
    customer: CustomerInfo
    requirements: PumpRequirements
    message: str

    @property
    def customer_phase(self) -> bool:
        return self.phase == QuotePhase.CUSTOMER_INFO or self.pending_field in CUSTOMER_KEYS


@dataclass
class ExtractionResult:
    """Outcome of extracting one answer.

    ``updates`` holds only the fields that were actually written.
    """
    updates: dict[str, Any] = field(default_factory=dict)
    something_extracted: bool = False
    skipped_optional: Optional[str] = None
    strategy: Optional[str] = None


class ExtractionStrategy(Protocol):
    """One way of turning an answer into raw ``{key: value}`` candidates."""

    name: str

    def extract(self, request: ExtractionRequest) -> dict[str, Any]:
        ...


class LLMExtractionStrategy:
    """Ask the chat provider for a JSON field set matching the current phase.

    Provider failures and malformed payloads both mean "nothing extracted",
    which lets the next strategy run.
    """

    name = "llm"

    def __init__(self, provider: ChatProvider, temperature: Optional[float] = None) -> None:
        self.provider = provider
        self.temperature = (
            temperature if temperature is not None else settings.provider.extraction_temperature
        )

    def extract(self, request: ExtractionRequest) -> dict[str, Any]:
        prompt = build_extraction_prompt(request.customer_phase, request.last_question, request.message)
        try:
            reply = self.provider.chat(
                EXTRACTION_SYSTEM_PROMPT,
                prompt,
                force_json=True,
                temperature=self.temperature,
            )
        except ProviderError as e:
            logger.warning("LLM extraction failed, falling back: %s", e)
            return {}

        parsed = parse_json_object(reply)
        if parsed is None:
            logger.info("LLM extraction returned no parseable JSON")
            return {}
        return parsed


class Extractor:
    """
    Runs extraction strategies in order and merges the first useful result.

    Also owns the two rules that sit outside any strategy: explicit skips
    of optional questions, and the personal-use shortcut for company.
    """

    def __init__(
        self,
        strategies: Sequence[ExtractionStrategy],
        slot_manager: Optional[SlotManager] = None,
    ) -> None:
        if not strategies:
            raise ValueError("Extractor needs at least one strategy")
        self.strategies = list(strategies)
        self.slot_manager = slot_manager or SlotManager()

    def extract(
        self,
        phase: QuotePhase,
        last_question: str,
        state: AgentState,
        user_message: Optional[str],
    ) -> ExtractionResult:
        """Extract one answer into ``state`` and report what changed."""
        message = (user_message or "").strip()
        pending = state.pending_field
        result = ExtractionResult()

        if is_skip_answer(message):
            if pending == "company" and state.customer.company is None:
                state.customer.company = ""
                result.updates["company"] = ""
                result.skipped_optional = "company"
                logger.info("Company skipped")
            elif pending == "name" and phase == QuotePhase.GATHERING:
                result.skipped_optional = "name"
                logger.info("Opening name question skipped")
            if result.skipped_optional:
                # Whatever follows the skip is read with no question pending
                message = skip_remainder(message)
                pending = None

        if not message:
            result.something_extracted = bool(result.updates)
            return result

        request = ExtractionRequest(
            phase=phase,
            last_question=last_question,
            pending_field=pending,
            customer=state.customer.model_copy(),
            requirements=state.requirements.model_copy(),
            message=message,
        )

        if state.customer.company is None and detect_personal_use(message):
            state.customer.company = ""
            result.updates["company"] = ""
            logger.info("Personal use detected, company resolved as skipped")

        for strategy in self.strategies:
            candidates = strategy.extract(request)
            merged = self.slot_manager.merge(state.customer, state.requirements, candidates)
            if merged:
                result.updates.update({key: self._current_value(state, key) for key in merged})
                result.strategy = strategy.name
                break
            logger.debug("Strategy '%s' produced nothing usable", strategy.name)

        result.something_extracted = bool(result.updates)
        if result.something_extracted:
            logger.info(
                "Extracted %s via %s",
                sorted(result.updates),
                result.strategy or "skip or personal-use rule",
            )
        return result

    def _current_value(self, state: AgentState, key: str) -> Any:
        defn = self.slot_manager.get_definition(key)
        target = state.customer if key in CUSTOMER_KEYS else state.requirements
        return getattr(target, defn.attr)

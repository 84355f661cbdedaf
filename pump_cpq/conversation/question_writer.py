"""
Question phrasing.

The phase machine decides WHICH field to ask for; a QuestionWriter only
decides how to word it. The LLM writer produces conversational phrasing,
the template writer is fully deterministic and needs no provider.
"""

from typing import Optional, Protocol

from pump_cpq.config import settings
from pump_cpq.conversation.slot_manager import SlotManager
from pump_cpq.llm.provider import ChatProvider
from pump_cpq.llm.types import ProviderError
from pump_cpq.logging_context import get_session_logger
from pump_cpq.prompts.prompt_templates import (
    build_question_prompt,
    build_reminder_prompt,
    build_welcome_prompt,
    template_question,
    template_reminder,
    template_welcome,
)
from pump_cpq.prompts.system_prompts import (
    QUESTION_SYSTEM_PROMPT,
    REMINDER_SYSTEM_PROMPT,
    WELCOME_SYSTEM_PROMPT,
)
from pump_cpq.schemas.conversation_schema import AgentState, Role

logger = get_session_logger(__name__)

RECENT_TURNS = 4
_QUOTE_CHARS = "\"'`“”‘’"


class QuestionGenerationError(Exception):
    """Raised when the provider cannot phrase a question or welcome."""


class QuestionWriter(Protocol):
    def ask(self, key: str, state: AgentState) -> str:
        ...

    def remind(self, key: str, state: AgentState) -> str:
        ...

    def welcome(self, state: AgentState) -> str:
        ...


def _clean_reply(text: str) -> str:
    cleaned = (text or "").strip()
    if len(cleaned) >= 2 and cleaned[0] in _QUOTE_CHARS and cleaned[-1] in _QUOTE_CHARS:
        cleaned = cleaned[1:-1].strip()
    return cleaned


def _recent_history(state: AgentState) -> list[str]:
    lines = []
    for turn in state.transcript[-RECENT_TURNS:]:
        speaker = "Assistant" if turn.role == Role.ASSISTANT else "User"
        lines.append(f"{speaker}: {turn.text}")
    return lines


class TemplateQuestionWriter:
    """Fixed wording for every question, reminder and welcome."""

    def __init__(self, slot_manager: Optional[SlotManager] = None) -> None:
        self.slot_manager = slot_manager or SlotManager()

    def ask(self, key: str, state: AgentState) -> str:
        return template_question(key, state.customer.name)

    def remind(self, key: str, state: AgentState) -> str:
        return template_reminder(key, self.slot_manager.display_name(key))

    def welcome(self, state: AgentState) -> str:
        return template_welcome(state.customer.name)


class LLMQuestionWriter:
    """
    Phrases questions through the chat provider.

    ``ask`` and ``welcome`` have no silent fallback: a provider failure
    surfaces as QuestionGenerationError so the caller can report it.
    Reminders fall back to template wording.
    """

    def __init__(
        self,
        provider: ChatProvider,
        slot_manager: Optional[SlotManager] = None,
        temperature: Optional[float] = None,
    ) -> None:
        self.provider = provider
        self.slot_manager = slot_manager or SlotManager()
        self.temperature = (
            temperature if temperature is not None else settings.provider.question_temperature
        )

    def _chat(self, system_instruction: str, prompt: str) -> str:
        try:
            reply = self.provider.chat(system_instruction, prompt, temperature=self.temperature)
        except ProviderError as e:
            raise QuestionGenerationError(f"{self.provider.name} could not generate text: {e}") from e
        cleaned = _clean_reply(reply)
        if not cleaned:
            raise QuestionGenerationError(f"{self.provider.name} returned an empty reply")
        return cleaned

    def ask(self, key: str, state: AgentState) -> str:
        first_question = not any(turn.role == Role.USER for turn in state.transcript)
        prompt = build_question_prompt(
            field_hint=self.slot_manager.prompt_hint(key),
            customer_name=state.customer.name,
            gathered=self.slot_manager.gathered_summary(state.customer, state.requirements),
            recent_history=_recent_history(state),
            first_question=first_question,
        )
        return self._chat(QUESTION_SYSTEM_PROMPT, prompt)

    def remind(self, key: str, state: AgentState) -> str:
        label = self.slot_manager.display_name(key)
        last_question = state.last_assistant_text()
        prompt = build_reminder_prompt(last_question, label, state.customer.name)
        try:
            reminder = self._chat(REMINDER_SYSTEM_PROMPT, prompt)
        except QuestionGenerationError as e:
            logger.warning("Reminder generation failed, using template: %s", e)
            return template_reminder(key, label)
        if reminder == last_question:
            return template_reminder(key, label)
        return reminder

    def welcome(self, state: AgentState) -> str:
        return self._chat(WELCOME_SYSTEM_PROMPT, build_welcome_prompt(state.customer.name))

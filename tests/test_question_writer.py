"""Tests for template and provider-backed question phrasing."""

import httpx
import pytest
import respx

from pump_cpq.config import settings
from pump_cpq.conversation.question_writer import (
    LLMQuestionWriter,
    QuestionGenerationError,
    TemplateQuestionWriter,
)
from pump_cpq.llm.ollama import OllamaProvider
from pump_cpq.llm.types import ProviderUnavailableError
from pump_cpq.prompts.prompt_templates import template_reminder
from pump_cpq.schemas.conversation_schema import Role, TranscriptTurn

from tests.conftest import ScriptedProvider


class TestTemplateWriter:
    @pytest.fixture
    def writer(self):
        return TemplateQuestionWriter()

    def test_name_question(self, writer, agent_state):
        assert writer.ask("name", agent_state) == "What name should I put on the quote?"

    def test_uses_name_once_known(self, writer, agent_state):
        agent_state.customer.name = "Dana"
        assert writer.ask("headFt", agent_state).startswith("Thanks, Dana. ")

    def test_flow_question_not_prefixed(self, writer, agent_state):
        agent_state.customer.name = "Dana"
        assert writer.ask("gpm", agent_state).startswith("What flow rate")

    def test_company_question_mentions_skip(self, writer, agent_state):
        assert "skip" in writer.ask("company", agent_state)

    def test_reminder_differs_from_question(self, writer, agent_state):
        reminder = writer.remind("headFt", agent_state)
        assert reminder != writer.ask("headFt", agent_state)
        assert "head (feet)" in reminder

    def test_contact_reminder_label(self, writer, agent_state):
        assert "email address or phone number" in writer.remind("email_or_phone", agent_state)

    def test_welcome(self, writer, agent_state):
        assert writer.welcome(agent_state).startswith("Hi there!")
        agent_state.customer.name = "Dana"
        welcome = writer.welcome(agent_state)
        assert welcome.startswith("Hello Dana!")
        assert settings.quote.bot_name in welcome


class TestLLMWriter:
    def test_ask_returns_cleaned_reply(self, agent_state):
        provider = ScriptedProvider(['  "What flow rate do you need?"  '])
        writer = LLMQuestionWriter(provider)
        assert writer.ask("gpm", agent_state) == "What flow rate do you need?"

    def test_ask_prompt_contents(self, agent_state):
        agent_state.customer.name = "Dana"
        agent_state.requirements.gpm = 40
        provider = ScriptedProvider(["How much head?"])
        LLMQuestionWriter(provider).ask("headFt", agent_state)

        call = provider.calls[0]
        assert "head pressure in feet" in call["prompt"]
        assert "Customer name: Dana." in call["prompt"]
        assert "flow rate (GPM): 40" in call["prompt"]
        assert call["force_json"] is False
        assert call["temperature"] == settings.provider.question_temperature

    def test_first_question_flag(self, agent_state):
        provider = ScriptedProvider(["Q1?", "Q2?"])
        writer = LLMQuestionWriter(provider)

        writer.ask("gpm", agent_state)
        agent_state.transcript.append(TranscriptTurn(role=Role.USER, text="hi"))
        writer.ask("gpm", agent_state)

        assert "DO NOT greet again" in provider.calls[0]["prompt"]
        assert "DO NOT greet again" not in provider.calls[1]["prompt"]
        assert "User: hi" in provider.calls[1]["prompt"]

    def test_recent_history_is_bounded(self, agent_state):
        for i in range(6):
            agent_state.transcript.append(TranscriptTurn(role=Role.USER, text=f"turn {i}"))
        provider = ScriptedProvider(["Next?"])
        LLMQuestionWriter(provider).ask("fluid", agent_state)

        prompt = provider.calls[0]["prompt"]
        assert "turn 1" not in prompt
        assert "turn 2" in prompt
        assert "turn 5" in prompt

    def test_ask_failure_raises(self, agent_state):
        writer = LLMQuestionWriter(ScriptedProvider([ProviderUnavailableError("down")]))
        with pytest.raises(QuestionGenerationError, match="scripted"):
            writer.ask("gpm", agent_state)

    @respx.mock
    def test_dropped_connection_raises(self, agent_state):
        respx.post("http://ollama.test:11434/api/chat").mock(side_effect=httpx.ReadError("reset"))
        provider = OllamaProvider(host="http://ollama.test:11434", model="test-model", retry_delay=0)
        try:
            with pytest.raises(QuestionGenerationError, match="ollama"):
                LLMQuestionWriter(provider).ask("gpm", agent_state)
        finally:
            provider.close()

    def test_empty_reply_raises(self, agent_state):
        writer = LLMQuestionWriter(ScriptedProvider(['  ""  ']))
        with pytest.raises(QuestionGenerationError, match="empty"):
            writer.ask("gpm", agent_state)

    def test_welcome_failure_raises(self, agent_state):
        writer = LLMQuestionWriter(ScriptedProvider())
        with pytest.raises(QuestionGenerationError):
            writer.welcome(agent_state)

    def test_remind(self, agent_state):
        agent_state.transcript.append(TranscriptTurn(role=Role.ASSISTANT, text="What is the head?"))
        provider = ScriptedProvider(["No worries! I still need the head in feet to size the pump."])
        reminder = LLMQuestionWriter(provider).remind("headFt", agent_state)

        assert reminder.startswith("No worries!")
        assert 'asked: "What is the head?"' in provider.calls[0]["prompt"]

    def test_remind_falls_back_on_failure(self, agent_state):
        writer = LLMQuestionWriter(ScriptedProvider([ProviderUnavailableError("down")]))
        assert writer.remind("fluid", agent_state) == template_reminder("fluid", "fluid")

    def test_remind_never_repeats_question(self, agent_state):
        agent_state.transcript.append(TranscriptTurn(role=Role.ASSISTANT, text="What fluid?"))
        writer = LLMQuestionWriter(ScriptedProvider(["What fluid?"]))
        assert writer.remind("fluid", agent_state) == template_reminder("fluid", "fluid")

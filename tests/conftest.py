"""Shared test fixtures and helpers."""

from typing import Any, Optional

import pytest

from pump_cpq.agents.quote_agent import QuoteAgent
from pump_cpq.conversation.extractor import Extractor
from pump_cpq.conversation.heuristics import HeuristicExtractionStrategy
from pump_cpq.conversation.question_writer import TemplateQuestionWriter
from pump_cpq.conversation.slot_manager import SlotManager
from pump_cpq.conversation.state_machine import QuotePhaseMachine
from pump_cpq.llm.types import ProviderUnavailableError
from pump_cpq.schemas.conversation_schema import AgentState
from pump_cpq.schemas.quote_schema import MountType, PumpConfiguration, SealType
from pump_cpq.schemas.requirement_schema import (
    Environment,
    MaintenanceBias,
    Material,
    PowerSupply,
    PumpRequirements,
)

TEST_APPROVAL_TIMEOUT = 0.01


class ScriptedProvider:
    """Chat provider fake that replays canned replies in order.

    An exception in the script is raised instead of returned. Once the
    script runs out, ``default`` is returned, or the provider reports
    itself unavailable when there is no default.
    """

    name = "scripted"
    model = "scripted-model"

    def __init__(self, replies: Optional[list[Any]] = None, default: Optional[str] = None) -> None:
        self.replies = list(replies or [])
        self.default = default
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def chat(
        self,
        system_instruction: str,
        user_prompt: str,
        *,
        force_json: bool = False,
        temperature: Optional[float] = None,
    ) -> str:
        self.calls.append({
            "system": system_instruction,
            "prompt": user_prompt,
            "force_json": force_json,
            "temperature": temperature,
        })
        if self.replies:
            reply = self.replies.pop(0)
        elif self.default is not None:
            reply = self.default
        else:
            raise ProviderUnavailableError("scripted provider has no replies left")
        if isinstance(reply, Exception):
            raise reply
        return reply

    def close(self) -> None:
        self.closed = True


def make_requirements(**overrides: Any) -> PumpRequirements:
    """Complete scenario-A requirements, with any field overridden (None clears it)."""
    data: dict[str, Any] = {
        "gpm": 40,
        "head_ft": 60,
        "fluid": "water",
        "power_available": PowerSupply.SINGLE_PHASE_230V,
        "environment": Environment.NON_ATEX,
        "material_pref": Material.CAST_IRON,
        "maintenance_bias": MaintenanceBias.BUDGET,
    }
    data.update(overrides)
    return PumpRequirements(**data)


def make_configuration(**overrides: Any) -> PumpConfiguration:
    """The scenario-A configuration, with any field overridden."""
    data: dict[str, Any] = {
        "family": "P100",
        "impeller": "IMP-100-S",
        "motor_hp": 3,
        "voltage": PowerSupply.SINGLE_PHASE_230V,
        "seal_type": SealType.PACKING,
        "material": Material.CAST_IRON,
        "mount": MountType.CLOSE_COUPLED,
        "atex": False,
    }
    data.update(overrides)
    return PumpConfiguration(**data)


def make_offline_agent(**kwargs: Any) -> QuoteAgent:
    """Offline agent with template questions and a short approval wait."""
    kwargs.setdefault("writer", TemplateQuestionWriter())
    kwargs.setdefault("approval_timeout", TEST_APPROVAL_TIMEOUT)
    kwargs.setdefault("session_id", "TEST-001")
    return QuoteAgent(**kwargs)


def run_conversation(agent: QuoteAgent, answers: list[str]):
    """Open a session and feed answers until done. Returns the last StepResult."""
    agent.welcome()
    result = agent.step()
    for answer in answers:
        if result.done:
            break
        result = agent.step(answer)
    return result


@pytest.fixture
def state_machine():
    return QuotePhaseMachine()


@pytest.fixture
def slot_manager():
    return SlotManager()


@pytest.fixture
def agent_state():
    return AgentState(session_id="TEST-STATE")


@pytest.fixture
def heuristic_extractor():
    return Extractor([HeuristicExtractionStrategy()])


@pytest.fixture
def offline_agent():
    agent = make_offline_agent()
    yield agent
    agent.close()

"""
Offline console demo: runs a full quote conversation without any API keys.

Uses the real phase machine, heuristic extraction, template questions,
selector, validator and pricing engine. No LLM and no network calls.

Usage:
    python console_demo.py
    python console_demo.py --scenario a
    python console_demo.py --scenario single-phase --approval-timeout 1
"""

import argparse
import json
from typing import Optional

from pump_cpq.agents.quote_agent import QuoteAgent
from pump_cpq.config import settings
from pump_cpq.conversation.question_writer import TemplateQuestionWriter
from pump_cpq.tools.pricing import PricingError

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"


class ConsoleSession:
    """Drives one offline QuoteAgent session in the terminal."""

    # Pre-scripted scenarios for --scenario flag
    SCENARIOS: dict[str, list[str]] = {
        "a": [
            "Dana Fields",
            "40 gpm",
            "60 feet",
            "water",
            "230V single phase",
            "standard non-ATEX area",
            "cast iron",
            "budget",
            "skip",
            "dana@example.com",
        ],
        "b": [
            "I'm Lee Park",
            "75 gpm at 100 ft",
            "clean water",
            "460V three phase",
            "no",
            "no preference",
            "low maintenance please",
            "Acme Water",
            "call me on 555-123-4567",
        ],
        "c": [
            "Sam Ortiz",
            "120 gpm",
            "150 ft",
            "diesel",
            "460 volt three phase",
            "ATEX zone 1, the area is explosive",
            "stainless",
            "low maintenance",
            "Refinery Co",
            "sam@refinery.example",
        ],
        "single-phase": [
            "",
            "75 gpm at 100 ft",
            "water",
            "230V single phase",
            "non-ATEX",
            "cast iron",
            "budget",
            "Kim Lane",
            "this is for my house",
            "kim@example.com",
        ],
    }

    MAX_INPUT_LENGTH = 500

    def __init__(self, approval_timeout: Optional[float] = None) -> None:
        self.agent = QuoteAgent(
            provider=None,
            writer=TemplateQuestionWriter(),
            approval_timeout=approval_timeout,
        )

    def agent_say(self, text: str) -> None:
        print(f"{GREEN}{BOLD}[{settings.quote.bot_name}]{RESET} {GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def _banner(self, title: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  PUMP CPQ AGENT - {title}{RESET}")
        print(f"{BOLD}  Mode: offline (heuristic extraction, template questions){RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()

    def _open(self) -> None:
        self.agent_say(self.agent.welcome())
        self.agent_say(self.agent.step().response)
        self.system_log(f"Phase: {self.agent.get_state().phase.value}")

    def _process_input(self, text: str) -> bool:
        """Send one answer to the agent. Returns True once the quote is done."""
        try:
            result = self.agent.step(text)
        except PricingError as e:
            print(f"{RED}Pricing failed: {e}{RESET}")
            return True

        if result.error:
            print(f"{RED}{result.response}{RESET}")
        else:
            self.agent_say(result.response)

        state = self.agent.get_state()
        self.system_log(f"Phase: {state.phase.value}")
        if state.approval_outcome is not None:
            self.system_log(f"Approval: {state.approval_outcome.value}")
        return result.done

    def _summary(self, title: str) -> None:
        state = self.agent.get_state()
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  {title}{RESET}")
        print(f"{DIM}  Phase trace: {' -> '.join(state.phase_trace)}{RESET}")
        print(f"{DIM}  Slot stats: {self.agent.slot_manager.get_stats(state.customer, state.requirements)}{RESET}")
        print(f"{DIM}  Tool calls: {self.agent.get_trace_summary()}{RESET}")
        canvas = self.agent.get_canvas()
        if canvas is not None:
            print(f"{YELLOW}{json.dumps(canvas.to_dict(), indent=2)}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        steps = self.SCENARIOS.get(scenario)
        if not steps:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        self._banner(f"Scenario: {scenario}")
        self._open()

        for step in steps:
            print(f"\n{BLUE}[Customer] {RESET}{step}")
            if self._process_input(step):
                break

        self._summary(f"Scenario '{scenario}' complete.")
        self.agent.close()

    def run(self) -> None:
        self._banner("Console Demo (type 'quit' to exit)")
        self._open()

        while True:
            user_input = input(f"\n{BLUE}[Customer] {RESET}").strip()
            if user_input.lower() in ("quit", "exit", "q"):
                print(f"\n{DIM}Session ended.{RESET}")
                break

            if len(user_input) > self.MAX_INPUT_LENGTH:
                self.agent_say("That was quite long. Could you keep it brief for me?")
                continue

            if self._process_input(user_input):
                break

        self._summary("Conversation complete.")
        self.agent.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline console demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    parser.add_argument(
        "--approval-timeout",
        type=float,
        default=None,
        help="Seconds to wait for approval when a configuration has violations",
    )
    args = parser.parse_args()

    session = ConsoleSession(approval_timeout=args.approval_timeout)
    if args.scenario:
        session.run_scenario(args.scenario)
    else:
        session.run()


if __name__ == "__main__":
    main()

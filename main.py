"""
Interactive quote session entry point.

Runs a terminal conversation against the configured chat provider
(Ollama or OpenAI). Use console_demo.py for a fully offline run.

Usage:
    python main.py
    python main.py --provider openai --contact jo@example.com
    python main.py --offline
"""

import argparse
import json
import logging
import sys

from pump_cpq.agents.quote_agent import SessionFailedError, create_quote_agent
from pump_cpq.config import SUPPORTED_PROVIDERS, settings
from pump_cpq.conversation.question_writer import QuestionGenerationError
from pump_cpq.llm.types import ProviderError
from pump_cpq.prompts.prompt_templates import template_welcome
from pump_cpq.tools.pricing import PricingError

logger = logging.getLogger(__name__)


def _build_seed(args: argparse.Namespace) -> dict:
    seed = {"name": args.name, "company": args.company}
    if args.contact and "@" in args.contact:
        seed["email"] = args.contact
    elif args.contact:
        seed["phone"] = args.contact
    return {key: value for key, value in seed.items() if value is not None}


def _run(args: argparse.Namespace) -> int:
    try:
        agent = create_quote_agent(
            customer_seed=_build_seed(args) or None,
            provider=args.provider,
            offline=args.offline,
        )
    except (ProviderError, ValueError) as e:
        print(f"Could not start session: {e}", file=sys.stderr)
        return 1

    try:
        try:
            print(f"{settings.quote.bot_name}: {agent.welcome()}")
        except QuestionGenerationError as e:
            logger.warning("Welcome generation failed, using template: %s", e)
            print(f"{settings.quote.bot_name}: {template_welcome(args.name)}")

        result = agent.step()
        print(f"{settings.quote.bot_name}: {result.response}")

        while not result.done:
            try:
                user_text = input("You: ")
            except EOFError:
                break
            if user_text.strip().lower() in ("quit", "exit", "q"):
                break
            result = agent.step(user_text)
            print(f"{settings.quote.bot_name}: {result.response}")

        canvas = agent.get_canvas()
        if canvas is not None:
            print(json.dumps(canvas.to_dict(), indent=2))
        return 0
    except (PricingError, SessionFailedError) as e:
        print(f"Quote failed: {e}", file=sys.stderr)
        return 2
    finally:
        agent.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Conversational pump quote")
    parser.add_argument(
        "--provider",
        choices=SUPPORTED_PROVIDERS,
        default=None,
        help="Chat provider (defaults to AI_PROVIDER)",
    )
    parser.add_argument("--offline", action="store_true", help="Heuristics and templates only")
    parser.add_argument("--name", default=None, help="Customer name, if already known")
    parser.add_argument("--company", default=None, help="Company name; pass '' for personal use")
    parser.add_argument("--contact", default=None, help="Email address or phone number")
    args = parser.parse_args()
    sys.exit(_run(args))


if __name__ == "__main__":
    main()

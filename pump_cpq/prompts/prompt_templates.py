"""Dynamic prompt construction and deterministic fallback phrasing."""

from typing import Optional

from pump_cpq.config import settings
from pump_cpq.prompts.system_prompts import (
    CUSTOMER_EXTRACTION_TEMPLATE,
    REQUIREMENT_EXTRACTION_TEMPLATE,
)

_bot = settings.quote.bot_name

TEMPLATE_QUESTIONS: dict[str, str] = {
    "name": "What name should I put on the quote?",
    "company": "Which company is this pump for? Just press enter to skip if it's personal.",
    "email_or_phone": "What email address or phone number should I send the quote to?",
    "gpm": "What flow rate do you need, in gallons per minute (GPM)?",
    "headFt": "How much head does the pump need to deliver, in feet?",
    "fluid": "What fluid will the pump be moving (for example water, oil or a chemical)?",
    "powerAvailable": "What power supply is available on site: 230V single-phase or 460V three-phase?",
    "environment": "Will the pump run in an ATEX (explosive atmosphere) area, or a standard non-ATEX area?",
    "materialPref": "Do you prefer cast iron (budget) or stainless steel (corrosion resistant)?",
    "maintenanceBias": "Should we optimize for lowest upfront cost (budget) or for low maintenance?",
}

_REMINDER_REASONS: dict[str, str] = {
    "name": "so I know who the quote is for",
    "email_or_phone": "so I can send you the quote",
    "gpm": "to size the pump properly",
    "headFt": "to pick the right impeller and motor",
    "fluid": "to make sure the materials are compatible",
    "powerAvailable": "to match the motor to your supply",
    "environment": "to know whether ATEX certification is needed",
    "materialPref": "to choose the casing material",
    "maintenanceBias": "to choose between a packing and a mechanical seal",
}


def build_extraction_prompt(customer_phase: bool, question: str, answer: str) -> str:
    """Fill the customer or requirement extraction template."""
    template = CUSTOMER_EXTRACTION_TEMPLATE if customer_phase else REQUIREMENT_EXTRACTION_TEMPLATE
    return template.format(question=question or "(none)", answer=answer)


def build_question_prompt(
    field_hint: str,
    customer_name: Optional[str],
    gathered: list[str],
    recent_history: list[str],
    first_question: bool,
) -> str:
    """Build the instruction for phrasing the next question."""
    parts = [f"Ask the customer for: {field_hint}."]
    if first_question:
        parts.append(
            "This is the first question after the welcome message. "
            "The customer has already been welcomed, so DO NOT greet again."
        )
    if customer_name:
        parts.append(f"Customer name: {customer_name}.")
    if gathered:
        parts.append("Information already gathered: " + "; ".join(gathered) + ".")
    if recent_history:
        parts.append("\nRecent conversation:\n" + "\n".join(recent_history))
        parts.append("\nGenerate a natural follow-up question that flows from this conversation.")
    return "\n".join(parts)


def build_reminder_prompt(last_question: str, field_label: str, customer_name: Optional[str]) -> str:
    """Build the instruction for a polite reminder after an unusable answer."""
    lines = [
        f'The user was asked: "{last_question}"',
        "",
        f"But they didn't provide their {field_label}. Generate a polite, friendly reminder that:",
        "1. Acknowledges their response",
        "2. Explains briefly why this information is needed",
        "3. Asks them to provide it",
        "4. Is at most two sentences",
    ]
    if customer_name:
        lines.append(f"5. May use the customer's name ({customer_name}) if it fits naturally")
    lines.append("\nGenerate ONLY the reminder message, no quotes or extra formatting.")
    return "\n".join(lines)


def build_welcome_prompt(customer_name: Optional[str]) -> str:
    """Build the instruction for the opening message."""
    who = f"named {customer_name}" if customer_name else "who just arrived"
    return (
        f"Generate a warm, brief (2-3 sentences) welcome for a customer {who}. "
        f"Introduce yourself as {_bot}, say you will ask a few questions to find the "
        "right pump, and sound helpful rather than pushy. "
        "Generate ONLY the welcome message, no quotes or extra formatting."
    )


def template_question(key: str, customer_name: Optional[str] = None) -> str:
    """Deterministic question text for a field key."""
    question = TEMPLATE_QUESTIONS[key]
    if customer_name and key not in ("name", "gpm"):
        return f"Thanks, {customer_name}. {question}"
    return question


def template_reminder(key: str, field_label: str) -> str:
    """Deterministic reminder that differs from the original question."""
    reason = _REMINDER_REASONS.get(key, "to put your quote together")
    return f"Sorry, I didn't catch your {field_label}. I need it {reason}. Could you share it?"


def template_welcome(customer_name: Optional[str] = None) -> str:
    greeting = f"Hello {customer_name}!" if customer_name else "Hi there!"
    return (
        f"{greeting} I'm {_bot}, your industrial pump specialist. "
        "I'll ask a few quick questions and put together a configured, priced quote for you."
    )

"""
Deterministic fallback extraction.

Pattern and keyword guesses used when the language model is unavailable
or returns nothing usable. Guesses are candidates only; the SlotManager
still decides what is merged.
"""

import re
from typing import Any, Optional

from pump_cpq.conversation.extractor import ExtractionRequest, detect_personal_use, is_skip_answer
from pump_cpq.conversation.slot_manager import EMAIL_PATTERN, means_no_preference

MIN_PHONE_DIGITS = 10

_DIGIT_SEPARATORS = re.compile(r"(?<=\d)[\s().-]+(?=\d)")
_PHONE = re.compile(r"\+?\d{%d,}" % MIN_PHONE_DIGITS)
_NUMBER_WITH_UNIT = re.compile(r"(?<![\w.])(\d+(?:\.\d+)?)(?![\d.])\s*-?\s*([a-z%/]*)", re.IGNORECASE)

# Units that mark a number as something other than flow or head
_IGNORED_UNITS = frozenset({
    "v", "vac", "volt", "volts", "ph", "phase", "hp", "horsepower", "%", "percent",
    "kw", "hz", "psi", "bar", "c", "f", "deg", "degrees",
})
_FLOW_UNITS = frozenset({"gpm", "gal", "gallons", "gallon", "gal/min"})
_HEAD_UNITS = frozenset({"ft", "feet", "foot"})

# A bare voltage only counts while the power question is pending
_VOLT_UNIT = r"\s*-?\s*(?:v(?![a-z])|vac\b|volts?\b)"
_NOT_FLOW_OR_HEAD = r"(?!\d)(?!\s*(?:gpm|gal|ft|feet|foot))"
_BARE_SINGLE = re.compile(r"(?<![\d.])230" + _NOT_FLOW_OR_HEAD)
_BARE_THREE = re.compile(r"(?<![\d.])4[68]0" + _NOT_FLOW_OR_HEAD)
_POWER_SINGLE = re.compile(
    r"(?<![\d.])230" + _VOLT_UNIT + r"|single[\s-]?phase|(?<!\d)1[\s-]?ph(?:ase)?\b",
    re.IGNORECASE,
)
_POWER_THREE = re.compile(
    r"(?<![\d.])4[68]0" + _VOLT_UNIT + r"|three[\s-]?phase|(?<!\d)3[\s-]?ph(?:ase)?\b",
    re.IGNORECASE,
)

_ENV_NON_ATEX = re.compile(
    r"\bnon[\s-]?atex\b|\bnot\s+(?:an?\s+)?atex\b|\bno\s+atex\b|\bsafe\s+area\b|"
    r"\bstandard\s+(?:area|environment|location)\b|\bnon[\s-]?hazardous\b",
    re.IGNORECASE,
)
_ENV_ATEX = re.compile(r"\batex\b|explosi|\bhazardous\b|flammable|\bzone\s*[012]\b", re.IGNORECASE)
_ENV_SHORT_NO = re.compile(r"^(?:no|nope|standard|normal|safe)\b", re.IGNORECASE)
_ENV_SHORT_YES = re.compile(r"^(?:yes|yep|yeah)\b", re.IGNORECASE)

_MATERIAL_STAINLESS = re.compile(
    r"\bstainless\b|\bss\b|\bgrade\s*(?:304|316l?)\b|\b(?:304|316l?)\s*-?\s*(?:ss|grade)\b",
    re.IGNORECASE,
)
# Bare grade numbers only count while material is the question
_MATERIAL_GRADE = re.compile(r"(?<![\d.])(?:304|316l?)\b", re.IGNORECASE)
_MATERIAL_CAST_IRON = re.compile(r"\bcast[\s-]?iron\b|\biron\b", re.IGNORECASE)

_MAINT_LOW = re.compile(
    r"\blow[\s-]?maint|\breliab|\blong[\s-]?life\b|\bminimal\s+maintenance\b|\bmechanical\s+seal\b",
    re.IGNORECASE,
)
_MAINT_BUDGET = re.compile(r"\bbudget\b|\bcheap|\blow[\s-]?cost\b|\beconom|\bpacking\b", re.IGNORECASE)

_FLUIDS = (
    "wastewater", "seawater", "salt water", "sea water", "fresh water", "water",
    "diesel", "gasoline", "petrol", "fuel", "crude", "oil", "glycol", "coolant",
    "solvent", "acid", "caustic", "chemical", "slurry", "sewage", "brine",
)
_FLUID_PATTERN = re.compile(r"\b(" + "|".join(re.escape(f) for f in _FLUIDS) + r")s?\b", re.IGNORECASE)

_NAME_INTRO = re.compile(
    r"\b(?:my name is|name's|i am|i'm|this is|call me|it's)\s+"
    r"([A-Za-z][A-Za-z'\-]+(?:\s+[A-Za-z][A-Za-z'\-]+)?)",
    re.IGNORECASE,
)
_BARE_NAME = re.compile(r"^[A-Za-z][A-Za-z'\-]+(?:\s+[A-Za-z][A-Za-z'\-]+){0,2}$")
_COMPANY_INTRO = re.compile(
    r"\b(?:company is|i work for|i'm with|i am with|we are|we're|from|at|with)\s+"
    r"([A-Za-z0-9][\w&.,'\- ]{1,60})",
    re.IGNORECASE,
)
_NOT_NAME_WORDS = frozenset({
    "yes", "no", "hi", "hello", "hey", "thanks", "ok", "okay", "sure", "i", "a", "an", "the",
    "need", "want", "pump", "pumps", "quote", "help", "please", "looking", "interested",
    "just", "not", "here", "fine", "good", "trying", "skip", "for", "my", "our", "we", "and",
})


def _find_phone(text: str) -> Optional[str]:
    compact = _DIGIT_SEPARATORS.sub("", text)
    match = _PHONE.search(compact)
    return match.group() if match else None


def _remove_phone(text: str, phone: str) -> str:
    digits = phone.lstrip("+")
    pattern = r"\+?" + r"[\s().-]*".join(re.escape(d) for d in digits)
    return re.sub(pattern, " ", text, count=1)


def _plausible_name(candidate: str) -> bool:
    words = candidate.lower().split()
    return bool(words) and not any(w in _NOT_NAME_WORDS or w.endswith("ing") for w in words)


def _numbers(text: str) -> tuple[list[float], Optional[float], Optional[float]]:
    """Split numbers into (unitless, explicit flow, explicit head)."""
    unitless: list[float] = []
    flow: Optional[float] = None
    head: Optional[float] = None
    for match in _NUMBER_WITH_UNIT.finditer(text):
        value = float(match.group(1))
        unit = match.group(2).lower()
        if unit in _FLOW_UNITS:
            flow = flow if flow is not None else value
        elif unit in _HEAD_UNITS:
            head = head if head is not None else value
        elif unit in _IGNORED_UNITS:
            continue
        else:
            unitless.append(value)
    return unitless, flow, head


def _guess_name(message: str) -> Optional[str]:
    match = _NAME_INTRO.search(message)
    if match:
        words: list[str] = []
        for word in match.group(1).split():
            if not _plausible_name(word):
                break
            words.append(word)
        if words:
            return " ".join(words)
    candidate = message.strip(" \t.,;!")
    if _BARE_NAME.match(candidate) and _plausible_name(candidate):
        return candidate
    return None


def _guess_company(message: str) -> Optional[str]:
    if detect_personal_use(message):
        return None
    match = _COMPANY_INTRO.search(message)
    if match:
        return match.group(1).strip(" .,")
    candidate = message.strip(" \t.,;!")
    if candidate and len(candidate.split()) <= 6 and not any(ch.isdigit() for ch in candidate):
        return candidate
    return None


class HeuristicExtractionStrategy:
    """Regex and keyword guesses for every field.

    Numbers without units are only read as flow or head while one of those
    is being asked. Bare voltages and stainless grades likewise only count
    while power or material is the pending question.
    """

    name = "heuristic"

    def extract(self, request: ExtractionRequest) -> dict[str, Any]:
        text = request.message
        pending = request.pending_field
        updates: dict[str, Any] = {}

        email = EMAIL_PATTERN.search(text)
        if email:
            updates["email"] = email.group()
            text = text.replace(email.group(), " ")

        phone = _find_phone(text)
        if phone:
            updates["phone"] = phone
            text = _remove_phone(text, phone)

        unitless, flow, head = _numbers(text)
        if flow is not None:
            updates["gpm"] = flow
        if head is not None:
            updates["headFt"] = head
        if unitless and pending in ("gpm", "headFt"):
            gpm_known = request.requirements.gpm is not None or "gpm" in updates
            if not gpm_known:
                updates["gpm"] = unitless.pop(0)
            if unitless and request.requirements.head_ft is None and "headFt" not in updates:
                updates["headFt"] = unitless.pop(0)

        power = self._power(text, pending)
        if power:
            updates["powerAvailable"] = power

        environment = self._environment(text, pending)
        if environment:
            updates["environment"] = environment

        material = self._material(text, pending)
        if material:
            updates["materialPref"] = material

        maintenance = self._maintenance(text, pending)
        if maintenance:
            updates["maintenanceBias"] = maintenance

        fluid = self._fluid(text, pending)
        if fluid:
            updates["fluid"] = fluid

        if pending == "name" and not is_skip_answer(text):
            name = _guess_name(text)
            if name:
                updates["name"] = name
        elif pending == "company" and not is_skip_answer(text):
            company = _guess_company(text)
            if company:
                updates["company"] = company

        return updates

    @staticmethod
    def _power(text: str, pending: Optional[str]) -> Optional[str]:
        if _POWER_SINGLE.search(text):
            return "230V_1ph"
        if _POWER_THREE.search(text):
            return "460V_3ph"
        if pending == "powerAvailable":
            if _BARE_SINGLE.search(text):
                return "230V_1ph"
            if _BARE_THREE.search(text):
                return "460V_3ph"
        return None

    @staticmethod
    def _environment(text: str, pending: Optional[str]) -> Optional[str]:
        # non-ATEX phrases contain "atex", so they are checked first
        if _ENV_NON_ATEX.search(text):
            return "non-ATEX"
        if _ENV_ATEX.search(text):
            return "ATEX"
        if pending == "environment":
            if _ENV_SHORT_NO.search(text.strip()):
                return "non-ATEX"
            if _ENV_SHORT_YES.search(text.strip()):
                return "ATEX"
        return None

    @staticmethod
    def _material(text: str, pending: Optional[str]) -> Optional[str]:
        if _MATERIAL_STAINLESS.search(text):
            return "Stainless"
        if _MATERIAL_CAST_IRON.search(text):
            return "CastIron"
        if pending == "materialPref":
            if _MATERIAL_GRADE.search(text):
                return "Stainless"
            if means_no_preference(text):
                return "CastIron"
        return None

    @staticmethod
    def _maintenance(text: str, pending: Optional[str]) -> Optional[str]:
        if _MAINT_LOW.search(text):
            return "low-maintenance"
        if _MAINT_BUDGET.search(text):
            return "budget"
        if pending == "maintenanceBias" and means_no_preference(text):
            return "budget"
        return None

    @staticmethod
    def _fluid(text: str, pending: Optional[str]) -> Optional[str]:
        match = _FLUID_PATTERN.search(text)
        if match:
            return match.group(1).lower()
        if pending == "fluid":
            candidate = text.strip().rstrip(".!")
            if candidate and len(candidate.split()) <= 5 and not any(ch.isdigit() for ch in candidate):
                return candidate
        return None

"""Shared utilities used across the pump quoting engine."""

import re


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("555 123 4567")
        '5551234567'
        >>> normalize_phone("+1 (555) 123-4567")
        '+15551234567'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def parse_range(value: str) -> tuple[float, float]:
    """Parse a closed ``"a-b"`` range string from the catalog tables.

    Examples:
        >>> parse_range("10-50")
        (10.0, 50.0)
        >>> parse_range(" 101 - 200 ")
        (101.0, 200.0)
    """
    parts = value.split("-")
    if len(parts) != 2:
        raise ValueError(f"Invalid range {value!r}, expected 'min-max'")
    low, high = (float(p.strip()) for p in parts)
    if low > high:
        raise ValueError(f"Invalid range {value!r}, min exceeds max")
    return low, high

"""Lenient JSON object extraction from free-form model replies."""

import json
import logging
import re
from typing import Any, Optional

logger = logging.getLogger(__name__)

_LINE_COMMENT = re.compile(r"(?<![:\"'])//[^\n]*")
_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_TRAILING_COMMA = re.compile(r",\s*([}\]])")


def _candidate_objects(text: str):
    """Yield balanced ``{...}`` spans in order of appearance."""
    start = text.find("{")
    while start != -1:
        depth = 0
        quote: Optional[str] = None
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if quote:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == quote:
                    quote = None
                continue
            if char in ("'", '"'):
                quote = char
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    yield text[start:index + 1]
                    break
        start = text.find("{", start + 1)


def _clean(candidate: str) -> str:
    cleaned = _BLOCK_COMMENT.sub("", candidate)
    cleaned = _LINE_COMMENT.sub("", cleaned)
    cleaned = _TRAILING_COMMA.sub(r"\1", cleaned)
    return cleaned


def parse_json_object(text: str) -> Optional[dict[str, Any]]:
    """
    Return the first well-formed JSON object found anywhere in ``text``.

    Tolerates prose around the payload, ``//`` and ``/* */`` comments,
    trailing commas, and single-quoted keys or strings. Returns None
    when no object can be parsed.
    """
    if not text:
        return None

    for candidate in _candidate_objects(text):
        cleaned = _clean(candidate)
        for attempt in (cleaned, cleaned.replace("'", '"')):
            try:
                parsed = json.loads(attempt)
            except json.JSONDecodeError:
                continue
            if isinstance(parsed, dict):
                return parsed

    logger.debug("No JSON object found in model reply (%d chars)", len(text))
    return None

"""Best-effort repair of truncated JSON emitted by text-generation models.

Only the failure modes produced by truncated generations are targeted: a
missing closing quote, stray control characters and missing closing braces
or brackets. Structurally invalid JSON (wrong quoting, trailing commas) is
left alone.
"""

from __future__ import annotations

import json
import logging
import re
from typing import List, Optional

logger = logging.getLogger(__name__)

_CONTROL_CHARS = re.compile(r"[\x00-\x1f]+")


def _parses(text: str) -> bool:
    try:
        json.loads(text)
    except ValueError:
        return False
    return True


def has_unterminated_string(text: str) -> bool:
    """Return True when a string literal is opened but never closed."""
    in_string = False
    escaped = False
    for char in text:
        if escaped:
            escaped = False
        elif char == "\\" and in_string:
            escaped = True
        elif char == '"':
            in_string = not in_string
    return in_string


def _unclosed_openers(text: str) -> List[str]:
    """Return the openers still open at the end of ``text``, outermost first."""
    stack: List[str] = []
    in_string = False
    escaped = False
    for char in text:
        if escaped:
            escaped = False
            continue
        if in_string:
            if char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in "{[":
            stack.append(char)
        elif char == "}" and stack and stack[-1] == "{":
            stack.pop()
        elif char == "]" and stack and stack[-1] == "[":
            stack.pop()
    return stack


def repair_json(text: str, log: Optional[logging.Logger] = None) -> str:
    """
    Attempt to repair a truncated or noisy JSON document.

    Steps, in order: direct parse; close an unterminated string; replace
    control characters with a space; append the missing ``}`` then ``]``
    closers; re-parse. When the brace-then-bracket suffix does not parse, the
    same closers are tried in nesting order before giving up.

    Args:
        text: Text presumed to be JSON
        log: Optional logger (defaults to the module logger)

    Returns:
        The repaired text when it parses, otherwise ``text`` unchanged.
    """
    log = log or logger
    if _parses(text):
        return text

    sanitized = text
    if has_unterminated_string(sanitized):
        sanitized += '"'

    sanitized = _CONTROL_CHARS.sub(" ", sanitized)

    missing_braces = max(sanitized.count("{") - sanitized.count("}"), 0)
    missing_brackets = max(sanitized.count("[") - sanitized.count("]"), 0)

    candidate = sanitized + "}" * missing_braces + "]" * missing_brackets
    if _parses(candidate):
        log.info("Successfully repaired malformed JSON")
        return candidate

    nested_suffix = "".join(
        "}" if opener == "{" else "]" for opener in reversed(_unclosed_openers(sanitized))
    )
    if nested_suffix.count("}") == missing_braces and nested_suffix.count("]") == missing_brackets:
        candidate = sanitized + nested_suffix
        if _parses(candidate):
            log.info("Successfully repaired malformed JSON (nesting order)")
            return candidate

    log.warning("JSON repair failed; returning original text")
    return text

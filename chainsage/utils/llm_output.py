"""
Model Output Parsing

Helpers for cleaning free-text model output: code-fence stripping, and the
two-stage JSON parse (strict first, then exactly one retry on the
fence-stripped text).
"""

import json
import re
from typing import Any

_LEADING_FENCE = re.compile(r"^```(?:[A-Za-z0-9_-]*[ \t]*\n)?")
_TRAILING_FENCE = re.compile(r"\n?[ \t]*```$")


class JSONParseError(ValueError):
    """Model output could not be parsed as JSON, even after cleaning."""

    def __init__(self, message: str, raw_text: str):
        self.raw_text = raw_text
        super().__init__(message)


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence (```sql, ```json, ```)."""
    cleaned = text.strip()
    cleaned = _LEADING_FENCE.sub("", cleaned, count=1)
    cleaned = _TRAILING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_json_strict(text: str) -> Any:
    """Parse text as JSON with no cleanup beyond trimming whitespace."""
    return json.loads(text.strip())


def parse_json_with_fallback(text: str) -> Any:
    """
    Parse model output as JSON.

    Tries the text as-is, then once more after stripping code fences.

    Raises:
        JSONParseError: Both attempts failed
    """
    try:
        return parse_json_strict(text)
    except json.JSONDecodeError:
        pass

    cleaned = strip_code_fences(text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise JSONParseError(f"Model output was not valid JSON: {exc.msg}", text) from exc

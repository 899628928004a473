"""
Parsing of the language model's memo reply.
"""

import json
import re

from src.domain.errors import NarrativeParseError

_FENCE = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\r?\n?(.*?)\r?\n?```$", re.DOTALL)
_EMBEDDED_FENCE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` (or bare ```) fence, if present.

    When prose surrounds the fence, the first fenced block is returned.
    """
    stripped = text.strip()
    match = _FENCE.match(stripped)
    if match:
        return match.group(1).strip()
    embedded = _EMBEDDED_FENCE.search(stripped)
    if embedded:
        return embedded.group(1).strip()
    return stripped


def parse_narrative(text: str) -> dict:
    """Decode the reply into a dict.

    Raises:
        NarrativeParseError: if the reply (after fence stripping) is not a
            JSON object. The raw reply is kept on the exception.
    """
    body = strip_code_fences(text or "")
    try:
        parsed = json.loads(body)
    except json.JSONDecodeError as exc:
        raise NarrativeParseError(
            f"Failed to parse AI response as JSON: {exc}", raw_response=text
        ) from exc
    if not isinstance(parsed, dict):
        raise NarrativeParseError(
            f"AI response is a JSON {type(parsed).__name__}, expected an object",
            raw_response=text,
        )
    return parsed

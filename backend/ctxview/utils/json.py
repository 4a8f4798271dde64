"""JSON helpers shared by the adapters and the enrichment passes.

Collaborator responses are free text that usually, but not always, contains
a JSON array or object; the extract_* helpers pull the first one out and
return None rather than raising when nothing usable is present.
"""

import json
import re
from typing import Any

_ARRAY_RE = re.compile(r"\[.*\]", re.DOTALL)
_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


def compact_json(value: Any) -> str:
    """Serialize without whitespace, keeping non-ASCII as-is.

    Matches JSON.stringify output, which the token accounting relies on so
    that counts agree with logs produced by browser tooling.
    """
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def pretty_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


def parse_json_or_none(raw: str | None) -> Any:
    """Parse a JSON string, None on empty or invalid input."""
    if not raw:
        return None
    try:
        return json.loads(raw)
    except (ValueError, TypeError):
        return None


def extract_json_array(text: str | None) -> list | None:
    """Return the outermost JSON array embedded in text, or None.

    Tolerates prose and ```json fences around the array.
    """
    if not text:
        return None
    match = _ARRAY_RE.search(text)
    if match is None:
        return None
    parsed = parse_json_or_none(match.group(0))
    return parsed if isinstance(parsed, list) else None


def extract_json_object(text: str | None) -> dict | None:
    """Return the outermost JSON object embedded in text, or None."""
    if not text:
        return None
    match = _OBJECT_RE.search(text)
    if match is None:
        return None
    parsed = parse_json_or_none(match.group(0))
    return parsed if isinstance(parsed, dict) else None

"""Format adapter interface and shared helpers.

An adapter is any value with a `name`, a cheap `can_handle(raw)` structural
test, and a `transform(raw)` that maps the raw JSON into a canonical
Conversation. Adapters are pure functions of their input; ids the source
format lacks come from an IdSequence created inside each transform call.
"""

from typing import Any, Protocol

from ctxview.models import Conversation, ConversationValidationError, validate_conversation
from ctxview.utils.json import parse_json_or_none


class FormatError(Exception):
    """Raised when a claimed payload cannot be mapped onto the canonical model."""


class FormatAdapter(Protocol):
    name: str

    def can_handle(self, raw: Any) -> bool: ...

    def transform(self, raw: Any) -> Conversation: ...


class IdSequence:
    """Monotonic synthetic ids, scoped to one transform call."""

    def __init__(self, prefix: str = "") -> None:
        self._prefix = prefix
        self._next = 1

    def next(self) -> str:
        value = f"{self._prefix}{self._next}"
        self._next += 1
        return value


def require(container: Any, key: str, kind: type | tuple[type, ...], path: str) -> Any:
    """Fetch container[key], raising FormatError unless it is of the given type."""
    if not isinstance(container, dict) or key not in container:
        raise FormatError(f"{path}.{key}: field required")
    value = container[key]
    if not isinstance(value, kind):
        expected = kind.__name__ if isinstance(kind, type) else " or ".join(k.__name__ for k in kind)
        raise FormatError(f"{path}.{key}: expected {expected}, got {type(value).__name__}")
    return value


def optional_text(container: dict, key: str, path: str) -> str:
    """container[key] as a string; missing or null reads as empty."""
    value = container.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise FormatError(f"{path}.{key}: expected string, got {type(value).__name__}")
    return value


def parse_arguments(raw: Any, path: str) -> Any:
    """Decode a tool-call arguments string. Empty means no arguments."""
    if raw is None or raw == "":
        return {}
    if not isinstance(raw, str):
        return raw
    parsed = parse_json_or_none(raw)
    if parsed is None and raw.strip() != "null":
        raise FormatError(f"{path}: expected a JSON-encoded string, got {raw[:80]!r}")
    return parsed


def finalize(messages: list[dict[str, Any]], source: str) -> Conversation:
    """Validate adapter output, reporting violations as a FormatError."""
    try:
        return validate_conversation({"messages": messages})
    except ConversationValidationError as e:
        raise FormatError(f"Invalid {source} format: {e}") from e

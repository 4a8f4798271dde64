"""Adapter that re-ingests conversations already in the canonical shape.

Lets an exported, possibly enriched conversation (`Conversation.to_json()`)
be loaded again. Ids and token counts are preserved as-is.
"""

from typing import Any

from ctxview.importer.parsers.base import finalize
from ctxview.models import Conversation


class CanonicalAdapter:
    name = "canonical"

    def can_handle(self, raw: Any) -> bool:
        if not isinstance(raw, dict) or "object" in raw:
            return False
        messages = raw.get("messages")
        return isinstance(messages, list) and all(
            isinstance(m, dict) and isinstance(m.get("parts"), list) for m in messages
        )

    def transform(self, raw: Any) -> Conversation:
        return finalize(raw["messages"], "canonical")

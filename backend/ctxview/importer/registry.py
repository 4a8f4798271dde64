"""Parser registry: ordered format adapters with first-match dispatch."""

import json
import logging
from typing import Any

from ctxview.importer.parsers.base import FormatAdapter, FormatError
from ctxview.importer.parsers.canonical import CanonicalAdapter
from ctxview.importer.parsers.completions import CompletionsAdapter
from ctxview.importer.parsers.responses import ResponsesAdapter
from ctxview.models import Conversation

logger = logging.getLogger(__name__)


class NoMatchingFormat(Exception):
    """Raised when no registered adapter claims a payload."""


class ParserRegistry:
    """Holds adapters in registration order and dispatches to the first claimant."""

    def __init__(self, adapters: list[FormatAdapter] | None = None) -> None:
        self._adapters: list[FormatAdapter] = list(adapters or [])

    def register(self, adapter: FormatAdapter) -> None:
        self._adapters.append(adapter)

    @property
    def adapters(self) -> list[FormatAdapter]:
        return list(self._adapters)

    def find(self, raw: Any) -> FormatAdapter | None:
        for adapter in self._adapters:
            try:
                if adapter.can_handle(raw):
                    return adapter
            except Exception:
                # can_handle must never throw; a misbehaving adapter just doesn't claim.
                logger.warning("Adapter %s raised in can_handle", adapter.name, exc_info=True)
        return None

    def detect(self, raw: Any) -> str:
        """Name of the adapter that would handle raw, without transforming it."""
        adapter = self.find(raw)
        if adapter is None:
            raise NoMatchingFormat("No suitable parser found for the given data format")
        return adapter.name

    def parse(self, raw: Any) -> Conversation:
        adapter = self.find(raw)
        if adapter is None:
            raise NoMatchingFormat("No suitable parser found for the given data format")
        logger.debug("Parsing payload with %s adapter", adapter.name)
        return adapter.transform(raw)


def load_json(content: bytes | str) -> Any:
    """Decode an uploaded file's content as JSON."""
    try:
        return json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise FormatError(f"Invalid JSON: {e}") from e


def default_registry() -> ParserRegistry:
    """Registry with every built-in adapter, most specific first."""
    return ParserRegistry([ResponsesAdapter(), CompletionsAdapter(), CanonicalAdapter()])

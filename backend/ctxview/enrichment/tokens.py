"""Token counting abstractions for the token accounting pass.

Provides a TokenCounter interface and the tiktoken-backed implementation used
in production. Counting must be deterministic: the same text always yields
the same count, with no I/O once the encoding is loaded.
"""

from abc import ABC, abstractmethod
from functools import lru_cache

import tiktoken


class TokenCounter(ABC):
    """Interface for counting tokens in text."""

    @abstractmethod
    def count(self, text: str) -> int:
        """Return the token count for the given text."""
        ...


@lru_cache(maxsize=8)
def _encoding_for(model: str) -> tiktoken.Encoding:
    try:
        return tiktoken.encoding_for_model(model)
    except KeyError:
        return tiktoken.get_encoding("o200k_base")


class TiktokenCounter(TokenCounter):
    """Byte-pair encoding counts using the encoding of a GPT-4-class model.

    Defaults to gpt-4o (o200k_base). Unknown model names fall back to
    o200k_base. Special-token text is counted as ordinary text.
    """

    def __init__(self, model: str = "gpt-4o") -> None:
        self.model = model
        self._encoding = _encoding_for(model)

    def count(self, text: str) -> int:
        return len(self._encoding.encode(text, disallowed_special=()))

"""Provider interface for the text-generation collaborator.

Every enrichment call is a single user prompt answered with text, so the
request and response types are deliberately small: one prompt in, one
string (or a stream of string deltas) out.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from pydantic import BaseModel, Field


class SamplingParams(BaseModel):
    temperature: float | None = None
    max_tokens: int = 4096


class PromptRequest(BaseModel):
    """One collaborator call: a prompt sent as a single user turn."""

    model: str
    prompt: str
    system_prompt: str | None = None
    sampling_params: SamplingParams = Field(default_factory=SamplingParams)


class TokenUsage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0


class PromptResponse(BaseModel):
    text: str
    model: str
    finish_reason: str | None = None
    usage: TokenUsage | None = None


class LLMProvider(ABC):
    """A chat API able to answer a PromptRequest."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier, e.g. 'openai'."""
        ...

    @abstractmethod
    async def complete(self, request: PromptRequest) -> PromptResponse:
        ...

    @abstractmethod
    def stream(self, request: PromptRequest) -> AsyncIterator[str]:
        """Yield text deltas as they arrive. Empty deltas are not yielded."""
        ...

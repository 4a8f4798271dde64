"""Text-generation collaborator consumed by the enrichment passes.

The passes only need two operations, captured by the TextGenerator protocol:
`generate(prompt) -> str` and `generate_stream(prompt) -> AsyncIterator[str]`.
TextCollaborator implements them on top of an LLMProvider and owns timeouts
and retries.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Protocol

from ctxview.providers.base import LLMProvider, PromptRequest, SamplingParams

logger = logging.getLogger(__name__)


class CollaboratorError(Exception):
    """Base class for failures of the text-generation collaborator."""


class CollaboratorUnavailable(CollaboratorError):
    """The provider call failed or timed out after all retries."""


class CollaboratorMalformedResponse(CollaboratorError):
    """The response could not be read as the expected JSON shape."""


class TextGenerator(Protocol):
    async def generate(self, prompt: str) -> str: ...

    def generate_stream(self, prompt: str) -> AsyncIterator[str]: ...


class TextCollaborator:
    """TextGenerator backed by an LLMProvider."""

    def __init__(
        self,
        provider: LLMProvider,
        model: str,
        *,
        timeout: float | None = 120.0,
        max_retries: int = 1,
        sampling_params: SamplingParams | None = None,
    ) -> None:
        self._provider = provider
        self._model = model
        self._timeout = timeout
        self._max_retries = max_retries
        self._sampling_params = sampling_params or SamplingParams()

    @property
    def model(self) -> str:
        return self._model

    def _request(self, prompt: str) -> PromptRequest:
        return PromptRequest(
            model=self._model,
            prompt=prompt,
            sampling_params=self._sampling_params,
        )

    async def generate(self, prompt: str) -> str:
        request = self._request(prompt)
        attempts = self._max_retries + 1
        last_error: Exception | None = None

        for attempt in range(1, attempts + 1):
            try:
                result = await asyncio.wait_for(
                    self._provider.complete(request), timeout=self._timeout
                )
                return result.text
            except asyncio.TimeoutError as e:
                last_error = e
                logger.warning(
                    "%s call timed out after %ss (attempt %d/%d)",
                    self._provider.name, self._timeout, attempt, attempts,
                )
            except Exception as e:
                last_error = e
                logger.warning(
                    "%s call failed (attempt %d/%d): %s",
                    self._provider.name, attempt, attempts, e,
                )

        raise CollaboratorUnavailable(
            f"{self._provider.name} generation failed after {attempts} attempt(s)"
        ) from last_error

    async def generate_stream(self, prompt: str) -> AsyncIterator[str]:
        """Yield text deltas. Stopping iteration early closes the provider stream."""
        stream = self._provider.stream(self._request(prompt))
        try:
            async for delta in stream:
                if delta:
                    yield delta
        except Exception as e:
            raise CollaboratorUnavailable(
                f"{self._provider.name} stream failed: {e}"
            ) from e
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

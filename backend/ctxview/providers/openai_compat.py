"""Base class for providers speaking the OpenAI chat completions protocol.

OpenAIProvider and GenericOpenAIProvider differ only in how the AsyncOpenAI
client is configured.
"""

import logging
from collections.abc import AsyncIterator
from typing import Any

from openai import AsyncOpenAI

from ctxview.providers.base import LLMProvider, PromptRequest, PromptResponse, TokenUsage

logger = logging.getLogger(__name__)


class OpenAICompatibleProvider(LLMProvider):
    def __init__(self, client: AsyncOpenAI) -> None:
        self._client = client

    async def complete(self, request: PromptRequest) -> PromptResponse:
        response = await self._client.chat.completions.create(**self._build_params(request))
        choice = response.choices[0]
        usage = None
        if response.usage is not None:
            usage = TokenUsage(
                input_tokens=response.usage.prompt_tokens,
                output_tokens=response.usage.completion_tokens,
            )
        return PromptResponse(
            text=choice.message.content or "",
            model=response.model,
            finish_reason=choice.finish_reason,
            usage=usage,
        )

    async def stream(self, request: PromptRequest) -> AsyncIterator[str]:
        params = self._build_params(request)
        params["stream"] = True
        params["stream_options"] = {"include_usage": True}

        response = await self._client.chat.completions.create(**params)
        async for chunk in response:
            if chunk.choices:
                delta = chunk.choices[0].delta.content
                if delta:
                    yield delta
            # With include_usage the last chunk has no choices, only usage.
            if chunk.usage:
                logger.debug(
                    "%s stream finished: %d prompt / %d completion tokens",
                    self.name, chunk.usage.prompt_tokens, chunk.usage.completion_tokens,
                )

    @staticmethod
    def _build_params(request: PromptRequest) -> dict[str, Any]:
        messages = []
        if request.system_prompt is not None:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.append({"role": "user", "content": request.prompt})

        params: dict[str, Any] = {
            "model": request.model,
            "max_tokens": request.sampling_params.max_tokens,
            "messages": messages,
        }
        if request.sampling_params.temperature is not None:
            params["temperature"] = request.sampling_params.temperature
        return params

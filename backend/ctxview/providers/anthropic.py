"""Anthropic Messages API provider."""

import logging
from collections.abc import AsyncIterator
from typing import Any

from anthropic import AsyncAnthropic

from ctxview.providers.base import LLMProvider, PromptRequest, PromptResponse, TokenUsage

logger = logging.getLogger(__name__)


class AnthropicProvider(LLMProvider):
    def __init__(self, client: AsyncAnthropic) -> None:
        self._client = client

    @property
    def name(self) -> str:
        return "anthropic"

    async def complete(self, request: PromptRequest) -> PromptResponse:
        response = await self._client.messages.create(**self._build_params(request))
        # Only text blocks carry the answer; thinking/tool blocks are skipped.
        text = "".join(block.text for block in response.content if block.type == "text")
        return PromptResponse(
            text=text,
            model=response.model,
            finish_reason=response.stop_reason,
            usage=TokenUsage(
                input_tokens=response.usage.input_tokens,
                output_tokens=response.usage.output_tokens,
            ),
        )

    async def stream(self, request: PromptRequest) -> AsyncIterator[str]:
        events = await self._client.messages.create(**self._build_params(request), stream=True)
        input_tokens = 0
        async for event in events:
            if event.type == "message_start":
                input_tokens = event.message.usage.input_tokens
            elif event.type == "content_block_delta":
                delta = getattr(event.delta, "text", None)
                if delta:
                    yield delta
            elif event.type == "message_delta":
                logger.debug(
                    "anthropic stream finished (%s): %d input / %d output tokens",
                    event.delta.stop_reason, input_tokens, event.usage.output_tokens,
                )

    @staticmethod
    def _build_params(request: PromptRequest) -> dict[str, Any]:
        params: dict[str, Any] = {
            "model": request.model,
            "max_tokens": request.sampling_params.max_tokens,
            "messages": [{"role": "user", "content": request.prompt}],
        }
        if request.system_prompt is not None:
            params["system"] = request.system_prompt
        if request.sampling_params.temperature is not None:
            params["temperature"] = request.sampling_params.temperature
        return params

"""Provider for self-hosted OpenAI-compatible servers.

Selected with AI_PROVIDER=openai_compatible; AI_BASE_URL points at the
server (vLLM, LM Studio, Ollama's /v1 endpoint and the like). Such servers
usually ignore the API key, so an empty key is allowed.
"""

from openai import AsyncOpenAI

from ctxview.providers.openai_compat import OpenAICompatibleProvider


class GenericOpenAIProvider(OpenAICompatibleProvider):
    def __init__(
        self,
        *,
        base_url: str,
        api_key: str = "",
        client: AsyncOpenAI | None = None,
        provider_name: str = "openai_compatible",
    ) -> None:
        self._provider_name = provider_name
        super().__init__(client or AsyncOpenAI(base_url=base_url, api_key=api_key or "unused"))

    @property
    def name(self) -> str:
        return self._provider_name

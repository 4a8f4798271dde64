"""OpenAI provider (api.openai.com)."""

from openai import AsyncOpenAI

from ctxview.providers.openai_compat import OpenAICompatibleProvider


class OpenAIProvider(OpenAICompatibleProvider):
    def __init__(self, *, client: AsyncOpenAI | None = None, api_key: str | None = None) -> None:
        super().__init__(client or AsyncOpenAI(api_key=api_key))

    @property
    def name(self) -> str:
        return "openai"

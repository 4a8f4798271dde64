"""Settings-driven provider construction.

create_provider() turns Settings into the LLM provider the pipeline's
TextCollaborator wraps; main.py calls it once at startup.
"""

from anthropic import AsyncAnthropic

from ctxview.config import Settings
from ctxview.providers.anthropic import AnthropicProvider
from ctxview.providers.base import LLMProvider
from ctxview.providers.generic_openai import GenericOpenAIProvider
from ctxview.providers.openai import OpenAIProvider


class ProviderNotFoundError(Exception):
    pass


def create_provider(settings: Settings) -> LLMProvider | None:
    """Instantiate the configured collaborator provider, None when AI is disabled."""
    if not settings.ai_enabled:
        return None
    if settings.ai_provider == "openai":
        return OpenAIProvider(api_key=settings.ai_api_key)
    if settings.ai_provider == "anthropic":
        return AnthropicProvider(AsyncAnthropic(api_key=settings.ai_api_key))
    if settings.ai_provider == "openai_compatible":
        return GenericOpenAIProvider(
            base_url=settings.ai_base_url or "",
            api_key=settings.ai_api_key or "",
        )
    raise ProviderNotFoundError(
        f"Unknown AI_PROVIDER '{settings.ai_provider}'."
        " Expected openai, anthropic or openai_compatible"
    )

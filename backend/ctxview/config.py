"""Application settings, read from the environment.

`.env` files are loaded by the entry points (main.load_settings, CLI script)
before Settings.from_env() is called; nothing here touches the filesystem.
"""

import os

from pydantic import BaseModel, Field


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    return float(raw) if raw else default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    return int(raw) if raw else default


class Settings(BaseModel):
    """Configuration for the pipeline and its text-generation collaborator."""

    # Collaborator. No key (and no base URL) means the AI passes are skipped.
    ai_api_key: str | None = None
    ai_provider: str = "openai"  # "openai" | "anthropic" | "openai_compatible"
    ai_model: str = "gpt-4o-mini"
    ai_base_url: str | None = None
    ai_timeout_seconds: float = 120.0
    ai_max_retries: int = 1

    # Enrichment
    tokenizer_model: str = "gpt-4o"
    segmentation_threshold: float = Field(default=0.10, gt=0, lt=1)
    token_yield_every: int = 10

    # HTTP
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:5173"])

    @property
    def ai_enabled(self) -> bool:
        if self.ai_provider == "openai_compatible":
            return bool(self.ai_base_url)
        return bool(self.ai_api_key)

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.environ.get("CORS_ORIGINS")
        data: dict = {
            "ai_api_key": os.environ.get("AI_API_KEY") or None,
            "ai_provider": os.environ.get("AI_PROVIDER", "openai"),
            "ai_model": os.environ.get("AI_MODEL", "gpt-4o-mini"),
            "ai_base_url": os.environ.get("AI_BASE_URL") or None,
            "ai_timeout_seconds": _env_float("AI_TIMEOUT_SECONDS", 120.0),
            "ai_max_retries": _env_int("AI_MAX_RETRIES", 1),
            "tokenizer_model": os.environ.get("TOKENIZER_MODEL", "gpt-4o"),
            "segmentation_threshold": _env_float("SEGMENTATION_THRESHOLD", 0.10),
            "token_yield_every": _env_int("TOKEN_YIELD_EVERY", 10),
        }
        if origins:
            data["cors_origins"] = [o.strip() for o in origins.split(",") if o.strip()]
        return cls(**data)

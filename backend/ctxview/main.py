"""Context Viewer FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ctxview.config import Settings
from ctxview.enrichment.tokens import TiktokenCounter
from ctxview.importer.registry import default_registry
from ctxview.pipeline.orchestrator import PipelineOrchestrator
from ctxview.pipeline.router import get_orchestrator
from ctxview.pipeline.router import router as conversations_router
from ctxview.providers.collaborator import TextCollaborator
from ctxview.providers.registry import create_provider

logger = logging.getLogger(__name__)

VERSION = "0.1.0"

# .env lives in backend/ (secrets stay out of shell profile)
ENV_FILE = Path(__file__).resolve().parent.parent / ".env"


def build_orchestrator(settings: Settings) -> PipelineOrchestrator:
    """Wire registry, tokenizer and (when configured) the AI collaborator."""
    collaborator = None
    provider = create_provider(settings)
    if provider is not None:
        collaborator = TextCollaborator(
            provider,
            settings.ai_model,
            timeout=settings.ai_timeout_seconds,
            max_retries=settings.ai_max_retries,
        )
        logger.info("AI collaborator: %s/%s", provider.name, settings.ai_model)
    else:
        logger.info("No AI key configured; segmentation and componentization disabled")

    return PipelineOrchestrator(
        default_registry(),
        TiktokenCounter(settings.tokenizer_model),
        collaborator,
        segmentation_threshold=settings.segmentation_threshold,
        token_yield_every=settings.token_yield_every,
    )


def load_settings(env_file: Path = ENV_FILE) -> Settings:
    """Settings from the environment, after loading env_file into it.

    Variables already set in the process environment win over the file.
    """
    load_dotenv(env_file)
    return Settings.from_env()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Load configuration and wire the pipeline."""
    logging.basicConfig(level=logging.INFO)

    settings = load_settings()
    orchestrator = build_orchestrator(settings)
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator

    app.state.settings = settings
    yield


app = FastAPI(
    title="Context Viewer",
    description=(
        "Normalizes AI-assistant conversation logs and breaks down their"
        " token usage by topical component"
    ),
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=load_settings().cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(conversations_router)


@app.get("/api/health")
async def health() -> dict:
    return {"status": "ok", "version": VERSION}

"""Pipeline orchestrator: runs every enrichment pass over a batch of files.

Each file moves pending -> processing -> success | failed. While processing,
`step` names the pass that owns it (parse, token-count, segment,
componentize). Files run one at a time in submission order; a fatal error in
one file marks that file failed and the batch carries on.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel

from ctxview.enrichment.componentization import componentize_conversation
from ctxview.enrichment.segmentation import DEFAULT_THRESHOLD, segment_conversation
from ctxview.enrichment.token_accounting import count_tokens_incrementally
from ctxview.enrichment.tokens import TokenCounter
from ctxview.importer.parsers.base import FormatError
from ctxview.importer.registry import NoMatchingFormat, ParserRegistry, load_json
from ctxview.models import ComponentizationResult, Conversation, ConversationValidationError
from ctxview.providers.collaborator import TextGenerator

logger = logging.getLogger(__name__)

FileStatus = Literal["pending", "processing", "success", "failed"]
PipelineStep = Literal["parse", "token-count", "segment", "componentize"]

StepCallback = Callable[[str, PipelineStep], None]


@dataclass
class UploadedFile:
    filename: str
    content: bytes | str
    id: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            self.id = str(uuid4())


class FileResult(BaseModel):
    id: str
    filename: str
    status: FileStatus = "pending"
    step: PipelineStep | None = None
    conversation: Conversation | None = None
    components: ComponentizationResult | None = None
    error: str | None = None


CompleteCallback = Callable[[FileResult], None]


class PipelineOrchestrator:
    """Sequences parse, token-count, segment and componentize per file."""

    def __init__(
        self,
        registry: ParserRegistry,
        token_counter: TokenCounter,
        collaborator: TextGenerator | None = None,
        *,
        segmentation_threshold: float = DEFAULT_THRESHOLD,
        token_yield_every: int = 10,
    ) -> None:
        self._registry = registry
        self._counter = token_counter
        self._collaborator = collaborator
        self._threshold = segmentation_threshold
        self._yield_every = token_yield_every

    @property
    def registry(self) -> ParserRegistry:
        return self._registry

    @property
    def collaborator(self) -> TextGenerator | None:
        return self._collaborator

    async def process_batch(
        self,
        files: list[UploadedFile],
        *,
        on_step: StepCallback | None = None,
        on_complete: CompleteCallback | None = None,
        segment: bool = True,
        componentize: bool = True,
        assign_colors: bool = False,
    ) -> list[FileResult]:
        """Process files sequentially; every file gets a terminal result."""
        results = []
        for file in files:
            result = await self.process_file(
                file,
                on_step=on_step,
                segment=segment,
                componentize=componentize,
                assign_colors=assign_colors,
            )
            if on_complete is not None:
                on_complete(result)
            results.append(result)
        return results

    async def process_file(
        self,
        file: UploadedFile,
        *,
        on_step: StepCallback | None = None,
        segment: bool = True,
        componentize: bool = True,
        assign_colors: bool = False,
    ) -> FileResult:
        result = FileResult(id=file.id, filename=file.filename, status="processing")

        def enter(step: PipelineStep) -> None:
            result.step = step
            if on_step is not None:
                on_step(file.id, step)

        try:
            enter("parse")
            conversation = self._registry.parse(load_json(file.content))

            enter("token-count")
            conversation = await self._count(conversation)

            components = None
            if self._collaborator is not None and segment:
                enter("segment")
                conversation = await segment_conversation(
                    conversation, self._collaborator, threshold=self._threshold
                )
                conversation = await self._count(conversation)

            if self._collaborator is not None and componentize:
                enter("componentize")
                components = await componentize_conversation(
                    conversation, self._collaborator, assign_colors=assign_colors
                )
        except (FormatError, NoMatchingFormat, ConversationValidationError) as e:
            logger.warning("File %s failed at %s: %s", file.filename, result.step, e)
            return self._failed(result, str(e))
        except Exception as e:
            logger.exception("Unexpected error processing %s at %s", file.filename, result.step)
            return self._failed(result, str(e) or type(e).__name__)

        logger.info("File %s processed (%d messages)", file.filename, len(conversation.messages))
        result.status = "success"
        result.conversation = conversation
        result.components = components
        return result

    async def _count(self, conversation: Conversation) -> Conversation:
        return await count_tokens_incrementally(
            conversation, self._counter, yield_every=self._yield_every
        )

    @staticmethod
    def _failed(result: FileResult, message: str) -> FileResult:
        result.status = "failed"
        result.conversation = None
        result.components = None
        result.error = message
        return result

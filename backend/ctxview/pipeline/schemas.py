"""Pydantic schemas for the conversations API."""

from pydantic import BaseModel, ConfigDict, Field

from ctxview.models import ComponentizationResult, ConversationSummary
from ctxview.pipeline.orchestrator import FileResult


class FileResultResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    filename: str
    status: str
    step: str | None = None
    conversation: dict | None = None
    summary: ConversationSummary | None = None
    components: ComponentizationResult | None = None
    error: str | None = None

    @classmethod
    def from_result(cls, result: FileResult, summary: ConversationSummary | None) -> "FileResultResponse":
        return cls(
            id=result.id,
            filename=result.filename,
            status=result.status,
            step=result.step,
            conversation=result.conversation.to_json() if result.conversation else None,
            summary=summary,
            components=result.components,
            error=result.error,
        )


class BatchResponse(BaseModel):
    results: list[FileResultResponse] = Field(default_factory=list)


class DetectResponse(BaseModel):
    format: str

"""Conversations API routes."""

from fastapi import APIRouter, Body, Depends, HTTPException, Query, UploadFile
from fastapi.responses import StreamingResponse

from ctxview.enrichment.summary import stream_conversation_summary, summarize_conversation
from ctxview.importer.parsers.base import FormatError
from ctxview.importer.registry import NoMatchingFormat, load_json
from ctxview.models import ConversationValidationError, validate_conversation
from ctxview.pipeline.orchestrator import PipelineOrchestrator, UploadedFile
from ctxview.pipeline.schemas import BatchResponse, DetectResponse, FileResultResponse

router = APIRouter(prefix="/api/conversations", tags=["conversations"])


def get_orchestrator() -> PipelineOrchestrator:
    """Dependency placeholder, overridden at startup."""
    raise RuntimeError("PipelineOrchestrator not configured")


@router.post("")
async def process_conversations(
    files: list[UploadFile],
    segment: bool = Query(True),
    componentize: bool = Query(True),
    colors: bool = Query(False),
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
) -> BatchResponse:
    """Parse and enrich uploaded log files. Per-file failures are reported inline."""
    uploads = [
        UploadedFile(filename=f.filename or "unknown", content=await f.read())
        for f in files
    ]
    results = await orchestrator.process_batch(
        uploads, segment=segment, componentize=componentize, assign_colors=colors
    )
    return BatchResponse(results=[
        FileResultResponse.from_result(
            r, summarize_conversation(r.conversation) if r.conversation else None
        )
        for r in results
    ])


@router.post("/detect")
async def detect_format(
    file: UploadFile,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
) -> DetectResponse:
    """Report which adapter would handle the uploaded file."""
    content = await file.read()
    try:
        return DetectResponse(format=orchestrator.registry.detect(load_json(content)))
    except (FormatError, NoMatchingFormat) as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


@router.post("/summary")
async def stream_summary(
    conversation: dict = Body(...),
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
) -> StreamingResponse:
    """Stream an AI summary of a canonical conversation as plain text."""
    if orchestrator.collaborator is None:
        raise HTTPException(status_code=503, detail="No AI collaborator configured")
    try:
        parsed = validate_conversation(conversation)
    except ConversationValidationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    return StreamingResponse(
        stream_conversation_summary(parsed, orchestrator.collaborator),
        media_type="text/plain",
    )

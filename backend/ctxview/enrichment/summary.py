"""Conversation summaries.

summarize_conversation() is deterministic statistics over the canonical
model. The stream_* functions relay collaborator output chunk by chunk; the
caller may stop iterating at any point and the partial text is simply
unused. summarize_parts() produces one-line summaries per part id.
"""

import asyncio
import csv
import io
import logging
from collections import Counter
from collections.abc import AsyncIterator
from contextlib import aclosing

from ctxview.enrichment.prompts import get_prompt
from ctxview.enrichment.segmentation import segment_text
from ctxview.models import ComponentTimelineSnapshot, Conversation, ConversationSummary, Message
from ctxview.providers.collaborator import TextGenerator
from ctxview.utils.json import compact_json, extract_json_array, pretty_json

logger = logging.getLogger(__name__)

_PREVIEW_CHARS = 500


def summarize_conversation(conversation: Conversation) -> ConversationSummary:
    messages_by_role: Counter[str] = Counter()
    part_counts: Counter[str] = Counter()
    tokens_by_role: Counter[str] = Counter()

    for message in conversation.messages:
        messages_by_role[message.role] += 1
        for part in message.parts:
            part_counts[part.type] += 1
            tokens_by_role[message.role] += getattr(part, "token_count", None) or 0

    return ConversationSummary(
        total_messages=len(conversation.messages),
        messages_by_role=dict(messages_by_role),
        part_counts=dict(part_counts),
        total_tokens=conversation.total_tokens(),
        tokens_by_role=dict(tokens_by_role),
    )


def conversation_overview(conversation: Conversation) -> dict:
    """Condensed view for the summary prompt: roles, part types, text previews."""
    return {
        "totalMessages": len(conversation.messages),
        "messages": [
            {
                "index": idx,
                "role": msg.role,
                "partTypes": [p.type for p in msg.parts],
                "textPreview": " ".join(
                    p.text[:_PREVIEW_CHARS] for p in msg.parts if p.type in ("text", "reasoning")
                ),
            }
            for idx, msg in enumerate(conversation.messages)
        ],
    }


def timeline_to_csv(timeline: list[ComponentTimelineSnapshot]) -> str:
    """One row per message: index, each component's cumulative tokens, total."""
    labels: list[str] = []
    for snapshot in timeline:
        for label in snapshot.component_tokens:
            if label not in labels:
                labels.append(label)

    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(["message_index", *labels, "total_tokens"])
    for snapshot in timeline:
        writer.writerow([
            snapshot.message_index,
            *(snapshot.component_tokens.get(label, 0) for label in labels),
            snapshot.total_tokens,
        ])
    return output.getvalue()


async def stream_conversation_summary(
    conversation: Conversation, collaborator: TextGenerator
) -> AsyncIterator[str]:
    """Stream an AI-written summary. Failures end the stream early."""
    prompt = get_prompt(
        "conversation-summary", overview_json=pretty_json(conversation_overview(conversation))
    )
    async with aclosing(_relay(collaborator, prompt, "summary")) as chunks:
        async for chunk in chunks:
            yield chunk


async def stream_context_analysis(
    conversation_summary: str,
    timeline: list[ComponentTimelineSnapshot],
    collaborator: TextGenerator,
) -> AsyncIterator[str]:
    """Stream an analysis of how context components grew over the conversation."""
    prompt = get_prompt(
        "context-analysis",
        conversation_summary=conversation_summary,
        component_csv=timeline_to_csv(timeline),
    )
    async with aclosing(_relay(collaborator, prompt, "context analysis")) as chunks:
        async for chunk in chunks:
            yield chunk


async def _relay(collaborator: TextGenerator, prompt: str, label: str) -> AsyncIterator[str]:
    stream = collaborator.generate_stream(prompt)
    received = 0
    try:
        async for chunk in stream:
            received += len(chunk)
            yield chunk
    except Exception as e:
        logger.warning("Streaming %s failed after %d chars: %s", label, received, e)
    finally:
        aclose = getattr(stream, "aclose", None)
        if aclose is not None:
            await aclose()


def _summary_inputs(messages: list[Message]) -> list[dict[str, str]]:
    inputs = []
    for message in messages:
        for part in message.parts:
            if part.type in ("text", "reasoning", "tool-result"):
                text = segment_text(part)
            elif part.type == "tool-call":
                text = f"Tool call: {part.tool_name} with input {compact_json(part.input)}"
            else:
                continue
            if text:
                inputs.append({"id": part.id, "text": text})
    return inputs


async def _summarize_batch(messages: list[Message], collaborator: TextGenerator) -> dict[str, str]:
    inputs = _summary_inputs(messages)
    if not inputs:
        return {}
    try:
        response = await collaborator.generate(
            get_prompt("part-summaries", parts_json=pretty_json(inputs))
        )
    except Exception as e:
        logger.warning("Part summary batch failed: %s", e)
        return {}

    summaries: dict[str, str] = {}
    for entry in extract_json_array(response) or []:
        if isinstance(entry, dict) and isinstance(entry.get("id"), str) and isinstance(entry.get("summary"), str):
            summaries[entry["id"]] = entry["summary"]
    return summaries


async def summarize_parts(
    conversation: Conversation,
    collaborator: TextGenerator,
    *,
    batch_size: int = 10,
) -> dict[str, str]:
    """Short one-line summary per part id, batching messages in parallel."""
    messages = list(conversation.messages)
    batches = [messages[i:i + batch_size] for i in range(0, len(messages), batch_size)]
    results = await asyncio.gather(*(_summarize_batch(b, collaborator) for b in batches))

    summaries: dict[str, str] = {}
    for result in results:
        summaries.update(result)
    logger.info("Summarized %d parts in %d batches", len(summaries), len(batches))
    return summaries

"""Token accounting pass: attach a token_count to every countable part.

text and reasoning parts count their text. Tool calls and results count the
tool name followed by the compact JSON of the input/output, so tool identity
contributes to cost. Image and file parts are left untouched.
"""

import asyncio
import logging

from ctxview.enrichment.tokens import TokenCounter
from ctxview.models import COUNTABLE_PART_TYPES, Conversation, Part
from ctxview.utils.json import compact_json

logger = logging.getLogger(__name__)


def countable_text(part: Part) -> str | None:
    """The string whose tokens are attributed to part, None if uncounted."""
    if part.type not in COUNTABLE_PART_TYPES:
        return None
    if part.type in ("text", "reasoning"):
        return part.text
    if part.type == "tool-call":
        return f"{part.tool_name}{compact_json(part.input)}"
    return f"{part.tool_name}{compact_json(part.output)}"


def _count_message(message, counter: TokenCounter):
    parts = []
    for part in message.parts:
        text = countable_text(part)
        if text is None:
            parts.append(part)
        else:
            parts.append(part.model_copy(update={"token_count": counter.count(text)}))
    return message.model_copy(update={"parts": parts})


def count_tokens(conversation: Conversation, counter: TokenCounter) -> Conversation:
    """Return a copy of conversation with token counts on every countable part."""
    messages = [_count_message(m, counter) for m in conversation.messages]
    return conversation.model_copy(update={"messages": messages})


async def count_tokens_incrementally(
    conversation: Conversation,
    counter: TokenCounter,
    *,
    yield_every: int = 10,
) -> Conversation:
    """Same result as count_tokens, yielding to the event loop between batches.

    Messages are processed strictly in order; the periodic sleep(0) only lets
    other tasks (progress reporting, HTTP handlers) run.
    """
    messages = []
    for message in conversation.messages:
        messages.append(_count_message(message, counter))
        if yield_every > 0 and len(messages) % yield_every == 0:
            await asyncio.sleep(0)

    logger.debug("Counted tokens for %d messages", len(messages))
    return conversation.model_copy(update={"messages": messages})

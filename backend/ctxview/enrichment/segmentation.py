"""Segmentation pass: split parts that dominate the token budget.

A part is large when its token_count exceeds a fraction (10% by default) of
the conversation total. Each large text, reasoning or tool-result part is
sent to the collaborator, which answers with regex fragments meant for
positive-lookahead splitting. The fragments are joined into one alternation,
the part's text is split on it, and the part is replaced by one child part
per non-empty segment (ids `<parent>.<n>`, token counts cleared). A part
whose child ids would collide with ids already in the conversation stays
whole.

Segmentation only happens when it produces at least two segments; anything
else, including collaborator failures, leaves the part as it was. The pass
never raises.
"""

import asyncio
import logging
import re
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass

from ctxview.enrichment.prompts import get_prompt
from ctxview.models import Conversation, Part
from ctxview.providers.collaborator import CollaboratorMalformedResponse, TextGenerator
from ctxview.utils.json import compact_json, extract_json_array

logger = logging.getLogger(__name__)

SEGMENTABLE_PART_TYPES = frozenset({"text", "reasoning", "tool-result"})
DEFAULT_THRESHOLD = 0.10


@dataclass(frozen=True)
class LargePart:
    message_index: int
    part_index: int
    part: Part


def segment_text(part: Part) -> str:
    """Text the segmentation works on; tool results use their output."""
    if part.type == "tool-result":
        return part.output if isinstance(part.output, str) else compact_json(part.output)
    return part.text


def find_large_parts(conversation: Conversation, threshold: float = DEFAULT_THRESHOLD) -> list[LargePart]:
    total = conversation.total_tokens()
    limit = total * threshold
    logger.info("Total tokens: %d, large-part threshold: %.1f", total, limit)

    large = [
        LargePart(m_idx, p_idx, part)
        for m_idx, p_idx, part in conversation.iter_parts()
        if part.type in SEGMENTABLE_PART_TYPES and (part.token_count or 0) > limit
    ]
    logger.info("Found %d large parts", len(large))
    return large


def split_text(text: str, markers: list[str]) -> list[str]:
    """Split text on the alternation of markers; trimmed, empties dropped.

    Returns [text] unchanged when there are no markers or the combined
    pattern does not compile.
    """
    if not markers:
        return [text]
    try:
        pattern = re.compile("|".join(markers))
    except re.error as e:
        logger.warning("Split pattern does not compile (%s); leaving text whole", e)
        return [text]

    # Capture groups in the markers show up in the result, possibly as None.
    pieces = pattern.split(text)
    return [p.strip() for p in pieces if isinstance(p, str) and p.strip()]


async def request_split_markers(text: str, collaborator: TextGenerator) -> list[str]:
    response = await collaborator.generate(get_prompt("segmentation", text=text))
    markers = extract_json_array(response)
    if markers is None:
        raise CollaboratorMalformedResponse("segmentation response has no JSON array")
    return [m for m in markers if isinstance(m, str) and m]


def build_segments(part: Part, segments: list[str]) -> list[Part]:
    field = "output" if part.type == "tool-result" else "text"
    return [
        part.model_copy(update={"id": f"{part.id}.{n}", "token_count": None, field: segment})
        for n, segment in enumerate(segments, start=1)
    ]


async def segment_part(part: Part, collaborator: TextGenerator) -> list[Part] | None:
    """Replacement parts for part, or None when it should stay whole."""
    text = segment_text(part)
    logger.debug("Segmenting part %s (%s, %d chars)", part.id, part.type, len(text))
    try:
        markers = await request_split_markers(text, collaborator)
    except Exception as e:
        logger.warning("Segmentation request for part %s failed: %s", part.id, e)
        return None

    if not markers:
        logger.debug("No split markers returned for part %s", part.id)
        return None

    segments = split_text(text, markers)
    if len(segments) <= 1:
        logger.debug("Split of part %s produced %d segment(s), not segmenting", part.id, len(segments))
        return None

    logger.info("Split part %s into %d segments", part.id, len(segments))
    return build_segments(part, segments)


def apply_replacements(
    conversation: Conversation,
    replacements: dict[int, list[tuple[int, list[Part]]]],
) -> Conversation:
    """Splice replacement parts into their messages, last index first."""
    messages = list(conversation.messages)
    for m_idx, entries in replacements.items():
        parts = list(messages[m_idx].parts)
        for p_idx, new_parts in sorted(entries, key=lambda e: e[0], reverse=True):
            parts[p_idx:p_idx + 1] = new_parts
        messages[m_idx] = messages[m_idx].model_copy(update={"parts": parts})
    return conversation.model_copy(update={"messages": messages})


async def segment_conversation(
    conversation: Conversation,
    collaborator: TextGenerator | None,
    *,
    threshold: float = DEFAULT_THRESHOLD,
    on_progress: Callable[[int, int], None] | None = None,
) -> Conversation:
    """Return conversation with its large parts split into semantic segments.

    Token counts must already be present. Split parts come back without
    token_count; run the token accounting pass again afterwards.
    """
    if collaborator is None:
        logger.info("No collaborator configured, skipping segmentation")
        return conversation

    large_parts = find_large_parts(conversation, threshold)
    if not large_parts:
        return conversation

    completed = 0

    async def run(target: LargePart) -> tuple[LargePart, list[Part] | None]:
        nonlocal completed
        new_parts = await segment_part(target.part, collaborator)
        completed += 1
        if on_progress is not None:
            on_progress(completed, len(large_parts))
        return target, new_parts

    results = await asyncio.gather(*(run(lp) for lp in large_parts))

    taken = set(conversation.part_ids())
    replacements: dict[int, list[tuple[int, list[Part]]]] = defaultdict(list)
    for target, new_parts in results:
        if not new_parts:
            continue
        child_ids = {p.id for p in new_parts}
        clashes = child_ids & taken
        if clashes:
            logger.warning(
                "Segment ids %s of part %s already exist; leaving it whole",
                ", ".join(sorted(clashes)), target.part.id,
            )
            continue
        taken |= child_ids
        replacements[target.message_index].append((target.part_index, new_parts))

    if not replacements:
        return conversation
    return apply_replacements(conversation, replacements)

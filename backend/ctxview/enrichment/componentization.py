"""Componentization pass: group parts under topical component labels.

Two collaborator calls, then a deterministic aggregation:

1. identify: ask for a short list of component labels for the conversation.
2. map: ask which label each part id belongs to.
3. timeline: cumulative per-component token totals at each message index.

An optional fourth call assigns a display colour to each label. Collaborator
failures degrade (no labels, unmapped ids, default colour) and never raise;
an empty identification is reported through ComponentizationResult.error.
"""

import logging
from collections.abc import Callable, Iterable

from ctxview.enrichment.prompts import COLOR_PALETTE, DEFAULT_COLOR, get_prompt
from ctxview.models import (
    ComponentizationResult,
    ComponentMapping,
    ComponentTimelineSnapshot,
    Conversation,
)
from ctxview.providers.collaborator import TextGenerator
from ctxview.utils.json import extract_json_array, extract_json_object, pretty_json

logger = logging.getLogger(__name__)

NO_COMPONENTS_ERROR = "No components identified"


def _conversation_json(conversation: Conversation) -> str:
    return pretty_json(conversation.to_json())


async def identify_components(
    conversation: Conversation,
    collaborator: TextGenerator,
    *,
    custom_prompt: str | None = None,
) -> list[str]:
    """Labels proposed by the collaborator; empty on failure or nothing usable."""
    prompt = get_prompt(
        "component-identification",
        conversation_json=_conversation_json(conversation),
        custom_prompt=custom_prompt,
    )
    try:
        response = await collaborator.generate(prompt)
    except Exception as e:
        logger.warning("Component identification failed: %s", e)
        return []

    raw = extract_json_array(response)
    if raw is None:
        logger.warning("Component identification response has no JSON array")
        return []

    components: list[str] = []
    for item in raw:
        if isinstance(item, str) and item.strip() and item.strip() not in components:
            components.append(item.strip())
    logger.info("Identified %d components", len(components))
    return components


async def map_components(
    conversation: Conversation,
    components: list[str],
    collaborator: TextGenerator,
) -> ComponentMapping:
    """Part id -> label. Unknown ids and labels outside `components` are dropped."""
    prompt = get_prompt(
        "component-mapping",
        conversation_json=_conversation_json(conversation),
        components_json=pretty_json(components),
    )
    try:
        response = await collaborator.generate(prompt)
    except Exception as e:
        logger.warning("Component mapping failed: %s", e)
        return {}

    raw = extract_json_object(response)
    if raw is None:
        logger.warning("Component mapping response has no JSON object")
        return {}

    known_ids = set(conversation.part_ids())
    known_labels = set(components)
    mapping = {
        part_id: label
        for part_id, label in raw.items()
        if part_id in known_ids and isinstance(label, str) and label in known_labels
    }
    dropped = len(raw) - len(mapping)
    if dropped:
        logger.info("Dropped %d mapping entries with unknown ids or labels", dropped)
    logger.info("Mapped %d of %d parts to components", len(mapping), len(known_ids))
    return mapping


def build_component_timeline(
    conversation: Conversation,
    mapping: ComponentMapping,
    components: Iterable[str] | None = None,
) -> list[ComponentTimelineSnapshot]:
    """Cumulative component token totals, one snapshot per message.

    Single forward pass keeping running totals per label. Every snapshot
    lists every label (from `components`, then any extra labels in the
    mapping) so series line up; unmapped parts are not counted anywhere.
    """
    labels = list(dict.fromkeys([*(components or []), *mapping.values()]))
    running = dict.fromkeys(labels, 0)
    total = 0
    timeline: list[ComponentTimelineSnapshot] = []

    for m_idx, message in enumerate(conversation.messages):
        for part in message.parts:
            label = mapping.get(part.id)
            if label is None:
                continue
            tokens = getattr(part, "token_count", None) or 0
            running[label] += tokens
            total += tokens
        timeline.append(ComponentTimelineSnapshot(
            message_index=m_idx,
            component_tokens=dict(running),
            total_tokens=total,
        ))

    return timeline


async def assign_component_colors(
    components: list[str],
    collaborator: TextGenerator | None,
) -> dict[str, str]:
    """Palette colour per label; anything unusable falls back to gray."""
    colors = dict.fromkeys(components, DEFAULT_COLOR)
    if collaborator is None or not components:
        return colors

    try:
        response = await collaborator.generate(
            get_prompt("component-coloring", components_json=pretty_json(components))
        )
    except Exception as e:
        logger.warning("Component coloring failed: %s", e)
        return colors

    raw = extract_json_object(response) or {}
    for label in components:
        color = raw.get(label)
        if isinstance(color, str) and color.lower() in COLOR_PALETTE:
            colors[label] = color.lower()
    return colors


async def componentize_conversation(
    conversation: Conversation,
    collaborator: TextGenerator,
    *,
    custom_prompt: str | None = None,
    assign_colors: bool = False,
    on_progress: Callable[[str], None] | None = None,
) -> ComponentizationResult:
    """Identify components, map parts to them and build the timeline.

    Call again with a different custom_prompt to rebuild the mapping.
    """
    if on_progress is not None:
        on_progress("identifying")
    components = await identify_components(
        conversation, collaborator, custom_prompt=custom_prompt
    )
    if not components:
        return ComponentizationResult(error=NO_COMPONENTS_ERROR)

    if on_progress is not None:
        on_progress("mapping")
    mapping = await map_components(conversation, components, collaborator)
    timeline = build_component_timeline(conversation, mapping, components)

    colors: dict[str, str] = {}
    if assign_colors:
        if on_progress is not None:
            on_progress("coloring")
        colors = await assign_component_colors(components, collaborator)

    return ComponentizationResult(
        components=components,
        mapping=mapping,
        timeline=timeline,
        colors=colors,
    )

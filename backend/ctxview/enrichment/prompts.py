"""Prompt templates for every collaborator call, keyed by name."""

from collections.abc import Callable
from typing import Any

COLOR_PALETTE = ("orange", "emerald", "purple", "blue", "slate", "indigo", "gray")
DEFAULT_COLOR = "gray"

DEFAULT_COMPONENT_IDENTIFICATION_PROMPT = (
    "given this conversation, give me a list of all its components for a summary view\n"
    "each component can be 3 to 4 words in length"
)

_COMPONENT_OUTPUT_FORMAT = (
    "\n\njust give me a list in a json array like this example:\n"
    '["abc_document", "xyz_structure", "foo_context", "task", "sources", "breakdown",'
    ' "reflection", "files_about_bar", "files_about_baz", "tool_calls_about_quix",'
    ' "xyz blocks", "pqr list"]'
)


def _segmentation(*, text: str) -> str:
    return f"""Given the following text, tell me where all you would apply a break.
The purpose is semantic chunking in way that's suitable for categorization.
Only give me the top level sections to split the text into coherent topical chunks.
Return ONLY a valid JSON array of regexes with positive lookahead which I can use to run string split on.

Example response format: ["(?=regex-of-section-1)", "(?=regex-of-section2)"]

```
{text}
```
"""


def _component_identification(*, conversation_json: str, custom_prompt: str | None = None) -> str:
    user_prompt = custom_prompt or DEFAULT_COMPONENT_IDENTIFICATION_PROMPT
    return f"{user_prompt}{_COMPONENT_OUTPUT_FORMAT}\n\n<conversation>{conversation_json}</conversation>"


def _component_mapping(*, conversation_json: str, components_json: str) -> str:
    return f"""given this conversation and the list of components, give me a mapping
of message part ids in the conversation, to a component from the list, for all the message parts
just give me a simple json object {{id: component}}

<conversation>{conversation_json}</conversation>
<components>{components_json}</components>"""


def _component_coloring(*, components_json: str) -> str:
    return f"""Given this list of components, assign a color to each component.
Similar kinds of components should get the same color to make it easy to visually group them.

Available colors: {", ".join(COLOR_PALETTE)}

Return ONLY a valid JSON object mapping each component to a color name.
Example format: {{"component_name": "orange", "another_component": "blue"}}

Components:
{components_json}"""


def _conversation_summary(*, overview_json: str) -> str:
    return f"""Analyze this conversation and provide a concise summary covering:

1. Goal: What is the main objective or task being discussed?
2. Turns: How many meaningful exchanges occurred? What was the flow?
3. Result: What was accomplished or concluded?

Keep it brief and to the point. Use simple markdown text formatting only (headings, paragraphs, lists, bold).
Do not use code blocks, tables, or complex formatting.

Conversation:
{overview_json}"""


def _context_analysis(*, conversation_summary: str, component_csv: str) -> str:
    return f"""You are analyzing a conversation to identify opportunities for improving context relevance and efficiency.

## Conversation Summary
{conversation_summary}

## Component Distribution Over Time (CSV)
This shows how different context components grew throughout the conversation:

{component_csv}

## Your Task
Analyze this data and provide insights in markdown format covering:

1. **Context Growth Patterns**: What patterns do you see in how context accumulated? Which components dominated?

2. **Redundancy & Efficiency**: Are there signs of redundant context? Which components could potentially be reduced or optimized?

3. **Context Relevance**: Based on the conversation goal, which components seem most/least relevant? Are there disproportionate allocations?

4. **Recommendations**: Specific, actionable suggestions for improving context management in similar conversations. Focus on:
   - Components to reduce or eliminate
   - Better segmentation strategies
   - Context retrieval improvements
   - Memory optimization opportunities

Keep your analysis practical and focused on improving context relevance. Use clear headings, bullet points, and be specific about which components you're referring to."""


def _part_summaries(*, parts_json: str) -> str:
    return f"""given the following json, give back an array of message-parts with just short-line summary of the message-part's text.
output just a json array like this: [{{"id": "42", "summary": "text"}}]
messages: ```{parts_json}```"""


PROMPTS: dict[str, Callable[..., str]] = {
    "segmentation": _segmentation,
    "component-identification": _component_identification,
    "component-mapping": _component_mapping,
    "component-coloring": _component_coloring,
    "conversation-summary": _conversation_summary,
    "context-analysis": _context_analysis,
    "part-summaries": _part_summaries,
}


def get_prompt(key: str, **variables: Any) -> str:
    """Render the prompt registered under key. Raises KeyError for unknown keys."""
    try:
        template = PROMPTS[key]
    except KeyError:
        raise KeyError(f"Prompt not found: {key}") from None
    return template(**variables)

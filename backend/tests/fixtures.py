"""Shared test helpers: payload builders, fake collaborator, simple counter."""

import json
from collections.abc import AsyncIterator, Callable
from typing import Any

from ctxview.enrichment.tokens import TokenCounter
from ctxview.models import (
    AssistantMessage,
    Conversation,
    ReasoningPart,
    SystemMessage,
    TextPart,
    ToolCallPart,
    ToolMessage,
    ToolResultPart,
    UserMessage,
)


class WordCounter(TokenCounter):
    """Whitespace word count: deterministic and easy to reason about in tests."""

    def count(self, text: str) -> int:
        return len(text.split())


class FakeCollaborator:
    """Scripted TextGenerator.

    `responder` maps a prompt to a response string, or to an exception
    instance which is then raised. Every prompt is recorded.
    """

    def __init__(
        self,
        responder: Callable[[str], Any] | str = "",
        *,
        chunks: list[str] | None = None,
        stream_error: Exception | None = None,
    ) -> None:
        self._responder = responder
        self._chunks = chunks or []
        self._stream_error = stream_error
        self.prompts: list[str] = []
        self.stream_closed = False
        self.chunks_sent = 0

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        response = self._responder(prompt) if callable(self._responder) else self._responder
        if isinstance(response, Exception):
            raise response
        return response

    async def generate_stream(self, prompt: str) -> AsyncIterator[str]:
        self.prompts.append(prompt)
        try:
            for chunk in self._chunks:
                self.chunks_sent += 1
                yield chunk
            if self._stream_error is not None:
                raise self._stream_error
        finally:
            self.stream_closed = True


def route_by_prompt(**responses: Any) -> Callable[[str], Any]:
    """Responder choosing a response by which prompt it receives.

    Keys: segmentation, identify, mapping, coloring, summaries.
    """
    markers = {
        "segmentation": "semantic chunking",
        "identify": "json array like this example",
        "mapping": "give me a mapping",
        "coloring": "assign a color",
        "summaries": "short-line summary",
    }

    def respond(prompt: str) -> Any:
        for key, marker in markers.items():
            if marker in prompt and key in responses:
                value = responses[key]
                return value(prompt) if callable(value) else value
        return ""

    return respond


# ---------------------------------------------------------------------------
# Wire-format payloads
# ---------------------------------------------------------------------------


def make_completions_payload(messages: list[dict] | None = None) -> dict:
    if messages is None:
        messages = [
            {"role": "system", "content": "You are a helpful assistant."},
            {"role": "user", "content": "What's the weather in Paris?"},
            {
                "role": "assistant",
                "content": None,
                "tool_calls": [{
                    "id": "call_1",
                    "type": "function",
                    "function": {"name": "get_weather", "arguments": '{"city": "Paris"}'},
                }],
            },
            {"role": "tool", "tool_call_id": "call_1", "content": "Sunny, 22C"},
            {"role": "assistant", "content": "It is sunny and 22C in Paris."},
        ]
    return {
        "object": "traffic.completion",
        "messages": messages,
        "usage": {"total_tokens": 100, "completion_tokens": 20, "prompt_tokens": 80},
    }


def make_responses_payload(items: list[dict] | None = None) -> dict:
    if items is None:
        items = [
            {
                "id": "msg_u1",
                "type": "message",
                "role": "user",
                "content": [{"type": "input_text", "text": "Find the latest report."}],
            },
            {
                "id": "rs_1",
                "type": "reasoning",
                "summary": [{"type": "summary_text", "text": "Need to search files."}],
            },
            {
                "id": "fc_1",
                "type": "function_call",
                "call_id": "call_a",
                "name": "search_files",
                "arguments": '{"query": "report"}',
            },
            {
                "id": "fco_1",
                "type": "function_call_output",
                "call_id": "call_a",
                "output": '["report-2024.pdf"]',
            },
            {
                "id": "msg_a1",
                "type": "message",
                "role": "assistant",
                "status": "completed",
                "content": [{"type": "output_text", "text": "The latest is report-2024.pdf."}],
            },
        ]
    return {"object": "list", "data": items}


def encode(payload: Any) -> bytes:
    return json.dumps(payload).encode()


# ---------------------------------------------------------------------------
# Canonical conversations
# ---------------------------------------------------------------------------


def make_conversation() -> Conversation:
    """Five messages covering every role; no token counts yet."""
    return Conversation(messages=[
        SystemMessage(id="m1", parts=[TextPart(id="p1", text="Be brief.")]),
        UserMessage(id="m2", parts=[TextPart(id="p2", text="Summarize the design doc please")]),
        AssistantMessage(id="m3", parts=[
            ReasoningPart(id="p3", text="The user wants a summary"),
            ToolCallPart(id="p4", tool_call_id="c1", tool_name="read_doc", input={"name": "design"}),
        ]),
        ToolMessage(id="m4", parts=[
            ToolResultPart(id="p5", tool_call_id="c1", tool_name="read_doc", output="Design text"),
        ]),
        AssistantMessage(id="m5", parts=[TextPart(id="p6", text="Here is the summary of it")]),
    ])


def text_conversation(*messages: list[tuple[str, int]]) -> Conversation:
    """Assistant messages of text parts given as (id, token_count) pairs."""
    return Conversation(messages=[
        AssistantMessage(
            id=f"m{i}",
            parts=[TextPart(id=pid, text=f"text of {pid}", token_count=tokens) for pid, tokens in parts],
        )
        for i, parts in enumerate(messages)
    ])

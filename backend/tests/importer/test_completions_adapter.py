"""Tests for the Chat Completions traffic log adapter."""

import pytest

from ctxview.importer.parsers.base import FormatError
from ctxview.importer.parsers.completions import CompletionsAdapter
from ctxview.models import ImagePart, TextPart, ToolCallPart, ToolResultPart
from tests.fixtures import make_completions_payload


@pytest.fixture
def adapter():
    return CompletionsAdapter()


class TestCanHandle:
    def test_claims_traffic_completion(self, adapter):
        assert adapter.can_handle(make_completions_payload())

    def test_rejects_other_object_tags(self, adapter):
        assert not adapter.can_handle({"object": "list", "messages": []})

    def test_rejects_missing_messages(self, adapter):
        assert not adapter.can_handle({"object": "traffic.completion"})

    def test_rejects_non_objects(self, adapter):
        assert not adapter.can_handle([])
        assert not adapter.can_handle("traffic.completion")
        assert not adapter.can_handle(None)


class TestTransform:
    def test_roles_and_message_ids(self, adapter):
        conv = adapter.transform(make_completions_payload())
        assert [m.role for m in conv.messages] == ["system", "user", "assistant", "tool", "assistant"]
        assert [m.id for m in conv.messages] == ["msg-1", "msg-2", "msg-3", "msg-4", "msg-5"]

    def test_part_ids_are_sequential(self, adapter):
        conv = adapter.transform(make_completions_payload())
        assert conv.part_ids() == ["1", "2", "3", "4", "5"]

    def test_tool_call_arguments_decoded(self, adapter):
        conv = adapter.transform(make_completions_payload())
        call = conv.messages[2].parts[0]
        assert isinstance(call, ToolCallPart)
        assert call.tool_call_id == "call_1"
        assert call.tool_name == "get_weather"
        assert call.input == {"city": "Paris"}

    def test_tool_result_takes_name_from_call(self, adapter):
        conv = adapter.transform(make_completions_payload())
        result = conv.messages[3].parts[0]
        assert isinstance(result, ToolResultPart)
        assert result.tool_call_id == "call_1"
        assert result.tool_name == "get_weather"
        assert result.output == "Sunny, 22C"

    def test_tool_result_falls_back_to_name_field(self, adapter):
        conv = adapter.transform(make_completions_payload([
            {"role": "tool", "tool_call_id": "orphan", "name": "lookup", "content": "x"},
        ]))
        assert conv.messages[0].parts[0].tool_name == "lookup"

    def test_assistant_text_and_tool_calls(self, adapter):
        conv = adapter.transform(make_completions_payload([
            {
                "role": "assistant",
                "content": "Checking.",
                "tool_calls": [
                    {"id": "a", "type": "function", "function": {"name": "one", "arguments": "{}"}},
                    {"id": "b", "type": "function", "function": {"name": "two", "arguments": ""}},
                ],
            },
        ]))
        parts = conv.messages[0].parts
        assert isinstance(parts[0], TextPart) and parts[0].text == "Checking."
        assert [p.tool_name for p in parts[1:]] == ["one", "two"]
        assert parts[2].input == {}

    def test_empty_assistant_gets_empty_text(self, adapter):
        conv = adapter.transform(make_completions_payload([{"role": "assistant", "content": None}]))
        assert conv.messages[0].parts == [TextPart(id="1", text="")]

    def test_multimodal_user_content(self, adapter):
        conv = adapter.transform(make_completions_payload([
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": "What is this?"},
                    {"type": "image_url", "image_url": {"url": "https://example.com/cat.png"}},
                ],
            },
        ]))
        text, image = conv.messages[0].parts
        assert text.text == "What is this?"
        assert isinstance(image, ImagePart)
        assert image.image == "https://example.com/cat.png"

    def test_ignores_usage_block(self, adapter):
        payload = make_completions_payload()
        payload["usage"] = {"anything": "goes"}
        assert len(adapter.transform(payload).messages) == 5

    def test_deterministic(self, adapter):
        payload = make_completions_payload()
        assert adapter.transform(payload) == adapter.transform(payload)


class TestMalformed:
    def test_unknown_role(self, adapter):
        with pytest.raises(FormatError, match=r"messages\.0\.role"):
            adapter.transform(make_completions_payload([{"role": "narrator", "content": "hi"}]))

    def test_bad_content_type(self, adapter):
        with pytest.raises(FormatError, match=r"messages\.0\.content"):
            adapter.transform(make_completions_payload([{"role": "user", "content": 42}]))

    def test_invalid_arguments_json(self, adapter):
        with pytest.raises(FormatError, match="arguments"):
            adapter.transform(make_completions_payload([
                {
                    "role": "assistant",
                    "tool_calls": [
                        {"id": "a", "function": {"name": "f", "arguments": "{not json"}},
                    ],
                },
            ]))

    def test_tool_call_missing_name(self, adapter):
        with pytest.raises(FormatError, match=r"function\.name"):
            adapter.transform(make_completions_payload([
                {"role": "assistant", "tool_calls": [{"id": "a", "function": {}}]},
            ]))

    def test_non_object_message(self, adapter):
        with pytest.raises(FormatError):
            adapter.transform(make_completions_payload(["hello"]))

    def test_non_string_user_text_item(self, adapter):
        with pytest.raises(FormatError, match=r"messages\.0\.content\.0\.text: expected string, got int"):
            adapter.transform(make_completions_payload([
                {"role": "user", "content": [{"type": "text", "text": 5}]},
            ]))

    def test_non_string_system_text_item(self, adapter):
        with pytest.raises(FormatError, match=r"messages\.0\.content\.1\.text: expected string, got dict"):
            adapter.transform(make_completions_payload([
                {"role": "system", "content": [{"type": "text", "text": "ok"}, {"type": "text", "text": {}}]},
            ]))

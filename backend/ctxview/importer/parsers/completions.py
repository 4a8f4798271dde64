"""Adapter for Chat Completions traffic logs.

The log is a single object tagged `"object": "traffic.completion"` whose
`messages` array uses the chat completions shape: `content` is a string (or,
for multimodal user turns, a list of typed items), assistant tool use lives in
`tool_calls`, and tool replies point back through `tool_call_id`.

Nothing in this format carries ids, so message ids are `msg-<n>` and part ids
come from a per-call counter.
"""

import logging
from typing import Any

from ctxview.importer.parsers.base import (
    FormatError,
    IdSequence,
    optional_text,
    finalize,
    parse_arguments,
    require,
)
from ctxview.models import Conversation

logger = logging.getLogger(__name__)

_ROLES = ("system", "user", "assistant", "tool")


class CompletionsAdapter:
    name = "completions"
    object_tags = ("traffic.completion",)

    def can_handle(self, raw: Any) -> bool:
        return (
            isinstance(raw, dict)
            and raw.get("object") in self.object_tags
            and isinstance(raw.get("messages"), list)
        )

    def transform(self, raw: Any) -> Conversation:
        messages = require(raw, "messages", list, "$")
        part_ids = IdSequence()
        tool_names: dict[str, str] = {}
        out: list[dict[str, Any]] = []

        for i, msg in enumerate(messages):
            path = f"messages.{i}"
            if not isinstance(msg, dict):
                raise FormatError(f"{path}: expected object, got {type(msg).__name__}")
            role = msg.get("role")
            if role not in _ROLES:
                raise FormatError(f"{path}.role: expected one of {', '.join(_ROLES)}, got {role!r}")

            content = msg.get("content")
            if content is not None and not isinstance(content, (str, list)):
                raise FormatError(
                    f"{path}.content: expected string, list or null, got {type(content).__name__}"
                )

            if role == "system":
                parts = [_text(part_ids, _as_text(content, path))]
            elif role == "user":
                parts = _user_parts(content, part_ids, path)
            elif role == "assistant":
                parts = _assistant_parts(msg, part_ids, tool_names, path)
            else:
                parts = [_tool_result(msg, part_ids, tool_names, path)]

            out.append({"id": f"msg-{i + 1}", "role": role, "parts": parts})

        logger.debug("Completions log mapped to %d messages", len(out))
        return finalize(out, "completions")


def _text(ids: IdSequence, text: str) -> dict[str, Any]:
    return {"id": ids.next(), "type": "text", "text": text}


def _as_text(content: str | list | None, path: str) -> str:
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    # Non-user roles may still send [{type: "text", text: ...}] items.
    texts = []
    for j, item in enumerate(content):
        if not isinstance(item, dict) or item.get("type") != "text":
            raise FormatError(f"{path}.content.{j}: expected a text item")
        texts.append(optional_text(item, "text", f"{path}.content.{j}"))
    return "\n".join(texts)


def _user_parts(content: str | list | None, ids: IdSequence, path: str) -> list[dict[str, Any]]:
    if not isinstance(content, list):
        return [_text(ids, content or "")]

    parts: list[dict[str, Any]] = []
    for j, item in enumerate(content):
        item_path = f"{path}.content.{j}"
        if not isinstance(item, dict):
            raise FormatError(f"{item_path}: expected object, got {type(item).__name__}")
        kind = item.get("type")
        if kind == "text":
            parts.append(_text(ids, optional_text(item, "text", item_path)))
        elif kind == "image_url":
            image = item.get("image_url")
            url = image.get("url") if isinstance(image, dict) else image
            if not isinstance(url, str):
                raise FormatError(f"{item_path}.image_url.url: expected string")
            parts.append({"id": ids.next(), "type": "image", "image": url})
        elif kind == "file":
            file = require(item, "file", dict, item_path)
            parts.append({
                "id": ids.next(),
                "type": "file",
                "data": file.get("file_data") or file.get("file_id") or "",
                "mediaType": file.get("mime_type") or "application/octet-stream",
                "filename": file.get("filename"),
            })
        else:
            raise FormatError(f"{item_path}.type: unsupported user content type {kind!r}")

    return parts or [_text(ids, "")]


def _assistant_parts(
    msg: dict, ids: IdSequence, tool_names: dict[str, str], path: str
) -> list[dict[str, Any]]:
    parts: list[dict[str, Any]] = []
    text = _as_text(msg.get("content"), path)
    if text:
        parts.append(_text(ids, text))

    tool_calls = msg.get("tool_calls") or []
    if not isinstance(tool_calls, list):
        raise FormatError(f"{path}.tool_calls: expected list, got {type(tool_calls).__name__}")

    for j, call in enumerate(tool_calls):
        call_path = f"{path}.tool_calls.{j}"
        call_id = require(call, "id", str, call_path)
        function = require(call, "function", dict, call_path)
        name = require(function, "name", str, f"{call_path}.function")
        arguments = parse_arguments(function.get("arguments"), f"{call_path}.function.arguments")
        tool_names[call_id] = name
        parts.append({
            "id": ids.next(),
            "type": "tool-call",
            "toolCallId": call_id,
            "toolName": name,
            "input": arguments,
        })

    return parts or [_text(ids, "")]


def _tool_result(
    msg: dict, ids: IdSequence, tool_names: dict[str, str], path: str
) -> dict[str, Any]:
    call_id = msg.get("tool_call_id") or ""
    if not isinstance(call_id, str):
        raise FormatError(f"{path}.tool_call_id: expected string, got {type(call_id).__name__}")
    content = msg.get("content")
    return {
        "id": ids.next(),
        "type": "tool-result",
        "toolCallId": call_id,
        "toolName": tool_names.get(call_id) or msg.get("name") or "",
        "output": content if content is not None else "",
    }

"""Adapter for Responses API item lists.

The export is `{"object": "list", "data": [...]}` where each item is one turn
fragment: a `message`, a `reasoning` summary, a `function_call`, or the
matching `function_call_output`. Each item becomes one canonical message.

Items carry their own ids, so message ids are the item ids and a message's
first part reuses the item id; any further parts get `<item id>:<n>`.
"""

import logging
from typing import Any

from ctxview.importer.parsers.base import (
    FormatError,
    finalize,
    optional_text,
    parse_arguments,
    require,
)
from ctxview.models import Conversation

logger = logging.getLogger(__name__)

_TEXT_CONTENT_TYPES = frozenset({"input_text", "output_text", "text", "refusal"})
_MESSAGE_ROLES = {
    "user": "user",
    "assistant": "assistant",
    "system": "system",
    "developer": "system",
}


class ResponsesAdapter:
    name = "responses"
    object_tags = ("list",)

    def can_handle(self, raw: Any) -> bool:
        return (
            isinstance(raw, dict)
            and raw.get("object") in self.object_tags
            and isinstance(raw.get("data"), list)
        )

    def transform(self, raw: Any) -> Conversation:
        items = require(raw, "data", list, "$")
        tool_names: dict[str, str] = {}
        out: list[dict[str, Any]] = []

        for i, item in enumerate(items):
            path = f"data.{i}"
            if not isinstance(item, dict):
                raise FormatError(f"{path}: expected object, got {type(item).__name__}")
            item_id = require(item, "id", str, path)
            kind = require(item, "type", str, path)

            if kind == "message":
                role, parts = _message(item, item_id, path)
            elif kind == "reasoning":
                role, parts = "assistant", [_reasoning(item, item_id, path)]
            elif kind == "function_call":
                role, parts = "assistant", [_function_call(item, item_id, tool_names, path)]
            elif kind == "function_call_output":
                role, parts = "tool", [_function_call_output(item, item_id, tool_names)]
            else:
                logger.debug("Unhandled responses item type %r at %s", kind, path)
                role, parts = "assistant", [{"id": item_id, "type": "text", "text": ""}]

            out.append({"id": item_id, "role": role, "parts": parts})

        logger.debug("Responses list mapped to %d messages", len(out))
        return finalize(out, "responses")


def _message(item: dict, item_id: str, path: str) -> tuple[str, list[dict[str, Any]]]:
    raw_role = item.get("role") or "assistant"
    role = _MESSAGE_ROLES.get(raw_role)
    if role is None:
        raise FormatError(f"{path}.role: expected user, assistant, system or developer, got {raw_role!r}")

    content = item.get("content") or []
    if isinstance(content, str):
        content = [{"type": "input_text" if role == "user" else "output_text", "text": content}]
    if not isinstance(content, list):
        raise FormatError(f"{path}.content: expected list, got {type(content).__name__}")

    texts: list[str] = []
    extra: list[dict[str, Any]] = []
    for j, entry in enumerate(content):
        entry_path = f"{path}.content.{j}"
        if not isinstance(entry, dict):
            raise FormatError(f"{entry_path}: expected object, got {type(entry).__name__}")
        entry_type = entry.get("type")
        if entry_type in _TEXT_CONTENT_TYPES:
            key = "refusal" if entry_type == "refusal" and "text" not in entry else "text"
            texts.append(optional_text(entry, key, entry_path))
        elif entry_type == "input_image":
            url = entry.get("image_url") or entry.get("file_id")
            if not isinstance(url, str):
                raise FormatError(f"{entry_path}.image_url: expected string")
            extra.append({"type": "image", "image": url})
        elif entry_type == "input_file":
            extra.append({
                "type": "file",
                "data": entry.get("file_data") or entry.get("file_id") or "",
                "mediaType": entry.get("mime_type") or "application/octet-stream",
                "filename": entry.get("filename"),
            })
        else:
            logger.debug("Skipping content item type %r at %s", entry_type, entry_path)

    parts = [{"type": "text", "text": "\n".join(texts)}] if texts or not extra else []
    parts.extend(extra)
    for n, part in enumerate(parts):
        part["id"] = item_id if n == 0 else f"{item_id}:{n + 1}"
    return role, parts


def _reasoning(item: dict, item_id: str, path: str) -> dict[str, Any]:
    summary = item.get("summary") or []
    if not isinstance(summary, list):
        raise FormatError(f"{path}.summary: expected list, got {type(summary).__name__}")
    texts = [
        optional_text(s, "text", f"{path}.summary.{j}")
        for j, s in enumerate(summary)
        if isinstance(s, dict)
    ]
    if not texts:
        content = item.get("content") or []
        if not isinstance(content, list):
            raise FormatError(f"{path}.content: expected list, got {type(content).__name__}")
        texts = [
            optional_text(c, "text", f"{path}.content.{j}")
            for j, c in enumerate(content)
            if isinstance(c, dict) and c.get("type") == "reasoning_text"
        ]
    return {"id": item_id, "type": "reasoning", "text": "\n".join(texts)}


def _function_call(
    item: dict, item_id: str, tool_names: dict[str, str], path: str
) -> dict[str, Any]:
    call_id = item.get("call_id") or item_id
    name = item.get("name") or ""
    tool_names[call_id] = name
    return {
        "id": item_id,
        "type": "tool-call",
        "toolCallId": call_id,
        "toolName": name,
        "input": parse_arguments(item.get("arguments"), f"{path}.arguments"),
    }


def _function_call_output(item: dict, item_id: str, tool_names: dict[str, str]) -> dict[str, Any]:
    call_id = item.get("call_id") or item_id
    return {
        "id": item_id,
        "type": "tool-result",
        "toolCallId": call_id,
        "toolName": tool_names.get(call_id, ""),
        "output": item.get("output"),
    }

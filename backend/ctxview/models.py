"""Canonical conversation model for Context Viewer.

Defined once here, referenced everywhere else. Every format adapter produces
a Conversation; every enrichment pass consumes one and returns a new one.
Models are frozen: passes derive updated copies with model_copy().

Role/part legality is encoded in the types. Each message role is its own
model whose `parts` field is a discriminated union restricted to the part
variants that role may hold, so an illegal pairing (a system message holding
an image, say) fails validation instead of surfacing later in the pipeline.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

# ---------------------------------------------------------------------------
# Parts
# ---------------------------------------------------------------------------


class _Part(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str


class TextPart(_Part):
    type: Literal["text"] = "text"
    text: str
    token_count: int | None = None


class ReasoningPart(_Part):
    type: Literal["reasoning"] = "reasoning"
    text: str
    token_count: int | None = None


class ToolCallPart(_Part):
    type: Literal["tool-call"] = "tool-call"
    tool_call_id: str = Field(alias="toolCallId")
    tool_name: str = Field(alias="toolName")
    input: Any = None
    token_count: int | None = None


class ToolResultPart(_Part):
    type: Literal["tool-result"] = "tool-result"
    tool_call_id: str = Field(alias="toolCallId")
    tool_name: str = Field(alias="toolName")
    output: Any = None
    is_error: bool | None = Field(default=None, alias="isError")
    token_count: int | None = None


class ImagePart(_Part):
    type: Literal["image"] = "image"
    image: str
    media_type: str | None = Field(default=None, alias="mediaType")


class FilePart(_Part):
    type: Literal["file"] = "file"
    data: str
    media_type: str = Field(alias="mediaType")
    filename: str | None = None


Part = TextPart | ReasoningPart | ToolCallPart | ToolResultPart | ImagePart | FilePart

# Parts whose content is text and therefore carries a token_count.
COUNTABLE_PART_TYPES = frozenset({"text", "reasoning", "tool-call", "tool-result"})

SystemPart = TextPart
UserPart = Annotated[TextPart | ImagePart | FilePart, Field(discriminator="type")]
AssistantPart = Annotated[
    TextPart | FilePart | ReasoningPart | ToolCallPart, Field(discriminator="type")
]
ToolPart = ToolResultPart

# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


class _Message(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str


class SystemMessage(_Message):
    role: Literal["system"] = "system"
    parts: list[SystemPart] = Field(min_length=1)


class UserMessage(_Message):
    role: Literal["user"] = "user"
    parts: list[UserPart] = Field(min_length=1)


class AssistantMessage(_Message):
    role: Literal["assistant"] = "assistant"
    parts: list[AssistantPart] = Field(min_length=1)


class ToolMessage(_Message):
    # Tool turns may be structurally empty.
    role: Literal["tool"] = "tool"
    parts: list[ToolPart] = Field(default_factory=list)


Message = Annotated[
    SystemMessage | UserMessage | AssistantMessage | ToolMessage,
    Field(discriminator="role"),
]

MESSAGE_TYPES: dict[str, type[_Message]] = {
    "system": SystemMessage,
    "user": UserMessage,
    "assistant": AssistantMessage,
    "tool": ToolMessage,
}

# ---------------------------------------------------------------------------
# Conversation
# ---------------------------------------------------------------------------


class ConversationValidationError(ValueError):
    """Raised when a candidate conversation violates the canonical model.

    `issues` holds (path, constraint) pairs, e.g.
    ("messages.0.parts.1", "Input tag 'image' found using 'type' does not match ...").
    """

    def __init__(self, issues: list[tuple[str, str]]) -> None:
        self.issues = issues
        detail = "; ".join(f"{path}: {msg}" for path, msg in issues)
        super().__init__(f"Invalid conversation: {detail}")


class Conversation(BaseModel):
    model_config = ConfigDict(frozen=True)

    messages: list[Message] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_unique_ids(self) -> "Conversation":
        seen_parts: dict[str, str] = {}
        seen_messages: dict[str, str] = {}
        for m_idx, message in enumerate(self.messages):
            for p_idx, part in enumerate(message.parts):
                location = f"messages.{m_idx}.parts.{p_idx}"
                if part.id in seen_parts:
                    raise ValueError(
                        f"duplicate part id {part.id!r} at {location}"
                        f" (first used at {seen_parts[part.id]})"
                    )
                seen_parts[part.id] = location
            location = f"messages.{m_idx}"
            if message.id in seen_messages:
                raise ValueError(
                    f"duplicate message id {message.id!r} at {location}"
                    f" (first used at {seen_messages[message.id]})"
                )
            seen_messages[message.id] = location
        return self

    def iter_parts(self):
        """Yield (message_index, part_index, part) in conversation order."""
        for m_idx, message in enumerate(self.messages):
            for p_idx, part in enumerate(message.parts):
                yield m_idx, p_idx, part

    def part_ids(self) -> list[str]:
        return [part.id for _, _, part in self.iter_parts()]

    def total_tokens(self) -> int:
        return sum(getattr(part, "token_count", None) or 0 for _, _, part in self.iter_parts())

    def to_json(self) -> dict[str, Any]:
        """Canonical persisted shape: camelCase aliases, unset optionals omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


_PART_TAGS = frozenset({"text", "reasoning", "tool-call", "tool-result", "image", "file"})


def _format_loc(loc: tuple[Any, ...]) -> str:
    # pydantic inserts the union tag ("user", "image", ...) after a list index;
    # drop it so the path reads messages.<i>.parts.<j>.<field>.
    parts: list[str] = []
    last = len(loc) - 1
    for i, item in enumerate(loc):
        if (
            isinstance(item, str)
            and 0 < i < last
            and isinstance(loc[i - 1], int)
            and (item in MESSAGE_TYPES or item in _PART_TAGS)
        ):
            continue
        parts.append(str(item))
    return ".".join(parts)


def validate_conversation(data: Any) -> Conversation:
    """Validate a candidate conversation object against the canonical model.

    Fails closed: any invalid message or part rejects the whole conversation.
    Accepts a Conversation instance (re-validated) or plain data.
    """
    if isinstance(data, Conversation):
        data = data.model_dump(by_alias=True)
    try:
        return Conversation.model_validate(data)
    except ValidationError as e:
        issues = [(_format_loc(err["loc"]) or "conversation", err["msg"]) for err in e.errors()]
        raise ConversationValidationError(issues) from e


# ---------------------------------------------------------------------------
# Derived enrichment data
# ---------------------------------------------------------------------------

ComponentMapping = dict[str, str]


class ComponentTimelineSnapshot(BaseModel):
    """Cumulative token totals for every message with index <= message_index."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    message_index: int = Field(alias="messageIndex")
    component_tokens: dict[str, int] = Field(alias="componentTokens")
    total_tokens: int = Field(alias="totalTokens")


class ComponentizationResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    components: list[str] = Field(default_factory=list)
    mapping: ComponentMapping = Field(default_factory=dict)
    timeline: list[ComponentTimelineSnapshot] = Field(default_factory=list)
    colors: dict[str, str] = Field(default_factory=dict)
    error: str | None = None


class ConversationSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_messages: int = Field(alias="totalMessages")
    messages_by_role: dict[str, int] = Field(alias="messagesByRole")
    part_counts: dict[str, int] = Field(alias="partCounts")
    total_tokens: int = Field(alias="totalTokens")
    tokens_by_role: dict[str, int] = Field(alias="tokensByRole")

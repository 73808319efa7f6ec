"""Conversation item model.

The conversation log is an ordered list of ``RunItem`` values. ``RunItem`` is
a closed union of frozen dataclasses, each tagged by its ``type`` field.
Consumers dispatch with ``match`` and end with ``assert_never`` so a new item
kind cannot be silently ignored.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, assert_never

if TYPE_CHECKING:
    from collections.abc import Sequence

HANDOFF_TOOL_PREFIX = "transfer_to_"

ItemType = Literal[
    "user_message",
    "assistant_message",
    "tool_call",
    "tool_call_output",
    "handoff_call",
    "handoff_output",
    "reasoning",
    "tool_approval",
]


@dataclass(frozen=True)
class UserMessageItem:
    """A message authored by the user (or caller)."""

    content: str
    type: Literal["user_message"] = field(default="user_message", init=False)


@dataclass(frozen=True)
class AssistantMessageItem:
    """A message produced by the model."""

    content: Any
    agent_name: str | None = None
    type: Literal["assistant_message"] = field(default="assistant_message", init=False)

    @property
    def text(self) -> str:
        """Plain text of the message content."""
        return extract_message_text(self.content)


@dataclass(frozen=True)
class ToolCallItem:
    """A tool invocation requested by the model.

    ``arguments`` is kept as the raw JSON text the model produced; the tool
    invoker deserializes it against the tool's input model.
    """

    call_id: str
    name: str
    arguments: str = "{}"
    agent_name: str | None = None
    type: Literal["tool_call"] = field(default="tool_call", init=False)

    @property
    def is_handoff(self) -> bool:
        """Whether this call targets a synthesized hand-off tool."""
        return self.name.startswith(HANDOFF_TOOL_PREFIX)


@dataclass(frozen=True)
class ToolCallOutputItem:
    """The result (or error) of one tool call, paired by ``call_id``."""

    call_id: str
    output: Any = None
    error: str | None = None
    type: Literal["tool_call_output"] = field(default="tool_call_output", init=False)

    @property
    def is_error(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class HandoffCallItem:
    """A tool call classified as a request to transfer to another agent."""

    tool_call: ToolCallItem
    source_agent: str
    type: Literal["handoff_call"] = field(default="handoff_call", init=False)

    @property
    def call_id(self) -> str:
        return self.tool_call.call_id

    @property
    def target_name(self) -> str:
        """Target agent name with the hand-off tool prefix stripped."""
        name = self.tool_call.name
        if not name.startswith(HANDOFF_TOOL_PREFIX):
            return ""
        return name[len(HANDOFF_TOOL_PREFIX) :]


@dataclass(frozen=True)
class HandoffOutputItem:
    """Outcome of a hand-off: the target agent, or an error."""

    call_id: str
    source_agent: str
    target_agent: str | None = None
    error: str | None = None
    type: Literal["handoff_output"] = field(default="handoff_output", init=False)


@dataclass(frozen=True)
class ReasoningItem:
    """Model reasoning emitted alongside its answer."""

    content: str
    type: Literal["reasoning"] = field(default="reasoning", init=False)


@dataclass(frozen=True)
class ToolApprovalItem:
    """A tool call waiting for a human approval decision."""

    call_id: str
    tool_name: str
    arguments: str = "{}"
    agent_name: str | None = None
    type: Literal["tool_approval"] = field(default="tool_approval", init=False)


RunItem = (
    UserMessageItem
    | AssistantMessageItem
    | ToolCallItem
    | ToolCallOutputItem
    | HandoffCallItem
    | HandoffOutputItem
    | ReasoningItem
    | ToolApprovalItem
)


def extract_message_text(content: Any) -> str:
    """Return the text of a message content payload.

    Accepts plain strings, ``{"content": [{"type": "output_text", "text": ...}]}``
    style payloads, and lists of such parts.
    """
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, dict):
        if "text" in content and isinstance(content["text"], str):
            return content["text"]
        return extract_message_text(content.get("content"))
    if isinstance(content, list):
        return "".join(extract_message_text(part) for part in content)
    return str(content)


def has_tool_call_output(items: Sequence[RunItem], call_id: str) -> bool:
    """Whether ``items`` contains a result for ``call_id``."""
    return any(
        isinstance(item, ToolCallOutputItem) and item.call_id == call_id for item in items
    )


def has_pending_tool_calls(items: Sequence[RunItem]) -> bool:
    """Whether any tool call in ``items`` still lacks a matching result."""
    answered = {item.call_id for item in items if isinstance(item, ToolCallOutputItem)}
    return any(
        isinstance(item, ToolCallItem | HandoffCallItem) and item.call_id not in answered
        for item in items
    )


def user_message(content: str) -> UserMessageItem:
    return UserMessageItem(content=content)


def item_to_dict(item: RunItem) -> dict[str, Any]:
    """Serialize an item to a JSON-compatible dict."""
    match item:
        case UserMessageItem(content=content):
            return {"type": item.type, "content": content}
        case AssistantMessageItem(content=content, agent_name=agent_name):
            return {"type": item.type, "content": content, "agent_name": agent_name}
        case ToolCallItem():
            return {
                "type": item.type,
                "call_id": item.call_id,
                "name": item.name,
                "arguments": item.arguments,
                "agent_name": item.agent_name,
            }
        case ToolCallOutputItem():
            return {
                "type": item.type,
                "call_id": item.call_id,
                "output": _jsonable(item.output),
                "error": item.error,
            }
        case HandoffCallItem():
            return {
                "type": item.type,
                "tool_call": item_to_dict(item.tool_call),
                "source_agent": item.source_agent,
            }
        case HandoffOutputItem():
            return {
                "type": item.type,
                "call_id": item.call_id,
                "source_agent": item.source_agent,
                "target_agent": item.target_agent,
                "error": item.error,
            }
        case ReasoningItem(content=content):
            return {"type": item.type, "content": content}
        case ToolApprovalItem():
            return {
                "type": item.type,
                "call_id": item.call_id,
                "tool_name": item.tool_name,
                "arguments": item.arguments,
                "agent_name": item.agent_name,
            }
        case _:
            assert_never(item)


def item_from_dict(data: dict[str, Any]) -> RunItem:
    """Rebuild an item from ``item_to_dict`` output."""
    payload = {key: value for key, value in data.items() if key != "type"}
    item_type = data.get("type")
    match item_type:
        case "user_message":
            return UserMessageItem(**payload)
        case "assistant_message":
            return AssistantMessageItem(**payload)
        case "tool_call":
            return ToolCallItem(**payload)
        case "tool_call_output":
            return ToolCallOutputItem(**payload)
        case "handoff_call":
            tool_call = item_from_dict(payload.pop("tool_call"))
            if not isinstance(tool_call, ToolCallItem):
                msg = "handoff_call.tool_call must be a tool_call item"
                raise ValueError(msg)
            return HandoffCallItem(tool_call=tool_call, **payload)
        case "handoff_output":
            return HandoffOutputItem(**payload)
        case "reasoning":
            return ReasoningItem(**payload)
        case "tool_approval":
            return ToolApprovalItem(**payload)
        case _:
            msg = f"Unknown item type: {item_type!r}"
            raise ValueError(msg)


def _jsonable(value: Any) -> Any:
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    try:
        json.dumps(value)
    except TypeError:
        return str(value)
    return value

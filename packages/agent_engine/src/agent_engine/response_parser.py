"""Convert model output entries into conversation items.

Tool calls whose name carries the hand-off prefix, or matches one of the
agent's hand-off tools, are classified as ``HandoffCallItem``.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from typing import TYPE_CHECKING, Any

from agent_engine.errors import ModelBehaviorError
from agent_engine.items import (
    AssistantMessageItem,
    HandoffCallItem,
    ReasoningItem,
    ToolCallItem,
    extract_message_text,
)

if TYPE_CHECKING:
    from agent_engine.agents.agent import Agent
    from agent_engine.items import RunItem
    from agent_engine.providers.base import ModelResponse

logger = logging.getLogger(__name__)

_TOOL_CALL_TYPES = {"function_call", "tool_call"}
_MESSAGE_TYPES = {"message", "assistant_message", "output_text"}


def _arguments_text(arguments: Any) -> str:
    if arguments is None:
        return "{}"
    if isinstance(arguments, str):
        return arguments
    return json.dumps(arguments)


def _from_dict(entry: dict[str, Any], agent_name: str) -> RunItem:
    entry_type = entry.get("type", "message")
    if entry_type in _MESSAGE_TYPES:
        role = entry.get("role", "assistant")
        if role != "assistant":
            msg = f"Model output contains a {role!r} message"
            raise ModelBehaviorError(msg)
        content = entry.get("content", entry.get("text"))
        return AssistantMessageItem(content=extract_message_text(content), agent_name=agent_name)
    if entry_type in _TOOL_CALL_TYPES:
        call_id = entry.get("call_id") or entry.get("id")
        name = entry.get("name")
        if not call_id or not name:
            msg = f"Tool call without call_id or name: {entry!r}"
            raise ModelBehaviorError(msg)
        return ToolCallItem(
            call_id=str(call_id),
            name=str(name),
            arguments=_arguments_text(entry.get("arguments")),
            agent_name=agent_name,
        )
    if entry_type == "reasoning":
        content = entry.get("content", entry.get("summary", entry.get("text")))
        return ReasoningItem(content=extract_message_text(content))
    msg = f"Unsupported model output entry type: {entry_type!r}"
    raise ModelBehaviorError(msg)


def _normalize(entry: Any, agent_name: str) -> RunItem:
    match entry:
        case str():
            return AssistantMessageItem(content=entry, agent_name=agent_name)
        case dict():
            return _from_dict(entry, agent_name)
        case AssistantMessageItem(agent_name=None) | ToolCallItem(agent_name=None):
            return dataclasses.replace(entry, agent_name=agent_name)
        case AssistantMessageItem() | ToolCallItem() | ReasoningItem() | HandoffCallItem():
            return entry
        case _:
            msg = f"Unsupported model output entry: {type(entry).__name__}"
            raise ModelBehaviorError(msg)


def parse_response(response: ModelResponse, agent: Agent) -> list[RunItem]:
    """Turn a model response into conversation items for ``agent``.

    Raises:
        ModelBehaviorError: If an entry cannot be interpreted.
    """
    items: list[RunItem] = []
    for entry in response.output:
        item = _normalize(entry, agent.name)
        if isinstance(item, ToolCallItem) and item.is_handoff:
            logger.debug("Classified tool call %s (%s) as hand-off", item.call_id, item.name)
            item = HandoffCallItem(tool_call=item, source_agent=agent.name)
        items.append(item)
    return items

import pytest

from agent_engine.items import (
    AssistantMessageItem,
    HandoffCallItem,
    HandoffOutputItem,
    ToolCallItem,
    ToolCallOutputItem,
    UserMessageItem,
    extract_message_text,
    has_pending_tool_calls,
    has_tool_call_output,
    item_from_dict,
    item_to_dict,
)


def test_pending_tool_calls_until_paired() -> None:
    call = ToolCallItem(call_id="c1", name="lookup")
    items = [UserMessageItem(content="hi"), call]
    assert has_pending_tool_calls(items)
    assert not has_tool_call_output(items, "c1")

    items.append(ToolCallOutputItem(call_id="c1", output="ok"))
    assert not has_pending_tool_calls(items)
    assert has_tool_call_output(items, "c1")


def test_handoff_calls_need_an_acknowledgement() -> None:
    call = HandoffCallItem(
        tool_call=ToolCallItem(call_id="h1", name="transfer_to_Billing"), source_agent="Triage"
    )
    assert has_pending_tool_calls([call])
    assert not has_pending_tool_calls([call, ToolCallOutputItem(call_id="h1", output={})])


def test_handoff_call_target_name() -> None:
    call = HandoffCallItem(
        tool_call=ToolCallItem(call_id="h1", name="transfer_to_Technical_Support"),
        source_agent="Triage",
    )
    assert call.target_name == "Technical_Support"
    assert call.tool_call.is_handoff
    plain = ToolCallItem(call_id="x", name="lookup")
    not_handoff = HandoffCallItem(tool_call=plain, source_agent="a")
    assert not_handoff.target_name == ""


def test_extract_message_text_from_parts() -> None:
    content = [{"type": "output_text", "text": "Hello "}, {"type": "output_text", "text": "world"}]
    assert extract_message_text(content) == "Hello world"
    assert AssistantMessageItem(content={"content": content}).text == "Hello world"
    assert extract_message_text(None) == ""


def test_serialization_of_nested_handoff_call() -> None:
    item = HandoffCallItem(
        tool_call=ToolCallItem(call_id="h1", name="transfer_to_Billing", arguments="{}"),
        source_agent="Triage",
    )
    data = item_to_dict(item)
    assert data["type"] == "handoff_call"
    assert data["tool_call"]["type"] == "tool_call"
    assert item_from_dict(data) == item


def test_error_output_serializes_error() -> None:
    item = HandoffOutputItem(call_id="h1", source_agent="Triage", error="Agent not found: X")
    assert item_to_dict(item)["error"] == "Agent not found: X"


def test_unknown_item_type_is_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown item type"):
        item_from_dict({"type": "mystery"})

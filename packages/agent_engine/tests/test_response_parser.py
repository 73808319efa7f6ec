import pytest

from agent_engine import Agent, ModelBehaviorError, ModelResponse
from agent_engine.items import (
    AssistantMessageItem,
    HandoffCallItem,
    ReasoningItem,
    ToolCallItem,
    UserMessageItem,
)
from agent_engine.response_parser import parse_response


@pytest.fixture
def agent() -> Agent:
    return Agent(name="Triage", handoffs=[Agent(name="Technical Support")])


def test_provider_neutral_entries(agent: Agent) -> None:
    response = ModelResponse(
        output=[
            {"type": "reasoning", "summary": "user wants weather"},
            {
                "type": "function_call",
                "id": "fc_1",
                "name": "weather",
                "arguments": {"city": "Oslo"},
            },
            {"type": "message", "content": [{"type": "output_text", "text": "Checking."}]},
            "plain text",
        ]
    )

    items = parse_response(response, agent)

    assert items == [
        ReasoningItem(content="user wants weather"),
        ToolCallItem(
            call_id="fc_1", name="weather", arguments='{"city": "Oslo"}', agent_name="Triage"
        ),
        AssistantMessageItem(content="Checking.", agent_name="Triage"),
        AssistantMessageItem(content="plain text", agent_name="Triage"),
    ]


def test_handoff_calls_are_classified(agent: Agent) -> None:
    response = ModelResponse(
        output=[
            ToolCallItem(call_id="h1", name="transfer_to_Technical_Support"),
            ToolCallItem(call_id="h2", name="transfer_to_Nobody", agent_name="Other"),
            ToolCallItem(call_id="t1", name="lookup"),
        ]
    )

    first, second, third = parse_response(response, agent)

    assert isinstance(first, HandoffCallItem)
    assert first.target_name == "Technical_Support"
    assert first.tool_call.agent_name == "Triage"
    assert isinstance(second, HandoffCallItem)
    assert second.tool_call.agent_name == "Other"
    assert third == ToolCallItem(call_id="t1", name="lookup", agent_name="Triage")


@pytest.mark.parametrize(
    "entry",
    [
        {"type": "message", "role": "user", "content": "hi"},
        {"type": "function_call", "name": "weather"},
        {"type": "image"},
        UserMessageItem(content="hi"),
        42,
    ],
)
def test_unusable_entries_raise(agent: Agent, entry: object) -> None:
    with pytest.raises(ModelBehaviorError):
        parse_response(ModelResponse(output=[entry]), agent)

import pytest

from agent_engine.agents import Agent, HandoffRegistry, handoff_tool_name, resolve_handoff
from agent_engine.errors import UserError
from agent_engine.items import HandoffCallItem, ToolCallItem
from agent_engine.tools import function_tool


def _call(name: str, arguments: str = "{}") -> HandoffCallItem:
    return HandoffCallItem(
        tool_call=ToolCallItem(call_id="h1", name=name, arguments=arguments), source_agent="Triage"
    )


def test_tool_name_replaces_spaces() -> None:
    assert handoff_tool_name("Technical Support") == "transfer_to_Technical_Support"


def test_synthesized_tool_uses_handoff_description() -> None:
    billing = Agent(name="Billing", handoff_description="Handles invoices and refunds.")
    support = Agent(name="Technical Support")
    triage = Agent(name="Triage", handoffs=[billing, support])

    tools = {tool.name: tool for tool in triage.handoff_registry.model_tools()}
    assert tools["transfer_to_Billing"].description == "Handles invoices and refunds."
    assert (
        tools["transfer_to_Technical_Support"].description
        == "Transfer the conversation to the Technical Support agent."
    )
    assert "reason" in tools["transfer_to_Billing"].parameters["properties"]


@pytest.mark.parametrize(
    ("target_name", "tool_name"),
    [
        ("Technical Support", "transfer_to_Technical_Support"),
        ("Technical Support", "transfer_to_Technical Support"),
        ("billing_agent", "transfer_to_billing_agent"),
        ("billing_agent", "transfer_to_billing agent"),
    ],
)
def test_resolution_tolerates_spaces_and_underscores(target_name: str, tool_name: str) -> None:
    target = Agent(name=target_name)
    triage = Agent(name="Triage", handoffs=[target])

    resolution = resolve_handoff(_call(tool_name), triage)

    assert resolution.target is target
    assert resolution.output.source_agent == "Triage"
    assert resolution.output.target_agent == target_name
    assert resolution.acknowledgement() == {"assistant": target_name}


def test_unknown_target_is_an_error_output() -> None:
    triage = Agent(name="Triage", handoffs=[Agent(name="Billing")])

    resolution = resolve_handoff(_call("transfer_to_Sales"), triage)

    assert not resolution.succeeded
    assert resolution.output.error == "Agent not found: Sales"
    assert resolution.acknowledgement() == {"error": "Agent not found: Sales"}


def test_malformed_name_is_an_error_output() -> None:
    triage = Agent(name="Triage", handoffs=[Agent(name="Billing")])
    resolution = resolve_handoff(_call("transfer_to_"), triage)
    assert resolution.output.error == "Invalid handoff: could not extract target agent name"


def test_reason_is_parsed_from_arguments() -> None:
    billing = Agent(name="Billing")
    triage = Agent(name="Triage", handoffs=[billing])
    resolution = resolve_handoff(_call("transfer_to_Billing", '{"reason": "refund"}'), triage)
    assert resolution.reason == "refund"
    assert resolve_handoff(_call("transfer_to_Billing", "not json"), triage).reason is None


def test_colliding_tool_names_rejected() -> None:
    with pytest.raises(UserError, match="transfer_to_Tech_Support"):
        HandoffRegistry([Agent(name="Tech Support"), Agent(name="Tech_Support")])


def test_tool_names_may_not_use_handoff_prefix() -> None:
    @function_tool(name="transfer_to_nowhere")
    def sneaky() -> str:
        """Pretend to hand off."""
        return ""

    with pytest.raises(UserError, match="reserved prefix"):
        Agent(name="a", tools=[sneaky])

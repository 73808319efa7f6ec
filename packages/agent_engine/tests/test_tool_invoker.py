import asyncio
import contextlib

import pytest

from agent_engine.agents import Agent
from agent_engine.context import RunContext
from agent_engine.errors import ToolInputGuardrailTripwireTriggered
from agent_engine.guardrails import (
    ToolGuardrailFunctionOutput,
    ToolInputGuardrail,
    ToolOutputGuardrail,
)
from agent_engine.hooks import BeforeToolCallEvent, HookRegistry, ToolApprovalRequestEvent
from agent_engine.items import ToolCallItem
from agent_engine.tool_invoker import ToolInvoker
from agent_engine.tools import function_tool


@function_tool
def add(a: int, b: int) -> int:
    """Add two integers."""
    return a + b


@function_tool
def explode() -> str:
    """Always fails."""
    msg = "boom"
    raise RuntimeError(msg)


@function_tool(needs_approval=True)
def delete_file(path: str) -> str:
    """Delete a file."""
    return f"deleted {path}"


def _invoker(agent: Agent, hooks: HookRegistry | None = None, **kwargs) -> ToolInvoker:
    return ToolInvoker(agent, RunContext(), hooks or HookRegistry(), **kwargs)


@pytest.mark.asyncio
async def test_successful_call() -> None:
    invoker = _invoker(Agent(name="calc", tools=[add]))
    call = ToolCallItem(call_id="c1", name="add", arguments='{"a": 2, "b": 3}')
    result = await invoker.invoke(call)
    assert result.output.output == 5
    assert not result.output.is_error


@pytest.mark.asyncio
async def test_unknown_tool_is_error_result() -> None:
    invoker = _invoker(Agent(name="calc", tools=[add]))
    result = await invoker.invoke(ToolCallItem(call_id="c1", name="multiply"))
    assert result.output.error == "Tool not found: multiply"


@pytest.mark.asyncio
async def test_disabled_tool_is_treated_as_missing() -> None:
    @function_tool(is_enabled=False)
    def hidden() -> str:
        """Hidden tool."""
        return "x"

    invoker = _invoker(Agent(name="calc", tools=[hidden]))
    result = await invoker.invoke(ToolCallItem(call_id="c1", name="hidden"))
    assert result.output.error == "Tool not found: hidden"


@pytest.mark.asyncio
async def test_bad_arguments_are_formatted_by_error_function() -> None:
    invoker = _invoker(Agent(name="calc", tools=[add]))
    result = await invoker.invoke(ToolCallItem(call_id="c1", name="add", arguments='{"a": "x"}'))
    assert result.output.is_error
    assert result.output.error.startswith("An error occurred while running the tool.")
    assert "Invalid arguments for tool add" in result.output.error


@pytest.mark.asyncio
async def test_tool_exception_is_recovered() -> None:
    invoker = _invoker(Agent(name="calc", tools=[explode]))
    result = await invoker.invoke(ToolCallItem(call_id="c1", name="explode"))
    assert result.output.error == (
        "An error occurred while running the tool. Please try again. Error: boom"
    )


@pytest.mark.asyncio
async def test_undecided_approval_produces_request_item() -> None:
    invoker = _invoker(Agent(name="files", tools=[delete_file]))
    result = await invoker.invoke(
        ToolCallItem(call_id="c1", name="delete_file", arguments='{"path": "/tmp/x"}')
    )
    assert result.output.error == "Tool 'delete_file' requires approval"
    assert result.approval_request is not None
    assert result.approval_request.tool_name == "delete_file"
    assert result.approval_request.call_id == "c1"


@pytest.mark.asyncio
async def test_listener_can_approve_during_request() -> None:
    hooks = HookRegistry()
    hooks.add_callback(ToolApprovalRequestEvent, lambda event: event.approve())
    invoker = _invoker(Agent(name="files", tools=[delete_file]), hooks)

    result = await invoker.invoke(
        ToolCallItem(call_id="c1", name="delete_file", arguments='{"path": "/tmp/x"}')
    )

    assert result.output.output == "deleted /tmp/x"
    assert result.approval_request is None


@pytest.mark.asyncio
async def test_rejected_call_is_not_invoked() -> None:
    context = RunContext()
    context.approvals.reject("delete_file", permanent=True)
    invoker = ToolInvoker(Agent(name="files", tools=[delete_file]), context, HookRegistry())

    result = await invoker.invoke(
        ToolCallItem(call_id="c1", name="delete_file", arguments='{"path": "/tmp/x"}')
    )

    assert result.output.error == "Tool 'delete_file' call was rejected"


@pytest.mark.asyncio
async def test_before_tool_hook_can_cancel() -> None:
    def veto(event: BeforeToolCallEvent) -> None:
        event.cancel_tool = "Tool calls are disabled"

    hooks = HookRegistry()
    hooks.add_callback(BeforeToolCallEvent, veto)
    invoker = _invoker(Agent(name="calc", tools=[add]), hooks)

    result = await invoker.invoke(ToolCallItem(call_id="c1", name="add", arguments='{"a":1,"b":1}'))

    assert result.output.error == "Tool calls are disabled"


@pytest.mark.asyncio
async def test_input_guardrail_replacement_skips_tool() -> None:
    calls: list[int] = []

    @function_tool
    def record(n: int) -> int:
        """Record a number."""
        calls.append(n)
        return n

    guardrail = ToolInputGuardrail(
        lambda data: ToolGuardrailFunctionOutput.reject_content("not allowed")
    )
    agent = Agent(name="a", tools=[record], tool_input_guardrails=[guardrail])

    result = await _invoker(agent).invoke(
        ToolCallItem(call_id="c1", name="record", arguments='{"n": 1}')
    )

    assert result.output.output == "not allowed"
    assert calls == []


@pytest.mark.asyncio
async def test_output_guardrail_replaces_result() -> None:
    guardrail = ToolOutputGuardrail(
        lambda data: ToolGuardrailFunctionOutput.reject_content(f"hidden {data.output}")
    )
    agent = Agent(name="a", tools=[add], tool_output_guardrails=[guardrail])

    result = await _invoker(agent).invoke(
        ToolCallItem(call_id="c1", name="add", arguments='{"a": 1, "b": 2}')
    )

    assert result.output.output == "hidden 3"


@pytest.mark.asyncio
async def test_raise_guardrail_escalates_by_default() -> None:
    guardrail = ToolInputGuardrail(
        lambda data: ToolGuardrailFunctionOutput.raise_exception({"why": "policy"}), name="policy"
    )
    agent = Agent(name="a", tools=[add], tool_input_guardrails=[guardrail])

    call = ToolCallItem(call_id="c1", name="add", arguments='{"a":1,"b":1}')
    with pytest.raises(ToolInputGuardrailTripwireTriggered) as excinfo:
        await _invoker(agent).invoke(call)

    assert excinfo.value.metadata == {"why": "policy"}


@pytest.mark.asyncio
async def test_raise_guardrail_can_stay_local() -> None:
    guardrail = ToolInputGuardrail(
        lambda data: ToolGuardrailFunctionOutput.raise_exception(), name="policy"
    )
    agent = Agent(name="a", tools=[add], tool_input_guardrails=[guardrail])
    invoker = _invoker(agent, escalate_guardrail_tripwires=False)

    result = await invoker.invoke(ToolCallItem(call_id="c1", name="add", arguments='{"a":1,"b":1}'))

    assert result.output.error == "Tool input guardrail 'policy' triggered tripwire"


@pytest.mark.asyncio
async def test_results_in_completion_order_by_default() -> None:
    @function_tool
    async def wait(seconds: float) -> float:
        """Sleep then echo."""
        await asyncio.sleep(seconds)
        return seconds

    invoker = _invoker(Agent(name="a", tools=[wait]))
    calls = [
        ToolCallItem(call_id="slow", name="wait", arguments='{"seconds": 0.05}'),
        ToolCallItem(call_id="fast", name="wait", arguments='{"seconds": 0}'),
    ]

    completion = [inv.output.call_id async for inv in invoker.iter_results(calls)]
    ordered = [inv.output.call_id async for inv in invoker.iter_results(calls, preserve_order=True)]

    assert completion == ["fast", "slow"]
    assert ordered == ["slow", "fast"]


@pytest.mark.asyncio
async def test_failing_call_waits_for_cancelled_siblings() -> None:
    events: list[str] = []

    @function_tool
    async def slow() -> str:
        """Sleep for a long time."""
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            events.append("cancelled")
            raise
        return "late"

    @function_tool(error_function=None)
    async def crash() -> str:
        """Fail without an error function."""
        await asyncio.sleep(0.01)
        msg = "crashed"
        raise RuntimeError(msg)

    invoker = _invoker(Agent(name="a", tools=[slow, crash]))
    calls = [ToolCallItem(call_id="s", name="slow"), ToolCallItem(call_id="c", name="crash")]

    results = invoker.iter_results(calls)
    with pytest.raises(RuntimeError, match="crashed"):
        async with contextlib.aclosing(results):
            async for _ in results:
                pass

    assert events == ["cancelled"]


@pytest.mark.asyncio
async def test_resume_runs_calls_decided_after_the_request() -> None:
    context = RunContext()
    invoker = ToolInvoker(Agent(name="files", tools=[delete_file, add]), context, HookRegistry())
    pending = await invoker.invoke(
        ToolCallItem(call_id="c1", name="delete_file", arguments='{"path": "/tmp/x"}')
    )
    still_pending = await invoker.invoke(
        ToolCallItem(call_id="c2", name="delete_file", arguments='{"path": "/tmp/y"}')
    )
    history = [
        pending.call,
        still_pending.call,
        pending.approval_request,
        still_pending.approval_request,
        pending.output,
        still_pending.output,
    ]

    context.approve_tool(pending.approval_request)
    resumed = await invoker.resume(history)

    assert resumed[:4] == history[:4]
    assert resumed[4].call_id == "c1"
    assert resumed[4].output == "deleted /tmp/x"
    assert resumed[5] is still_pending.output
    assert await invoker.resume(resumed) == resumed

import asyncio

import pytest

from agent_engine.agents import Agent
from agent_engine.context import RunContext
from agent_engine.guardrails import (
    GuardrailFunctionOutput,
    InputGuardrail,
    OutputGuardrail,
    ToolGuardrailBehavior,
    ToolGuardrailData,
    ToolGuardrailFunctionOutput,
    ToolInputGuardrail,
    input_guardrail,
    run_blocking_input_guardrails,
    run_output_guardrails,
    run_parallel_input_guardrails,
    run_tool_input_guardrails,
    split_input_guardrails,
    tool_input_guardrail,
)
from agent_engine.items import UserMessageItem

AGENT = Agent(name="guarded")
INPUT = [UserMessageItem(content="hello")]


def _passing(name: str, calls: list[str]) -> InputGuardrail:
    def check(_ctx, _agent, _items):
        calls.append(name)
        return GuardrailFunctionOutput.passed(name)

    return InputGuardrail(check, name=name, run_in_parallel=False)


def test_split_by_parallel_flag() -> None:
    blocking = InputGuardrail(lambda *_: GuardrailFunctionOutput(), run_in_parallel=False)
    parallel = InputGuardrail(lambda *_: GuardrailFunctionOutput())
    assert split_input_guardrails([parallel, blocking]) == ([blocking], [parallel])


@pytest.mark.asyncio
async def test_blocking_guardrails_run_in_order() -> None:
    calls: list[str] = []
    batch = await run_blocking_input_guardrails(
        [_passing("one", calls), _passing("two", calls)], RunContext(), AGENT, INPUT
    )
    assert calls == ["one", "two"]
    assert not batch.triggered
    assert [r.output.output_info for r in batch.results] == ["one", "two"]


@pytest.mark.asyncio
async def test_parallel_guardrails_all_run_and_first_tripwire_in_list_order_wins() -> None:
    calls: list[str] = []

    async def slow_trip(_ctx, _agent, _items):
        await asyncio.sleep(0.02)
        calls.append("slow")
        return GuardrailFunctionOutput.tripwire("slow")

    async def fast_trip(_ctx, _agent, _items):
        calls.append("fast")
        return GuardrailFunctionOutput.tripwire("fast")

    batch = await run_parallel_input_guardrails(
        [InputGuardrail(slow_trip), InputGuardrail(fast_trip)], RunContext(), AGENT, INPUT
    )

    assert sorted(calls) == ["fast", "slow"]
    assert batch.tripwire is not None
    assert batch.tripwire.guardrail_name == "slow_trip"
    assert len(batch.results) == 2


@pytest.mark.asyncio
async def test_output_guardrails_report_tripwire() -> None:
    guardrails = [
        OutputGuardrail(lambda _c, _a, out: GuardrailFunctionOutput.passed(), name="ok"),
        OutputGuardrail(lambda _c, _a, out: GuardrailFunctionOutput.tripwire(out), name="bad"),
    ]
    batch = await run_output_guardrails(guardrails, RunContext(), AGENT, "final")
    assert batch.tripwire is not None
    assert batch.tripwire.guardrail_name == "bad"
    assert batch.tripwire.agent_output == "final"


@pytest.mark.asyncio
async def test_tool_guardrail_chain_stops_at_reject() -> None:
    seen: list[str] = []

    @tool_input_guardrail
    def allow_all(data: ToolGuardrailData) -> ToolGuardrailFunctionOutput:
        seen.append("allow")
        return ToolGuardrailFunctionOutput.allow()

    @tool_input_guardrail(name="redact")
    def redact(data: ToolGuardrailData) -> ToolGuardrailFunctionOutput:
        seen.append("redact")
        return ToolGuardrailFunctionOutput.reject_content("[redacted]", metadata={"hit": 1})

    never = ToolInputGuardrail(lambda data: seen.append("never"))
    data = ToolGuardrailData(
        context=RunContext(), agent_name="a", tool_name="t", call_id="c", arguments="{}"
    )

    outcome = await run_tool_input_guardrails([allow_all, redact, never], data)

    assert seen == ["allow", "redact"]
    assert outcome.behavior is ToolGuardrailBehavior.REJECT_CONTENT
    assert outcome.replacement == "[redacted]"
    assert outcome.metadata == {"hit": 1}
    assert outcome.decided_by is not None
    assert outcome.decided_by.guardrail_name == "redact"


@pytest.mark.asyncio
async def test_tool_guardrail_chain_all_allow() -> None:
    data = ToolGuardrailData(
        context=RunContext(), agent_name="a", tool_name="t", call_id="c", arguments="{}"
    )
    outcome = await run_tool_input_guardrails(
        [ToolInputGuardrail(lambda _d: ToolGuardrailFunctionOutput.allow())], data
    )
    assert outcome.allowed
    assert len(outcome.results) == 1


def test_input_guardrail_decorator_defaults_to_parallel() -> None:
    @input_guardrail
    def check(_ctx, _agent, _items):
        return GuardrailFunctionOutput()

    @input_guardrail(run_in_parallel=False, name="strict")
    def strict(_ctx, _agent, _items):
        return GuardrailFunctionOutput()

    assert check.run_in_parallel
    assert check.get_name() == "check"
    assert not strict.run_in_parallel
    assert strict.get_name() == "strict"

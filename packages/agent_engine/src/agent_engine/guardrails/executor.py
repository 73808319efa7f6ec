"""Guardrail execution policies.

Each policy returns an outcome value. Turning a tripwire into a terminal
error is left to the caller.

- Blocking input guardrails run one at a time and stop at the first tripwire.
- Parallel input guardrails all run concurrently; the first tripwire in list
  order wins once every member has finished.
- Output guardrails all run concurrently; any tripwire is reported.
- Tool guardrails run one at a time; the chain stops at the first
  guardrail that does not allow.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from agent_engine.guardrails.types import (
    InputGuardrailBatch,
    OutputGuardrailBatch,
    ToolGuardrailBehavior,
    ToolGuardrailOutcome,
)
from agent_engine.telemetry import GUARDRAIL_SPAN, start_span

if TYPE_CHECKING:
    from collections.abc import Sequence

    from agent_engine.agents.agent import Agent
    from agent_engine.context import RunContext
    from agent_engine.guardrails.types import (
        InputGuardrail,
        InputGuardrailResult,
        OutputGuardrail,
        OutputGuardrailResult,
        ToolGuardrailData,
        ToolGuardrailResult,
        ToolInputGuardrail,
        ToolOutputGuardrail,
    )
    from agent_engine.items import RunItem

logger = logging.getLogger(__name__)


def split_input_guardrails(
    guardrails: Sequence[InputGuardrail],
) -> tuple[list[InputGuardrail], list[InputGuardrail]]:
    """Partition input guardrails into (blocking, parallel) by their own flag."""
    blocking = [guardrail for guardrail in guardrails if not guardrail.run_in_parallel]
    parallel = [guardrail for guardrail in guardrails if guardrail.run_in_parallel]
    return blocking, parallel


async def _run_input(
    guardrail: InputGuardrail,
    context: RunContext[Any],
    agent: Agent,
    input_items: list[RunItem],
) -> InputGuardrailResult:
    with start_span(
        GUARDRAIL_SPAN, {"guardrail.name": guardrail.get_name(), "guardrail.kind": "input"}
    ) as span:
        result = await guardrail.run(context, agent, input_items)
        span.set_attribute("guardrail.triggered", result.output.tripwire_triggered)
    return result


async def run_blocking_input_guardrails(
    guardrails: Sequence[InputGuardrail],
    context: RunContext[Any],
    agent: Agent,
    input_items: list[RunItem],
) -> InputGuardrailBatch:
    """Run guardrails sequentially; remaining ones are skipped after a tripwire."""
    results: list[InputGuardrailResult] = []
    for guardrail in guardrails:
        result = await _run_input(guardrail, context, agent, input_items)
        results.append(result)
        if result.output.tripwire_triggered:
            logger.debug("Blocking input guardrail %s triggered", result.guardrail_name)
            return InputGuardrailBatch(results=results, tripwire=result)
    return InputGuardrailBatch(results=results)


async def run_parallel_input_guardrails(
    guardrails: Sequence[InputGuardrail],
    context: RunContext[Any],
    agent: Agent,
    input_items: list[RunItem],
) -> InputGuardrailBatch:
    """Run guardrails concurrently and report the first tripwire in list order."""
    if not guardrails:
        return InputGuardrailBatch()
    results = list(
        await asyncio.gather(
            *(_run_input(guardrail, context, agent, input_items) for guardrail in guardrails)
        )
    )
    tripwire = next((result for result in results if result.output.tripwire_triggered), None)
    if tripwire is not None:
        logger.debug("Parallel input guardrail %s triggered", tripwire.guardrail_name)
    return InputGuardrailBatch(results=results, tripwire=tripwire)


async def _run_output(
    guardrail: OutputGuardrail,
    context: RunContext[Any],
    agent: Agent,
    agent_output: Any,
) -> OutputGuardrailResult:
    with start_span(
        GUARDRAIL_SPAN, {"guardrail.name": guardrail.get_name(), "guardrail.kind": "output"}
    ) as span:
        result = await guardrail.run(context, agent, agent_output)
        span.set_attribute("guardrail.triggered", result.output.tripwire_triggered)
    return result


async def run_output_guardrails(
    guardrails: Sequence[OutputGuardrail],
    context: RunContext[Any],
    agent: Agent,
    agent_output: Any,
) -> OutputGuardrailBatch:
    """Run output guardrails concurrently on the final output."""
    if not guardrails:
        return OutputGuardrailBatch()
    results = list(
        await asyncio.gather(
            *(_run_output(guardrail, context, agent, agent_output) for guardrail in guardrails)
        )
    )
    tripwire = next((result for result in results if result.output.tripwire_triggered), None)
    if tripwire is not None:
        logger.debug("Output guardrail %s triggered", tripwire.guardrail_name)
    return OutputGuardrailBatch(results=results, tripwire=tripwire)


async def _run_tool_chain(
    guardrails: Sequence[ToolInputGuardrail | ToolOutputGuardrail],
    data: ToolGuardrailData,
    kind: str,
) -> ToolGuardrailOutcome:
    results: list[ToolGuardrailResult] = []
    for guardrail in guardrails:
        with start_span(
            GUARDRAIL_SPAN,
            {
                "guardrail.name": guardrail.get_name(),
                "guardrail.kind": kind,
                "tool.name": data.tool_name,
                "tool.call_id": data.call_id,
            },
        ) as span:
            result = await guardrail.run(data)
            span.set_attribute("guardrail.behavior", str(result.output.behavior))
        results.append(result)
        behavior = result.output.behavior
        if behavior is ToolGuardrailBehavior.ALLOW:
            continue
        logger.debug(
            "Tool %s guardrail %s on %s returned %s",
            kind,
            result.guardrail_name,
            data.tool_name,
            behavior,
        )
        return ToolGuardrailOutcome(
            behavior=behavior,
            results=results,
            replacement=result.output.content,
            metadata=result.output.metadata,
            decided_by=result,
        )
    return ToolGuardrailOutcome(results=results)


async def run_tool_input_guardrails(
    guardrails: Sequence[ToolInputGuardrail], data: ToolGuardrailData
) -> ToolGuardrailOutcome:
    """Run tool input guardrails before the tool is invoked."""
    return await _run_tool_chain(guardrails, data, "tool_input")


async def run_tool_output_guardrails(
    guardrails: Sequence[ToolOutputGuardrail], data: ToolGuardrailData
) -> ToolGuardrailOutcome:
    """Run tool output guardrails on a tool's result."""
    return await _run_tool_chain(guardrails, data, "tool_output")

"""Ordinary tool call execution.

For one tool call: resolve the tool on the active agent, validate the
arguments, consult the approval ledger, run tool input guardrails, invoke the
tool, run tool output guardrails. Failures become error results visible to
the model; only tool guardrail tripwires (when escalated) and tools without
an error function propagate.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from agent_engine.approvals import ApprovalStatus
from agent_engine.errors import (
    ModelBehaviorError,
    ToolInputGuardrailTripwireTriggered,
    ToolOutputGuardrailTripwireTriggered,
)
from agent_engine.guardrails.executor import run_tool_input_guardrails, run_tool_output_guardrails
from agent_engine.guardrails.types import ToolGuardrailBehavior, ToolGuardrailData
from agent_engine.hooks.events import (
    AfterToolCallEvent,
    BeforeToolCallEvent,
    ToolApprovalRequestEvent,
)
from agent_engine.items import ToolApprovalItem, ToolCallItem, ToolCallOutputItem
from agent_engine.telemetry import TOOL_CALL_SPAN, mark_error, set_payload, start_span

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence

    from opentelemetry.trace import Span
    from pydantic import BaseModel

    from agent_engine.agents.agent import Agent
    from agent_engine.context import RunContext
    from agent_engine.guardrails.types import ToolGuardrailOutcome
    from agent_engine.hooks.registry import HookRegistry
    from agent_engine.items import RunItem
    from agent_engine.tools.function_tool import FunctionTool

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolInvocation:
    """Result of one tool call, plus the approval request it raised, if any."""

    call: ToolCallItem
    output: ToolCallOutputItem
    approval_request: ToolApprovalItem | None = None


def approval_required_error(tool_name: str) -> str:
    return f"Tool '{tool_name}' requires approval"


def _error(call: ToolCallItem, message: str) -> ToolCallOutputItem:
    return ToolCallOutputItem(call_id=call.call_id, error=message)


class ToolInvoker:
    """Runs the ordinary tool calls of one turn for the active agent."""

    def __init__(
        self,
        agent: Agent,
        context: RunContext[Any],
        hooks: HookRegistry,
        *,
        include_sensitive_data: bool = True,
        escalate_guardrail_tripwires: bool = True,
    ) -> None:
        self._agent = agent
        self._context = context
        self._hooks = hooks
        self._include_sensitive_data = include_sensitive_data
        self._escalate = escalate_guardrail_tripwires

    async def iter_results(
        self,
        calls: Sequence[ToolCallItem],
        *,
        concurrent: bool = True,
        preserve_order: bool = False,
    ) -> AsyncIterator[ToolInvocation]:
        """Yield results as calls finish (or in call order with ``preserve_order``).

        With ``concurrent=False`` calls run one after another.
        """
        if not concurrent:
            for call in calls:
                yield await self.invoke(call)
            return

        tasks = [asyncio.create_task(self.invoke(call)) for call in calls]
        try:
            if preserve_order:
                for task in tasks:
                    yield await task
            else:
                for next_done in asyncio.as_completed(tasks):
                    yield await next_done
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    async def invoke(self, call: ToolCallItem) -> ToolInvocation:
        """Execute one call; never raises for recoverable tool failures."""
        attributes = {
            "tool.name": call.name,
            "tool.call_id": call.call_id,
            "agent.name": self._agent.name,
        }
        with start_span(TOOL_CALL_SPAN, attributes) as span:
            set_payload(
                span,
                "tool.input",
                call.arguments,
                include_sensitive_data=self._include_sensitive_data,
            )
            invocation = await self._invoke(call, span)
            output = invocation.output
            if output.is_error:
                mark_error(span, output.error or "")
            else:
                set_payload(
                    span,
                    "tool.output",
                    output.output,
                    include_sensitive_data=self._include_sensitive_data,
                )
        await self._hooks.invoke(
            AfterToolCallEvent(
                agent=self._agent, context=self._context, tool_call=call, result=output
            )
        )
        return invocation

    async def resume(self, items: Sequence[RunItem]) -> list[RunItem]:
        """Run calls whose approval was decided after an earlier run asked for it.

        A call qualifies when ``items`` holds its ``ToolApprovalItem`` for this
        agent, its result is still the approval-required placeholder and the
        ledger now approves or rejects it. The placeholder is replaced in place
        by the real result; everything else is returned unchanged.
        """
        calls = {item.call_id: item for item in items if isinstance(item, ToolCallItem)}
        placeholders = {
            item.call_id
            for item in items
            if isinstance(item, ToolCallOutputItem)
            and item.call_id in calls
            and item.error == approval_required_error(calls[item.call_id].name)
        }
        resolved: dict[str, ToolCallOutputItem] = {}
        for item in items:
            if not isinstance(item, ToolApprovalItem) or item.call_id not in placeholders:
                continue
            if item.call_id in resolved or item.agent_name not in (None, self._agent.name):
                continue
            status = self._context.approval_status(item.tool_name, item.call_id)
            if status is ApprovalStatus.UNDECIDED:
                continue
            logger.info("Resuming tool call %s (%s): %s", item.call_id, item.tool_name, status)
            invocation = await self.invoke(calls[item.call_id])
            resolved[item.call_id] = invocation.output

        if not resolved:
            return list(items)
        return [
            resolved[item.call_id]
            if isinstance(item, ToolCallOutputItem) and item.call_id in resolved
            else item
            for item in items
        ]

    async def _invoke(self, call: ToolCallItem, span: Span) -> ToolInvocation:
        tool = self._agent.get_tool(call.name, self._context)
        if tool is None:
            logger.warning("Model called unknown tool %s on %s", call.name, self._agent.name)
            return ToolInvocation(call, _error(call, f"Tool not found: {call.name}"))

        try:
            params = tool.parse_arguments(call.arguments)
        except ModelBehaviorError as exc:
            logger.debug("Rejected arguments for %s: %s", call.name, exc.message)
            return ToolInvocation(call, _error(call, tool.format_error(self._context, exc)))

        if await tool.requires_approval(self._context, params):
            denied = await self._check_approval(call)
            if denied is not None:
                span.set_attribute("tool.approval", str(denied.output.error))
                return denied

        before = await self._hooks.invoke(
            BeforeToolCallEvent(agent=self._agent, context=self._context, tool_call=call)
        )
        if before.cancel_tool:
            logger.info("Tool call %s cancelled by hook: %s", call.call_id, before.cancel_tool)
            return ToolInvocation(call, _error(call, before.cancel_tool))

        if self._agent.tool_input_guardrails:
            outcome = await run_tool_input_guardrails(
                self._agent.tool_input_guardrails, self._guardrail_data(call)
            )
            if not outcome.allowed:
                return ToolInvocation(call, self._guardrail_result(call, outcome, "input"))

        return ToolInvocation(call, await self._run_tool(call, tool, params))

    async def _check_approval(self, call: ToolCallItem) -> ToolInvocation | None:
        """None when the call may proceed; otherwise the error result to use."""
        status = self._context.approval_status(call.name, call.call_id)
        request: ToolApprovalItem | None = None
        if status is ApprovalStatus.UNDECIDED:
            request = ToolApprovalItem(
                call_id=call.call_id,
                tool_name=call.name,
                arguments=call.arguments,
                agent_name=self._agent.name,
            )
            await self._hooks.invoke(
                ToolApprovalRequestEvent(agent=self._agent, context=self._context, item=request)
            )
            status = self._context.approval_status(call.name, call.call_id)

        match status:
            case ApprovalStatus.APPROVED:
                return None
            case ApprovalStatus.REJECTED:
                logger.info("Tool call %s (%s) was rejected", call.call_id, call.name)
                return ToolInvocation(call, _error(call, f"Tool '{call.name}' call was rejected"))
            case ApprovalStatus.UNDECIDED:
                logger.warning(
                    "Tool call %s (%s) has no approval decision", call.call_id, call.name
                )
                return ToolInvocation(
                    call,
                    _error(call, approval_required_error(call.name)),
                    approval_request=request,
                )

    async def _run_tool(
        self, call: ToolCallItem, tool: FunctionTool, params: BaseModel
    ) -> ToolCallOutputItem:
        try:
            result = await tool.invoke(self._context, params)
        except Exception as exc:
            logger.exception("Tool %s failed", call.name)
            return _error(call, tool.format_error(self._context, exc))

        if self._agent.tool_output_guardrails:
            outcome = await run_tool_output_guardrails(
                self._agent.tool_output_guardrails, self._guardrail_data(call, result)
            )
            if not outcome.allowed:
                return self._guardrail_result(call, outcome, "output")
        return ToolCallOutputItem(call_id=call.call_id, output=result)

    def _guardrail_data(self, call: ToolCallItem, output: Any = None) -> ToolGuardrailData:
        return ToolGuardrailData(
            context=self._context,
            agent_name=self._agent.name,
            tool_name=call.name,
            call_id=call.call_id,
            arguments=call.arguments,
            output=output,
        )

    def _guardrail_result(
        self, call: ToolCallItem, outcome: ToolGuardrailOutcome, stage: str
    ) -> ToolCallOutputItem:
        if outcome.behavior is ToolGuardrailBehavior.REJECT_CONTENT:
            return ToolCallOutputItem(call_id=call.call_id, output=outcome.replacement)

        decided_by = outcome.decided_by
        name = decided_by.guardrail_name if decided_by else "unknown"
        if self._escalate and decided_by is not None:
            if stage == "input":
                raise ToolInputGuardrailTripwireTriggered(decided_by)
            raise ToolOutputGuardrailTripwireTriggered(decided_by)
        logger.warning("Tool %s guardrail %s stopped call %s", stage, name, call.call_id)
        return _error(call, f"Tool {stage} guardrail {name!r} triggered tripwire")

"""One turn of a run: model call, response classification, dispatch.

A turn that contains a hand-off call processes only the first one. Extra
hand-off calls and the ordinary tool calls of that turn are answered with
error results so every call stays paired with a result.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Any

from agent_engine.agents.handoffs import resolve_handoff
from agent_engine.errors import (
    AgentsError,
    AgentSystemError,
    InputGuardrailTripwireTriggered,
    RunCancelledError,
    RunTimeoutError,
    TimeoutScope,
    UserError,
)
from agent_engine.guardrails.executor import (
    run_blocking_input_guardrails,
    run_parallel_input_guardrails,
    split_input_guardrails,
)
from agent_engine.hooks.events import (
    AfterModelCallEvent,
    AgentStartEvent,
    BeforeModelCallEvent,
    HandoffEvent,
    ItemGeneratedEvent,
)
from agent_engine.items import HandoffCallItem, ToolCallItem, ToolCallOutputItem
from agent_engine.providers.base import Model, ModelRequest
from agent_engine.response_parser import parse_response
from agent_engine.streaming import AgentUpdatedStreamEvent, RunItemStreamEvent
from agent_engine.telemetry import (
    HANDOFF_SPAN,
    MODEL_CALL_SPAN,
    mark_error,
    start_span,
)
from agent_engine.tool_invoker import ToolInvoker

if TYPE_CHECKING:
    from collections.abc import Callable

    from agent_engine.agents.agent import Agent
    from agent_engine.guardrails.types import InputGuardrail, InputGuardrailBatch
    from agent_engine.hooks.registry import HookRegistry
    from agent_engine.items import RunItem
    from agent_engine.providers.base import ModelResponse
    from agent_engine.run_config import RunConfig
    from agent_engine.run_state import RunState
    from agent_engine.streaming import RunStreamEvent

logger = logging.getLogger(__name__)

EXTRA_HANDOFF_ERROR = "Multiple handoffs detected, ignoring this one."
SKIPPED_TOOL_ERROR = "Tool call skipped: the conversation was handed off in this turn."


class TurnExecutor:
    """Performs single turns against one run's state."""

    def __init__(
        self,
        config: RunConfig,
        hooks: HookRegistry,
        publish: Callable[[RunStreamEvent], None] | None = None,
    ) -> None:
        self._config = config
        self._hooks = hooks
        self._publish = publish

    async def execute(self, state: RunState) -> None:
        """Run one turn and commit its items to ``state``."""
        agent = state.current_agent
        parallel_guardrails: list[InputGuardrail] = []
        if state.current_turn == 0 and agent.input_guardrails:
            blocking, parallel_guardrails = split_input_guardrails(agent.input_guardrails)
            if blocking:
                batch = await run_blocking_input_guardrails(
                    blocking, state.context, agent, list(state.original_input)
                )
                state.input_guardrail_results.extend(batch.results)
                if batch.tripwire is not None:
                    raise InputGuardrailTripwireTriggered(batch.tripwire)

        model = await self._resolve_model(agent)
        request = self._build_request(state, agent)
        await self._hooks.invoke(
            BeforeModelCallEvent(
                agent=agent, context=state.context, request=request, turn=state.current_turn
            )
        )
        response = await self._call_model(state, model, request, parallel_guardrails)
        await self._hooks.invoke(
            AfterModelCallEvent(
                agent=agent, context=state.context, response=response, turn=state.current_turn
            )
        )

        state.model_responses.append(response)
        state.context.add_usage(response.usage)
        items = parse_response(response, agent)
        state.last_response_items = items
        for item in items:
            await self._append(state, item)

        handoff_calls = [item for item in items if isinstance(item, HandoffCallItem)]
        tool_calls = [item for item in items if isinstance(item, ToolCallItem)]
        logger.debug(
            "Turn %d of %s: %d hand-off calls, %d tool calls",
            state.current_turn,
            agent.name,
            len(handoff_calls),
            len(tool_calls),
        )
        if handoff_calls:
            await self._handoff(state, handoff_calls[0])
            await self._answer_skipped(state, handoff_calls[1:], tool_calls)
        elif tool_calls:
            await self._run_tools(state, tool_calls)

    async def _resolve_model(self, agent: Agent) -> Model:
        choice = self._config.model or agent.model or self._config.default_model
        if isinstance(choice, Model):
            return choice
        provider = self._config.model_provider
        if provider is None:
            msg = f"No model provider configured to resolve model {choice!r} for {agent.name}"
            raise UserError(msg)
        return await provider.get_model(choice)

    def _build_request(self, state: RunState, agent: Agent) -> ModelRequest:
        model_name = self._config.model or agent.model or self._config.default_model
        return ModelRequest(
            input=state.all_items(),
            instructions=agent.instructions,
            model=model_name if isinstance(model_name, str) else "",
            settings=agent.model_settings.resolve(self._config.model_settings),
            output_schema=agent.output_schema.json_schema(),
            tools=agent.model_tools(state.context),
        )

    async def _bounded_model_call(self, model: Model, request: ModelRequest) -> ModelResponse:
        seconds = self._config.model_timeout
        timeout = asyncio.timeout(seconds)
        try:
            async with timeout:
                return await model.get_response(request)
        except TimeoutError as exc:
            if seconds is not None and timeout.expired():
                raise RunTimeoutError(TimeoutScope.MODEL_CALL, seconds) from exc
            msg = f"Model call failed: {exc}"
            raise AgentSystemError(msg) from exc
        except AgentsError:
            raise
        except Exception as exc:
            msg = f"Model call failed: {exc}"
            raise AgentSystemError(msg) from exc

    async def _call_model(
        self,
        state: RunState,
        model: Model,
        request: ModelRequest,
        parallel_guardrails: list[InputGuardrail],
    ) -> ModelResponse:
        """Call the model, racing parallel input guardrails and cancellation."""
        agent = state.current_agent
        attributes = {
            "agent.name": agent.name,
            "model.name": request.model or None,
            "run.turn": state.current_turn,
        }
        with start_span(MODEL_CALL_SPAN, attributes) as span:
            model_task = asyncio.create_task(self._bounded_model_call(model, request))
            guardrail_task: asyncio.Task[InputGuardrailBatch] | None = None
            cancel_task: asyncio.Task[None] | None = None
            if parallel_guardrails:
                guardrail_task = asyncio.create_task(
                    run_parallel_input_guardrails(
                        parallel_guardrails, state.context, agent, list(state.original_input)
                    )
                )
            token = self._config.cancel_token
            if token is not None:
                cancel_task = asyncio.create_task(token.wait())

            pending: set[asyncio.Task[Any]] = {
                task for task in (model_task, guardrail_task, cancel_task) if task is not None
            }
            try:
                while not model_task.done():
                    done, pending = await asyncio.wait(
                        pending, return_when=asyncio.FIRST_COMPLETED
                    )
                    if guardrail_task is not None and guardrail_task in done:
                        self._check_input_batch(state, guardrail_task.result())
                    if cancel_task is not None and cancel_task in done:
                        raise RunCancelledError(token.reason or "Run cancelled")
                response = model_task.result()
                if guardrail_task is not None and not guardrail_task.done():
                    self._check_input_batch(state, await guardrail_task)
            finally:
                for task in (model_task, guardrail_task, cancel_task):
                    if task is not None and not task.done():
                        task.cancel()

            if response.usage is not None:
                span.set_attribute("usage.input_tokens", response.usage.input_tokens)
                span.set_attribute("usage.output_tokens", response.usage.output_tokens)
            if response.response_id:
                span.set_attribute("model.response_id", response.response_id)
        return response

    def _check_input_batch(self, state: RunState, batch: InputGuardrailBatch) -> None:
        state.input_guardrail_results.extend(batch.results)
        if batch.tripwire is not None:
            raise InputGuardrailTripwireTriggered(batch.tripwire)

    async def _append(self, state: RunState, item: RunItem) -> None:
        state.generated_items.append(item)
        if self._publish is not None:
            self._publish(
                RunItemStreamEvent(
                    item=item, turn=state.current_turn, agent_name=state.current_agent.name
                )
            )
        await self._hooks.invoke(
            ItemGeneratedEvent(
                agent=state.current_agent,
                context=state.context,
                item=item,
                turn=state.current_turn,
            )
        )

    async def _handoff(self, state: RunState, call: HandoffCallItem) -> None:
        source = state.current_agent
        with start_span(
            HANDOFF_SPAN, {"handoff.from": source.name, "handoff.tool": call.tool_call.name}
        ) as span:
            resolution = resolve_handoff(call, source)
            if resolution.target is None:
                mark_error(span, resolution.output.error or "")
                logger.warning(
                    "Hand-off from %s failed: %s", source.name, resolution.output.error
                )
            else:
                span.set_attribute("handoff.to", resolution.target.name)

        await self._append(state, resolution.output)
        await self._append(
            state,
            ToolCallOutputItem(
                call_id=call.call_id,
                output=resolution.acknowledgement(),
                error=resolution.output.error,
            ),
        )
        target = resolution.target
        if target is None:
            return

        logger.info("Handing off from %s to %s", source.name, target.name)
        state.current_agent = target
        await self._hooks.invoke(
            HandoffEvent(
                agent=source, context=state.context, target=target, reason=resolution.reason
            )
        )
        if self._publish is not None:
            self._publish(AgentUpdatedStreamEvent(agent=target))
        await self._hooks.invoke(
            AgentStartEvent(agent=target, context=state.context, turn=state.current_turn + 1)
        )

    async def _answer_skipped(
        self,
        state: RunState,
        extra_handoffs: list[HandoffCallItem],
        tool_calls: list[ToolCallItem],
    ) -> None:
        if not extra_handoffs and not tool_calls:
            return
        logger.warning(
            "Ignoring %d extra hand-off calls and %d tool calls in a hand-off turn",
            len(extra_handoffs),
            len(tool_calls),
        )
        for extra in extra_handoffs:
            await self._append(
                state,
                ToolCallOutputItem(
                    call_id=extra.call_id,
                    output={"error": EXTRA_HANDOFF_ERROR},
                    error=EXTRA_HANDOFF_ERROR,
                ),
            )
        for call in tool_calls:
            await self._append(
                state, ToolCallOutputItem(call_id=call.call_id, error=SKIPPED_TOOL_ERROR)
            )

    async def _run_tools(self, state: RunState, tool_calls: list[ToolCallItem]) -> None:
        invoker = ToolInvoker(
            state.current_agent,
            state.context,
            self._hooks,
            include_sensitive_data=self._config.trace_include_sensitive_data,
            escalate_guardrail_tripwires=self._config.escalate_tool_guardrail_tripwires,
        )
        results = invoker.iter_results(
            tool_calls,
            concurrent=self._config.parallel_tool_calls,
            preserve_order=self._config.preserve_tool_call_order,
        )
        async with contextlib.aclosing(results):
            async for invocation in results:
                if invocation.approval_request is not None:
                    await self._append(state, invocation.approval_request)
                await self._append(state, invocation.output)

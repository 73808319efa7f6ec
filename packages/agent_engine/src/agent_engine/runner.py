"""Run driver: repeats turns until a final output or a terminal error.

Termination:

- final output: the last generated item is an assistant message and every
  tool call has a result;
- turn budget: ``MaxTurnsExceeded`` once ``max_turns`` turns ran without a
  final output;
- overall timeout: ``RunTimeoutError`` with scope ``run``;
- a guardrail tripwire, cancellation, or model failure.

Every terminal error leaving ``Runner.run`` carries ``RunErrorDetails``.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeVar

from agent_engine.context import RunContext
from agent_engine.errors import (
    AgentsError,
    AgentSystemError,
    MaxTurnsExceeded,
    OutputGuardrailTripwireTriggered,
    RunCancelledError,
    RunTimeoutError,
    TimeoutScope,
)
from agent_engine.guardrails.executor import run_output_guardrails
from agent_engine.hooks.events import AgentStartEvent, RunEndEvent, RunStartEvent
from agent_engine.hooks.registry import HookRegistry
from agent_engine.items import RunItem, ToolApprovalItem, item_from_dict, user_message
from agent_engine.output import resolve_final_output
from agent_engine.run_config import CancellationToken, RunConfig
from agent_engine.run_state import RunState
from agent_engine.streaming import StreamedRunResult
from agent_engine.telemetry import AGENT_SPAN, RUN_SPAN, set_payload, start_span
from agent_engine.tool_invoker import ToolInvoker
from agent_engine.turn import TurnExecutor

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from agent_engine.agents.agent import Agent
    from agent_engine.guardrails.types import InputGuardrailResult, OutputGuardrailResult
    from agent_engine.providers.base import ModelResponse
    from agent_engine.streaming import RunStreamEvent
    from agent_engine.usage import Usage

logger = logging.getLogger(__name__)

T = TypeVar("T")

RunInput = str | RunItem | dict[str, Any]

__all__ = ["CancellationToken", "RunConfig", "RunResult", "Runner"]


@dataclass
class RunResult:
    """Outcome of a successful run."""

    input: list[RunItem]
    new_items: list[RunItem]
    raw_responses: list[ModelResponse]
    final_output: Any
    last_agent: Agent
    context_wrapper: RunContext[Any]
    turns: int
    input_guardrail_results: list[InputGuardrailResult] = field(default_factory=list)
    output_guardrail_results: list[OutputGuardrailResult] = field(default_factory=list)

    @property
    def usage(self) -> Usage:
        return self.context_wrapper.usage

    @property
    def last_response_id(self) -> str | None:
        if not self.raw_responses:
            return None
        return self.raw_responses[-1].response_id

    def final_output_as(self, cls: type[T], *, raise_if_incorrect_type: bool = False) -> T:
        """Return the final output typed as ``cls``.

        Raises:
            TypeError: If ``raise_if_incorrect_type`` is set and the output
                is not an instance of ``cls``.
        """
        if raise_if_incorrect_type and not isinstance(self.final_output, cls):
            msg = f"Final output is {type(self.final_output).__name__}, not {cls.__name__}"
            raise TypeError(msg)
        return self.final_output  # type: ignore[no-any-return]

    def to_input_list(self) -> list[RunItem]:
        """Original input plus new items, to continue the conversation."""
        return [*self.input, *self.new_items]


def _normalize_input(value: str | Sequence[RunInput]) -> list[RunItem]:
    if isinstance(value, str):
        return [user_message(value)]
    items: list[RunItem] = []
    for entry in value:
        if isinstance(entry, str):
            items.append(user_message(entry))
        elif isinstance(entry, dict):
            items.append(item_from_dict(entry))
        else:
            items.append(entry)
    return items


class Runner:
    """Entry points for running an agent."""

    @classmethod
    async def run(
        cls,
        starting_agent: Agent,
        input: str | Sequence[RunInput],
        config: RunConfig | None = None,
    ) -> RunResult:
        """Run ``starting_agent`` on ``input`` until it produces a final output.

        Raises:
            AgentsError: The terminal error of the run, with ``details`` set.
        """
        return await cls._run(starting_agent, input, config or RunConfig(), None)

    @classmethod
    def run_sync(
        cls,
        starting_agent: Agent,
        input: str | Sequence[RunInput],
        config: RunConfig | None = None,
    ) -> RunResult:
        """Blocking variant of ``run``; not usable inside a running event loop."""
        return asyncio.run(cls.run(starting_agent, input, config))

    @classmethod
    def run_streamed(
        cls,
        starting_agent: Agent,
        input: str | Sequence[RunInput],
        config: RunConfig | None = None,
    ) -> StreamedRunResult:
        """Start a run in the background and stream its items.

        Must be called from a running event loop.
        """
        streamed = StreamedRunResult(starting_agent)
        task = asyncio.create_task(
            cls._run(starting_agent, input, config or RunConfig(), streamed.publish)
        )
        streamed.attach(task)
        return streamed

    @classmethod
    async def _run(
        cls,
        starting_agent: Agent,
        input: str | Sequence[RunInput],
        config: RunConfig,
        publish: Callable[[RunStreamEvent], None] | None,
    ) -> RunResult:
        hooks = HookRegistry.from_providers(config.hooks)
        if isinstance(config.context, RunContext):
            context = config.context.fork()
        else:
            context = RunContext(config.context)
        session_items: list[RunItem] = []
        if config.session is not None:
            session_items = await config.session.get_items(config.session_history_limit)
        state = RunState(
            current_agent=starting_agent,
            original_input=(*session_items, *_normalize_input(input)),
            context=context,
            session_item_count=len(session_items),
        )
        logger.info(
            "Starting run of %s (max_turns=%d, %d input items)",
            starting_agent.name,
            config.max_turns,
            len(state.original_input),
        )

        attributes = {"workflow.name": config.workflow_name, "agent.name": starting_agent.name}
        with start_span(RUN_SPAN, attributes) as span:
            try:
                result = await cls._drive(state, config, hooks, publish)
            except AgentsError as exc:
                exc.details = state.error_details()
                logger.info("Run of %s failed: %s", starting_agent.name, exc.message)
                await hooks.invoke(
                    RunEndEvent(agent=state.current_agent, context=context, error=exc)
                )
                raise
            except Exception as exc:
                error = AgentSystemError(f"Unexpected error during run: {exc}")
                error.details = state.error_details()
                logger.exception("Run of %s failed unexpectedly", starting_agent.name)
                await hooks.invoke(
                    RunEndEvent(agent=state.current_agent, context=context, error=error)
                )
                raise error from exc
            span.set_attribute("run.turns", result.turns)
            set_payload(
                span,
                "run.output",
                result.final_output,
                include_sensitive_data=config.trace_include_sensitive_data,
            )

        if config.session is not None:
            await config.session.add_items([*state.new_input_items(), *state.generated_items])
        await hooks.invoke(RunEndEvent(agent=result.last_agent, context=context, result=result))
        logger.info(
            "Run finished after %d turns with %s", result.turns, result.last_agent.name
        )
        return result

    @classmethod
    async def _drive(
        cls,
        state: RunState,
        config: RunConfig,
        hooks: HookRegistry,
        publish: Callable[[RunStreamEvent], None] | None,
    ) -> RunResult:
        await hooks.invoke(
            RunStartEvent(
                agent=state.current_agent, context=state.context, input=list(state.original_input)
            )
        )
        await hooks.invoke(AgentStartEvent(agent=state.current_agent, context=state.context))

        timeout = asyncio.timeout(config.run_timeout)
        try:
            async with timeout:
                await cls._resume_approvals(state, config, hooks)
                await cls._loop(state, config, hooks, publish)
        except TimeoutError as exc:
            if config.run_timeout is None or not timeout.expired():
                raise
            raise RunTimeoutError(TimeoutScope.RUN, config.run_timeout) from exc

        agent = state.current_agent
        final_output = resolve_final_output(state.last_response_items, agent.output_schema)
        if agent.output_guardrails:
            batch = await run_output_guardrails(
                agent.output_guardrails, state.context, agent, final_output
            )
            state.output_guardrail_results = batch.results
            if batch.tripwire is not None:
                raise OutputGuardrailTripwireTriggered(batch.tripwire)

        return RunResult(
            input=list(state.original_input),
            new_items=list(state.generated_items),
            raw_responses=list(state.model_responses),
            final_output=final_output,
            last_agent=agent,
            context_wrapper=state.context,
            turns=state.current_turn,
            input_guardrail_results=list(state.input_guardrail_results),
            output_guardrail_results=list(state.output_guardrail_results),
        )

    @classmethod
    async def _resume_approvals(
        cls, state: RunState, config: RunConfig, hooks: HookRegistry
    ) -> None:
        """Run input tool calls whose pending approval has been decided since."""
        new_input = state.new_input_items()
        if not any(isinstance(item, ToolApprovalItem) for item in new_input):
            return
        invoker = ToolInvoker(
            state.current_agent,
            state.context,
            hooks,
            include_sensitive_data=config.trace_include_sensitive_data,
            escalate_guardrail_tripwires=config.escalate_tool_guardrail_tripwires,
        )
        resumed = await invoker.resume(new_input)
        state.original_input = (*state.original_input[: state.session_item_count], *resumed)

    @classmethod
    async def _loop(
        cls,
        state: RunState,
        config: RunConfig,
        hooks: HookRegistry,
        publish: Callable[[RunStreamEvent], None] | None,
    ) -> None:
        executor = TurnExecutor(config, hooks, publish)
        token = config.cancel_token
        with contextlib.ExitStack() as segment:
            segment_agent: Agent | None = None
            while not state.has_final_output() and state.current_turn < config.max_turns:
                if token is not None and token.cancelled:
                    raise RunCancelledError(token.reason or "Run cancelled")
                if state.current_agent is not segment_agent:
                    segment.close()
                    segment_agent = state.current_agent
                    segment.enter_context(
                        start_span(AGENT_SPAN, {"agent.name": segment_agent.name})
                    )
                await executor.execute(state)
                state.current_turn += 1

        if not state.has_final_output():
            raise MaxTurnsExceeded(config.max_turns, state.current_turn)

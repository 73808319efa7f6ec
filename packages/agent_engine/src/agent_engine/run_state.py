"""Mutable state of one run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from agent_engine.errors import RunErrorDetails
from agent_engine.items import AssistantMessageItem, has_pending_tool_calls

if TYPE_CHECKING:
    from agent_engine.agents.agent import Agent
    from agent_engine.context import RunContext
    from agent_engine.guardrails.types import InputGuardrailResult, OutputGuardrailResult
    from agent_engine.items import RunItem
    from agent_engine.providers.base import ModelResponse


@dataclass
class RunState:
    """Active agent, item log, response log and turn counter of one run.

    Only the run driver and turn executor mutate it, from the run's own task.
    ``session_item_count`` leading entries of ``original_input`` came from
    the session and are not written back.
    """

    current_agent: Agent
    original_input: tuple[RunItem, ...]
    context: RunContext[Any]
    session_item_count: int = 0
    generated_items: list[RunItem] = field(default_factory=list)
    model_responses: list[ModelResponse] = field(default_factory=list)
    last_response_items: list[RunItem] = field(default_factory=list)
    current_turn: int = 0
    input_guardrail_results: list[InputGuardrailResult] = field(default_factory=list)
    output_guardrail_results: list[OutputGuardrailResult] = field(default_factory=list)

    def all_items(self) -> list[RunItem]:
        """Original input followed by everything generated so far."""
        return [*self.original_input, *self.generated_items]

    def new_input_items(self) -> list[RunItem]:
        """Caller-supplied input items of this run (session history excluded)."""
        return list(self.original_input[self.session_item_count :])

    def has_final_output(self) -> bool:
        """Last generated item is an assistant message and every tool call is answered."""
        if not self.generated_items:
            return False
        if not isinstance(self.generated_items[-1], AssistantMessageItem):
            return False
        return not has_pending_tool_calls(self.all_items())

    @property
    def last_response_id(self) -> str | None:
        if not self.model_responses:
            return None
        return self.model_responses[-1].response_id

    def error_details(self) -> RunErrorDetails:
        """Snapshot for a terminal error."""
        return RunErrorDetails(
            input=list(self.original_input),
            new_items=list(self.generated_items),
            raw_responses=list(self.model_responses),
            last_agent=self.current_agent.name,
            usage=self.context.usage,
            turns=self.current_turn,
            input_guardrail_results=list(self.input_guardrail_results),
        )

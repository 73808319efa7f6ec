"""Terminal error taxonomy for agent runs.

Every error that unwinds a run derives from ``AgentsError``. The run driver
attaches a ``RunErrorDetails`` snapshot of the partial state before the error
reaches the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from agent_engine.guardrails.types import (
        InputGuardrailResult,
        OutputGuardrailResult,
        ToolGuardrailResult,
    )
    from agent_engine.items import RunItem
    from agent_engine.providers.base import ModelResponse
    from agent_engine.usage import Usage


@dataclass
class RunErrorDetails:
    """Partial run state captured when a run fails."""

    input: list[RunItem]
    new_items: list[RunItem]
    raw_responses: list[ModelResponse]
    last_agent: str
    usage: Usage
    turns: int
    input_guardrail_results: list[InputGuardrailResult] = field(default_factory=list)


class AgentsError(Exception):
    """Base class for all run failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        self.details: RunErrorDetails | None = None


class UserError(AgentsError):
    """The caller supplied an invalid agent graph or configuration."""


class MaxTurnsExceeded(AgentsError):
    """The turn budget ran out before a final output was produced."""

    def __init__(self, max_turns: int, turns: int) -> None:
        super().__init__(f"Max turns ({max_turns}) exceeded after {turns} turns")
        self.max_turns = max_turns
        self.turns = turns


class TimeoutScope(StrEnum):
    """Which timeout fired."""

    MODEL_CALL = "model_call"
    RUN = "run"


class RunTimeoutError(AgentsError):
    """A per-model-call or overall run timeout elapsed."""

    def __init__(self, scope: TimeoutScope, seconds: float) -> None:
        label = "Model API call" if scope is TimeoutScope.MODEL_CALL else "Run execution"
        super().__init__(f"{label} timed out after {seconds:g}s")
        self.scope = scope
        self.seconds = seconds


class ModelBehaviorError(AgentsError):
    """The model produced output the engine cannot use."""


class AgentSystemError(AgentsError):
    """Unexpected transport or internal failure."""


class RunCancelledError(AgentsError):
    """The run was cancelled through its cancellation token."""


class GuardrailTripwireTriggered(AgentsError):
    """A guardrail halted the run."""

    def __init__(self, guardrail_name: str, metadata: Any = None) -> None:
        super().__init__(f"Guardrail {guardrail_name!r} triggered tripwire")
        self.guardrail_name = guardrail_name
        self.metadata = metadata


class InputGuardrailTripwireTriggered(GuardrailTripwireTriggered):
    """An input guardrail tripped on the run input."""

    def __init__(self, result: InputGuardrailResult) -> None:
        super().__init__(result.guardrail_name, result.output.output_info)
        self.result = result


class OutputGuardrailTripwireTriggered(GuardrailTripwireTriggered):
    """An output guardrail tripped on the final output."""

    def __init__(self, result: OutputGuardrailResult) -> None:
        super().__init__(result.guardrail_name, result.output.output_info)
        self.result = result


class ToolInputGuardrailTripwireTriggered(GuardrailTripwireTriggered):
    """A tool input guardrail asked to abort the tool call."""

    def __init__(self, result: ToolGuardrailResult) -> None:
        super().__init__(result.guardrail_name, result.output.metadata)
        self.result = result


class ToolOutputGuardrailTripwireTriggered(GuardrailTripwireTriggered):
    """A tool output guardrail asked to abort the tool call."""

    def __init__(self, result: ToolGuardrailResult) -> None:
        super().__init__(result.guardrail_name, result.output.metadata)
        self.result = result

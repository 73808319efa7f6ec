"""Guardrail definitions and their explicit outcome values.

Guardrail functions return values; they never raise to signal a tripwire.
Input and output guardrails return ``GuardrailFunctionOutput`` (pass or
tripwire). Tool guardrails return ``ToolGuardrailFunctionOutput`` (allow,
reject with replacement content, or raise). Whether a tripwire becomes a
terminal error is decided by the run driver.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from agent_engine.agents.agent import Agent
    from agent_engine.context import RunContext
    from agent_engine.items import RunItem


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


@dataclass(frozen=True)
class GuardrailFunctionOutput:
    """Outcome of an input or output guardrail: pass, or tripwire."""

    tripwire_triggered: bool = False
    output_info: Any = None

    @classmethod
    def passed(cls, output_info: Any = None) -> GuardrailFunctionOutput:
        return cls(tripwire_triggered=False, output_info=output_info)

    @classmethod
    def tripwire(cls, output_info: Any = None) -> GuardrailFunctionOutput:
        return cls(tripwire_triggered=True, output_info=output_info)


@dataclass(frozen=True)
class InputGuardrailResult:
    guardrail_name: str
    output: GuardrailFunctionOutput


@dataclass(frozen=True)
class OutputGuardrailResult:
    guardrail_name: str
    agent_name: str
    agent_output: Any
    output: GuardrailFunctionOutput


InputGuardrailFunction = Callable[
    ["RunContext[Any]", "Agent", "list[RunItem]"],
    GuardrailFunctionOutput | Awaitable[GuardrailFunctionOutput],
]
OutputGuardrailFunction = Callable[
    ["RunContext[Any]", "Agent", Any],
    GuardrailFunctionOutput | Awaitable[GuardrailFunctionOutput],
]


@dataclass(frozen=True)
class InputGuardrail:
    """Check run on the original input during the first turn.

    Blocking guardrails (``run_in_parallel=False``) run one at a time before
    the model is called. Parallel guardrails run concurrently and race the
    first model call.
    """

    guardrail_function: InputGuardrailFunction
    name: str = ""
    run_in_parallel: bool = True

    def get_name(self) -> str:
        return self.name or getattr(self.guardrail_function, "__name__", "input_guardrail")

    async def run(
        self, context: RunContext[Any], agent: Agent, input_items: list[RunItem]
    ) -> InputGuardrailResult:
        output = await _maybe_await(self.guardrail_function(context, agent, input_items))
        return InputGuardrailResult(guardrail_name=self.get_name(), output=output)


@dataclass(frozen=True)
class OutputGuardrail:
    """Check run on the resolved final output."""

    guardrail_function: OutputGuardrailFunction
    name: str = ""

    def get_name(self) -> str:
        return self.name or getattr(self.guardrail_function, "__name__", "output_guardrail")

    async def run(
        self, context: RunContext[Any], agent: Agent, agent_output: Any
    ) -> OutputGuardrailResult:
        output = await _maybe_await(self.guardrail_function(context, agent, agent_output))
        return OutputGuardrailResult(
            guardrail_name=self.get_name(),
            agent_name=agent.name,
            agent_output=agent_output,
            output=output,
        )


class ToolGuardrailBehavior(StrEnum):
    ALLOW = "allow"
    REJECT_CONTENT = "reject_content"
    RAISE = "raise"


@dataclass(frozen=True)
class ToolGuardrailFunctionOutput:
    """Outcome of a tool guardrail."""

    behavior: ToolGuardrailBehavior = ToolGuardrailBehavior.ALLOW
    content: Any = None
    metadata: Any = None

    @classmethod
    def allow(cls, metadata: Any = None) -> ToolGuardrailFunctionOutput:
        return cls(behavior=ToolGuardrailBehavior.ALLOW, metadata=metadata)

    @classmethod
    def reject_content(cls, content: Any, metadata: Any = None) -> ToolGuardrailFunctionOutput:
        """Skip the tool and use ``content`` as its result."""
        return cls(
            behavior=ToolGuardrailBehavior.REJECT_CONTENT, content=content, metadata=metadata
        )

    @classmethod
    def raise_exception(cls, metadata: Any = None) -> ToolGuardrailFunctionOutput:
        """Abort the tool call with a tripwire."""
        return cls(behavior=ToolGuardrailBehavior.RAISE, metadata=metadata)


@dataclass(frozen=True)
class ToolGuardrailData:
    """What a tool guardrail sees. ``output`` is only set for output guardrails."""

    context: RunContext[Any]
    agent_name: str
    tool_name: str
    call_id: str
    arguments: str
    output: Any = None


@dataclass(frozen=True)
class ToolGuardrailResult:
    guardrail_name: str
    output: ToolGuardrailFunctionOutput


ToolGuardrailFunction = Callable[
    [ToolGuardrailData], ToolGuardrailFunctionOutput | Awaitable[ToolGuardrailFunctionOutput]
]


@dataclass(frozen=True)
class ToolInputGuardrail:
    """Check run before a tool is invoked."""

    guardrail_function: ToolGuardrailFunction
    name: str = ""

    def get_name(self) -> str:
        return self.name or getattr(self.guardrail_function, "__name__", "tool_input_guardrail")

    async def run(self, data: ToolGuardrailData) -> ToolGuardrailResult:
        output = await _maybe_await(self.guardrail_function(data))
        return ToolGuardrailResult(guardrail_name=self.get_name(), output=output)


@dataclass(frozen=True)
class ToolOutputGuardrail:
    """Check run on a tool's result before the model sees it."""

    guardrail_function: ToolGuardrailFunction
    name: str = ""

    def get_name(self) -> str:
        return self.name or getattr(self.guardrail_function, "__name__", "tool_output_guardrail")

    async def run(self, data: ToolGuardrailData) -> ToolGuardrailResult:
        output = await _maybe_await(self.guardrail_function(data))
        return ToolGuardrailResult(guardrail_name=self.get_name(), output=output)


@dataclass(frozen=True)
class InputGuardrailBatch:
    """Results of one group of input guardrails and the first tripwire, if any."""

    results: list[InputGuardrailResult] = field(default_factory=list)
    tripwire: InputGuardrailResult | None = None

    @property
    def triggered(self) -> bool:
        return self.tripwire is not None


@dataclass(frozen=True)
class OutputGuardrailBatch:
    results: list[OutputGuardrailResult] = field(default_factory=list)
    tripwire: OutputGuardrailResult | None = None

    @property
    def triggered(self) -> bool:
        return self.tripwire is not None


@dataclass(frozen=True)
class ToolGuardrailOutcome:
    """Result of a tool guardrail chain.

    ``behavior`` is the behavior that stopped the chain, or ``ALLOW`` when
    every guardrail allowed. ``decided_by`` names the guardrail that stopped it.
    """

    behavior: ToolGuardrailBehavior = ToolGuardrailBehavior.ALLOW
    results: list[ToolGuardrailResult] = field(default_factory=list)
    replacement: Any = None
    metadata: Any = None
    decided_by: ToolGuardrailResult | None = None

    @property
    def allowed(self) -> bool:
        return self.behavior is ToolGuardrailBehavior.ALLOW


def input_guardrail(
    func: InputGuardrailFunction | None = None,
    *,
    name: str | None = None,
    run_in_parallel: bool = True,
) -> Any:
    """Decorator creating an ``InputGuardrail``."""

    def decorator(target: InputGuardrailFunction) -> InputGuardrail:
        return InputGuardrail(
            guardrail_function=target, name=name or "", run_in_parallel=run_in_parallel
        )

    if func is not None:
        return decorator(func)
    return decorator


def output_guardrail(
    func: OutputGuardrailFunction | None = None, *, name: str | None = None
) -> Any:
    """Decorator creating an ``OutputGuardrail``."""

    def decorator(target: OutputGuardrailFunction) -> OutputGuardrail:
        return OutputGuardrail(guardrail_function=target, name=name or "")

    if func is not None:
        return decorator(func)
    return decorator


def tool_input_guardrail(
    func: ToolGuardrailFunction | None = None, *, name: str | None = None
) -> Any:
    """Decorator creating a ``ToolInputGuardrail``."""

    def decorator(target: ToolGuardrailFunction) -> ToolInputGuardrail:
        return ToolInputGuardrail(guardrail_function=target, name=name or "")

    if func is not None:
        return decorator(func)
    return decorator


def tool_output_guardrail(
    func: ToolGuardrailFunction | None = None, *, name: str | None = None
) -> Any:
    """Decorator creating a ``ToolOutputGuardrail``."""

    def decorator(target: ToolGuardrailFunction) -> ToolOutputGuardrail:
        return ToolOutputGuardrail(guardrail_function=target, name=name or "")

    if func is not None:
        return decorator(func)
    return decorator

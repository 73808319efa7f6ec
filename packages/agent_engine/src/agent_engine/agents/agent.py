"""Immutable agent configuration."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from agent_engine.agents.handoffs import HandoffRegistry
from agent_engine.errors import UserError
from agent_engine.items import HANDOFF_TOOL_PREFIX
from agent_engine.models.model_settings import ModelSettings
from agent_engine.output import AgentOutputSchema
from agent_engine.tools.registry import ToolRegistry

if TYPE_CHECKING:
    from collections.abc import Sequence

    from agent_engine.context import RunContext
    from agent_engine.guardrails.types import (
        InputGuardrail,
        OutputGuardrail,
        ToolInputGuardrail,
        ToolOutputGuardrail,
    )
    from agent_engine.providers.base import Model, ModelTool
    from agent_engine.tools.function_tool import FunctionTool


@dataclass(frozen=True, eq=False)
class Agent:
    """One LLM persona: instructions, model, tools, hand-off targets and guardrails.

    Tool and hand-off registries are built when the agent is created and
    reused by every run. Use ``clone`` to derive a variant.

    Attributes:
        name: Unique within a hand-off graph.
        instructions: System prompt for the model.
        model: Model name or ``Model`` instance; ``None`` uses the run default.
        output_type: ``None``/``str`` for text, or a type pydantic can validate.
        handoff_description: Shown to other agents' models when this agent
            is a hand-off target.
        tool_input_guardrails: Run before each of this agent's tool calls.
        tool_output_guardrails: Run on each of this agent's tool results.
    """

    name: str
    instructions: str = ""
    model: str | Model | None = None
    model_settings: ModelSettings = field(default_factory=ModelSettings)
    output_type: Any = None
    handoff_description: str | None = None
    tools: Sequence[FunctionTool] = ()
    handoffs: Sequence[Agent] = ()
    input_guardrails: Sequence[InputGuardrail] = ()
    output_guardrails: Sequence[OutputGuardrail] = ()
    tool_input_guardrails: Sequence[ToolInputGuardrail] = ()
    tool_output_guardrails: Sequence[ToolOutputGuardrail] = ()

    tool_registry: ToolRegistry = field(init=False, repr=False)
    handoff_registry: HandoffRegistry = field(init=False, repr=False)
    output_schema: AgentOutputSchema = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            msg = "Agent name must be non-empty"
            raise UserError(msg)
        for attr in (
            "tools",
            "handoffs",
            "input_guardrails",
            "output_guardrails",
            "tool_input_guardrails",
            "tool_output_guardrails",
        ):
            object.__setattr__(self, attr, tuple(getattr(self, attr)))

        tools = ToolRegistry(self.tools)
        for tool_name in tools.names():
            if tool_name.startswith(HANDOFF_TOOL_PREFIX):
                msg = f"Tool name {tool_name!r} uses the reserved prefix {HANDOFF_TOOL_PREFIX!r}"
                raise UserError(msg)
        handoffs = HandoffRegistry(self.handoffs)

        object.__setattr__(self, "tool_registry", tools)
        object.__setattr__(self, "handoff_registry", handoffs)
        object.__setattr__(self, "output_schema", AgentOutputSchema(self.output_type))

    def get_tool(self, name: str, context: RunContext[Any] | None = None) -> FunctionTool | None:
        """Look up a tool; disabled tools are treated as missing when a context is given."""
        tool = self.tool_registry.get(name)
        if tool is None or (context is not None and not tool.enabled(context)):
            return None
        return tool

    def model_tools(self, context: RunContext[Any]) -> list[ModelTool]:
        """Enabled tools followed by one synthesized tool per hand-off target."""
        offered = [tool.to_model_tool() for tool in self.tool_registry.enabled(context)]
        return offered + self.handoff_registry.model_tools()

    def clone(self, **changes: Any) -> Agent:
        """Copy this agent with some fields replaced."""
        return dataclasses.replace(self, **changes)

    def __repr__(self) -> str:
        return f"Agent(name={self.name!r})"

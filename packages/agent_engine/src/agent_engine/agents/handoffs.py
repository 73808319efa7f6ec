"""Hand-off tools and target resolution.

Every hand-off target of an agent is offered to the model as a synthesized
tool named ``transfer_to_<target name with spaces as underscores>``. All
hand-off tools share one input shape, ``HandoffInput``. Tool names are
computed once when the agent is built.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ValidationError

from agent_engine.errors import UserError
from agent_engine.items import HANDOFF_TOOL_PREFIX, HandoffOutputItem
from agent_engine.providers.base import ModelTool

if TYPE_CHECKING:
    from collections.abc import Iterable

    from agent_engine.agents.agent import Agent
    from agent_engine.items import HandoffCallItem

logger = logging.getLogger(__name__)


class HandoffInput(BaseModel):
    """Arguments the model may pass when transferring the conversation."""

    reason: str | None = None


def handoff_tool_name(agent_name: str) -> str:
    return HANDOFF_TOOL_PREFIX + agent_name.replace(" ", "_")


def default_handoff_description(agent_name: str) -> str:
    return f"Transfer the conversation to the {agent_name} agent."


@dataclass(frozen=True)
class Handoff:
    """A synthesized transfer tool for one target agent."""

    target: Agent
    tool_name: str
    tool_description: str

    @classmethod
    def for_agent(cls, target: Agent) -> Handoff:
        return cls(
            target=target,
            tool_name=handoff_tool_name(target.name),
            tool_description=target.handoff_description
            or default_handoff_description(target.name),
        )

    def to_model_tool(self) -> ModelTool:
        return ModelTool(
            name=self.tool_name,
            description=self.tool_description,
            parameters=HandoffInput.model_json_schema(),
        )


class HandoffRegistry:
    """Hand-off tools of one agent, indexed by tool name."""

    def __init__(self, targets: Iterable[Agent] = ()) -> None:
        self._handoffs: dict[str, Handoff] = {}
        for target in targets:
            handoff = Handoff.for_agent(target)
            existing = self._handoffs.get(handoff.tool_name)
            if existing is not None:
                msg = (
                    f"Hand-off targets {existing.target.name!r} and {target.name!r} "
                    f"both map to tool name {handoff.tool_name!r}"
                )
                raise UserError(msg)
            self._handoffs[handoff.tool_name] = handoff

    def get(self, tool_name: str) -> Handoff | None:
        return self._handoffs.get(tool_name)

    def names(self) -> list[str]:
        return list(self._handoffs)

    def model_tools(self) -> list[ModelTool]:
        return [handoff.to_model_tool() for handoff in self._handoffs.values()]

    @property
    def targets(self) -> list[Agent]:
        return [handoff.target for handoff in self._handoffs.values()]

    def find_target(self, name: str) -> Agent | None:
        """Find a target by name, treating spaces and underscores as equivalent.

        Tries an exact match, then ``name`` with underscores as spaces, then
        with spaces as underscores.
        """
        candidates = (name, name.replace("_", " "), name.replace(" ", "_"))
        for candidate in candidates:
            for target in self.targets:
                if target.name == candidate:
                    return target
        return None

    def __contains__(self, tool_name: object) -> bool:
        return tool_name in self._handoffs

    def __len__(self) -> int:
        return len(self._handoffs)


@dataclass(frozen=True)
class HandoffResolution:
    """Outcome of resolving one hand-off call.

    ``target`` is None when resolution failed; ``output.error`` then says why.
    """

    output: HandoffOutputItem
    target: Agent | None = None
    reason: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.target is not None

    def acknowledgement(self) -> dict[str, Any]:
        """Tool result shown to the model for the hand-off call."""
        if self.target is None:
            return {"error": self.output.error}
        return {"assistant": self.target.name}


def _parse_reason(arguments: str) -> str | None:
    if not arguments.strip():
        return None
    try:
        return HandoffInput.model_validate(json.loads(arguments)).reason
    except (json.JSONDecodeError, ValidationError):
        logger.debug("Ignoring malformed hand-off arguments: %r", arguments)
        return None


def resolve_handoff(call: HandoffCallItem, source: Agent) -> HandoffResolution:
    """Match a hand-off call to one of ``source``'s targets.

    Failures are returned as an error ``HandoffOutputItem``; they never raise.
    """
    target_name = call.target_name
    if not target_name:
        error = "Invalid handoff: could not extract target agent name"
        return HandoffResolution(
            output=HandoffOutputItem(call_id=call.call_id, source_agent=source.name, error=error)
        )

    target = source.handoff_registry.find_target(target_name)
    if target is None:
        logger.debug("Hand-off target %s not configured on %s", target_name, source.name)
        return HandoffResolution(
            output=HandoffOutputItem(
                call_id=call.call_id,
                source_agent=source.name,
                error=f"Agent not found: {target_name}",
            )
        )

    logger.debug("Resolved hand-off %s -> %s", source.name, target.name)
    return HandoffResolution(
        output=HandoffOutputItem(
            call_id=call.call_id, source_agent=source.name, target_agent=target.name
        ),
        target=target,
        reason=_parse_reason(call.tool_call.arguments),
    )

"""Lifecycle events emitted by the run driver.

Listeners subscribe per event type through ``HookRegistry.add_callback``.
Most events are read-only notifications; ``BeforeToolCallEvent`` and
``ToolApprovalRequestEvent`` accept a decision from their listeners.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from agent_engine.agents.agent import Agent
    from agent_engine.context import RunContext
    from agent_engine.items import RunItem, ToolApprovalItem, ToolCallItem, ToolCallOutputItem
    from agent_engine.providers.base import ModelRequest, ModelResponse
    from agent_engine.runner import RunResult


@dataclass
class HookEvent:
    """Base class for lifecycle events."""

    agent: Agent
    context: RunContext[Any]


@dataclass
class RunStartEvent(HookEvent):
    input: list[RunItem] = field(default_factory=list)


@dataclass
class AgentStartEvent(HookEvent):
    """An agent becomes active (run start or after a hand-off)."""

    turn: int = 0


@dataclass
class BeforeModelCallEvent(HookEvent):
    request: ModelRequest | None = None
    turn: int = 0


@dataclass
class AfterModelCallEvent(HookEvent):
    response: ModelResponse | None = None
    turn: int = 0


@dataclass
class BeforeToolCallEvent(HookEvent):
    """A tool is about to run. Set ``cancel_tool`` to a message to skip it."""

    tool_call: ToolCallItem | None = None
    cancel_tool: str | None = None


@dataclass
class AfterToolCallEvent(HookEvent):
    tool_call: ToolCallItem | None = None
    result: ToolCallOutputItem | None = None


@dataclass
class HandoffEvent(HookEvent):
    """Control moved from ``agent`` to ``target``."""

    target: Agent | None = None
    reason: str | None = None


@dataclass
class ToolApprovalRequestEvent(HookEvent):
    """A tool call needs a decision that the approval ledger does not hold."""

    item: ToolApprovalItem | None = None

    def approve(self, *, always: bool = False) -> None:
        """Approve this call, or every call to the tool when ``always`` is set."""
        if self.item is not None:
            self.context.approve_tool(self.item, always_approve=always)

    def reject(self, *, always: bool = False) -> None:
        """Reject this call, or every call to the tool when ``always`` is set."""
        if self.item is not None:
            self.context.reject_tool(self.item, always_reject=always)


@dataclass
class ItemGeneratedEvent(HookEvent):
    item: RunItem | None = None
    turn: int = 0


@dataclass
class RunEndEvent(HookEvent):
    """The run finished; exactly one of ``result`` and ``error`` is set."""

    result: RunResult | None = None
    error: BaseException | None = None

"""Tool approval workflow hook.

Provides ToolApprovalHook for deciding approval requests with a callable,
for example a console prompt or a UI round-trip.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from agent_engine.hooks.events import ToolApprovalRequestEvent

if TYPE_CHECKING:
    from agent_engine.hooks.registry import HookRegistry
    from agent_engine.items import ToolApprovalItem

ApprovalDecider = Callable[["ToolApprovalItem"], str | None | Awaitable[str | None]]

_APPROVE = {"y", "yes", "allow"}
_ALWAYS = {"always", "a"}
_REJECT = {"n", "no", "deny"}
_NEVER = {"never"}


class ToolApprovalHook:
    """Ask ``decide`` about approval requests for the listed tools.

    ``decide`` returns ``"yes"``/``"allow"`` (this call), ``"always"`` (every
    call to the tool), ``"no"``/``"deny"`` (this call), ``"never"`` (every
    call), or ``None`` to leave the call undecided.
    """

    def __init__(self, tools: list[str], decide: ApprovalDecider) -> None:
        self._tools = set(tools)
        self._decide = decide

    def register_hooks(self, registry: HookRegistry, **_kwargs: Any) -> None:
        registry.add_callback(ToolApprovalRequestEvent, self.approve)

    async def approve(self, event: ToolApprovalRequestEvent) -> None:
        """Record the decision for configured tools in the approval ledger."""
        item = event.item
        if item is None or item.tool_name not in self._tools:
            return
        answer = self._decide(item)
        if inspect.isawaitable(answer):
            answer = await answer
        if answer is None:
            return
        normalized = answer.strip().lower()
        if normalized in _APPROVE:
            event.approve()
        elif normalized in _ALWAYS:
            event.approve(always=True)
        elif normalized in _NEVER:
            event.reject(always=True)
        elif normalized in _REJECT:
            event.reject()

"""Execution context shared with every tool invocation of a run."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from agent_engine.approvals import ApprovalLedger, ApprovalRecord, ApprovalStatus
from agent_engine.usage import Usage

if TYPE_CHECKING:
    from agent_engine.items import ToolApprovalItem

TContext = TypeVar("TContext")


class RunContext(Generic[TContext]):
    """Caller payload, accumulated usage and approval ledger for one run."""

    def __init__(self, context: TContext | None = None) -> None:
        self.context = context
        self._usage = Usage.empty()
        self._usage_lock = threading.Lock()
        self.approvals = ApprovalLedger()

    @property
    def usage(self) -> Usage:
        """Usage accumulated so far."""
        return self._usage

    def add_usage(self, usage: Usage | None) -> None:
        """Merge a usage delta into the running total."""
        if usage is None:
            return
        with self._usage_lock:
            self._usage = self._usage.add(usage)

    def fork(self) -> RunContext[TContext]:
        """Context for another run: same payload and approval ledger, zero usage."""
        forked: RunContext[TContext] = RunContext(self.context)
        forked.approvals = self.approvals
        return forked

    def is_tool_approved(self, tool_name: str, call_id: str | None) -> bool | None:
        """Three-valued approval lookup; None means undecided."""
        return self.approvals.is_approved(tool_name, call_id)

    def approval_status(self, tool_name: str, call_id: str | None) -> ApprovalStatus:
        return self.approvals.status(tool_name, call_id)

    def approve_tool(self, item: ToolApprovalItem, *, always_approve: bool = False) -> None:
        """Approve the call behind an approval request item."""
        self.approvals.approve(item.tool_name, item.call_id, permanent=always_approve)

    def reject_tool(self, item: ToolApprovalItem, *, always_reject: bool = False) -> None:
        """Reject the call behind an approval request item."""
        self.approvals.reject(item.tool_name, item.call_id, permanent=always_reject)

    def rebuild_approvals(self, records: dict[str, ApprovalRecord] | None) -> None:
        self.approvals.rebuild(records)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dict (caller payload is passed through)."""
        return {
            "context": self.context,
            "usage": self._usage.to_dict(),
            "approvals": self.approvals.to_dict(),
        }

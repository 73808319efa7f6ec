"""Per-tool approval ledger.

Each tool name maps to an ``ApprovalRecord``. A side of the record is either
``True`` (every call, permanent) or a set of tool-call ids (per call).
Lookups are three-valued: approved, rejected, or undecided.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class ApprovalStatus(StrEnum):
    """Result of an approval lookup."""

    APPROVED = "approved"
    REJECTED = "rejected"
    UNDECIDED = "undecided"


@dataclass
class ApprovalRecord:
    """Approval state for a single tool name."""

    approved: bool | set[str] = field(default_factory=set)
    rejected: bool | set[str] = field(default_factory=set)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dict."""
        return {
            "approved": _serialize_side(self.approved),
            "rejected": _serialize_side(self.rejected),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ApprovalRecord:
        """Rebuild a record from ``to_dict`` output."""
        approved = data.get("approved", [])
        rejected = data.get("rejected", [])
        return cls(
            approved=approved if isinstance(approved, bool) else set(approved),
            rejected=rejected if isinstance(rejected, bool) else set(rejected),
        )


class ApprovalLedger:
    """Thread-safe record of approval decisions for one run."""

    def __init__(self) -> None:
        self._records: dict[str, ApprovalRecord] = {}
        self._lock = threading.Lock()

    def status(self, tool_name: str, call_id: str | None) -> ApprovalStatus:
        """Look up the approval state of one tool call."""
        with self._lock:
            record = self._records.get(tool_name)
            if record is None:
                return ApprovalStatus.UNDECIDED
            if record.approved is True:
                return ApprovalStatus.APPROVED
            if record.rejected is True:
                return ApprovalStatus.REJECTED
            if isinstance(record.approved, set) and call_id in record.approved:
                return ApprovalStatus.APPROVED
            if isinstance(record.rejected, set) and call_id in record.rejected:
                return ApprovalStatus.REJECTED
            return ApprovalStatus.UNDECIDED

    def is_approved(self, tool_name: str, call_id: str | None) -> bool | None:
        """Return True, False, or None (undecided) for a tool call."""
        status = self.status(tool_name, call_id)
        if status is ApprovalStatus.UNDECIDED:
            return None
        return status is ApprovalStatus.APPROVED

    def approve(
        self, tool_name: str, call_id: str | None = None, *, permanent: bool = False
    ) -> None:
        """Approve one call, or every call of ``tool_name`` when ``permanent``."""
        if permanent:
            with self._lock:
                self._records[tool_name] = ApprovalRecord(approved=True, rejected=set())
            return
        if call_id is None:
            msg = "call_id is required for a per-call approval"
            raise ValueError(msg)
        with self._lock:
            record = self._records.setdefault(tool_name, ApprovalRecord())
            if isinstance(record.approved, set):
                record.approved.add(call_id)

    def reject(
        self, tool_name: str, call_id: str | None = None, *, permanent: bool = False
    ) -> None:
        """Reject one call, or every call of ``tool_name`` when ``permanent``."""
        if permanent:
            with self._lock:
                self._records[tool_name] = ApprovalRecord(approved=False, rejected=True)
            return
        if call_id is None:
            msg = "call_id is required for a per-call rejection"
            raise ValueError(msg)
        with self._lock:
            record = self._records.setdefault(tool_name, ApprovalRecord())
            if isinstance(record.rejected, set):
                record.rejected.add(call_id)

    def snapshot(self) -> dict[str, ApprovalRecord]:
        """Return a copy of the current records."""
        with self._lock:
            return {
                name: ApprovalRecord(
                    approved=_copy_side(record.approved), rejected=_copy_side(record.rejected)
                )
                for name, record in self._records.items()
            }

    def rebuild(self, records: dict[str, ApprovalRecord] | None) -> None:
        """Replace all records, e.g. when resuming from serialized state."""
        with self._lock:
            self._records.clear()
            if records:
                self._records.update(records)

    def to_dict(self) -> dict[str, dict[str, Any]]:
        """Convert to a JSON-compatible dict."""
        return {name: record.to_dict() for name, record in self.snapshot().items()}


def _copy_side(side: bool | set[str]) -> bool | set[str]:
    return side if isinstance(side, bool) else set(side)


def _serialize_side(side: bool | set[str]) -> bool | list[str]:
    return side if isinstance(side, bool) else sorted(side)

"""Conversation history storage used across runs."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from agent_engine.items import RunItem


@runtime_checkable
class Session(Protocol):
    """Storage for one conversation's items.

    The run driver calls ``get_items`` once before a run and ``add_items``
    once after a successful run. Failures propagate to the caller unchanged.
    """

    session_id: str

    async def get_items(self, limit: int | None = None) -> list[RunItem]:
        """Return stored items, or only the latest ``limit`` of them."""
        ...

    async def add_items(self, items: list[RunItem]) -> None: ...

    async def pop_item(self) -> RunItem | None:
        """Remove and return the latest item."""
        ...

    async def clear_session(self) -> None: ...


def tail(items: list[RunItem], limit: int | None) -> list[RunItem]:
    """Latest ``limit`` items (all when ``limit`` is None)."""
    if limit is None:
        return list(items)
    if limit <= 0:
        return []
    return list(items[-limit:])

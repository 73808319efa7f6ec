"""In-process session storage."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from agent_engine.sessions.base import tail

if TYPE_CHECKING:
    from agent_engine.items import RunItem


class MemorySession:
    """Keeps items in a list; lost when the process exits."""

    def __init__(self, session_id: str = "default", items: list[RunItem] | None = None) -> None:
        self.session_id = session_id
        self._items: list[RunItem] = list(items or [])
        self._lock = asyncio.Lock()

    async def get_items(self, limit: int | None = None) -> list[RunItem]:
        async with self._lock:
            return tail(self._items, limit)

    async def add_items(self, items: list[RunItem]) -> None:
        async with self._lock:
            self._items.extend(items)

    async def pop_item(self) -> RunItem | None:
        async with self._lock:
            return self._items.pop() if self._items else None

    async def clear_session(self) -> None:
        async with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

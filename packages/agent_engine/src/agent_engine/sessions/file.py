"""JSONL file session storage.

Layout: one file per session id. The first line is a header, every further
line one serialized item.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from agent_engine.items import item_from_dict, item_to_dict
from agent_engine.sessions.base import tail

if TYPE_CHECKING:
    from agent_engine.items import RunItem

logger = logging.getLogger(__name__)

SESSION_FILE_VERSION = 1
INVALID_SESSION_ID = "Session id must be a plain file name"


def _utc_timestamp() -> str:
    return datetime.now(UTC).isoformat()


class FileSession:
    """Session persisted to ``<directory>/<session_id>.jsonl``.

    File I/O runs in a worker thread; an ``asyncio.Lock`` serializes access
    from one event loop.
    """

    def __init__(self, session_id: str, directory: str | Path) -> None:
        if not session_id or Path(session_id).name != session_id:
            raise ValueError(INVALID_SESSION_ID)
        self.session_id = session_id
        self._path = Path(directory) / f"{session_id}.jsonl"
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        """Return the backing JSONL path."""
        return self._path

    def _header(self) -> dict[str, Any]:
        return {
            "type": "session",
            "version": SESSION_FILE_VERSION,
            "id": self.session_id,
            "timestamp": _utc_timestamp(),
        }

    def _read(self) -> list[RunItem]:
        if not self._path.exists():
            return []
        lines = self._path.read_text(encoding="utf-8").splitlines()
        items: list[RunItem] = []
        for line in lines[1:]:
            if not line.strip():
                continue
            items.append(item_from_dict(json.loads(line)))
        return items

    def _write(self, items: list[RunItem]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        lines = [json.dumps(self._header())]
        lines.extend(json.dumps(item_to_dict(item)) for item in items)
        self._path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    def _append(self, items: list[RunItem]) -> None:
        if not self._path.exists():
            self._write(items)
            return
        with self._path.open("a", encoding="utf-8") as handle:
            for item in items:
                handle.write(json.dumps(item_to_dict(item)) + "\n")

    async def get_items(self, limit: int | None = None) -> list[RunItem]:
        async with self._lock:
            items = await asyncio.to_thread(self._read)
        return tail(items, limit)

    async def add_items(self, items: list[RunItem]) -> None:
        if not items:
            return
        async with self._lock:
            await asyncio.to_thread(self._append, list(items))
        logger.debug("Appended %d items to session %s", len(items), self.session_id)

    async def pop_item(self) -> RunItem | None:
        async with self._lock:
            items = await asyncio.to_thread(self._read)
            if not items:
                return None
            last = items.pop()
            await asyncio.to_thread(self._write, items)
        return last

    async def clear_session(self) -> None:
        async with self._lock:
            await asyncio.to_thread(self._write, [])

"""Streaming run results.

``Runner.run_streamed`` drives the run in a background task and publishes
``RunStreamEvent`` values into a queue read by ``StreamedRunResult``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from agent_engine.agents.agent import Agent
    from agent_engine.items import RunItem
    from agent_engine.runner import RunResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunItemStreamEvent:
    """An item was appended to the run's log during ``turn``."""

    item: RunItem
    turn: int
    agent_name: str
    type: Literal["run_item"] = field(default="run_item", init=False)


@dataclass(frozen=True)
class AgentUpdatedStreamEvent:
    """A hand-off made ``agent`` the active agent."""

    agent: Agent
    type: Literal["agent_updated"] = field(default="agent_updated", init=False)


RunStreamEvent = RunItemStreamEvent | AgentUpdatedStreamEvent

_DONE = object()


class StreamedRunResult:
    """Handle to a run executing in the background."""

    def __init__(self, starting_agent: Agent) -> None:
        self.current_agent = starting_agent
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._task: asyncio.Task[RunResult] | None = None

    def publish(self, event: RunStreamEvent) -> None:
        if isinstance(event, AgentUpdatedStreamEvent):
            self.current_agent = event.agent
        self._queue.put_nowait(event)

    def attach(self, task: asyncio.Task[RunResult]) -> None:
        self._task = task
        task.add_done_callback(lambda _task: self._queue.put_nowait(_DONE))

    @property
    def is_complete(self) -> bool:
        return self._task is not None and self._task.done()

    async def stream_events(self) -> AsyncIterator[RunStreamEvent]:
        """Yield events until the run ends; a terminal run error is re-raised."""
        while True:
            event = await self._queue.get()
            if event is _DONE:
                break
            yield event
        if self._task is not None:
            error = None if self._task.cancelled() else self._task.exception()
            if error is not None:
                raise error

    async def final_result(self) -> RunResult:
        """Wait for the run and return its result, or raise its terminal error."""
        if self._task is None:
            msg = "Streamed run has not been started"
            raise RuntimeError(msg)
        return await self._task

    def cancel(self) -> None:
        """Cancel the background run task."""
        if self._task is not None and not self._task.done():
            logger.info("Cancelling streamed run of %s", self.current_agent.name)
            self._task.cancel()

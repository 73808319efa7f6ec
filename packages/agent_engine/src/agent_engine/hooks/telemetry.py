"""Per-run record of tool calls, collected through lifecycle events."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from agent_engine.hooks.events import AfterToolCallEvent, BeforeToolCallEvent, RunStartEvent

if TYPE_CHECKING:
    from agent_engine.hooks.registry import HookRegistry

TOOLS_DISABLED_MESSAGE = "Tool calls are disabled for this run."


@dataclass
class ToolCallRecord:
    call_id: str
    tool_name: str
    agent_name: str
    arguments: dict[str, Any]
    error: str | None = None
    finished: bool = False


@dataclass
class ToolTelemetry:
    """Tool calls seen during the latest run.

    ``tools_blocked`` makes the hook cancel every call before it runs.
    """

    records: list[ToolCallRecord] = field(default_factory=list)
    tools_blocked: bool = False

    @property
    def tool_names(self) -> list[str]:
        return [record.tool_name for record in self.records]

    @property
    def failed_calls(self) -> list[str]:
        return [record.call_id for record in self.records if record.error is not None]

    def find(self, call_id: str) -> ToolCallRecord | None:
        return next((record for record in self.records if record.call_id == call_id), None)


def _decode_arguments(raw: str) -> dict[str, Any]:
    try:
        decoded = json.loads(raw or "{}")
    except json.JSONDecodeError:
        return {"raw": raw}
    return decoded if isinstance(decoded, dict) else {"value": decoded}


class ToolTelemetryHook:
    """Fills a ``ToolTelemetry`` from tool call events."""

    def __init__(self, telemetry: ToolTelemetry) -> None:
        self.telemetry = telemetry

    def register_hooks(self, registry: HookRegistry, **_kwargs: Any) -> None:
        registry.add_callback(RunStartEvent, self._on_run_start)
        registry.add_callback(BeforeToolCallEvent, self._on_before_tool)
        registry.add_callback(AfterToolCallEvent, self._on_after_tool)

    def _on_run_start(self, _event: RunStartEvent) -> None:
        self.telemetry.records.clear()

    def _on_before_tool(self, event: BeforeToolCallEvent) -> None:
        call = event.tool_call
        if call is None:
            return
        if self.telemetry.tools_blocked:
            event.cancel_tool = TOOLS_DISABLED_MESSAGE
            return
        self.telemetry.records.append(
            ToolCallRecord(
                call_id=call.call_id,
                tool_name=call.name,
                agent_name=event.agent.name,
                arguments=_decode_arguments(call.arguments),
            )
        )

    def _on_after_tool(self, event: AfterToolCallEvent) -> None:
        if event.tool_call is None or event.result is None:
            return
        record = self.telemetry.find(event.tool_call.call_id)
        if record is None:
            # Calls that never reached the tool: approval, guardrails, hook cancellation.
            return
        record.finished = True
        record.error = event.result.error

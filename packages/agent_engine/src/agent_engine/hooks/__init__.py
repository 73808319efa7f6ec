"""Lifecycle hooks: event types, listener registry and bundled providers."""

from agent_engine.hooks.approval import ToolApprovalHook
from agent_engine.hooks.events import (
    AfterModelCallEvent,
    AfterToolCallEvent,
    AgentStartEvent,
    BeforeModelCallEvent,
    BeforeToolCallEvent,
    HandoffEvent,
    HookEvent,
    ItemGeneratedEvent,
    RunEndEvent,
    RunStartEvent,
    ToolApprovalRequestEvent,
)
from agent_engine.hooks.registry import HookProvider, HookRegistry
from agent_engine.hooks.telemetry import ToolCallRecord, ToolTelemetry, ToolTelemetryHook

__all__ = [
    "AfterModelCallEvent",
    "AfterToolCallEvent",
    "AgentStartEvent",
    "BeforeModelCallEvent",
    "BeforeToolCallEvent",
    "HandoffEvent",
    "HookEvent",
    "HookProvider",
    "HookRegistry",
    "ItemGeneratedEvent",
    "RunEndEvent",
    "RunStartEvent",
    "ToolApprovalHook",
    "ToolApprovalRequestEvent",
    "ToolCallRecord",
    "ToolTelemetry",
    "ToolTelemetryHook",
]

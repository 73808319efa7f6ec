"""Telemetry for agent runs: OpenTelemetry spans and log correlation."""

from agent_engine.telemetry.logging_utils import TraceContextFilter, install_trace_log_filter
from agent_engine.telemetry.spans import (
    AGENT_SPAN,
    GUARDRAIL_SPAN,
    HANDOFF_SPAN,
    MODEL_CALL_SPAN,
    RUN_SPAN,
    TOOL_CALL_SPAN,
    TRACER_NAME,
    get_current_trace_id,
    get_tracer,
    mark_error,
    set_payload,
    start_span,
)

__all__ = [
    "AGENT_SPAN",
    "GUARDRAIL_SPAN",
    "HANDOFF_SPAN",
    "MODEL_CALL_SPAN",
    "RUN_SPAN",
    "TOOL_CALL_SPAN",
    "TRACER_NAME",
    "TraceContextFilter",
    "get_current_trace_id",
    "get_tracer",
    "install_trace_log_filter",
    "mark_error",
    "set_payload",
    "start_span",
]

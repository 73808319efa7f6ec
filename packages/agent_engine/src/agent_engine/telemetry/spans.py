"""OpenTelemetry spans for agent runs.

Only the OpenTelemetry API is used. Without an SDK and exporter configured by
the application, every span is a no-op.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from opentelemetry import trace as otel_trace
from opentelemetry.trace import Status, StatusCode, format_trace_id

if TYPE_CHECKING:
    from collections.abc import Iterator

    from opentelemetry.trace import Span

logger = logging.getLogger(__name__)

TRACER_NAME = "agent_engine"

RUN_SPAN = "agent_run"
AGENT_SPAN = "agent"
MODEL_CALL_SPAN = "model_call"
TOOL_CALL_SPAN = "tool_call"
HANDOFF_SPAN = "handoff"
GUARDRAIL_SPAN = "guardrail"


def get_tracer() -> otel_trace.Tracer:
    return otel_trace.get_tracer(TRACER_NAME)


def get_current_trace_id() -> str | None:
    """Get the current OpenTelemetry trace ID if available."""
    span = otel_trace.get_current_span()
    ctx = span.get_span_context()
    if ctx.trace_id == 0:
        return None
    return format_trace_id(ctx.trace_id)


def to_attribute(value: Any) -> str | bool | int | float:
    """Coerce a payload into a span attribute value."""
    if isinstance(value, str | bool | int | float):
        return value
    if hasattr(value, "model_dump_json"):
        return value.model_dump_json()
    try:
        return json.dumps(value, default=str)
    except (TypeError, ValueError):
        return str(value)


@contextmanager
def start_span(name: str, attributes: dict[str, Any] | None = None) -> Iterator[Span]:
    """Open a span as the current span; errors mark it failed and propagate.

    ``None`` attribute values are dropped.
    """
    tracer = get_tracer()
    clean = {
        key: to_attribute(value) for key, value in (attributes or {}).items() if value is not None
    }
    with tracer.start_as_current_span(
        name, attributes=clean, record_exception=False, set_status_on_exception=False
    ) as span:
        try:
            yield span
        except BaseException as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            if isinstance(e, Exception):
                span.record_exception(e)
            raise


def mark_error(span: Span, message: str) -> None:
    """Flag a span as failed without an exception (recovered errors)."""
    span.set_status(Status(StatusCode.ERROR, message))


def set_payload(span: Span, key: str, value: Any, *, include_sensitive_data: bool) -> None:
    """Attach an input/output payload when sensitive data may be traced."""
    if not include_sensitive_data or value is None:
        return
    span.set_attribute(key, to_attribute(value))

"""Pydantic models for engine settings."""

from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel

DEFAULT_MODEL = "gpt-4.1"
DEFAULT_MAX_TURNS = 10
DEFAULT_MODEL_TIMEOUT = 60.0


class Settings(BaseModel, frozen=True):
    """Runtime defaults loaded from environment variables."""

    default_model: str = DEFAULT_MODEL
    max_turns: int = DEFAULT_MAX_TURNS
    model_timeout: float = DEFAULT_MODEL_TIMEOUT
    run_timeout: float | None = None
    session_history_limit: int | None = None
    trace_include_sensitive_data: bool = True
    parallel_tool_calls: bool = True
    preserve_tool_call_order: bool = False


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_optional_float(name: str) -> float | None:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    value = float(raw)
    if value <= 0:
        msg = f"{name} must be a positive number of seconds, got {raw!r}"
        raise ValueError(msg)
    return value


def _parse_optional_int(name: str) -> int | None:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    return int(raw)


def load_settings() -> Settings:
    """Load settings from environment variables with defaults."""
    load_dotenv()

    max_turns = int(os.getenv("AGENT_ENGINE_MAX_TURNS", str(DEFAULT_MAX_TURNS)))
    if max_turns < 1:
        msg = f"AGENT_ENGINE_MAX_TURNS must be at least 1, got {max_turns}"
        raise ValueError(msg)

    model_timeout = _parse_optional_float("AGENT_ENGINE_MODEL_TIMEOUT")

    return Settings(
        default_model=os.getenv("AGENT_ENGINE_DEFAULT_MODEL", DEFAULT_MODEL) or DEFAULT_MODEL,
        max_turns=max_turns,
        model_timeout=model_timeout if model_timeout is not None else DEFAULT_MODEL_TIMEOUT,
        run_timeout=_parse_optional_float("AGENT_ENGINE_RUN_TIMEOUT"),
        session_history_limit=_parse_optional_int("AGENT_ENGINE_SESSION_HISTORY_LIMIT"),
        trace_include_sensitive_data=_parse_bool(
            os.getenv("AGENT_ENGINE_TRACE_SENSITIVE_DATA", "true")
        ),
        parallel_tool_calls=_parse_bool(os.getenv("AGENT_ENGINE_PARALLEL_TOOL_CALLS", "true")),
        preserve_tool_call_order=_parse_bool(
            os.getenv("AGENT_ENGINE_PRESERVE_TOOL_ORDER", "false")
        ),
    )

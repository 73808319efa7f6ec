"""Per-run configuration and cancellation."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from agent_engine.errors import UserError
from agent_engine.models.settings import DEFAULT_MAX_TURNS, DEFAULT_MODEL_TIMEOUT

if TYPE_CHECKING:
    from collections.abc import Sequence

    from agent_engine.hooks.registry import HookProvider
    from agent_engine.models.model_settings import ModelSettings
    from agent_engine.models.settings import Settings
    from agent_engine.providers.base import Model, ModelProvider
    from agent_engine.sessions.base import Session

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cooperative cancellation for a run.

    Checked before every turn and raced against the in-flight model call.
    Running tool invocations are not interrupted. ``cancel`` must be called
    from the event loop running the run (use ``loop.call_soon_threadsafe``
    from other threads).
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    def cancel(self, reason: str | None = None) -> None:
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


@dataclass(frozen=True)
class RunConfig:
    """Parameters of one run; read-only while the run executes.

    Attributes:
        model: Overrides every agent's model; a name or a ``Model`` instance.
        default_model: Used for agents that do not name a model.
        model_provider: Resolves model names. Required unless models are
            given as ``Model`` instances.
        model_settings: Overrides non-None fields of each agent's settings.
        max_turns: Turn budget; ``MaxTurnsExceeded`` when it runs out.
        model_timeout: Seconds allowed for each model call (None disables).
        run_timeout: Seconds allowed for the whole turn loop (None disables).
        session: Conversation history loaded before and saved after the run.
        session_history_limit: Load only the latest N session items.
        context: Caller payload, or a ``RunContext`` whose payload and approval
            ledger the run shares (for example to carry approval decisions into a
            follow-up run). Usage is always counted per run.
        hooks: Hook providers registered for this run.
        preserve_tool_call_order: Append tool results in call order instead
            of completion order.
        escalate_tool_guardrail_tripwires: Make a tool guardrail ``raise`` a
            terminal error instead of that call's error result.
    """

    model: str | Model | None = None
    default_model: str | None = None
    model_provider: ModelProvider | None = None
    model_settings: ModelSettings | None = None
    max_turns: int = DEFAULT_MAX_TURNS
    model_timeout: float | None = DEFAULT_MODEL_TIMEOUT
    run_timeout: float | None = None
    session: Session | None = None
    session_history_limit: int | None = None
    context: Any = None
    hooks: Sequence[HookProvider] = ()
    cancel_token: CancellationToken | None = None
    trace_include_sensitive_data: bool = True
    parallel_tool_calls: bool = True
    preserve_tool_call_order: bool = False
    escalate_tool_guardrail_tripwires: bool = True
    workflow_name: str = "Agent workflow"

    def __post_init__(self) -> None:
        if self.max_turns < 1:
            msg = f"max_turns must be at least 1, got {self.max_turns}"
            raise UserError(msg)
        for name in ("model_timeout", "run_timeout"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                msg = f"{name} must be positive, got {value}"
                raise UserError(msg)
        object.__setattr__(self, "hooks", tuple(self.hooks))

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> RunConfig:
        """Build a config from environment settings; keyword overrides win."""
        values: dict[str, Any] = {
            "default_model": settings.default_model,
            "max_turns": settings.max_turns,
            "model_timeout": settings.model_timeout,
            "run_timeout": settings.run_timeout,
            "session_history_limit": settings.session_history_limit,
            "trace_include_sensitive_data": settings.trace_include_sensitive_data,
            "parallel_tool_calls": settings.parallel_tool_calls,
            "preserve_tool_call_order": settings.preserve_tool_call_order,
        }
        values.update(overrides)
        return cls(**values)

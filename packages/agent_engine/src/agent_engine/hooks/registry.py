"""Listener registration for lifecycle events."""

from __future__ import annotations

import inspect
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Protocol, TypeVar, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable

    from agent_engine.hooks.events import HookEvent

logger = logging.getLogger(__name__)

TEvent = TypeVar("TEvent", bound="HookEvent")
HookCallback = Callable[[TEvent], None | Awaitable[None]]


@runtime_checkable
class HookProvider(Protocol):
    """Groups related callbacks and registers them in one call."""

    def register_hooks(self, registry: HookRegistry, **kwargs: Any) -> None: ...


class HookRegistry:
    """Callbacks per event type, invoked in registration order."""

    def __init__(self) -> None:
        self._callbacks: dict[type[HookEvent], list[HookCallback[Any]]] = defaultdict(list)

    @classmethod
    def from_providers(cls, providers: Iterable[HookProvider]) -> HookRegistry:
        registry = cls()
        for provider in providers:
            registry.add_hook(provider)
        return registry

    def add_callback(self, event_type: type[TEvent], callback: HookCallback[TEvent]) -> None:
        """Subscribe ``callback`` (sync or async) to ``event_type``."""
        self._callbacks[event_type].append(callback)

    def add_hook(self, provider: HookProvider) -> None:
        provider.register_hooks(self)

    def has_callbacks(self, event_type: type[HookEvent]) -> bool:
        return any(
            issubclass(event_type, registered) and callbacks
            for registered, callbacks in self._callbacks.items()
        )

    async def invoke(self, event: TEvent) -> TEvent:
        """Deliver ``event`` to its listeners and return it.

        Listeners of a base event class also receive subclass events.
        Listener errors propagate.
        """
        for registered, callbacks in list(self._callbacks.items()):
            if not isinstance(event, registered):
                continue
            for callback in list(callbacks):
                outcome = callback(event)
                if inspect.isawaitable(outcome):
                    await outcome
        return event

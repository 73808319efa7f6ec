"""Model provider registry for multi-model support."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable

from agent_engine.errors import UserError
from agent_engine.providers.base import Model, ModelProvider

logger = logging.getLogger(__name__)

ModelFactory = Callable[[], Model | Awaitable[Model]]


class ModelProviderRegistry(ModelProvider):
    """Registry of named models.

    Entries are either ready ``Model`` instances or zero-argument factories
    (sync or async). A factory is called once; its model is cached for later
    lookups.
    """

    def __init__(self, default: str | None = None) -> None:
        """Initialize empty registry."""
        self._factories: dict[str, ModelFactory] = {}
        self._models: dict[str, Model] = {}
        self._default = default

    def register(self, name: str, model: Model | ModelFactory, *, default: bool = False) -> None:
        """Register a model or model factory under ``name``."""
        if not name.strip():
            msg = "Model name must be non-empty"
            raise ValueError(msg)
        if isinstance(model, Model):
            self._models[name] = model
        else:
            self._factories[name] = model
        if default or self._default is None:
            self._default = name
        logger.debug("Registered model: %s", name)

    def list_models(self) -> list[str]:
        """List all registered model names."""
        return sorted({*self._models, *self._factories})

    def get_default(self) -> str | None:
        return self._default

    async def get_model(self, name: str | None) -> Model:
        """Resolve ``name`` (or the default) to a ``Model``."""
        resolved = name or self._default
        if resolved is None:
            msg = "No model name given and no default model registered"
            raise UserError(msg)
        cached = self._models.get(resolved)
        if cached is not None:
            return cached
        factory = self._factories.get(resolved)
        if factory is None:
            msg = f"Unknown model: {resolved}. Available: {self.list_models()}"
            raise UserError(msg)
        model = factory()
        if inspect.isawaitable(model):
            model = await model
        self._models[resolved] = model
        return model

"""Interfaces for the language-model collaborator.

The engine never talks to a provider directly. It builds a ``ModelRequest``,
hands it to a ``Model`` obtained from a ``ModelProvider``, and interprets the
``ModelResponse``. Wire formats, HTTP clients and retries live behind these
interfaces.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from agent_engine.items import RunItem
    from agent_engine.models.model_settings import ModelSettings
    from agent_engine.usage import Usage

JSONSchema = dict[str, Any]


@dataclass(frozen=True)
class ModelTool:
    """Tool descriptor offered to the model."""

    name: str
    description: str
    parameters: JSONSchema
    strict: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
            "strict": self.strict,
        }


@dataclass(frozen=True)
class ModelRequest:
    """Everything the model needs for one turn."""

    input: list[RunItem]
    instructions: str
    model: str
    settings: ModelSettings | None = None
    output_schema: JSONSchema | None = None
    tools: list[ModelTool] = field(default_factory=list)


@dataclass(frozen=True)
class ModelResponse:
    """One model reply.

    ``output`` holds provider-neutral entries: ``RunItem`` instances, plain
    strings (assistant text), or dicts tagged with ``type`` (``"message"``,
    ``"function_call"``, ``"reasoning"``). See ``agent_engine.response_parser``.
    """

    output: list[Any]
    usage: Usage | None = None
    response_id: str | None = None
    provider_data: dict[str, Any] = field(default_factory=dict)


class Model(ABC):
    """A model that can answer a ``ModelRequest``."""

    @abstractmethod
    async def get_response(self, request: ModelRequest) -> ModelResponse:
        """Return the model's reply to ``request``."""


class ModelProvider(ABC):
    """Resolve model names to ``Model`` instances."""

    @abstractmethod
    async def get_model(self, name: str | None) -> Model:
        """Return the model registered under ``name`` (``None`` for the default)."""

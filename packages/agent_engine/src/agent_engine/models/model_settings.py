"""Sampling and request options passed through to the model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ModelSettings(BaseModel, frozen=True):
    """Optional per-agent model parameters; ``None`` means provider default."""

    temperature: float | None = None
    top_p: float | None = None
    frequency_penalty: float | None = None
    presence_penalty: float | None = None
    tool_choice: str | None = None
    parallel_tool_calls: bool | None = None
    truncation: str | None = None
    max_tokens: int | None = None
    max_tool_calls: int | None = None
    store: bool | None = None
    reasoning: dict[str, Any] | None = None
    provider_data: dict[str, Any] = Field(default_factory=dict)

    def resolve(self, override: ModelSettings | None) -> ModelSettings:
        """Return settings where non-None fields of ``override`` win."""
        if override is None:
            return self
        changes = override.model_dump(exclude_none=True, exclude_defaults=True)
        if "provider_data" in changes:
            changes["provider_data"] = {**self.provider_data, **override.provider_data}
        return self.model_copy(update=changes)

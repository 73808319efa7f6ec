"""Final output resolution against an agent's declared output type."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import PydanticSchemaGenerationError, TypeAdapter, ValidationError

from agent_engine.errors import ModelBehaviorError, UserError
from agent_engine.items import AssistantMessageItem, extract_message_text

if TYPE_CHECKING:
    from collections.abc import Sequence

    from agent_engine.items import RunItem
    from agent_engine.providers.base import JSONSchema

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AgentOutputSchema:
    """Output type descriptor.

    ``None`` or ``str`` means plain text. Any other type is validated with a
    pydantic ``TypeAdapter``; string output is parsed as JSON first.
    """

    output_type: Any = None
    _adapter: TypeAdapter[Any] | None = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.is_plain_text:
            return
        try:
            adapter = TypeAdapter(self.output_type)
        except PydanticSchemaGenerationError as exc:
            msg = f"Unsupported output type: {self.output_type!r}"
            raise UserError(msg) from exc
        object.__setattr__(self, "_adapter", adapter)

    @property
    def is_plain_text(self) -> bool:
        return self.output_type is None or self.output_type is str

    @property
    def name(self) -> str:
        if self.is_plain_text:
            return "str"
        return getattr(self.output_type, "__name__", repr(self.output_type))

    def json_schema(self) -> JSONSchema | None:
        """Schema offered to the model, or None for plain text."""
        if self._adapter is None:
            return None
        return self._adapter.json_schema()

    def validate(self, value: Any) -> Any:
        """Validate raw final output.

        Raises:
            ModelBehaviorError: If the output does not parse or validate.
        """
        if self._adapter is None:
            return value if isinstance(value, str) else extract_message_text(value)
        try:
            if isinstance(value, str | bytes):
                return self._adapter.validate_json(value)
            return self._adapter.validate_python(value)
        except ValidationError as exc:
            msg = f"Invalid JSON for output type {self.name}: {exc.errors(include_url=False)}"
            raise ModelBehaviorError(msg) from exc


def resolve_final_output(items: Sequence[RunItem], schema: AgentOutputSchema) -> Any:
    """Resolve the final output from the last response's items.

    The last assistant message is used; structured output is validated
    against ``schema``.
    """
    message = next(
        (item for item in reversed(items) if isinstance(item, AssistantMessageItem)), None
    )
    if message is None:
        msg = "Model response contains no assistant message to use as final output"
        raise ModelBehaviorError(msg)
    # Content-part lists carry text; a dict is treated as an already-typed value.
    raw = message.text if isinstance(message.content, list) else message.content
    logger.debug("Resolving final output as %s", schema.name)
    return schema.validate(raw)

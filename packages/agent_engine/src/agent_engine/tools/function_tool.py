"""Function tools: typed callables the model can invoke.

A ``FunctionTool`` pairs a handler with a pydantic input model. The model's
raw JSON arguments are validated against that input model before the handler
runs; the handler's failures are turned into model-visible error strings by
the tool's ``error_function``.
"""

from __future__ import annotations

import asyncio
import inspect
import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, get_type_hints

from pydantic import BaseModel, ConfigDict, ValidationError, create_model

from agent_engine.context import RunContext
from agent_engine.errors import ModelBehaviorError, UserError
from agent_engine.providers.base import ModelTool

if TYPE_CHECKING:
    from agent_engine.providers.base import JSONSchema

ToolHandler = Callable[[RunContext[Any], BaseModel], Any]
ApprovalPredicate = Callable[[RunContext[Any], BaseModel], bool | Awaitable[bool]]
EnabledPredicate = Callable[[RunContext[Any]], bool]
ToolErrorFunction = Callable[[RunContext[Any], Exception], str]


def default_tool_error_function(_context: RunContext[Any], error: Exception) -> str:
    """Format a tool failure for the model."""
    detail = str(error) or type(error).__name__
    return f"An error occurred while running the tool. Please try again. Error: {detail}"


@dataclass(frozen=True)
class FunctionTool:
    """A tool backed by a Python callable.

    Attributes:
        name: Tool name shown to the model; unique per agent.
        description: What the tool does, shown to the model.
        params_model: Pydantic model the raw arguments are validated against.
        on_invoke: ``handler(context, params)``; may be sync or async. Sync
            handlers run in a worker thread so concurrent calls overlap.
        needs_approval: ``True`` or a predicate deciding per call whether the
            approval ledger must be consulted.
        is_enabled: ``False`` or a predicate hiding the tool for a run.
        error_function: Converts handler exceptions into the error text the
            model sees. ``None`` re-raises instead.
    """

    name: str
    description: str
    params_model: type[BaseModel]
    on_invoke: ToolHandler
    needs_approval: bool | ApprovalPredicate = False
    is_enabled: bool | EnabledPredicate = True
    error_function: ToolErrorFunction | None = default_tool_error_function
    strict: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.name.strip():
            msg = "FunctionTool.name must be non-empty"
            raise UserError(msg)

    @property
    def parameters_schema(self) -> JSONSchema:
        """JSON schema of the tool's input model."""
        return self.params_model.model_json_schema()

    def to_model_tool(self) -> ModelTool:
        """Descriptor offered to the model."""
        return ModelTool(
            name=self.name,
            description=self.description,
            parameters=self.parameters_schema,
            strict=self.strict,
        )

    def parse_arguments(self, raw_arguments: str | None) -> BaseModel:
        """Validate the model's raw JSON arguments.

        Raises:
            ModelBehaviorError: If the text is not JSON or does not match
                ``params_model``.
        """
        text = raw_arguments.strip() if raw_arguments else ""
        try:
            data = json.loads(text) if text else {}
        except json.JSONDecodeError as exc:
            msg = f"Invalid JSON input for tool {self.name}: {raw_arguments!r}"
            raise ModelBehaviorError(msg) from exc
        try:
            return self.params_model.model_validate(data)
        except ValidationError as exc:
            msg = f"Invalid arguments for tool {self.name}: {exc.errors(include_url=False)}"
            raise ModelBehaviorError(msg) from exc

    async def invoke(self, context: RunContext[Any], params: BaseModel) -> Any:
        """Run the handler."""
        if inspect.iscoroutinefunction(self.on_invoke):
            return await self.on_invoke(context, params)
        result = await asyncio.to_thread(self.on_invoke, context, params)
        if inspect.isawaitable(result):
            return await result
        return result

    async def requires_approval(self, context: RunContext[Any], params: BaseModel) -> bool:
        if isinstance(self.needs_approval, bool):
            return self.needs_approval
        decision = self.needs_approval(context, params)
        if inspect.isawaitable(decision):
            decision = await decision
        return bool(decision)

    def enabled(self, context: RunContext[Any]) -> bool:
        if isinstance(self.is_enabled, bool):
            return self.is_enabled
        return bool(self.is_enabled(context))

    def format_error(self, context: RunContext[Any], error: Exception) -> str:
        """Error text for the model; re-raises when no error function is set."""
        if self.error_function is None:
            raise error
        return self.error_function(context, error)


def _wants_context(param: inspect.Parameter, hints: dict[str, Any]) -> bool:
    annotation = hints.get(param.name)
    origin = getattr(annotation, "__origin__", annotation)
    if inspect.isclass(origin) and issubclass(origin, RunContext):
        return True
    return annotation is None and param.name in {"context", "ctx"}


def _build_params_model(func: Callable[..., Any], tool_name: str) -> tuple[type[BaseModel], bool]:
    signature = inspect.signature(func)
    hints = get_type_hints(func)
    params = list(signature.parameters.values())
    takes_context = bool(params) and _wants_context(params[0], hints)
    if takes_context:
        params = params[1:]

    fields: dict[str, Any] = {}
    for param in params:
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            msg = f"Tool {tool_name} cannot take *args or **kwargs"
            raise UserError(msg)
        annotation = hints.get(param.name, Any)
        default = ... if param.default is inspect.Parameter.empty else param.default
        fields[param.name] = (annotation, default)

    model_name = "".join(part.capitalize() for part in tool_name.split("_")) + "Args"
    model = create_model(
        model_name,
        __config__=ConfigDict(extra="forbid"),
        **fields,
    )
    return model, takes_context


def function_tool(
    func: Callable[..., Any] | None = None,
    *,
    name: str | None = None,
    description: str | None = None,
    needs_approval: bool | ApprovalPredicate = False,
    is_enabled: bool | EnabledPredicate = True,
    error_function: ToolErrorFunction | None = default_tool_error_function,
    strict: bool = False,
) -> Any:
    """Decorator turning a plain function into a ``FunctionTool``.

    The first parameter receives the ``RunContext`` when it is annotated as
    one (or named ``context``/``ctx`` without annotation). Remaining
    parameters become fields of the generated input model. The description
    defaults to the first paragraph of the docstring. Usable bare
    (``@function_tool``) or with options (``@function_tool(needs_approval=True)``).
    """

    def decorator(target: Callable[..., Any]) -> FunctionTool:
        tool_name = name or getattr(target, "__name__", "").strip()
        doc = inspect.getdoc(target) or ""
        tool_description = description or doc.split("\n\n", 1)[0].strip()
        if not tool_description:
            msg = f"Tool {tool_name} needs a description or a docstring"
            raise UserError(msg)
        params_model, takes_context = _build_params_model(target, tool_name)
        is_async = inspect.iscoroutinefunction(target)

        if is_async:

            async def on_invoke(context: RunContext[Any], params: BaseModel) -> Any:
                kwargs = {key: getattr(params, key) for key in type(params).model_fields}
                if takes_context:
                    return await target(context, **kwargs)
                return await target(**kwargs)

        else:

            def on_invoke(context: RunContext[Any], params: BaseModel) -> Any:
                kwargs = {key: getattr(params, key) for key in type(params).model_fields}
                if takes_context:
                    return target(context, **kwargs)
                return target(**kwargs)

        return FunctionTool(
            name=tool_name,
            description=tool_description,
            params_model=params_model,
            on_invoke=on_invoke,
            needs_approval=needs_approval,
            is_enabled=is_enabled,
            error_function=error_function,
            strict=strict,
        )

    if func is not None:
        return decorator(func)
    return decorator

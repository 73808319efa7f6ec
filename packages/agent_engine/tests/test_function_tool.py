from __future__ import annotations

import pytest

from agent_engine.context import RunContext
from agent_engine.errors import ModelBehaviorError, UserError
from agent_engine.tools import FunctionTool, function_tool


@function_tool
def greet(name: str, excited: bool = False) -> str:
    """Greet someone by name.

    Longer notes that are not part of the description.
    """
    return f"Hello {name}{'!' if excited else '.'}"


@function_tool
def whoami(context: RunContext[dict[str, str]]) -> str:
    """Return the current user."""
    return context.context["user"]


def test_schema_and_description_from_signature() -> None:
    assert greet.name == "greet"
    assert greet.description == "Greet someone by name."
    schema = greet.parameters_schema
    assert schema["required"] == ["name"]
    assert set(schema["properties"]) == {"name", "excited"}
    assert schema["additionalProperties"] is False
    assert greet.to_model_tool().name == "greet"


def test_parse_arguments_errors() -> None:
    with pytest.raises(ModelBehaviorError, match="Invalid JSON input"):
        greet.parse_arguments("{not json")
    with pytest.raises(ModelBehaviorError, match="Invalid arguments"):
        greet.parse_arguments('{"name": "a", "unexpected": 1}')


@pytest.mark.asyncio
async def test_invoke_sync_handler() -> None:
    params = greet.parse_arguments('{"name": "Ada", "excited": true}')
    assert await greet.invoke(RunContext(), params) == "Hello Ada!"


@pytest.mark.asyncio
async def test_context_parameter_is_injected() -> None:
    assert "context" not in whoami.parameters_schema.get("properties", {})
    params = whoami.parse_arguments("")
    assert await whoami.invoke(RunContext({"user": "ada"}), params) == "ada"


@pytest.mark.asyncio
async def test_async_handler_and_approval_predicate() -> None:
    def risky(_ctx, params) -> bool:
        return params.amount > 100

    @function_tool(needs_approval=risky)
    async def pay(amount: int) -> str:
        """Send a payment."""
        return f"paid {amount}"

    context = RunContext()
    assert await pay.requires_approval(context, pay.parse_arguments('{"amount": 500}'))
    assert not await pay.requires_approval(context, pay.parse_arguments('{"amount": 5}'))
    assert await pay.invoke(context, pay.parse_arguments('{"amount": 5}')) == "paid 5"


def test_missing_docstring_is_rejected() -> None:
    def undocumented(x: int) -> int:
        return x

    with pytest.raises(UserError, match="needs a description"):
        function_tool(undocumented)


def test_without_error_function_errors_propagate() -> None:
    tool = FunctionTool(
        name="strict",
        description="d",
        params_model=greet.params_model,
        on_invoke=lambda _ctx, _params: None,
        error_function=None,
    )
    with pytest.raises(RuntimeError, match="nope"):
        tool.format_error(RunContext(), RuntimeError("nope"))


def test_empty_name_rejected() -> None:
    with pytest.raises(UserError):
        FunctionTool(
            name=" ", description="d", params_model=greet.params_model, on_invoke=lambda *_: None
        )

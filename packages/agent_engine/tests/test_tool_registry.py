import pytest

from agent_engine.context import RunContext
from agent_engine.errors import UserError
from agent_engine.tools import ToolRegistry, function_tool


@function_tool
def web_search(query: str) -> str:
    """Search the web for pages."""
    return query


@function_tool(is_enabled=lambda ctx: bool(ctx.context and ctx.context.get("admin")))
def reset_password(user: str) -> str:
    """Reset a user's password."""
    return user


def test_enabled_depends_on_context() -> None:
    registry = ToolRegistry([web_search, reset_password])
    assert [t.name for t in registry.enabled(RunContext({}))] == ["web_search"]
    assert len(registry.enabled(RunContext({"admin": True}))) == 2


def test_duplicate_names_rejected() -> None:
    registry = ToolRegistry([web_search])
    with pytest.raises(UserError, match="already registered"):
        registry.register(web_search)
    assert "web_search" in registry
    assert len(registry) == 1

"""Name-indexed tool registry built once per agent."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from agent_engine.errors import UserError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from agent_engine.context import RunContext
    from agent_engine.tools.function_tool import FunctionTool


class ToolRegistry:
    """Name-indexed set of tools, built once per agent."""

    def __init__(self, tools: Iterable[FunctionTool] = ()) -> None:
        self._tools: dict[str, FunctionTool] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: FunctionTool) -> None:
        """Register a tool; names must be unique."""
        if tool.name in self._tools:
            message = f"Tool already registered: {tool.name}"
            raise UserError(message)
        self._tools[tool.name] = tool

    def get(self, name: str) -> FunctionTool | None:
        """Get a registered tool by name."""
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def enabled(self, context: RunContext[Any]) -> list[FunctionTool]:
        """Tools enabled for the given run context, in registration order."""
        return [tool for tool in self._tools.values() if tool.enabled(context)]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

from agent_engine.tools.function_tool import (
    FunctionTool,
    default_tool_error_function,
    function_tool,
)
from agent_engine.tools.registry import ToolRegistry

__all__ = [
    "FunctionTool",
    "ToolRegistry",
    "default_tool_error_function",
    "function_tool",
]

from agent_engine.agents.agent import Agent
from agent_engine.agents.handoffs import (
    Handoff,
    HandoffInput,
    HandoffRegistry,
    HandoffResolution,
    handoff_tool_name,
    resolve_handoff,
)

__all__ = [
    "Agent",
    "Handoff",
    "HandoffInput",
    "HandoffRegistry",
    "HandoffResolution",
    "handoff_tool_name",
    "resolve_handoff",
]

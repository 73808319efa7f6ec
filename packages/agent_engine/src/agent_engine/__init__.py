from agent_engine.agents import Agent, Handoff, HandoffInput, handoff_tool_name, resolve_handoff
from agent_engine.approvals import ApprovalLedger, ApprovalRecord, ApprovalStatus
from agent_engine.context import RunContext
from agent_engine.errors import (
    AgentsError,
    AgentSystemError,
    GuardrailTripwireTriggered,
    InputGuardrailTripwireTriggered,
    MaxTurnsExceeded,
    ModelBehaviorError,
    OutputGuardrailTripwireTriggered,
    RunCancelledError,
    RunErrorDetails,
    RunTimeoutError,
    TimeoutScope,
    ToolInputGuardrailTripwireTriggered,
    ToolOutputGuardrailTripwireTriggered,
    UserError,
)
from agent_engine.guardrails import (
    GuardrailFunctionOutput,
    InputGuardrail,
    OutputGuardrail,
    ToolGuardrailBehavior,
    ToolGuardrailData,
    ToolGuardrailFunctionOutput,
    ToolInputGuardrail,
    ToolOutputGuardrail,
    input_guardrail,
    output_guardrail,
    tool_input_guardrail,
    tool_output_guardrail,
)
from agent_engine.hooks import HookProvider, HookRegistry, ToolApprovalHook, ToolTelemetryHook
from agent_engine.items import (
    AssistantMessageItem,
    HandoffCallItem,
    HandoffOutputItem,
    ReasoningItem,
    RunItem,
    ToolApprovalItem,
    ToolCallItem,
    ToolCallOutputItem,
    UserMessageItem,
)
from agent_engine.models import ModelSettings, Settings, load_settings
from agent_engine.providers import (
    Model,
    ModelProvider,
    ModelProviderRegistry,
    ModelRequest,
    ModelResponse,
)
from agent_engine.runner import CancellationToken, RunConfig, Runner, RunResult
from agent_engine.sessions import FileSession, MemorySession, Session
from agent_engine.streaming import AgentUpdatedStreamEvent, RunItemStreamEvent, StreamedRunResult
from agent_engine.tools import FunctionTool, ToolRegistry, function_tool
from agent_engine.usage import Usage

__all__ = [
    "Agent",
    "AgentSystemError",
    "AgentUpdatedStreamEvent",
    "AgentsError",
    "ApprovalLedger",
    "ApprovalRecord",
    "ApprovalStatus",
    "AssistantMessageItem",
    "CancellationToken",
    "FileSession",
    "FunctionTool",
    "GuardrailFunctionOutput",
    "GuardrailTripwireTriggered",
    "Handoff",
    "HandoffCallItem",
    "HandoffInput",
    "HandoffOutputItem",
    "HookProvider",
    "HookRegistry",
    "InputGuardrail",
    "InputGuardrailTripwireTriggered",
    "MaxTurnsExceeded",
    "MemorySession",
    "Model",
    "ModelBehaviorError",
    "ModelProvider",
    "ModelProviderRegistry",
    "ModelRequest",
    "ModelResponse",
    "ModelSettings",
    "OutputGuardrail",
    "OutputGuardrailTripwireTriggered",
    "ReasoningItem",
    "RunCancelledError",
    "RunConfig",
    "RunContext",
    "RunErrorDetails",
    "RunItem",
    "RunItemStreamEvent",
    "RunResult",
    "RunTimeoutError",
    "Runner",
    "Session",
    "Settings",
    "StreamedRunResult",
    "TimeoutScope",
    "ToolApprovalHook",
    "ToolApprovalItem",
    "ToolCallItem",
    "ToolCallOutputItem",
    "ToolGuardrailBehavior",
    "ToolGuardrailData",
    "ToolGuardrailFunctionOutput",
    "ToolInputGuardrail",
    "ToolInputGuardrailTripwireTriggered",
    "ToolOutputGuardrail",
    "ToolOutputGuardrailTripwireTriggered",
    "ToolRegistry",
    "ToolTelemetryHook",
    "Usage",
    "UserError",
    "UserMessageItem",
    "function_tool",
    "handoff_tool_name",
    "input_guardrail",
    "load_settings",
    "output_guardrail",
    "resolve_handoff",
    "tool_input_guardrail",
    "tool_output_guardrail",
]

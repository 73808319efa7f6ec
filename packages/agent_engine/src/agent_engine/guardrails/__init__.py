from agent_engine.guardrails.executor import (
    run_blocking_input_guardrails,
    run_output_guardrails,
    run_parallel_input_guardrails,
    run_tool_input_guardrails,
    run_tool_output_guardrails,
    split_input_guardrails,
)
from agent_engine.guardrails.types import (
    GuardrailFunctionOutput,
    InputGuardrail,
    InputGuardrailBatch,
    InputGuardrailResult,
    OutputGuardrail,
    OutputGuardrailBatch,
    OutputGuardrailResult,
    ToolGuardrailBehavior,
    ToolGuardrailData,
    ToolGuardrailFunctionOutput,
    ToolGuardrailOutcome,
    ToolGuardrailResult,
    ToolInputGuardrail,
    ToolOutputGuardrail,
    input_guardrail,
    output_guardrail,
    tool_input_guardrail,
    tool_output_guardrail,
)

__all__ = [
    "GuardrailFunctionOutput",
    "InputGuardrail",
    "InputGuardrailBatch",
    "InputGuardrailResult",
    "OutputGuardrail",
    "OutputGuardrailBatch",
    "OutputGuardrailResult",
    "ToolGuardrailBehavior",
    "ToolGuardrailData",
    "ToolGuardrailFunctionOutput",
    "ToolGuardrailOutcome",
    "ToolGuardrailResult",
    "ToolInputGuardrail",
    "ToolOutputGuardrail",
    "input_guardrail",
    "output_guardrail",
    "run_blocking_input_guardrails",
    "run_output_guardrails",
    "run_parallel_input_guardrails",
    "run_tool_input_guardrails",
    "run_tool_output_guardrails",
    "split_input_guardrails",
]

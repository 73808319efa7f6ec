from agent_engine.providers.base import (
    Model,
    ModelProvider,
    ModelRequest,
    ModelResponse,
    ModelTool,
)
from agent_engine.providers.registry import ModelProviderRegistry

__all__ = [
    "Model",
    "ModelProvider",
    "ModelProviderRegistry",
    "ModelRequest",
    "ModelResponse",
    "ModelTool",
]

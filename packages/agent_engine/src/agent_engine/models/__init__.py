from agent_engine.models.model_settings import ModelSettings
from agent_engine.models.settings import Settings, load_settings

__all__ = [
    "ModelSettings",
    "Settings",
    "load_settings",
]

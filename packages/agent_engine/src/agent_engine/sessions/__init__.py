from agent_engine.sessions.base import Session
from agent_engine.sessions.file import FileSession
from agent_engine.sessions.memory import MemorySession

__all__ = ["FileSession", "MemorySession", "Session"]

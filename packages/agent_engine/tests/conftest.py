from __future__ import annotations

import inspect
from typing import Any

import pytest

from agent_engine.items import AssistantMessageItem, ToolCallItem
from agent_engine.providers.base import Model, ModelProvider, ModelRequest, ModelResponse
from agent_engine.usage import Usage


class FakeModel(Model):
    """Replays scripted replies: responses, exceptions, or async callables."""

    def __init__(self, replies: list[Any], *, repeat_last: bool = False) -> None:
        self._replies = list(replies)
        self._repeat_last = repeat_last
        self.requests: list[ModelRequest] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def get_response(self, request: ModelRequest) -> ModelResponse:
        self.requests.append(request)
        if not self._replies:
            msg = "FakeModel ran out of scripted replies"
            raise AssertionError(msg)
        if self._repeat_last and len(self._replies) == 1:
            reply = self._replies[0]
        else:
            reply = self._replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        if callable(reply):
            reply = reply(request)
            if inspect.isawaitable(reply):
                reply = await reply
        return reply


class FakeProvider(ModelProvider):
    def __init__(self, models: dict[str | None, Model]) -> None:
        self._models = models
        self.requested: list[str | None] = []

    async def get_model(self, name: str | None) -> Model:
        self.requested.append(name)
        return self._models.get(name) or self._models[None]


def reply_text(text: str, *, usage: Usage | None = None, response_id: str | None = None):
    return ModelResponse(
        output=[AssistantMessageItem(content=text)],
        usage=usage or Usage.for_request(10, 5),
        response_id=response_id,
    )


def reply_calls(*calls: tuple[str, str, str], usage: Usage | None = None) -> ModelResponse:
    """Response with tool calls given as ``(call_id, name, arguments)``."""
    return ModelResponse(
        output=[ToolCallItem(call_id=cid, name=name, arguments=args) for cid, name, args in calls],
        usage=usage or Usage.for_request(10, 5),
    )


@pytest.fixture(autouse=True)
def _clear_engine_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "AGENT_ENGINE_DEFAULT_MODEL",
        "AGENT_ENGINE_MAX_TURNS",
        "AGENT_ENGINE_MODEL_TIMEOUT",
        "AGENT_ENGINE_RUN_TIMEOUT",
        "AGENT_ENGINE_SESSION_HISTORY_LIMIT",
        "AGENT_ENGINE_TRACE_SENSITIVE_DATA",
        "AGENT_ENGINE_PARALLEL_TOOL_CALLS",
        "AGENT_ENGINE_PRESERVE_TOOL_ORDER",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("agent_engine.models.settings.load_dotenv", lambda: False)


@pytest.fixture
def fake_model():
    """Factory: ``fake_model(reply, ...)`` builds a scripted model."""

    def build(*replies: Any, repeat_last: bool = False) -> FakeModel:
        return FakeModel(list(replies), repeat_last=repeat_last)

    return build


@pytest.fixture
def responses():
    """Builders for scripted model replies."""

    class Builders:
        text = staticmethod(reply_text)
        calls = staticmethod(reply_calls)

    return Builders

from __future__ import annotations

import pytest

from agent_engine import Agent, ModelProviderRegistry, RunConfig, Runner, UserError


@pytest.mark.asyncio
async def test_factories_are_called_once_and_cached(fake_model, responses) -> None:
    built: list[str] = []

    async def build_large():
        built.append("large")
        return fake_model(responses.text("big"), repeat_last=True)

    registry = ModelProviderRegistry()
    registry.register("small", fake_model(responses.text("tiny")))
    registry.register("large", build_large)

    assert registry.list_models() == ["large", "small"]
    assert registry.get_default() == "small"
    first = await registry.get_model("large")
    assert await registry.get_model("large") is first
    assert built == ["large"]
    assert await registry.get_model(None) is await registry.get_model("small")


@pytest.mark.asyncio
async def test_unknown_or_missing_names(fake_model) -> None:
    registry = ModelProviderRegistry()
    with pytest.raises(UserError, match="no default model"):
        await registry.get_model(None)
    registry.register("only", fake_model())
    with pytest.raises(UserError, match="Unknown model: other"):
        await registry.get_model("other")
    with pytest.raises(ValueError):
        registry.register(" ", fake_model())


@pytest.mark.asyncio
async def test_model_resolution_order(fake_model, responses) -> None:
    registry = ModelProviderRegistry()
    registry.register("agent-model", fake_model(responses.text("from agent")))
    registry.register("default-model", fake_model(responses.text("from default")))
    registry.register("override", fake_model(responses.text("from override")))

    named = Agent(name="named", model="agent-model")
    unnamed = Agent(name="unnamed")
    config = RunConfig(model_provider=registry, default_model="default-model")

    assert (await Runner.run(named, "hi", config)).final_output == "from agent"
    assert (await Runner.run(unnamed, "hi", config)).final_output == "from default"
    forced = RunConfig(model_provider=registry, model="override")
    assert (await Runner.run(named, "hi", forced)).final_output == "from override"

from agent_engine import ModelSettings


def test_override_fields_win() -> None:
    base = ModelSettings(temperature=0.2, max_tokens=500, provider_data={"a": 1})
    override = ModelSettings(temperature=0.7, provider_data={"b": 2})

    resolved = base.resolve(override)

    assert resolved.temperature == 0.7
    assert resolved.max_tokens == 500
    assert resolved.provider_data == {"a": 1, "b": 2}
    assert base.resolve(None) is base

import pytest

from tool_gate.config import DEFAULT_BASE_URL, DEFAULT_MODEL, Settings

ENV_VARS = (
    "OPENROUTER_API_KEY",
    "TOOL_GATE_BASE_URL",
    "TOOL_GATE_MODEL",
    "TOOL_GATE_MAX_STEPS",
    "TOOL_GATE_LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Point dotenv at a file that does not exist so a developer's .env never leaks in.
    return str(tmp_path / "missing.env")


def test_defaults(clean_env):
    settings = Settings.from_env(clean_env)
    assert settings.api_key is None
    assert settings.base_url == DEFAULT_BASE_URL
    assert settings.model == DEFAULT_MODEL
    assert settings.max_steps == 3
    assert settings.log_level == "WARNING"

def test_environment_overrides(clean_env, monkeypatch):
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-test")
    monkeypatch.setenv("TOOL_GATE_MODEL", "openai/gpt-4o-mini")
    monkeypatch.setenv("TOOL_GATE_MAX_STEPS", "5")
    monkeypatch.setenv("TOOL_GATE_LOG_LEVEL", "debug")

    settings = Settings.from_env(clean_env)

    assert settings.api_key == "sk-test"
    assert settings.model == "openai/gpt-4o-mini"
    assert settings.max_steps == 5
    assert settings.log_level == "DEBUG"

@pytest.mark.parametrize(
    "name, value",
    [("TOOL_GATE_MAX_STEPS", "0"), ("TOOL_GATE_MAX_STEPS", "many"), ("TOOL_GATE_LOG_LEVEL", "LOUD")],
)
def test_invalid_values_fail_at_startup(clean_env, monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError):
        Settings.from_env(clean_env)

from __future__ import annotations

import pytest
from pydantic import ValidationError

from action_router.config import DEFAULT_MODEL, RouterSettings

ENV_KEYS = [
    "ROUTER_NAME",
    "MODEL_NAME",
    "MODEL_PROVIDER",
    "MODEL_BASE_URL",
    "MODEL_API_KEY",
    "OPENROUTER_API_KEY",
    "OPENAI_API_KEY",
    "MODEL_TIMEOUT_SECONDS",
    "MODEL_MAX_RETRIES",
    "ROUTER_LANGUAGE",
    "ROUTER_CONTEXT",
    "ROUTER_REFERER",
    "ROUTER_TITLE",
    "ROUTER_DEBUG",
    "ROUTER_MOCK_CHAT_RESPONSE",
]


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_defaults_without_environment(clean_env) -> None:
    settings = RouterSettings.from_env(load_dotenv_file=False)
    assert settings.name == "ActionRouter"
    assert settings.model == DEFAULT_MODEL
    assert settings.provider == "openai_compatible"
    assert settings.api_key is None
    assert settings.language == "English"
    assert settings.max_retries == 1
    assert settings.debug is False
    assert settings.mock_chat_response is None


def test_environment_overrides(clean_env) -> None:
    clean_env.setenv("ROUTER_NAME", "Ambassador")
    clean_env.setenv("MODEL_NAME", "anthropic/claude-3-haiku")
    clean_env.setenv("MODEL_PROVIDER", "Ollama")
    clean_env.setenv("MODEL_BASE_URL", "http://gpu-box:11434")
    clean_env.setenv("MODEL_TIMEOUT_SECONDS", "15")
    clean_env.setenv("MODEL_MAX_RETRIES", "3")
    clean_env.setenv("ROUTER_LANGUAGE", "Turkish")
    clean_env.setenv("ROUTER_REFERER", "https://example.org")
    clean_env.setenv("ROUTER_TITLE", "Example")
    clean_env.setenv("ROUTER_DEBUG", "yes")
    clean_env.setenv("ROUTER_MOCK_CHAT_RESPONSE", ' {"actionName": "x"} ')

    settings = RouterSettings.from_env(load_dotenv_file=False)

    assert settings.name == "Ambassador"
    assert settings.model == "anthropic/claude-3-haiku"
    assert settings.provider == "ollama"
    assert settings.base_url == "http://gpu-box:11434"
    assert settings.timeout_seconds == 15.0
    assert settings.max_retries == 3
    assert settings.language == "Turkish"
    assert settings.referer == "https://example.org"
    assert settings.title == "Example"
    assert settings.debug is True
    assert settings.mock_chat_response == ' {"actionName": "x"} '


def test_api_key_fallbacks(clean_env) -> None:
    clean_env.setenv("OPENAI_API_KEY", "openai-key")
    assert RouterSettings.from_env(load_dotenv_file=False).api_key == "openai-key"
    clean_env.setenv("OPENROUTER_API_KEY", "router-key")
    assert RouterSettings.from_env(load_dotenv_file=False).api_key == "router-key"
    clean_env.setenv("MODEL_API_KEY", "model-key")
    assert RouterSettings.from_env(load_dotenv_file=False).api_key == "model-key"


def test_settings_are_frozen() -> None:
    settings = RouterSettings()
    with pytest.raises(ValidationError):
        settings.language = "German"


@pytest.mark.parametrize(
    ("key", "value"),
    [("MODEL_TIMEOUT_SECONDS", "soon"), ("MODEL_MAX_RETRIES", "2.5")],
)
def test_malformed_numbers_name_the_variable(clean_env, key: str, value: str) -> None:
    clean_env.setenv(key, value)
    with pytest.raises(ValueError, match=key):
        RouterSettings.from_env(load_dotenv_file=False)

"""
Router configuration from the environment.

A local .env is loaded first without overriding variables already set.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_MODEL = "openai/gpt-4o-mini"
TRUTHY = ("1", "true", "yes", "on")


def _env(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip()


def _env_flag(name: str, default: str = "false") -> bool:
    return _env(name, default).lower() in TRUTHY


def _env_optional(name: str) -> str | None:
    return _env(name) or None


def _env_number(name: str, default: str, cast: Callable[[str], Any]) -> Any:
    raw = _env(name, default) or default
    try:
        return cast(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a {cast.__name__}, got {raw!r}") from e


class RouterSettings(BaseModel):
    """Runtime settings for an ActionRouter."""
    model_config = ConfigDict(frozen=True)

    name: str = "ActionRouter"
    model: str = DEFAULT_MODEL
    provider: str = "openai_compatible"
    base_url: str | None = None
    api_key: str | None = None
    timeout_seconds: float = Field(default=60.0, gt=0.0)
    max_retries: int = Field(default=1, ge=1)
    language: str = "English"
    context: str | None = None
    referer: str | None = None
    title: str | None = None
    debug: bool = False
    mock_chat_response: str | None = None

    @classmethod
    def from_env(cls, load_dotenv_file: bool = True) -> "RouterSettings":
        if load_dotenv_file:
            load_dotenv(override=False)

        provider = _env("MODEL_PROVIDER", "openai_compatible").lower() or "openai_compatible"
        api_key = (
            _env_optional("MODEL_API_KEY")
            or _env_optional("OPENROUTER_API_KEY")
            or _env_optional("OPENAI_API_KEY")
        )
        # Mock responses are used verbatim, so they are not stripped.
        mock_chat_response = os.getenv("ROUTER_MOCK_CHAT_RESPONSE") or None

        return cls(
            name=_env("ROUTER_NAME", "ActionRouter") or "ActionRouter",
            model=_env("MODEL_NAME", DEFAULT_MODEL) or DEFAULT_MODEL,
            provider=provider,
            base_url=_env_optional("MODEL_BASE_URL"),
            api_key=api_key,
            timeout_seconds=max(1.0, _env_number("MODEL_TIMEOUT_SECONDS", "60", float)),
            max_retries=max(1, _env_number("MODEL_MAX_RETRIES", "1", int)),
            language=_env("ROUTER_LANGUAGE", "English") or "English",
            context=_env_optional("ROUTER_CONTEXT"),
            referer=_env_optional("ROUTER_REFERER"),
            title=_env_optional("ROUTER_TITLE"),
            debug=_env_flag("ROUTER_DEBUG"),
            mock_chat_response=mock_chat_response,
        )

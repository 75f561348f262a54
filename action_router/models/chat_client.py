"""
Model Layer — Chat completion client.

Responsibility:
- Send an ordered list of {role, content} messages, return one text completion
- Support OpenAI-compatible providers (OpenRouter by default) and Ollama
- Enforce the per-call timeout and bounded retries from ModelPolicy
- Return a configured mock response verbatim, without network access

This is the ONLY place where the language model is called.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from action_router.observability.logger import Observability
from action_router.shared.models import ModelPolicy

logger = logging.getLogger(__name__)

DEFAULT_BASE_URLS = {
    "openai_compatible": "https://openrouter.ai/api/v1",
    "ollama": "http://localhost:11434",
}
SUPPORTED_PROVIDERS = frozenset(DEFAULT_BASE_URLS)


class ChatClient:
    """Async chat completion client."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        provider: str = "openai_compatible",
        referer: str | None = None,
        title: str | None = None,
        mock_response: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        provider = (provider or "openai_compatible").strip().lower()
        if provider not in SUPPORTED_PROVIDERS:
            raise ValueError(f"Unsupported model provider '{provider}'")
        self.provider = provider
        self.base_url = (base_url or DEFAULT_BASE_URLS[provider]).rstrip("/")
        self.mock_response = mock_response

        headers: dict[str, str] = {}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        if referer:
            headers["HTTP-Referer"] = referer
        if title:
            headers["X-Title"] = title
        self.headers = headers

        self._client = http_client
        self._owns_client = http_client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=60.0,  # default, overridden by policy
                headers=self.headers,
            )
        return self._client

    async def complete(
        self,
        messages: list[dict[str, str]],
        policy: ModelPolicy,
        observability: Observability | None = None,
    ) -> str:
        """Return the completion text for ``messages``."""
        if self.mock_response is not None:
            return self.mock_response

        obs = observability or Observability()
        attempt = 0
        last_error: Exception | None = None
        while attempt < policy.max_retries:
            attempt += 1
            try:
                with obs.measure(
                    "model_call",
                    {
                        "model": policy.model_name,
                        "provider": self.provider,
                        "attempt": attempt,
                        "max_attempts": policy.max_retries,
                    },
                ) as metric:
                    text = await self._call_model(messages, policy)
                    metric["response_chars"] = len(text)
                    return text
            except (httpx.HTTPError, ValueError) as e:
                last_error = e
                logger.warning(
                    "Model call failed (attempt %d/%d): %s",
                    attempt,
                    policy.max_retries,
                    e,
                )
        raise last_error or RuntimeError("Unknown model failure")

    async def _call_model(self, messages: list[dict[str, str]], policy: ModelPolicy) -> str:
        if self.provider == "ollama":
            return await self._call_ollama_chat(messages, policy)
        return await self._call_openai_chat(messages, policy)

    async def _call_openai_chat(self, messages: list[dict[str, str]], policy: ModelPolicy) -> str:
        """OpenAI-compatible /chat/completions call."""
        payload: dict[str, Any] = {
            "model": policy.model_name,
            "messages": messages,
            "temperature": policy.temperature,
            "stream": False,
        }
        if policy.json_mode:
            payload["response_format"] = {"type": "json_object"}

        response = await self._get_client().post(
            f"{self.base_url}/chat/completions",
            json=payload,
            headers=self.headers,
            timeout=policy.timeout_seconds,
        )
        response.raise_for_status()
        data = response.json()
        choices = data.get("choices") or []
        if not choices:
            return ""
        message = choices[0].get("message") or {}
        return str(message.get("content") or "").strip()

    async def _call_ollama_chat(self, messages: list[dict[str, str]], policy: ModelPolicy) -> str:
        """Ollama /api/chat call."""
        payload: dict[str, Any] = {
            "model": policy.model_name,
            "messages": messages,
            "stream": False,
            "options": {"temperature": policy.temperature},
        }
        if policy.json_mode:
            payload["format"] = "json"

        response = await self._get_client().post(
            f"{self.base_url}/api/chat",
            json=payload,
            headers=self.headers,
            timeout=policy.timeout_seconds,
        )
        response.raise_for_status()
        return str(response.json().get("message", {}).get("content") or "").strip()

    async def aclose(self) -> None:
        """Close pooled connections if this client created them."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

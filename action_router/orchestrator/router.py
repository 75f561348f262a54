"""
Action Router — Stateless dispatcher.

Responsibility:
- Ask the Intent Resolver for an envelope, parse it
- Resolve the action, coerce and validate its parameters
- Execute the handler and return the envelope's response text

Prohibitions:
- No conversation state between runs
- No retries; every failure is terminal for the run
- The handler's return value never becomes the response
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from action_router.coercion.coercer import coerce_parameters
from action_router.config import DEFAULT_MODEL, RouterSettings
from action_router.intent.envelope import parse_envelope
from action_router.intent.protocol import DEFAULT_LANGUAGE, IntentResolver
from action_router.models.chat_client import ChatClient
from action_router.observability.logger import EventSubscriber, Observability
from action_router.registry.action_registry import ActionRegistry
from action_router.shared.errors import (
    ActionExecutionError,
    ActionNotFound,
    SchemaValidationError,
)
from action_router.shared.models import ModelPolicy

logger = logging.getLogger(__name__)


class ActionRouter:
    """Routes free-form requests to registered actions."""

    def __init__(
        self,
        *,
        actions: Mapping[str, Any] | ActionRegistry,
        name: str = "ActionRouter",
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        base_url: str | None = None,
        provider: str = "openai_compatible",
        context: str | None = None,
        language: str = DEFAULT_LANGUAGE,
        referer: str | None = None,
        title: str | None = None,
        mock_chat_response: str | None = None,
        debug: bool = False,
        timeout_seconds: float = 60.0,
        max_retries: int = 1,
        chat_client: ChatClient | None = None,
        on_event: EventSubscriber | Iterable[EventSubscriber] | None = None,
    ):
        self.name = name
        self.model = model
        self.language = language or DEFAULT_LANGUAGE
        self.debug = debug
        self.registry = actions if isinstance(actions, ActionRegistry) else ActionRegistry(actions)
        self.chat_client = chat_client or ChatClient(
            api_key=api_key,
            base_url=base_url,
            provider=provider,
            referer=referer,
            title=title,
            mock_response=mock_chat_response,
        )
        self.policy = ModelPolicy(
            model_name=model,
            temperature=0.0,
            timeout_seconds=timeout_seconds,
            max_retries=max_retries,
        )
        self.intent = IntentResolver(
            self.registry,
            self.chat_client,
            self.policy,
            language=self.language,
            context=context,
        )
        if on_event is None:
            subscribers: tuple[EventSubscriber, ...] = ()
        elif callable(on_event):
            subscribers = (on_event,)
        else:
            subscribers = tuple(on_event)
        self.observability = Observability(subscribers=subscribers, verbose=debug)

    @classmethod
    def from_settings(
        cls,
        actions: Mapping[str, Any] | ActionRegistry,
        settings: RouterSettings | None = None,
        **overrides: Any,
    ) -> "ActionRouter":
        """Build a router from RouterSettings (defaults to the environment)."""
        settings = settings or RouterSettings.from_env()
        options = settings.model_dump()
        options.update(overrides)
        return cls(actions=actions, **options)

    @property
    def context(self) -> str:
        return self.intent.context

    async def run(self, user_input: str) -> str:
        """Route ``user_input`` to an action and return the prepared response text."""
        obs = self.observability.span()
        obs.emit("INIT", "Starting action router run", {"name": self.name, "model": self.model, "language": self.language})
        obs.emit("INPUT", "User input received", {"input": user_input})
        obs.emit(
            "ACTIONS",
            "Available actions prepared",
            {"action_count": len(self.registry.registered_actions), "actions": self.registry.registered_actions},
        )

        action_name: str | None = None
        stage = "chat"
        try:
            try:
                raw = await self.intent.resolve(user_input, observability=obs)
            except Exception as e:
                raise ActionExecutionError(f"Chat completion failed: {e}", stage="chat", cause=e) from e

            stage = "parse"
            obs.emit("PARSING", "Parsing AI response")
            envelope = parse_envelope(raw)
            action_name = envelope.action_name
            obs.emit(
                "VALIDATION",
                "AI response validated successfully",
                {"selected_action": action_name, "parameters": envelope.parameters},
            )

            stage = "lookup"
            action = self.registry.lookup(action_name)
            if action is None:
                raise ActionNotFound(action_name)

            stage = "coercion"
            coerced = coerce_parameters(envelope.parameters, action.schema)
            for warning in coerced.warnings:
                obs.emit("WARNING", f"Conversion failed for field {warning.field}", warning.as_dict())

            stage = "validation"
            obs.emit("VALIDATION", "Validating parameters with schema", {"action": action_name})
            try:
                params = action.schema.validate(coerced.parameters)
            except SchemaValidationError as e:
                e.action_name = action_name
                raise

            stage = "execution"
            obs.emit("EXECUTION", "Executing action", {"action": action_name, "parameters": _loggable(params)})
            try:
                result = action.handler(params)
                if inspect.isawaitable(result):
                    result = await result
            except Exception as e:
                raise ActionExecutionError(
                    f"Action '{action_name}' raised: {e}",
                    stage="execution",
                    action_name=action_name,
                    cause=e,
                ) from e

            obs.emit(
                "RESULT",
                "Action executed successfully",
                {"action_result": result, "ai_response": envelope.response},
            )
            return envelope.response

        except ActionExecutionError as e:
            obs.emit(
                "ERROR",
                "Execution failed",
                {"stage": e.stage, "action": e.action_name or action_name, "error": str(e)},
            )
            raise
        except Exception as e:
            obs.emit(
                "ERROR",
                "Execution failed",
                {"stage": stage, "action": action_name, "error": f"{type(e).__name__}: {e}"},
            )
            raise ActionExecutionError(
                f"Unexpected failure during {stage}: {type(e).__name__}: {e}",
                stage=stage,
                action_name=action_name,
                cause=e,
            ) from e

    async def aclose(self) -> None:
        await self.chat_client.aclose()

    async def __aenter__(self) -> "ActionRouter":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


def _loggable(params: Any) -> Any:
    if hasattr(params, "model_dump"):
        try:
            return params.model_dump(mode="json")
        except ValueError:
            return repr(params)
    return params

"""
Error hierarchy for a router run.

Every failure of ``ActionRouter.run`` is an ``ActionExecutionError``; the
subclasses tell which stage failed. None of them is retried internally.
"""

from __future__ import annotations

from typing import Any


class ActionRouterError(Exception):
    """Base class for all router errors."""


class ActionExecutionError(ActionRouterError):
    """A run failed. ``stage`` names the pipeline step that failed."""

    def __init__(
        self,
        message: str,
        *,
        stage: str = "execution",
        action_name: str | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.stage = stage
        self.action_name = action_name
        self.cause = cause


class InvalidEnvelope(ActionExecutionError):
    """Model output is not valid JSON or does not have the envelope shape."""

    def __init__(self, reason: str, raw_text: str, cause: BaseException | None = None):
        super().__init__(
            f"AI response is not a valid envelope ({reason}): {raw_text}",
            stage="parse",
            cause=cause,
        )
        self.reason = reason
        self.raw_text = raw_text


class ActionNotFound(ActionExecutionError):
    """The resolved name or path does not match any registered action."""

    def __init__(self, action_name: str):
        super().__init__(f'Action "{action_name}" not found.', stage="lookup", action_name=action_name)


class SchemaValidationError(ActionExecutionError):
    """Coerced parameters were rejected by the action schema."""

    def __init__(
        self,
        errors: list[dict[str, Any]],
        parameters: Any = None,
        action_name: str | None = None,
        cause: BaseException | None = None,
    ):
        details = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ())) or '<root>'}: {err.get('msg', '')}"
            for err in errors
        )
        super().__init__(
            f"Parameters failed schema validation: {details}",
            stage="validation",
            action_name=action_name,
            cause=cause,
        )
        self.errors = errors
        self.parameters = parameters

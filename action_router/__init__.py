"""
action_router — route natural-language requests to typed actions.

The model picks the action and extracts its parameters into a fixed
envelope; the router coerces, validates, executes and returns the
envelope's response text.
"""

from action_router.config import RouterSettings
from action_router.orchestrator.router import ActionRouter
from action_router.registry.action_registry import ActionDefinition, ActionRegistry
from action_router.schema.adapter import SchemaAdapter
from action_router.shared.errors import (
    ActionExecutionError,
    ActionNotFound,
    ActionRouterError,
    InvalidEnvelope,
    SchemaValidationError,
)
from action_router.shared.models import ResolutionEnvelope, RouterEvent

__all__ = [
    "ActionDefinition",
    "ActionExecutionError",
    "ActionNotFound",
    "ActionRegistry",
    "ActionRouter",
    "ActionRouterError",
    "InvalidEnvelope",
    "ResolutionEnvelope",
    "RouterEvent",
    "RouterSettings",
    "SchemaAdapter",
    "SchemaValidationError",
]

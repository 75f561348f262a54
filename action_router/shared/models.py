"""
Shared Pydantic models for all layers.
All contracts are immutable (frozen) after creation.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# ─── Schema Layer ──────────────────────────────────────────────

class FieldKind(str, enum.Enum):
    """Closed set of field kinds the coercion layer dispatches on."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    ARRAY = "array"
    OBJECT = "object"


class FieldSpec(BaseModel):
    """Declared kind of one schema field.
    ``optional=True`` wraps the kind (``OptionalOf(kind)``).
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    kind: FieldKind
    optional: bool = False
    annotation: Any = Field(default=None, description="Python type the field was declared with")


# ─── Intent Layer ──────────────────────────────────────────────

class ResolutionEnvelope(BaseModel):
    """Three-field contract returned by the language model.
    Only the envelope parser builds these, after structural checks.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    action_name: str = Field(..., alias="actionName", description="Registered action name or dot path")
    parameters: dict[str, Any] = Field(default_factory=dict, description="Raw parameters as emitted by the model")
    response: str = Field(..., description="User-facing text in the configured language")


# ─── Model Layer (Policy) ──────────────────────────────────────

class ModelPolicy(BaseModel):
    """Configuration for a chat completion call."""
    model_config = ConfigDict(frozen=True)

    model_name: str
    temperature: float = 0.0
    timeout_seconds: float = 60.0
    max_retries: int = Field(default=1, ge=1)
    json_mode: bool = False


# ─── Observability ─────────────────────────────────────────────

class RouterEvent(BaseModel):
    """Structured diagnostic event delivered to subscribers."""
    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    trace_id: str
    stage: str = Field(..., description="Pipeline stage, e.g. 'AI_REQUEST', 'EXECUTION', 'ERROR'")
    message: str
    payload: dict[str, Any] = Field(default_factory=dict)

"""
Schema Adapter — boundary to the validation engine (Pydantic).

Responsibility:
- Describe an action schema for the prompt (JSON schema string)
- Validate raw parameters into typed values
- Expose field kinds for object-shaped schemas, computed once at registration
"""

from __future__ import annotations

import enum
import json
import types
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal, Union, get_args, get_origin

from pydantic import BaseModel, TypeAdapter, ValidationError

from action_router.shared.errors import SchemaValidationError
from action_router.shared.models import FieldKind, FieldSpec

_ARRAY_TYPES = (list, tuple, set, frozenset)


class SchemaAdapter:
    """Wraps a Pydantic model (or any type TypeAdapter accepts)."""

    def __init__(self, schema: Any):
        if isinstance(schema, SchemaAdapter):
            schema = schema.schema
        self.schema = schema
        self._is_model = (
            isinstance(schema, type) and get_origin(schema) is None and issubclass(schema, BaseModel)
        )
        self._type_adapter = None if self._is_model else TypeAdapter(schema)
        self._fields = self._build_fields() if self._is_model else None

    @property
    def fields(self) -> tuple[FieldSpec, ...] | None:
        """Declared fields, or None when the schema is not object-shaped."""
        return self._fields

    def json_schema(self) -> dict[str, Any]:
        if self._is_model:
            return self.schema.model_json_schema()
        return self._type_adapter.json_schema()

    def description(self) -> str:
        """Serialized schema used in prompts."""
        return json.dumps(self.json_schema(), ensure_ascii=False)

    def validate(self, value: Any) -> Any:
        """Validate and parse ``value``. Raises SchemaValidationError with per-field causes."""
        try:
            if self._is_model:
                return self.schema.model_validate(value)
            return self._type_adapter.validate_python(value)
        except ValidationError as ve:
            errors = [
                {"loc": tuple(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
                for err in ve.errors()
            ]
            raise SchemaValidationError(errors, parameters=value, cause=ve) from ve

    # ─── Field kind extraction ─────────────────────────────────

    def _build_fields(self) -> tuple[FieldSpec, ...]:
        specs = []
        for name, info in self.schema.model_fields.items():
            kind, optional, inner = field_kind(info.annotation)
            specs.append(FieldSpec(name=info.alias or name, kind=kind, optional=optional, annotation=inner))
        return tuple(specs)


def field_kind(annotation: Any) -> tuple[FieldKind, bool, Any]:
    """Map a type annotation to (kind, optional, unwrapped annotation)."""
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        optional = len(members) < len(get_args(annotation))
        if len(members) == 1:
            kind, _, inner = field_kind(members[0])
            return kind, optional, inner
        # Mixed unions are left for the validator.
        return FieldKind.STRING, optional, annotation
    return _plain_kind(annotation), False, annotation


def _plain_kind(annotation: Any) -> FieldKind:
    origin = get_origin(annotation)
    if origin is Literal:
        values = get_args(annotation)
        return _value_kind(values[0]) if values else FieldKind.STRING
    if origin is not None:
        annotation = origin

    if not isinstance(annotation, type):
        return FieldKind.STRING
    if issubclass(annotation, bool):
        return FieldKind.BOOLEAN
    if issubclass(annotation, enum.Enum):
        members = list(annotation)
        return _value_kind(members[0].value) if members else FieldKind.STRING
    if issubclass(annotation, (int, float, Decimal)):
        return FieldKind.NUMBER
    if issubclass(annotation, (datetime, date)):
        return FieldKind.DATE
    if issubclass(annotation, _ARRAY_TYPES):
        return FieldKind.ARRAY
    if issubclass(annotation, (dict, BaseModel)):
        return FieldKind.OBJECT
    return FieldKind.STRING


def _value_kind(value: Any) -> FieldKind:
    if isinstance(value, bool):
        return FieldKind.BOOLEAN
    if isinstance(value, (int, float)):
        return FieldKind.NUMBER
    return FieldKind.STRING

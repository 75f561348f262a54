"""
Parameter Coercion — best-effort repair of model-emitted values.

Language models often stringify typed values ("true", "2025-01-01",
'["a", "b"]'). Before validation, string values of boolean, date, array and
object fields are converted when the conversion is unambiguous. Failures are
recorded as warnings and the original value is kept; the schema validator
remains the only judge of correctness.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from action_router.schema.adapter import SchemaAdapter
from action_router.shared.models import FieldKind, FieldSpec

logger = logging.getLogger(__name__)

TRUE_STRINGS = frozenset({"true", "1", "yes"})
FALSE_STRINGS = frozenset({"false", "0", "no"})


class CoercionFailed(ValueError):
    """A string could not be converted to the declared kind."""


@dataclass(frozen=True)
class CoercionWarning:
    field: str
    kind: FieldKind
    value: Any
    reason: str

    def as_dict(self) -> dict[str, Any]:
        return {"field": self.field, "kind": self.kind.value, "value": self.value, "reason": self.reason}


@dataclass
class CoercionResult:
    parameters: dict[str, Any]
    warnings: list[CoercionWarning] = field(default_factory=list)


# ─── Kind-specific converters ──────────────────────────────────

def coerce_boolean(value: str, spec: FieldSpec) -> bool:
    lowered = value.strip().lower()
    if lowered in TRUE_STRINGS:
        return True
    if lowered in FALSE_STRINGS:
        return False
    raise CoercionFailed(f"'{value}' is not a recognised boolean")


def coerce_date(value: str, spec: FieldSpec) -> date | datetime:
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise CoercionFailed(f"'{value}' is not an ISO-8601 date: {e}") from e
    if spec.annotation is date:
        return parsed.date()
    return parsed


def coerce_array(value: str, spec: FieldSpec) -> list[Any]:
    try:
        parsed = json.loads(value)
    except (json.JSONDecodeError, RecursionError):
        parsed = None
    if isinstance(parsed, list):
        return parsed
    # Comma separated fallback: "a, b, c"
    return [item.strip() for item in value.split(",")]


def coerce_object(value: str, spec: FieldSpec) -> dict[str, Any]:
    try:
        parsed = json.loads(value)
    except (json.JSONDecodeError, RecursionError) as e:
        raise CoercionFailed(f"value is not a JSON object: {e}") from e
    if not isinstance(parsed, dict):
        raise CoercionFailed(f"value decoded to {type(parsed).__name__}, not an object")
    return parsed


CONVERTERS: dict[FieldKind, Callable[[str, FieldSpec], Any]] = {
    FieldKind.BOOLEAN: coerce_boolean,
    FieldKind.DATE: coerce_date,
    FieldKind.ARRAY: coerce_array,
    FieldKind.OBJECT: coerce_object,
}

# Empty strings are only repaired for booleans; other kinds leave them to the validator.
_SKIP_EMPTY = frozenset({FieldKind.DATE, FieldKind.ARRAY, FieldKind.OBJECT})


def coerce_parameters(parameters: Mapping[str, Any], adapter: SchemaAdapter) -> CoercionResult:
    """Repair string values against the declared field kinds. Never mutates ``parameters``."""
    processed = dict(parameters)
    result = CoercionResult(parameters=processed)
    if adapter.fields is None:
        return result

    for spec in adapter.fields:
        converter = CONVERTERS.get(spec.kind)
        if converter is None or spec.name not in processed:
            continue
        raw = processed[spec.name]
        if not isinstance(raw, str):
            continue
        if not raw and spec.kind in _SKIP_EMPTY:
            continue
        try:
            processed[spec.name] = converter(raw, spec)
        except CoercionFailed as e:
            warning = CoercionWarning(field=spec.name, kind=spec.kind, value=raw, reason=str(e))
            result.warnings.append(warning)
            logger.debug("Coercion skipped for field '%s': %s", spec.name, e)
    return result

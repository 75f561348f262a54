"""Parameter coercion applied before schema validation."""

from action_router.coercion.coercer import CoercionResult, CoercionWarning, coerce_parameters

__all__ = ["CoercionResult", "CoercionWarning", "coerce_parameters"]

"""Schema adapter over Pydantic."""

from action_router.schema.adapter import SchemaAdapter, field_kind

__all__ = ["SchemaAdapter", "field_kind"]

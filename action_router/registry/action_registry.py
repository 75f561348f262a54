"""
Action Registry — Maps action names and dot paths to definitions.

Responsibility:
- Build the action tree (leaf | branch) once from the registration mapping
- Resolve a name or path to an ActionDefinition
- Enumerate the catalog for prompt construction

Pure lookup, no mutation after construction.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Callable, Union

from action_router.schema.adapter import SchemaAdapter

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "No description available."


@dataclass(frozen=True)
class ActionDefinition:
    """A named, schema-typed operation."""

    name: str
    handler: Callable[[Any], Any]
    schema: SchemaAdapter
    description: str | None = None

    def describe(self) -> str:
        return self.description or DEFAULT_DESCRIPTION


@dataclass(frozen=True)
class Leaf:
    definition: ActionDefinition


@dataclass(frozen=True)
class Branch:
    children: Mapping[str, "ActionTree"] = field(default_factory=dict)


ActionTree = Union[Leaf, Branch]


# ─── Tree construction ─────────────────────────────────────────

def _entry_value(entry: Any, key: str) -> Any:
    if isinstance(entry, Mapping):
        return entry.get(key)
    return getattr(entry, key, None)


def _entry_handler(entry: Any) -> Any:
    handler = _entry_value(entry, "handler")
    if handler is None:
        handler = _entry_value(entry, "call")
    return handler


def is_leaf_entry(entry: Any) -> bool:
    """A value exposing both a handler and a schema is always a leaf."""
    if isinstance(entry, ActionDefinition):
        return True
    return _entry_handler(entry) is not None and _entry_value(entry, "schema") is not None


def build_definition(name: str, entry: Any) -> ActionDefinition:
    if isinstance(entry, ActionDefinition):
        if entry.name == name and isinstance(entry.schema, SchemaAdapter):
            return entry
        return ActionDefinition(
            name=name, handler=entry.handler, schema=SchemaAdapter(entry.schema), description=entry.description
        )
    handler = _entry_handler(entry)
    if not callable(handler):
        raise ValueError(f"Action '{name}' handler is not callable")
    return ActionDefinition(
        name=name,
        handler=handler,
        schema=SchemaAdapter(_entry_value(entry, "schema")),
        description=_entry_value(entry, "description"),
    )


def build_tree(actions: Mapping[str, Any], path: tuple[str, ...] = ()) -> Branch:
    """Build a Branch from a (possibly nested) registration mapping."""
    children: dict[str, ActionTree] = {}
    for key, entry in actions.items():
        dotted = ".".join(path + (key,))
        if is_leaf_entry(entry):
            children[key] = Leaf(build_definition(key, entry))
        elif isinstance(entry, Mapping):
            children[key] = build_tree(entry, path + (key,))
        else:
            raise ValueError(
                f"Registration entry '{dotted}' must define 'handler' and 'schema' or be a mapping of actions"
            )
    return Branch(children=children)


# ─── Registry ──────────────────────────────────────────────────

class ActionRegistry:
    """Registry for flat or nested action trees."""

    def __init__(self, actions: Mapping[str, Any] | Branch):
        self._root = actions if isinstance(actions, Branch) else build_tree(actions)
        self._catalog = list(self._walk(self._root, ()))
        self._by_leaf_name: dict[str, list[tuple[str, ...]]] = {}
        for path, _ in self._catalog:
            self._by_leaf_name.setdefault(path[-1], []).append(path)
        for leaf_name, paths in self._by_leaf_name.items():
            if len(paths) > 1:
                logger.warning(
                    "Leaf name '%s' is registered more than once (%s); single-name lookup is ambiguous",
                    leaf_name,
                    ", ".join(".".join(p) for p in paths),
                )
        logger.info("Registered %d actions (nested=%s)", len(self._catalog), self.nested)

    @property
    def root(self) -> Branch:
        return self._root

    @property
    def nested(self) -> bool:
        return any(isinstance(child, Branch) for child in self._root.children.values())

    @property
    def registered_actions(self) -> list[str]:
        return [".".join(path) for path, _ in self._catalog]

    def catalog(self) -> list[tuple[str, ActionDefinition]]:
        """All leaves with their dotted path, depth-first in registration order."""
        return [(".".join(path), definition) for path, definition in self._catalog]

    def lookup(self, identifier: str | Sequence[str]) -> ActionDefinition | None:
        """Resolve a name or path. Returns None if not found."""
        if isinstance(identifier, str):
            direct = self._root.children.get(identifier)
            if isinstance(direct, Leaf):
                return direct.definition
            if not self.nested:
                return None
            path = identifier.split(".") if identifier else []
        else:
            path = list(identifier)

        if not path:
            return None
        if len(path) == 1:
            found = self._find_by_leaf_name(path[0])
            if found is not None:
                return found
        return self._descend(path)

    def _find_by_leaf_name(self, name: str) -> ActionDefinition | None:
        paths = self._by_leaf_name.get(name, [])
        if len(paths) != 1:
            if paths:
                logger.warning("Ambiguous action name '%s' matches %d leaves", name, len(paths))
            return None
        return self._descend(list(paths[0]))

    def _descend(self, path: list[str]) -> ActionDefinition | None:
        node: ActionTree = self._root
        for segment in path:
            if isinstance(node, Leaf):
                # Path continues past a leaf.
                return None
            node = node.children.get(segment)
            if node is None:
                return None
        return node.definition if isinstance(node, Leaf) else None

    def _walk(self, node: Branch, path: tuple[str, ...]):
        for key, child in node.children.items():
            if isinstance(child, Leaf):
                yield path + (key,), child.definition
            else:
                yield from self._walk(child, path + (key,))

from __future__ import annotations

import asyncio

import pytest
from pydantic import BaseModel

from action_router.registry.action_registry import ActionDefinition, ActionRegistry, Branch, Leaf
from action_router.schema.adapter import SchemaAdapter


class CityInput(BaseModel):
    city: str


class PairInput(BaseModel):
    a: float
    b: float


class UserInput(BaseModel):
    userId: str


async def _weather(params: CityInput) -> str:
    return f"Weather in {params.city}: 22°C, sunny"


async def _add(params: PairInput) -> float:
    return params.a + params.b


async def _multiply(params: PairInput) -> float:
    return params.a * params.b


async def _user_info(params: UserInput) -> dict:
    return {"id": params.userId, "name": "Test User", "email": "test@example.com"}


def _nested_actions() -> dict:
    return {
        "weather": {
            "getCurrentWeather": {"handler": _weather, "schema": CityInput},
        },
        "calculator": {
            "add": {"handler": _add, "schema": PairInput, "description": "Add two numbers"},
            "multiply": {"handler": _multiply, "schema": PairInput},
        },
        "user": {
            "profile": {
                "getUserInfo": {"call": _user_info, "schema": UserInput},
            },
        },
    }


def test_registry_finds_nested_weather_action() -> None:
    registry = ActionRegistry(_nested_actions())
    action = registry.lookup(["weather", "getCurrentWeather"])
    assert action is not None
    assert action.name == "getCurrentWeather"
    assert isinstance(action.schema, SchemaAdapter)


def test_registry_finds_calculator_add_and_handler_runs() -> None:
    registry = ActionRegistry(_nested_actions())
    action = registry.lookup(["calculator", "add"])
    assert action is not None
    result = asyncio.run(action.handler(PairInput(a=5, b=3)))
    assert result == 8


def test_registry_finds_three_level_path_registered_with_call_key() -> None:
    registry = ActionRegistry(_nested_actions())
    action = registry.lookup(["user", "profile", "getUserInfo"])
    assert action is not None
    result = asyncio.run(action.handler(UserInput(userId="123")))
    assert result == {"id": "123", "name": "Test User", "email": "test@example.com"}


def test_registry_returns_none_for_unknown_path() -> None:
    registry = ActionRegistry(_nested_actions())
    assert registry.lookup(["nonexistent", "action"]) is None
    assert registry.lookup(["calculator", "divide"]) is None


def test_registry_empty_path_fails() -> None:
    registry = ActionRegistry(_nested_actions())
    assert registry.lookup([]) is None
    assert registry.lookup("") is None


def test_single_segment_finds_leaf_at_any_depth() -> None:
    registry = ActionRegistry(_nested_actions())
    assert registry.lookup(["add"]) is registry.lookup(["calculator", "add"])
    assert registry.lookup("getUserInfo") is registry.lookup(["user", "profile", "getUserInfo"])


def test_path_past_a_leaf_fails() -> None:
    registry = ActionRegistry(_nested_actions())
    assert registry.lookup(["calculator", "add", "extra"]) is None


def test_path_ending_on_branch_fails() -> None:
    registry = ActionRegistry(_nested_actions())
    assert registry.lookup(["user", "profile"]) is None
    assert registry.lookup("calculator") is None


def test_dotted_string_resolves_nested_path() -> None:
    registry = ActionRegistry(_nested_actions())
    action = registry.lookup("calculator.multiply")
    assert action is not None
    assert action.name == "multiply"
    assert registry.lookup("calculator..multiply") is None


def test_lookup_is_idempotent() -> None:
    registry = ActionRegistry(_nested_actions())
    first = registry.lookup(["calculator", "add"])
    second = registry.lookup(["calculator", "add"])
    assert first is second
    assert registry.registered_actions == [
        "weather.getCurrentWeather",
        "calculator.add",
        "calculator.multiply",
        "user.profile.getUserInfo",
    ]


def test_flat_registry_uses_direct_key_fetch() -> None:
    registry = ActionRegistry({
        "addNumbers": {"handler": _add, "schema": PairInput},
        "reports.daily": {"handler": _weather, "schema": CityInput},
    })
    assert registry.nested is False
    assert registry.lookup("addNumbers").name == "addNumbers"
    assert registry.lookup("reports.daily").name == "reports.daily"
    assert registry.lookup("missing") is None


def test_ambiguous_leaf_name_is_not_resolved_by_single_segment() -> None:
    registry = ActionRegistry({
        "calendar": {"create": {"handler": _weather, "schema": CityInput}},
        "contacts": {"create": {"handler": _user_info, "schema": UserInput}},
    })
    assert registry.lookup("create") is None
    assert registry.lookup("contacts.create").handler is _user_info


def test_top_level_leaf_wins_when_name_is_ambiguous() -> None:
    registry = ActionRegistry({
        "calculator": {"add": {"handler": _add, "schema": PairInput}},
        "add": {"handler": _multiply, "schema": PairInput},
    })
    assert registry.lookup("add").handler is _multiply
    assert registry.lookup(["add"]).handler is _multiply
    assert registry.lookup(["calculator", "add"]).handler is _add


def test_entry_with_handler_and_schema_is_always_a_leaf() -> None:
    registry = ActionRegistry({
        "tools": {
            "handler": _add,
            "schema": PairInput,
            "extra": {"handler": _multiply, "schema": PairInput},
        },
    })
    assert isinstance(registry.root.children["tools"], Leaf)
    assert registry.lookup(["tools", "extra"]) is None


def test_action_definitions_are_accepted_and_wrapped() -> None:
    definition = ActionDefinition(name="other", handler=_add, schema=PairInput, description="Sum")
    registry = ActionRegistry({"sum": definition})
    action = registry.lookup("sum")
    assert action.name == "sum"
    assert isinstance(action.schema, SchemaAdapter)
    assert action.describe() == "Sum"


def test_invalid_registration_entry_raises() -> None:
    with pytest.raises(ValueError, match="broken"):
        ActionRegistry({"broken": 42})
    with pytest.raises(ValueError, match="not callable"):
        ActionRegistry({"bad": {"handler": "nope", "schema": PairInput}})


def test_prebuilt_branch_is_used_as_root() -> None:
    definition = ActionDefinition(name="add", handler=_add, schema=SchemaAdapter(PairInput))
    root = Branch(children={"math": Branch(children={"add": Leaf(definition)})})
    registry = ActionRegistry(root)
    assert registry.lookup("math.add") is definition
    assert registry.catalog() == [("math.add", definition)]

from __future__ import annotations

import json

import pytest

from action_router.intent.envelope import parse_envelope, strip_code_fence
from action_router.shared.errors import ActionExecutionError, InvalidEnvelope

ENVELOPE = {
    "actionName": "addNumbers",
    "parameters": {"a": 2, "b": 3},
    "response": "2 + 3 = 5",
}


def test_fenced_and_plain_envelopes_parse_identically() -> None:
    plain = json.dumps(ENVELOPE)
    fenced = f"```json\n{plain}\n```"
    assert parse_envelope(fenced) == parse_envelope(plain)
    envelope = parse_envelope(fenced)
    assert envelope.action_name == "addNumbers"
    assert envelope.parameters == {"a": 2, "b": 3}
    assert envelope.response == "2 + 3 = 5"


def test_bare_fence_and_surrounding_whitespace_are_stripped() -> None:
    raw = "\n  ```\n" + json.dumps(ENVELOPE) + "\n```  \n"
    assert parse_envelope(raw).action_name == "addNumbers"


def test_fences_inside_the_body_are_kept() -> None:
    payload = dict(ENVELOPE, response="Use ```code``` blocks")
    raw = json.dumps(payload)
    assert strip_code_fence(raw) == raw
    assert parse_envelope(raw).response == "Use ```code``` blocks"


def test_invalid_json_carries_raw_text() -> None:
    raw = "Sure! I picked addNumbers for you."
    with pytest.raises(InvalidEnvelope) as exc_info:
        parse_envelope(raw)
    assert exc_info.value.raw_text == raw
    assert raw in str(exc_info.value)
    assert exc_info.value.stage == "parse"
    assert isinstance(exc_info.value, ActionExecutionError)


@pytest.mark.parametrize(
    "payload",
    [
        {"actionName": "addNumbers", "parameters": {"a": 1}},
        {"actionName": "addNumbers", "parameters": "a=1", "response": "ok"},
        {"actionName": "addNumbers", "parameters": [1, 2], "response": "ok"},
        {"actionName": 7, "parameters": {}, "response": "ok"},
        {"parameters": {}, "response": "ok"},
        {"actionName": "addNumbers", "parameters": {}, "response": None},
    ],
)
def test_structurally_invalid_envelopes_are_rejected(payload: dict) -> None:
    raw = json.dumps(payload)
    with pytest.raises(InvalidEnvelope) as exc_info:
        parse_envelope(raw)
    assert exc_info.value.raw_text == raw


def test_top_level_array_is_rejected() -> None:
    with pytest.raises(InvalidEnvelope, match="not an object"):
        parse_envelope(json.dumps([ENVELOPE]))


def test_extra_keys_are_ignored() -> None:
    payload = dict(ENVELOPE, confidence=0.9)
    envelope = parse_envelope(json.dumps(payload))
    assert envelope.action_name == "addNumbers"


def test_deeply_nested_json_is_an_invalid_envelope() -> None:
    raw = '{"actionName": "addNumbers", "parameters": {"a": ' + "[" * 100000 + "]" * 100000 + '}, "response": "x"}'
    with pytest.raises(InvalidEnvelope) as exc_info:
        parse_envelope(raw)
    assert exc_info.value.raw_text == raw
    assert isinstance(exc_info.value.__cause__, RecursionError)

"""
Envelope Parser — turns raw model text into a ResolutionEnvelope.

The model output is untrusted: it is parsed as JSON only, never evaluated,
and the raw text travels with every failure.
"""

from __future__ import annotations

import json
import re
from typing import Any

from action_router.shared.errors import InvalidEnvelope
from action_router.shared.models import ResolutionEnvelope

_LEADING_FENCE = re.compile(r"\A```(?:json)?[ \t]*\r?\n?", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\r?\n?```\Z")


def strip_code_fence(raw: str) -> str:
    """Remove one leading ```json fence and one trailing ``` fence, only at the text edges."""
    text = raw.strip()
    text = _LEADING_FENCE.sub("", text, count=1)
    text = _TRAILING_FENCE.sub("", text, count=1)
    return text.strip()


def parse_envelope(raw: str) -> ResolutionEnvelope:
    """Parse and structurally validate the three-field envelope."""
    if not isinstance(raw, str):
        raise InvalidEnvelope("response is not text", raw_text=repr(raw))

    clean = strip_code_fence(raw)
    try:
        payload: Any = json.loads(clean)
    except (json.JSONDecodeError, RecursionError) as e:
        raise InvalidEnvelope(f"invalid JSON: {e}", raw_text=raw, cause=e) from e

    if not isinstance(payload, dict):
        raise InvalidEnvelope("top level is not an object", raw_text=raw)
    if not isinstance(payload.get("actionName"), str):
        raise InvalidEnvelope("'actionName' must be a string", raw_text=raw)
    if not isinstance(payload.get("parameters"), dict):
        raise InvalidEnvelope("'parameters' must be an object", raw_text=raw)
    if not isinstance(payload.get("response"), str):
        raise InvalidEnvelope("'response' must be a string", raw_text=raw)

    return ResolutionEnvelope(
        action_name=payload["actionName"],
        parameters=payload["parameters"],
        response=payload["response"],
    )

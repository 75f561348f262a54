"""
Observability Layer — Structured router events.

Responsibility:
- Emit pipeline events (stage, message, payload) as JSON log lines
- Fan events out to subscriber callbacks owned by the embedding application
- Measure latency of external calls

The router never prints; applications subscribe and render events themselves.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from collections.abc import Callable, Iterable
from contextlib import contextmanager
from typing import Any

from action_router.shared.models import RouterEvent

# Configure standard logger
logger = logging.getLogger("observability")

EventSubscriber = Callable[[RouterEvent], None]


class Observability:
    """Structured event emitter for one router run."""

    def __init__(
        self,
        trace_id: str | None = None,
        subscribers: Iterable[EventSubscriber] = (),
        verbose: bool = False,
    ):
        self.trace_id = trace_id or str(uuid.uuid4())
        self.subscribers = tuple(subscribers)
        self.verbose = verbose

    def emit(self, stage: str, message: str, payload: dict[str, Any] | None = None) -> RouterEvent:
        """Log an event and deliver it to every subscriber."""
        event = RouterEvent(trace_id=self.trace_id, stage=stage, message=message, payload=payload or {})

        if stage == "ERROR":
            level = logging.ERROR
        elif stage == "WARNING":
            level = logging.WARNING
        else:
            level = self._detail_level
        if logger.isEnabledFor(level):
            entry = event.model_dump()
            entry["timestamp"] = event.timestamp.isoformat()
            self._write(level, entry)

        for subscriber in self.subscribers:
            try:
                subscriber(event)
            except Exception:
                logger.exception("Event subscriber %r failed on stage %s", subscriber, stage)
        return event

    def log_metric(self, operation: str, metric: dict[str, Any]) -> None:
        """Log a timing entry for an external call (not delivered to subscribers)."""
        level = self._detail_level
        if logger.isEnabledFor(level):
            self._write(level, {"trace_id": self.trace_id, "event": "execution_metric", "operation": operation, **metric})

    @contextmanager
    def measure(self, operation: str, metadata: dict[str, Any] | None = None):
        """Time the block; the yielded dict can be extended with call details."""
        metric: dict[str, Any] = dict(metadata or {})
        start_time = time.perf_counter()
        try:
            yield metric
        except Exception as e:
            metric["success"] = False
            metric["error"] = str(e)
            metric["error_type"] = type(e).__name__
            raise
        else:
            metric["success"] = True
            metric["error"] = None
        finally:
            metric["duration_ms"] = round((time.perf_counter() - start_time) * 1000, 2)
            self.log_metric(operation, metric)

    def span(self) -> "Observability":
        """New emitter for a single run: same subscribers, fresh trace id."""
        return Observability(subscribers=self.subscribers, verbose=self.verbose)

    @property
    def _detail_level(self) -> int:
        return logging.INFO if self.verbose else logging.DEBUG

    @staticmethod
    def _write(level: int, entry: dict[str, Any]) -> None:
        # Log lines never fail a run; unserializable entries fall back to repr.
        try:
            line = json.dumps(entry, ensure_ascii=False, default=repr)
        except (TypeError, ValueError):
            line = repr(entry)
        logger.log(level, line)

"""Event buffer that fans events out to subscriber queues."""

from __future__ import annotations

import asyncio
import dataclasses
import queue as queue_mod
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from corenet.nrf.types import _format_time, _parse_time

_DEFAULT_MAX = 500
_CORE_KEYS = ("id", "kind", "from", "to", "type", "spec", "ts")


def _str_field(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"event field {key!r} must be a string, got {value!r}")
    return value


@dataclass
class Event:
    """One observed signalling event; ``source`` and ``target`` are the endpoints."""

    id: str = ""
    kind: str = ""
    source: str = ""
    target: str = ""
    type: str = ""
    spec: str = ""
    ts: datetime | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = dict(self.extra)
        out.update(
            {
                "id": self.id,
                "kind": self.kind,
                "from": self.source,
                "to": self.target,
                "type": self.type,
                "spec": self.spec,
            }
        )
        if self.ts is not None:
            out["ts"] = _format_time(self.ts)
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Event:
        if not isinstance(data, dict):
            raise ValueError("event must be a JSON object")
        return cls(
            id=_str_field(data, "id"),
            kind=_str_field(data, "kind"),
            source=_str_field(data, "from"),
            target=_str_field(data, "to"),
            type=_str_field(data, "type"),
            spec=_str_field(data, "spec"),
            ts=_parse_time(data.get("ts")),
            extra={k: v for k, v in data.items() if k not in _CORE_KEYS},
        )


class Hub:
    """Keeps the most recent events and broadcasts new ones to subscribers."""

    def __init__(self, max_events: int = _DEFAULT_MAX) -> None:
        self.max = max_events if max_events > 0 else _DEFAULT_MAX
        self._lock = threading.Lock()
        self._events: list[Event] = []
        self._subscribers: dict[int, Any] = {}

    def add(self, ev: Event) -> Event:
        """Store and broadcast an event, filling in a missing id or timestamp."""
        if not ev.id or ev.ts is None:
            ev = dataclasses.replace(
                ev,
                id=ev.id or f"ev-{time.time_ns()}",
                ts=ev.ts if ev.ts is not None else datetime.now(timezone.utc),
            )
        with self._lock:
            self._events.append(ev)
            if len(self._events) > self.max:
                del self._events[: len(self._events) - self.max]
            subscribers = list(self._subscribers.values())

        for q in subscribers:
            try:
                q.put_nowait(ev)
            except (asyncio.QueueFull, queue_mod.Full):
                pass  # slow subscriber: drop rather than block
        return ev

    def recent(self, n: int) -> list[Event]:
        """Return the last n events, oldest first."""
        with self._lock:
            if n <= 0 or not self._events:
                return []
            return list(self._events[-n:])

    def subscribe(self, queue: Any) -> None:
        """Register a queue (anything with put_nowait) to receive new events."""
        with self._lock:
            self._subscribers[id(queue)] = queue

    def unsubscribe(self, queue: Any) -> None:
        """Stop delivering events to a queue."""
        with self._lock:
            self._subscribers.pop(id(queue), None)

    def clear(self) -> None:
        """Drop all buffered events."""
        with self._lock:
            self._events = []
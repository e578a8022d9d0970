"""Event sinks the Gate reports through.

Gate events are flat dicts with at least `event`, `type_name` and
`origin_id`; matches also carry `pattern`.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any

from serialgate.audit.ledger import DecisionLedger

logger = logging.getLogger("serialgate.gate")

INFO = "info"
ERROR = "error"


class EventSink(ABC):
    @abstractmethod
    def info(self, event: dict[str, Any]) -> None:
        raise NotImplementedError

    @abstractmethod
    def error(self, event: dict[str, Any]) -> None:
        raise NotImplementedError


def _render(event: dict[str, Any]) -> str:
    return " ".join(f"{key}={event[key]}" for key in sorted(event))


class LoggingEventSink(EventSink):
    def __init__(self, log: logging.Logger | None = None):
        self.log = log or logger

    def info(self, event: dict[str, Any]) -> None:
        self.log.info("%s", _render(event))

    def error(self, event: dict[str, Any]) -> None:
        self.log.error("%s", _render(event))


class LedgerEventSink(EventSink):
    def __init__(self, ledger: DecisionLedger):
        self.ledger = ledger

    def info(self, event: dict[str, Any]) -> None:
        self.ledger.write_event({"level": INFO, **event})

    def error(self, event: dict[str, Any]) -> None:
        self.ledger.write_event({"level": ERROR, **event})


class CompositeEventSink(EventSink):
    def __init__(self, *sinks: EventSink):
        self.sinks = sinks

    def info(self, event: dict[str, Any]) -> None:
        for sink in self.sinks:
            sink.info(event)

    def error(self, event: dict[str, Any]) -> None:
        for sink in self.sinks:
            sink.error(event)


class MemoryEventSink(EventSink):
    def __init__(self):
        self.events: list[dict[str, Any]] = []
        self._lock = threading.Lock()

    def info(self, event: dict[str, Any]) -> None:
        with self._lock:
            self.events.append({"level": INFO, **event})

    def error(self, event: dict[str, Any]) -> None:
        with self._lock:
            self.events.append({"level": ERROR, **event})

    def of_level(self, level: str) -> list[dict[str, Any]]:
        with self._lock:
            return [e for e in self.events if e["level"] == level]

    def clear(self) -> None:
        with self._lock:
            self.events.clear()

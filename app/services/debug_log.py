"""
Debug Log
=========
Bounded, in-memory sink for diagnostic events shown by the debug endpoint.

Nothing here patches global I/O. Producers call record() explicitly:
    - DebugLogHandler forwards Python log records (attached in setup_logging)
    - the HTTP logging middleware records one network event per request

Retention:
    logs     — last 100 entries (all levels)
    errors   — last 50 error messages
    network  — last 50 requests
"""
import logging
import threading
import time
from collections import deque
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Literal, Union

from app.core.constants import MAX_ERROR_ENTRIES, MAX_LOG_ENTRIES, MAX_NETWORK_ENTRIES


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class LogEvent:
    message: str
    type: Literal["log", "warn", "error"] = "log"
    timestamp: int = field(default_factory=_now_ms)


@dataclass
class NetworkEvent:
    url: str
    method: str
    status: int
    duration: float
    timestamp: int = field(default_factory=_now_ms)


DebugEvent = Union[LogEvent, NetworkEvent]


class DebugLog:
    """
    Observer sink with fixed-size ring buffers.

    Usage:
        sink = DebugLog()
        sink.record(LogEvent("cache warmed"))
        sink.record(NetworkEvent("/api/bugs", "GET", 200, 3.2))
        sink.snapshot()
    """

    def __init__(
        self,
        max_logs: int = MAX_LOG_ENTRIES,
        max_errors: int = MAX_ERROR_ENTRIES,
        max_network: int = MAX_NETWORK_ENTRIES,
    ) -> None:
        self._logs: deque = deque(maxlen=max_logs)
        self._errors: deque = deque(maxlen=max_errors)
        self._network: deque = deque(maxlen=max_network)
        # Log handlers may fire from worker threads.
        self._lock = threading.Lock()

    def record(self, event: DebugEvent) -> None:
        with self._lock:
            if isinstance(event, NetworkEvent):
                self._network.append(event)
                return
            self._logs.append(event)
            if event.type == "error":
                self._errors.append(event.message)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "logs": [asdict(e) for e in self._logs],
                "errors": list(self._errors),
                "networkRequests": [asdict(e) for e in self._network],
            }

    def clear(self) -> None:
        with self._lock:
            self._logs.clear()
            self._errors.clear()
            self._network.clear()


class DebugLogHandler(logging.Handler):
    """logging.Handler that forwards records into a DebugLog."""

    def __init__(self, sink: DebugLog, level: int = logging.INFO) -> None:
        super().__init__(level)
        self.sink = sink

    def emit(self, record: logging.LogRecord) -> None:
        try:
            if record.levelno >= logging.ERROR:
                kind = "error"
            elif record.levelno >= logging.WARNING:
                kind = "warn"
            else:
                kind = "log"
            self.sink.record(LogEvent(message=self.format(record), type=kind))
        except Exception:
            self.handleError(record)


# Process-wide sink used by the API and logging setup.
debug_log = DebugLog()

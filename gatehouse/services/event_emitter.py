# gatehouse/services/event_emitter.py
"""
Named-event publish/subscribe registry.

One emitter is created per application at startup and handed to whoever
needs it. Two events are in use:
  log               LogPayload for the live log viewer
  permission-error  PermissionErrorContext from rejected writes
"""

from collections import deque
from dataclasses import dataclass
from datetime import datetime
from threading import RLock
from typing import Any, Callable, Optional

LOG_EVENT = "log"
PERMISSION_ERROR_EVENT = "permission-error"

Listener = Callable[[Any], None]


@dataclass(frozen=True)
class LogPayload:
    message: str
    data: Optional[Any] = None


class EventEmitter:
    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}
        self._lock = RLock()

    def on(self, event_name: str, callback: Listener) -> None:
        with self._lock:
            self._listeners.setdefault(event_name, []).append(callback)

    def off(self, event_name: str, callback: Listener) -> None:
        """Drop every registration of `callback` for `event_name`."""
        with self._lock:
            registered = self._listeners.get(event_name)
            if not registered:
                return
            self._listeners[event_name] = [cb for cb in registered if cb != callback]

    def emit(self, event_name: str, payload: Any) -> None:
        """
        Call every listener registered for `event_name`, in registration order.
        The listener list is copied first: on/off calls made by a listener only
        take effect from the next emit.
        """
        with self._lock:
            listeners = tuple(self._listeners.get(event_name, ()))
        for callback in listeners:
            callback(payload)

    def listener_count(self, event_name: str) -> int:
        with self._lock:
            return len(self._listeners.get(event_name, ()))


@dataclass(frozen=True)
class BufferedEvent:
    timestamp: str
    payload: Any


class EventLogBuffer:
    """Keeps the most recent payloads of one event, newest first."""

    def __init__(self, emitter: EventEmitter, event_name: str, maxlen: int = 200):
        self._emitter = emitter
        self._event_name = event_name
        self._entries: deque[BufferedEvent] = deque(maxlen=max(1, maxlen))
        self._started = False

    def start(self) -> None:
        if self._started:
            return
        self._emitter.on(self._event_name, self._record)
        self._started = True

    def stop(self) -> None:
        self._emitter.off(self._event_name, self._record)
        self._started = False

    def _record(self, payload: Any) -> None:
        timestamp = datetime.now().strftime("%H:%M:%S")
        self._entries.appendleft(BufferedEvent(timestamp=timestamp, payload=payload))

    def entries(self) -> list[BufferedEvent]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

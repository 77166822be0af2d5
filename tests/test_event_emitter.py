# tests/test_event_emitter.py
"""Unit tests for the event emitter and the event log buffer."""

import pytest
from gatehouse.services.errors import PermissionErrorContext
from gatehouse.services.event_emitter import (
    LOG_EVENT,
    PERMISSION_ERROR_EVENT,
    EventEmitter,
    EventLogBuffer,
    LogPayload,
)


class TestEventEmitter:
    def test_listeners_called_in_registration_order(self, emitter):
        calls = []
        emitter.on(LOG_EVENT, lambda p: calls.append(("a", p)))
        emitter.on(LOG_EVENT, lambda p: calls.append(("b", p)))

        emitter.emit(LOG_EVENT, "hello")

        assert calls == [("a", "hello"), ("b", "hello")]

    def test_emit_without_listeners_is_noop(self, emitter):
        emitter.emit("nobody-listens", {"x": 1})
        assert emitter.listener_count("nobody-listens") == 0

    def test_off_removes_every_registration(self, emitter):
        calls = []

        def listener(payload):
            calls.append(payload)

        emitter.on(LOG_EVENT, listener)
        emitter.on(LOG_EVENT, listener)
        emitter.off(LOG_EVENT, listener)
        emitter.emit(LOG_EVENT, "ignored")

        assert calls == []
        assert emitter.listener_count(LOG_EVENT) == 0

    def test_off_unknown_listener_is_noop(self, emitter):
        emitter.off(LOG_EVENT, lambda p: None)
        assert emitter.listener_count(LOG_EVENT) == 0

    def test_events_are_independent(self, emitter):
        logs, errors = [], []
        emitter.on(LOG_EVENT, logs.append)
        emitter.on(PERMISSION_ERROR_EVENT, errors.append)

        emitter.emit(PERMISSION_ERROR_EVENT, "denied")

        assert logs == []
        assert errors == ["denied"]

    def test_listener_added_during_emit_waits_for_next_emit(self, emitter):
        late = []

        def first(payload):
            emitter.on(LOG_EVENT, late.append)

        emitter.on(LOG_EVENT, first)
        emitter.emit(LOG_EVENT, 1)
        assert late == []

        emitter.emit(LOG_EVENT, 2)
        assert late == [2]

    def test_listener_exception_propagates(self, emitter):
        def broken(payload):
            raise RuntimeError("boom")

        emitter.on(LOG_EVENT, broken)
        with pytest.raises(RuntimeError):
            emitter.emit(LOG_EVENT, None)

    def test_bound_method_can_be_removed(self, emitter):
        buffer = EventLogBuffer(emitter, LOG_EVENT)
        buffer.start()
        assert emitter.listener_count(LOG_EVENT) == 1
        buffer.stop()
        assert emitter.listener_count(LOG_EVENT) == 0


class TestEventLogBuffer:
    def test_newest_first_and_bounded(self):
        emitter = EventEmitter()
        buffer = EventLogBuffer(emitter, LOG_EVENT, maxlen=2)
        buffer.start()

        for i in range(3):
            emitter.emit(LOG_EVENT, LogPayload(f"message {i}"))

        messages = [entry.payload.message for entry in buffer.entries()]
        assert messages == ["message 2", "message 1"]

    def test_start_twice_registers_once(self):
        emitter = EventEmitter()
        buffer = EventLogBuffer(emitter, PERMISSION_ERROR_EVENT)
        buffer.start()
        buffer.start()

        emitter.emit(PERMISSION_ERROR_EVENT, PermissionErrorContext(path="visitors/1", operation="delete"))

        assert len(buffer.entries()) == 1
        assert buffer.entries()[0].payload.operation == "delete"

    def test_clear(self):
        emitter = EventEmitter()
        buffer = EventLogBuffer(emitter, LOG_EVENT)
        buffer.start()
        emitter.emit(LOG_EVENT, LogPayload("x"))
        buffer.clear()
        assert buffer.entries() == []

# tests/test_mutations.py
"""Unit tests for the non-blocking write helpers."""

import pytest
from unittest.mock import MagicMock
from conftest import ADMIN, RECEPTION
from gatehouse.services import collection_names as names
from gatehouse.services.event_emitter import PERMISSION_ERROR_EVENT
from gatehouse.services.mutations import NonBlockingWriter


class TestNonBlockingWriter:
    @pytest.mark.asyncio
    async def test_returns_immediately_and_writes_later(self, store, emitter):
        writer = NonBlockingWriter(store, emitter)

        result = writer.add_document_non_blocking(store.collection(names.VISITORS), {"name": "Jo"})

        assert result is None
        assert writer.pending == 1
        assert store.get_all(store.collection(names.VISITORS)).size == 0

        await writer.drain()

        assert writer.pending == 0
        assert store.get_all(store.collection(names.VISITORS)).size == 1

    @pytest.mark.asyncio
    async def test_permission_denial_emits_one_event(self, store, emitter):
        events = []
        emitter.on(PERMISSION_ERROR_EVENT, events.append)
        writer = NonBlockingWriter(store, emitter)

        writer.set_document_non_blocking(store.document(names.COMPANIES, "c1"), {"name": "Acme"},
                                         auth=RECEPTION)
        await writer.drain()

        assert len(events) == 1
        assert events[0].path == "companies/c1"
        assert events[0].operation == "write"
        assert events[0].request_resource_data == {"name": "Acme"}
        assert store.get(store.document(names.COMPANIES, "c1")).exists is False

    @pytest.mark.asyncio
    async def test_operation_names(self, store, emitter):
        events = []
        emitter.on(PERMISSION_ERROR_EVENT, events.append)
        writer = NonBlockingWriter(store, emitter)

        writer.add_document_non_blocking(store.collection(names.EMPLOYEES), {"display_name": "Jo"})
        writer.update_document_non_blocking(store.document(names.VISITORS, "v1"), {"induction_valid": False},
                                            auth=RECEPTION)
        writer.delete_document_non_blocking(store.document(names.VISITORS, "v1"), auth=RECEPTION)
        await writer.drain()

        assert [(e.operation, e.path) for e in events] == [
            ("create", "employees"),
            ("update", "visitors/v1"),
            ("delete", "visitors/v1"),
        ]
        assert events[2].request_resource_data is None

    @pytest.mark.asyncio
    async def test_other_failures_are_logged_not_emitted(self, store, emitter):
        events = []
        emitter.on(PERMISSION_ERROR_EVENT, events.append)
        writer = NonBlockingWriter(store, emitter)

        # Updating a missing document fails, but not on permissions
        writer.update_document_non_blocking(store.document(names.VISITORS, "ghost"), {"checked_out": True},
                                            auth=ADMIN)
        await writer.drain()

        assert events == []

    @pytest.mark.asyncio
    async def test_unexpected_exception_does_not_reach_caller(self, emitter):
        store = MagicMock()
        store.delete.side_effect = RuntimeError("disk on fire")
        writer = NonBlockingWriter(store, emitter)
        listener = MagicMock()
        emitter.on(PERMISSION_ERROR_EVENT, listener)

        writer.delete_document_non_blocking(MagicMock(path="visitors/v1"))
        await writer.drain()

        listener.assert_not_called()

    @pytest.mark.asyncio
    async def test_payload_is_copied(self, store, emitter):
        writer = NonBlockingWriter(store, emitter)
        record = {"name": "Jo"}

        writer.set_document_non_blocking(store.document(names.VISITORS, "v1"), record)
        record["name"] = "Changed"
        await writer.drain()

        assert store.get(store.document(names.VISITORS, "v1")).data == {"name": "Jo"}

    def test_needs_running_loop(self, store, emitter):
        writer = NonBlockingWriter(store, emitter)
        with pytest.raises(RuntimeError):
            writer.delete_document_non_blocking(store.document(names.VISITORS, "v1"))

# tests/test_checkin_service.py
"""Unit tests for check-out."""

import pytest
from datetime import datetime, timedelta, timezone
from gatehouse.services import collection_names as names
from gatehouse.services.checkin_service import AlreadyCheckedOutError, check_out
from gatehouse.services.mutations import NonBlockingWriter

CHECK_IN = datetime(2026, 3, 5, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def visitor_id(store):
    record = {"type": "visitor", "name": "Jo", "company": "Acme",
              "check_in_time": CHECK_IN, "checked_out": False, "check_out_time": None}
    return store.add(store.collection(names.VISITORS), record).doc_id


class TestCheckOut:
    @pytest.mark.asyncio
    async def test_never_earlier_than_check_in(self, store, emitter, visitor_id):
        writer = NonBlockingWriter(store, emitter)

        result = check_out(store, writer, visitor_id, now=CHECK_IN - timedelta(hours=1))
        await writer.drain()

        assert result["check_out_time"] == CHECK_IN
        stored = store.get(store.document(names.VISITORS, visitor_id)).data
        assert stored["checked_out"] is True
        assert stored["check_out_time"] == CHECK_IN

    @pytest.mark.asyncio
    async def test_keeps_later_time(self, store, emitter, visitor_id):
        writer = NonBlockingWriter(store, emitter)
        later = CHECK_IN + timedelta(hours=2)

        result = check_out(store, writer, visitor_id, now=later)
        await writer.drain()

        assert result["check_out_time"] == later

    @pytest.mark.asyncio
    async def test_second_check_out_rejected(self, store, emitter, visitor_id):
        writer = NonBlockingWriter(store, emitter)
        check_out(store, writer, visitor_id, now=CHECK_IN)
        await writer.drain()

        with pytest.raises(AlreadyCheckedOutError):
            check_out(store, writer, visitor_id, now=CHECK_IN)

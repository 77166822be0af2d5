# gatehouse/services/checkin_service.py
"""
Check-in sessions and check-out.

A kiosk opens a wizard session, fills it in step by step, and the finished
record is written to `visitors` without waiting for the write.
"""

from datetime import datetime, timezone
from threading import RLock
from typing import Optional
from uuid import uuid4

from gatehouse.services import collection_names as names
from gatehouse.services.access_rules import AuthContext
from gatehouse.services.checkin_wizard import WIZARDS, CheckInWizard
from gatehouse.services.document_store import DocumentStore
from gatehouse.services.errors import DocumentNotFoundError
from gatehouse.services.mutations import NonBlockingWriter
from gatehouse.utils.logger import get_logger

logger = get_logger(__name__)


class AlreadyCheckedOutError(Exception):
    pass


class WizardSessions:
    """Open check-in wizards, keyed by session id. Lives in process memory."""

    def __init__(self):
        self._sessions: dict[str, CheckInWizard] = {}
        self._lock = RLock()

    def __len__(self):
        return len(self._sessions)

    def open(self, wizard: CheckInWizard) -> str:
        session_id = uuid4().hex
        with self._lock:
            self._sessions[session_id] = wizard
        return session_id

    def get(self, session_id: str) -> CheckInWizard:
        with self._lock:
            return self._sessions[session_id]

    def discard(self, session_id: str) -> Optional[CheckInWizard]:
        with self._lock:
            return self._sessions.pop(session_id, None)


def start_wizard(kind: str, writer: NonBlockingWriter, store: DocumentStore,
                 auth: Optional[AuthContext] = None) -> CheckInWizard:
    """New wizard whose final step writes the record to `visitors`."""
    wizard_cls = WIZARDS.get(kind)
    if wizard_cls is None:
        raise KeyError(kind)
    visitors = store.collection(names.VISITORS)

    def persist(record: dict) -> None:
        logger.info(f"[check-in] {record['type']} {record['name']} ({record['company']})")
        writer.add_document_non_blocking(visitors, record, auth=auth)

    return wizard_cls(persist)


def check_out(store: DocumentStore, writer: NonBlockingWriter, visitor_id: str,
              auth: Optional[AuthContext] = None, now: Optional[datetime] = None) -> dict:
    """
    Mark a check-in record as checked out. The record is read first so the
    check-out time is never earlier than the check-in time; the write itself
    is not awaited.
    """
    ref = store.document(names.VISITORS, visitor_id)
    snapshot = store.get(ref, auth=auth)
    if not snapshot.exists:
        raise DocumentNotFoundError(ref.path)
    record = snapshot.data
    if record.get("checked_out"):
        raise AlreadyCheckedOutError(f"{record.get('name', visitor_id)} is already checked out")

    check_out_time = now or datetime.now(timezone.utc)
    check_in_time = record.get("check_in_time")
    if check_in_time is not None and check_out_time < check_in_time:
        check_out_time = check_in_time

    writer.update_document_non_blocking(
        ref, {"checked_out": True, "check_out_time": check_out_time}, auth=auth,
    )
    logger.info(f"[check-out] {record.get('name')} at {check_out_time.isoformat()}")
    return {**record, "id": visitor_id, "checked_out": True, "check_out_time": check_out_time}

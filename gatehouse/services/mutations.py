# gatehouse/services/mutations.py
"""
Non-blocking writes.

Each helper schedules the write as an asyncio task on the running loop and
returns None straight away: callers never see the outcome. When the write
fails, the failure is sorted:
  - permission denial  → one `permission-error` event carrying path,
                         operation and the rejected payload
  - anything else      → logged, not surfaced
"""

import asyncio
from typing import Any, Callable, Mapping, Optional

from gatehouse.services.access_rules import AuthContext
from gatehouse.services.document_store import CollectionRef, DocumentRef, DocumentStore
from gatehouse.services.errors import PermissionDeniedError, PermissionErrorContext
from gatehouse.services.event_emitter import PERMISSION_ERROR_EVENT, EventEmitter
from gatehouse.utils.logger import get_logger

logger = get_logger(__name__)


class NonBlockingWriter:
    def __init__(self, store: DocumentStore, emitter: EventEmitter):
        self._store = store
        self._emitter = emitter
        self._pending: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def set_document_non_blocking(self, ref: DocumentRef, data: Mapping[str, Any], *,
                                  merge: bool = False, auth: Optional[AuthContext] = None) -> None:
        payload = dict(data)
        self._dispatch("write", ref.path, payload,
                       lambda: self._store.set(ref, payload, merge=merge, auth=auth))

    def add_document_non_blocking(self, collection: CollectionRef, data: Mapping[str, Any], *,
                                  auth: Optional[AuthContext] = None) -> None:
        payload = dict(data)
        self._dispatch("create", collection.path, payload,
                       lambda: self._store.add(collection, payload, auth=auth))

    def update_document_non_blocking(self, ref: DocumentRef, data: Mapping[str, Any], *,
                                     auth: Optional[AuthContext] = None) -> None:
        payload = dict(data)
        self._dispatch("update", ref.path, payload,
                       lambda: self._store.update(ref, payload, auth=auth))

    def delete_document_non_blocking(self, ref: DocumentRef, *,
                                     auth: Optional[AuthContext] = None) -> None:
        self._dispatch("delete", ref.path, None,
                       lambda: self._store.delete(ref, auth=auth))

    async def drain(self) -> None:
        """Wait for every write dispatched so far."""
        while self._pending:
            await asyncio.gather(*tuple(self._pending))

    def _dispatch(self, operation: str, path: str, payload: Optional[dict],
                  write: Callable[[], Any]) -> None:
        task = asyncio.get_running_loop().create_task(self._run(operation, path, payload, write))
        # The loop only keeps weak references to tasks
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _run(self, operation: str, path: str, payload: Optional[dict],
                   write: Callable[[], Any]) -> None:
        try:
            write()
        except PermissionDeniedError as exc:
            logger.warning(f"'{operation}' on {path} denied: {exc}")
            self._emitter.emit(
                PERMISSION_ERROR_EVENT,
                PermissionErrorContext(path=path, operation=operation, request_resource_data=payload),
            )
        except Exception as exc:
            logger.error(f"'{operation}' operation on {path} failed: {exc}", exc_info=True)

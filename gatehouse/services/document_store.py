# gatehouse/services/document_store.py
"""
Schema-less document store on top of SQLAlchemy.

Documents are JSON objects grouped into collections and addressed by
`collection/doc_id`. Every call is checked against the access rules for the
caller's AuthContext. Live queries (`on_snapshot`) push a fresh snapshot to
their listener whenever a committed write changes the listener's result.

Query evaluation happens in Python over the decoded documents of one
collection: equality/range/`in` filters, multi-key ordering and a limit.
Documents missing a filtered or ordered field never match.
"""

import json
import operator
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from threading import RLock
from typing import Any, Callable, Mapping, Optional, Union
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError

from gatehouse.models.document import Document
from gatehouse.services.access_rules import AuthContext, check_access
from gatehouse.services.errors import (
    DocumentNotFoundError,
    PermissionDeniedError,
    StoreError,
    StoreUnavailableError,
)
from gatehouse.utils.logger import get_logger

logger = get_logger(__name__)

_DATETIME_TAG = "__datetime__"
_MISSING = object()


def _in(value, candidates) -> bool:
    return value in candidates


_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "in": _in,
}


# ── Value codec ──────────────────────────────────────────────────────────────

def encode_value(value: Any) -> Any:
    """Turn a Python value into something the JSON column can hold."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return {_DATETIME_TAG: value.astimezone(timezone.utc).isoformat()}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Mapping):
        return {str(k): encode_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_value(v) for v in value]
    return value


def decode_value(value: Any) -> Any:
    if isinstance(value, dict):
        if len(value) == 1 and _DATETIME_TAG in value:
            return datetime.fromisoformat(value[_DATETIME_TAG])
        return {k: decode_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [decode_value(v) for v in value]
    return value


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ── References & queries ─────────────────────────────────────────────────────

def new_document_id() -> str:
    return uuid4().hex


@dataclass(frozen=True)
class DocumentRef:
    collection: str
    doc_id: str

    @property
    def path(self) -> str:
        return f"{self.collection}/{self.doc_id}"

    @property
    def parent(self) -> "CollectionRef":
        return CollectionRef(self.collection)


@dataclass(frozen=True)
class Query:
    collection: str
    filters: tuple = ()
    orders: tuple = ()
    limit_to: Optional[int] = None

    @property
    def path(self) -> str:
        return self.collection

    def where(self, field_path: str, op: str, value: Any) -> "Query":
        if op not in _OPERATORS:
            raise ValueError(f"Unsupported operator: {op}")
        if op == "in":
            value = tuple(decode_value(encode_value(v)) for v in value)
        else:
            value = decode_value(encode_value(value))
        return replace(self, filters=self.filters + ((field_path, op, value),))

    def order_by(self, field_path: str, descending: bool = False) -> "Query":
        return replace(self, orders=self.orders + ((field_path, descending),))

    def limit(self, count: int) -> "Query":
        return replace(self, limit_to=max(0, int(count)))

    def describe(self) -> str:
        parts = [self.collection]
        for field_path, op, value in self.filters:
            parts.append(f"where {field_path} {op} {value!r}")
        for field_path, descending in self.orders:
            parts.append(f"order by {field_path} {'desc' if descending else 'asc'}")
        if self.limit_to is not None:
            parts.append(f"limit {self.limit_to}")
        return " ".join(parts)

    def matches(self, data: Mapping[str, Any]) -> bool:
        for field_path, op, expected in self.filters:
            actual = data.get(field_path, _MISSING)
            if actual is _MISSING:
                return False
            try:
                if not _OPERATORS[op](actual, expected):
                    return False
            except TypeError:
                return False
        for field_path, _ in self.orders:
            if data.get(field_path) is None:
                return False
        return True

    def apply(self, docs: list["DocumentSnapshot"]) -> list["DocumentSnapshot"]:
        result = [doc for doc in docs if self.matches(doc.data)]
        # Stable sorts applied last key first give a multi-key ordering
        for field_path, descending in reversed(self.orders):
            try:
                result.sort(key=lambda doc: doc.data[field_path], reverse=descending)
            except TypeError as exc:
                raise StoreError(f"Cannot order {self.collection} by {field_path}: {exc}") from exc
        if self.limit_to is not None:
            result = result[: self.limit_to]
        return result


@dataclass(frozen=True)
class CollectionRef:
    name: str

    @property
    def path(self) -> str:
        return self.name

    def doc(self, doc_id: Optional[str] = None) -> DocumentRef:
        return DocumentRef(self.name, doc_id or new_document_id())

    def query(self) -> Query:
        return Query(self.name)

    def where(self, field_path: str, op: str, value: Any) -> Query:
        return self.query().where(field_path, op, value)

    def order_by(self, field_path: str, descending: bool = False) -> Query:
        return self.query().order_by(field_path, descending)


Target = Union[CollectionRef, Query, DocumentRef]


def _as_target(target: Target) -> Union[Query, DocumentRef]:
    if isinstance(target, CollectionRef):
        return target.query()
    if isinstance(target, (Query, DocumentRef)):
        return target
    raise TypeError(f"Cannot listen to {type(target).__name__}")


# ── Snapshots ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class DocumentSnapshot:
    id: str
    path: str
    data: Optional[dict] = None

    @property
    def exists(self) -> bool:
        return self.data is not None

    def to_dict(self) -> Optional[dict]:
        return dict(self.data) if self.data is not None else None


@dataclass(frozen=True)
class QuerySnapshot:
    docs: tuple = ()

    @property
    def size(self) -> int:
        return len(self.docs)

    @property
    def empty(self) -> bool:
        return not self.docs

    def __iter__(self):
        return iter(self.docs)


def _fingerprint(snapshot: Union[DocumentSnapshot, QuerySnapshot]) -> str:
    if isinstance(snapshot, DocumentSnapshot):
        payload = [snapshot.id, encode_value(snapshot.data)]
    else:
        payload = [[doc.id, encode_value(doc.data)] for doc in snapshot.docs]
    return json.dumps(payload, sort_keys=True, default=str)


# ── Writes ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class _Write:
    kind: str                     # set | update | delete
    ref: DocumentRef
    data: Optional[dict] = None
    merge: bool = False


class WriteBatch:
    """Collects writes and commits them atomically: all apply or none do."""

    def __init__(self, store: "DocumentStore"):
        self._store = store
        self._writes: list[_Write] = []
        self._committed = False

    def __len__(self):
        return len(self._writes)

    def set(self, ref: DocumentRef, data: Mapping[str, Any], merge: bool = False) -> "WriteBatch":
        self._writes.append(_Write("set", ref, dict(data), merge))
        return self

    def update(self, ref: DocumentRef, data: Mapping[str, Any]) -> "WriteBatch":
        self._writes.append(_Write("update", ref, dict(data)))
        return self

    def delete(self, ref: DocumentRef) -> "WriteBatch":
        self._writes.append(_Write("delete", ref))
        return self

    def commit(self, *, auth: Optional[AuthContext] = None) -> None:
        if self._committed:
            raise StoreError("A write batch can only be committed once.")
        self._committed = True
        self._store._commit(self._writes, auth)


# ── Listeners ────────────────────────────────────────────────────────────────

@dataclass(eq=False)
class _Listener:
    target: Union[Query, DocumentRef]
    on_next: Callable
    on_error: Optional[Callable[[Exception], None]] = None
    active: bool = True
    last: Optional[str] = field(default=None, repr=False)


# ── Store ────────────────────────────────────────────────────────────────────

class DocumentStore:
    def __init__(self, session_factory):
        self._session_factory = session_factory
        self._listeners: list[_Listener] = []
        self._lock = RLock()

    # References
    def collection(self, name: str) -> CollectionRef:
        return CollectionRef(name)

    def document(self, collection: str, doc_id: str) -> DocumentRef:
        return DocumentRef(collection, doc_id)

    def batch(self) -> WriteBatch:
        return WriteBatch(self)

    # Reads
    def get(self, ref: DocumentRef, *, auth: Optional[AuthContext] = None) -> DocumentSnapshot:
        check_access(auth, ref.collection, "get", path=ref.path)
        return self._read_document(ref)

    def get_all(self, target: Union[CollectionRef, Query], *, auth: Optional[AuthContext] = None) -> QuerySnapshot:
        query = _as_target(target)
        check_access(auth, query.collection, "list", path=query.path)
        return self._run_query(query)

    # Writes
    def add(self, collection: CollectionRef, data: Mapping[str, Any], *,
            auth: Optional[AuthContext] = None) -> DocumentRef:
        ref = collection.doc()
        self._commit([_Write("set", ref, dict(data))], auth)
        return ref

    def set(self, ref: DocumentRef, data: Mapping[str, Any], *, merge: bool = False,
            auth: Optional[AuthContext] = None) -> None:
        self._commit([_Write("set", ref, dict(data), merge)], auth)

    def update(self, ref: DocumentRef, data: Mapping[str, Any], *,
               auth: Optional[AuthContext] = None) -> None:
        self._commit([_Write("update", ref, dict(data))], auth)

    def delete(self, ref: DocumentRef, *, auth: Optional[AuthContext] = None) -> None:
        self._commit([_Write("delete", ref)], auth)

    # Live queries
    def on_snapshot(
        self,
        target: Target,
        on_next: Callable,
        on_error: Optional[Callable[[Exception], None]] = None,
        *,
        auth: Optional[AuthContext] = None,
    ) -> Callable[[], None]:
        """
        Listen to a document or query. The current result is delivered before
        this returns; later results follow every committed change.
        Returns the unsubscribe callable.
        """
        resolved = _as_target(target)
        operation = "get" if isinstance(resolved, DocumentRef) else "list"
        try:
            check_access(auth, resolved.collection, operation, path=resolved.path)
        except PermissionDeniedError as exc:
            self._fail_listener(_Listener(resolved, on_next, on_error), exc)
            return lambda: None

        listener = _Listener(resolved, on_next, on_error)
        with self._lock:
            self._listeners.append(listener)
        self._deliver(listener)

        def unsubscribe() -> None:
            listener.active = False
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    # Internals
    def _read_document(self, ref: DocumentRef) -> DocumentSnapshot:
        session = self._session_factory()
        try:
            row = session.get(Document, (ref.collection, ref.doc_id))
            data = decode_value(row.data) if row is not None else None
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"Reading {ref.path} failed: {exc}") from exc
        finally:
            session.close()
        return DocumentSnapshot(id=ref.doc_id, path=ref.path, data=data)

    def _run_query(self, query: Query) -> QuerySnapshot:
        session = self._session_factory()
        try:
            rows = (
                session.query(Document)
                .filter(Document.collection == query.collection)
                .order_by(Document.created_at, Document.doc_id)
                .all()
            )
            docs = [
                DocumentSnapshot(id=row.doc_id, path=row.path, data=decode_value(row.data))
                for row in rows
            ]
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"Query on {query.path} failed: {exc}") from exc
        finally:
            session.close()
        return QuerySnapshot(docs=tuple(query.apply(docs)))

    def _apply(self, session, write: _Write, auth: Optional[AuthContext]) -> None:
        ref = write.ref
        row = session.get(Document, (ref.collection, ref.doc_id))
        now = _utcnow()

        if write.kind == "delete":
            check_access(auth, ref.collection, "delete", path=ref.path)
            if row is not None:
                session.delete(row)
            return

        if write.kind == "update":
            check_access(auth, ref.collection, "update", write.data, ref.path)
            if row is None:
                raise DocumentNotFoundError(ref.path)
            row.data = {**row.data, **encode_value(write.data)}
            row.updated_at = now
            return

        if row is None:
            operation = "create"
        else:
            # A plain set replaces the whole document
            operation = "update" if write.merge else "write"
        check_access(auth, ref.collection, operation, write.data, ref.path)
        encoded = encode_value(write.data)
        if row is None:
            session.add(Document(collection=ref.collection, doc_id=ref.doc_id,
                                 data=encoded, created_at=now, updated_at=now))
            # Later writes in the same batch must see this row
            session.flush()
        else:
            row.data = {**row.data, **encoded} if write.merge else encoded
            row.updated_at = now

    def _commit(self, writes: list[_Write], auth: Optional[AuthContext]) -> None:
        if not writes:
            return
        session = self._session_factory()
        try:
            for write in writes:
                self._apply(session, write, auth)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise StoreUnavailableError(f"Commit of {len(writes)} write(s) failed: {exc}") from exc
        except StoreError:
            session.rollback()
            raise
        finally:
            session.close()

        logger.debug(f"Committed {len(writes)} write(s): {[w.ref.path for w in writes]}")
        self._notify({write.ref.collection for write in writes})

    def _notify(self, collections: set) -> None:
        with self._lock:
            listeners = tuple(self._listeners)
        for listener in listeners:
            if listener.active and listener.target.collection in collections:
                try:
                    self._deliver(listener)
                except Exception as exc:
                    # The write is already committed; only this listener ends
                    logger.error(f"Listener on {listener.target.path} raised: {exc}", exc_info=True)
                    self._detach(listener)

    def _deliver(self, listener: _Listener) -> None:
        try:
            if isinstance(listener.target, DocumentRef):
                snapshot = self._read_document(listener.target)
            else:
                snapshot = self._run_query(listener.target)
        except StoreError as exc:
            self._fail_listener(listener, exc)
            return

        fingerprint = _fingerprint(snapshot)
        if not listener.active or fingerprint == listener.last:
            return
        listener.last = fingerprint
        listener.on_next(snapshot)

    def _detach(self, listener: _Listener) -> None:
        listener.active = False
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _fail_listener(self, listener: _Listener, exc: Exception) -> None:
        self._detach(listener)
        logger.warning(f"Listener on {listener.target.path} terminated: {exc}")
        if listener.on_error is not None:
            listener.on_error(exc)

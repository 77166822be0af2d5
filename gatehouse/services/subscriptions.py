# gatehouse/services/subscriptions.py
"""
Live subscriptions to a query or a single document.

A subscription holds three pieces of state, refreshed by the store's live
listener: `data`, `is_loading` and `error`. Point it at a target with
`watch()`; pointing it at a different target object tears the old listener
down before the new one is opened. Hold the target object stable while the
logical query is unchanged: a fresh but equal Query is treated as a change.

    with CollectionSubscription(store, auth=auth) as visitors:
        visitors.watch(store.collection("visitors").order_by("check_in_time", descending=True))
        ...
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from gatehouse.services.access_rules import AuthContext
from gatehouse.services.document_store import (
    CollectionRef,
    DocumentRef,
    DocumentSnapshot,
    DocumentStore,
    Query,
    QuerySnapshot,
)
from gatehouse.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SubscriptionState:
    data: Any
    is_loading: bool
    error: Optional[Exception]


def with_id(snapshot: DocumentSnapshot) -> dict:
    """Document fields with the document id merged in."""
    return {**(snapshot.data or {}), "id": snapshot.id}


class _Subscription:
    _kind = "subscription"

    def __init__(
        self,
        store: DocumentStore,
        *,
        auth: Optional[AuthContext] = None,
        on_change: Optional[Callable[[SubscriptionState], None]] = None,
    ):
        self._store = store
        self._auth = auth
        self._on_change = on_change
        self._target = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._generation = 0

        self.data = None
        self.is_loading = False
        self.error: Optional[Exception] = None

    @property
    def target(self):
        return self._target

    @property
    def active(self) -> bool:
        return self._unsubscribe is not None

    def state(self) -> SubscriptionState:
        return SubscriptionState(data=self.data, is_loading=self.is_loading, error=self.error)

    def watch(self, target) -> None:
        if target is self._target and (target is None or self.active):
            return

        self._teardown()
        self._target = target

        if target is None:
            logger.debug(f"[{self._kind}] No target provided. Skipping subscription.")
            self._set(data=None, is_loading=False, error=None)
            return

        description = self._describe(target)
        logger.debug(f"[{self._kind}] Subscribing to {description}")
        self._set(data=self.data, is_loading=True, error=None)

        generation = self._generation

        def on_next(snapshot):
            if generation != self._generation:
                return
            self._set(data=self._decode(snapshot), is_loading=False, error=None)

        def on_error(exc: Exception):
            if generation != self._generation:
                return
            logger.error(f"[{self._kind}] Store error for {description}: {exc}")
            self._set(data=None, is_loading=False, error=exc)

        unsubscribe = self._store.on_snapshot(target, on_next, on_error, auth=self._auth)
        if generation == self._generation:
            self._unsubscribe = unsubscribe
        else:
            # Closed or re-pointed while the first snapshot was delivered
            unsubscribe()

    def close(self) -> None:
        self._teardown()
        self._target = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def _teardown(self) -> None:
        self._generation += 1
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            logger.debug(f"[{self._kind}] Unsubscribing from {self._describe(self._target)}")
            unsubscribe()

    def _set(self, *, data, is_loading: bool, error: Optional[Exception]) -> None:
        self.data = data
        self.is_loading = is_loading
        self.error = error
        if self._on_change is not None:
            self._on_change(self.state())

    def _decode(self, snapshot):
        raise NotImplementedError

    def _describe(self, target) -> str:
        if target is None:
            return "<none>"
        if isinstance(target, Query):
            return target.describe()
        return target.path


class CollectionSubscription(_Subscription):
    """Live list of `{**fields, "id": id}` dicts for a query, or None."""

    _kind = "collection"

    def watch(self, target: Optional[Union[CollectionRef, Query]]) -> None:
        super().watch(target)

    def _decode(self, snapshot: QuerySnapshot) -> list[dict]:
        logger.debug(f"[{self._kind}] Snapshot received from {self._describe(self._target)}. "
                     f"Document count: {snapshot.size}")
        return [with_id(doc) for doc in snapshot.docs]


class DocumentSubscription(_Subscription):
    """Live `{**fields, "id": id}` dict for one document; None when it does not exist."""

    _kind = "document"

    def watch(self, target: Optional[DocumentRef]) -> None:
        super().watch(target)

    def _decode(self, snapshot: DocumentSnapshot) -> Optional[dict]:
        if not snapshot.exists:
            logger.debug(f"[{self._kind}] Document {snapshot.path} does not exist.")
            return None
        return with_id(snapshot)

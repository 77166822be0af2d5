# tests/test_subscriptions.py
"""Unit tests for live collection and document subscriptions."""

from unittest.mock import MagicMock
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from conftest import ADMIN, GUEST
from gatehouse.database import Base
from gatehouse.services import collection_names as names
from gatehouse.services.document_store import DocumentStore
from gatehouse.services.errors import PermissionDeniedError, StoreUnavailableError
from gatehouse.services.subscriptions import CollectionSubscription, DocumentSubscription


class TestCollectionSubscription:
    def test_no_target_is_idle_and_never_touches_store(self):
        store = MagicMock()
        subscription = CollectionSubscription(store)

        subscription.watch(None)

        assert (subscription.data, subscription.is_loading, subscription.error) == (None, False, None)
        store.on_snapshot.assert_not_called()

    def test_rows_carry_document_id(self, store):
        ref = store.add(store.collection(names.VISITORS), {"name": "Jo"})

        with CollectionSubscription(store) as subscription:
            subscription.watch(store.collection(names.VISITORS))
            assert subscription.data == [{"name": "Jo", "id": ref.doc_id}]
            assert subscription.is_loading is False
            assert subscription.error is None

    def test_follows_committed_changes(self, store):
        with CollectionSubscription(store) as subscription:
            subscription.watch(store.collection(names.VISITORS))
            assert subscription.data == []

            store.add(store.collection(names.VISITORS), {"name": "Jo"})

            assert [row["name"] for row in subscription.data] == ["Jo"]

    def test_reports_loading_before_first_result(self, store):
        states = []
        subscription = CollectionSubscription(store, on_change=states.append)

        subscription.watch(store.collection(names.VISITORS))

        assert [state.is_loading for state in states] == [True, False]
        subscription.close()

    def test_same_target_does_not_resubscribe(self, store):
        query = store.collection(names.VISITORS).order_by("name")
        subscription = CollectionSubscription(store)
        subscription.watch(query)
        subscription.watch(query)

        assert store.listener_count == 1
        subscription.close()

    def test_new_target_replaces_listener(self, store):
        store.add(store.collection(names.VISITORS), {"name": "Jo", "checked_out": True})
        subscription = CollectionSubscription(store)
        subscription.watch(store.collection(names.VISITORS).where("checked_out", "==", False))
        assert subscription.data == []

        subscription.watch(store.collection(names.VISITORS).where("checked_out", "==", True))

        assert store.listener_count == 1
        assert [row["name"] for row in subscription.data] == ["Jo"]
        subscription.close()

    def test_clearing_target_tears_down(self, store):
        subscription = CollectionSubscription(store)
        subscription.watch(store.collection(names.VISITORS))
        subscription.watch(None)

        assert store.listener_count == 0
        assert subscription.data is None
        assert subscription.active is False

    def test_close_stops_updates(self, store):
        subscription = CollectionSubscription(store)
        subscription.watch(store.collection(names.VISITORS))
        subscription.close()

        store.add(store.collection(names.VISITORS), {"name": "Jo"})

        assert subscription.data == []
        assert store.listener_count == 0

    def test_permission_error_lands_in_state(self, store):
        subscription = CollectionSubscription(store, auth=GUEST)
        subscription.watch(store.collection(names.USERS))

        assert subscription.data is None
        assert subscription.is_loading is False
        assert isinstance(subscription.error, PermissionDeniedError)

    def test_staff_can_list_users(self, store):
        store.set(store.document(names.USERS, "u1"), {"display_name": "Jo Bloggs", "role": "admin"}, auth=ADMIN)
        with CollectionSubscription(store, auth=ADMIN) as subscription:
            subscription.watch(store.collection(names.USERS))
            assert [row["id"] for row in subscription.data] == ["u1"]

    def test_close_during_first_delivery_releases_listener(self, store):
        def on_change(state):
            if state.data is not None:
                subscription.close()

        subscription = CollectionSubscription(store, on_change=on_change)
        subscription.watch(store.collection(names.VISITORS))

        assert store.listener_count == 0
        assert subscription.active is False

    def test_rewatch_during_first_delivery_keeps_one_listener(self, store):
        companies = store.collection(names.COMPANIES)

        def on_change(state):
            if state.data is not None and subscription.target is not companies:
                subscription.watch(companies)

        subscription = CollectionSubscription(store, on_change=on_change)
        subscription.watch(store.collection(names.VISITORS))

        assert store.listener_count == 1
        assert subscription.target is companies
        store.add(store.collection(names.VISITORS), {"name": "Jo"})
        assert subscription.data == []
        subscription.close()
        assert store.listener_count == 0

    def test_storage_failure_lands_in_state(self):
        engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
        Base.metadata.create_all(bind=engine)
        make_session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        calls = []

        def session_factory():
            calls.append(1)
            # 1: first read, 2: the commit, 3: re-evaluation after it
            if len(calls) >= 3:
                session = MagicMock()
                session.query.side_effect = SQLAlchemyError("database is gone")
                return session
            return make_session()

        store = DocumentStore(session_factory)
        subscription = CollectionSubscription(store)
        subscription.watch(store.collection(names.VISITORS))
        assert subscription.data == []

        store.add(store.collection(names.VISITORS), {"name": "Jo"})

        assert subscription.data is None
        assert subscription.is_loading is False
        assert isinstance(subscription.error, StoreUnavailableError)
        assert store.listener_count == 0
        engine.dispose()


class TestDocumentSubscription:
    def test_missing_document_is_none_not_error(self, store):
        with DocumentSubscription(store) as subscription:
            subscription.watch(store.document(names.SETTINGS, names.SETTINGS_DOC_ID))
            assert subscription.data is None
            assert subscription.error is None
            assert subscription.is_loading is False

    def test_document_appears(self, store):
        ref = store.document(names.SETTINGS, names.SETTINGS_DOC_ID)
        with DocumentSubscription(store) as subscription:
            subscription.watch(ref)
            store.set(ref, {"site_name": "Gate"}, auth=ADMIN)
            assert subscription.data == {"site_name": "Gate", "id": names.SETTINGS_DOC_ID}

    def test_document_deleted(self, store):
        ref = store.document(names.SETTINGS, names.SETTINGS_DOC_ID)
        store.set(ref, {"site_name": "Gate"}, auth=ADMIN)
        with DocumentSubscription(store) as subscription:
            subscription.watch(ref)
            store.delete(ref, auth=ADMIN)
            assert subscription.data is None

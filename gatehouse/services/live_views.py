# gatehouse/services/live_views.py
"""
Long-lived subscriptions behind every table the service shows.

Opened once at startup with the service account and closed at shutdown.
Each query object is built once and kept, so re-watching never replaces a
listener unless the query really changed. The only one that does change is
"today", which moves to a new start-of-day query after midnight.
"""

from datetime import datetime
from typing import Optional

from gatehouse.services import collection_names as names
from gatehouse.services.access_rules import SERVICE_ACCOUNT, AuthContext
from gatehouse.services.activity_log import start_of_day
from gatehouse.services.document_store import DocumentStore, Query
from gatehouse.services.subscriptions import CollectionSubscription, DocumentSubscription
from gatehouse.utils.logger import get_logger

logger = get_logger(__name__)

# view name → collection its rows come from
VIEW_COLLECTIONS = {
    "activity-log": names.VISITORS,
    "on-site": names.VISITORS,
    "induction-log": names.VISITORS,
    "users": names.USERS,
    "employees": names.EMPLOYEES,
    "companies": names.COMPANIES,
}


def build_view_queries(store: DocumentStore) -> dict[str, Query]:
    visitors = store.collection(names.VISITORS)
    return {
        "activity-log": visitors.order_by("check_in_time", descending=True),
        "on-site": visitors.where("checked_out", "==", False).order_by("check_in_time", descending=True),
        "induction-log": (
            visitors.where("induction_complete", "==", True).order_by("induction_timestamp", descending=True)
        ),
        "users": store.collection(names.USERS).order_by("display_name"),
        "employees": store.collection(names.EMPLOYEES).order_by("display_name"),
        "companies": store.collection(names.COMPANIES).order_by("name"),
    }


class LiveViews:
    def __init__(self, store: DocumentStore, auth: AuthContext = SERVICE_ACCOUNT):
        self._store = store
        self.queries = build_view_queries(store)
        self._views = {name: CollectionSubscription(store, auth=auth) for name in self.queries}
        self.settings = DocumentSubscription(store, auth=auth)
        self.today = CollectionSubscription(store, auth=auth)
        self._settings_ref = store.document(names.SETTINGS, names.SETTINGS_DOC_ID)
        self._today_start: Optional[datetime] = None
        self._today_query: Optional[Query] = None

    def start(self) -> None:
        for name, subscription in self._views.items():
            subscription.watch(self.queries[name])
        self.settings.watch(self._settings_ref)
        self.today_view()
        logger.info(f"Live views ready: {', '.join(self._views)}, settings, today")

    def view(self, name: str) -> CollectionSubscription:
        return self._views[name]

    def today_view(self, now: Optional[datetime] = None) -> CollectionSubscription:
        day = start_of_day(now)
        if day != self._today_start:
            self._today_start = day
            self._today_query = (
                self._store.collection(names.VISITORS)
                .where("check_in_time", ">=", day)
                .order_by("check_in_time", descending=True)
            )
            logger.info(f"Today's view now starts at {day.isoformat()}")
        self.today.watch(self._today_query)
        return self.today

    def status(self) -> dict:
        views = {**self._views, "settings": self.settings, "today": self.today}
        return {
            name: "error" if sub.error else "loading" if sub.is_loading else "ok" if sub.active else "idle"
            for name, sub in views.items()
        }

    def close(self) -> None:
        for subscription in self._views.values():
            subscription.close()
        self.settings.close()
        self.today.close()

# gatehouse/services/directory_service.py
"""
Admin CRUD: users, employees, companies, the visitor log and site settings.

Single-record edits go through the non-blocking writer; the admin screen
re-reads from its live view. Clearing the log is the one awaited write: it
is a single atomic batch and its failure is reported to the caller.
"""

import re
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from gatehouse.config import settings
from gatehouse.services import collection_names as names
from gatehouse.services.access_rules import AuthContext, UserRole
from gatehouse.services.document_store import DocumentStore
from gatehouse.services.errors import StoreError
from gatehouse.services.mutations import NonBlockingWriter
from gatehouse.utils.logger import get_logger

logger = get_logger(__name__)

_WHITESPACE = re.compile(r"\s+")


def format_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        return ""
    return name[0].upper() + name[1:].lower()


def suggest_email_username(first_name: str, surname: str) -> str:
    return _WHITESPACE.sub("", f"{first_name or ''}.{surname or ''}".lower())


def split_email(email: str, known_domains: Optional[list] = None) -> tuple[str, str]:
    """`jo.bloggs@site.co.uk` → (`jo.bloggs`, `@site.co.uk`), preferring configured domains."""
    for domain in known_domains or settings.USER_EMAIL_DOMAINS:
        if email.endswith(domain):
            return email[: -len(domain)], domain
    at = email.rfind("@")
    if at != -1:
        return email[:at], email[at:]
    return email, ""


def build_person_record(first_name: str, surname: str, email_username: Optional[str] = None,
                        email_domain: Optional[str] = None) -> dict:
    first, last = format_name(first_name), format_name(surname)
    username = email_username or suggest_email_username(first_name, surname)
    domain = email_domain if email_domain is not None else settings.USER_EMAIL_DOMAINS[0]
    return {
        "first_name": first,
        "surname": last,
        "display_name": f"{first} {last}",
        "email": f"{username}{domain}",
    }


def build_user_record(first_name: str, surname: str, role: UserRole = UserRole.RECEPTION,
                      email_username: Optional[str] = None, email_domain: Optional[str] = None) -> dict:
    return {**build_person_record(first_name, surname, email_username, email_domain), "role": UserRole(role).value}


def build_company_record(name: str, contact: Optional[str] = None, email: Optional[str] = None) -> dict:
    record = {"name": name.strip()}
    if contact is not None:
        record["contact"] = contact
    if email is not None:
        record["email"] = email
    return record


class DirectoryService:
    def __init__(self, store: DocumentStore, writer: NonBlockingWriter):
        self._store = store
        self._writer = writer

    # Users / employees / companies
    def create(self, collection: str, record: Mapping[str, Any], auth: Optional[AuthContext]) -> None:
        logger.info(f"[admin] add to {collection}: {record.get('display_name') or record.get('name')}")
        self._writer.add_document_non_blocking(self._store.collection(collection), record, auth=auth)

    def edit(self, collection: str, doc_id: str, changes: Mapping[str, Any], auth: Optional[AuthContext]) -> None:
        logger.info(f"[admin] edit {collection}/{doc_id}: {sorted(changes)}")
        self._writer.update_document_non_blocking(self._store.document(collection, doc_id), changes, auth=auth)

    def remove(self, collection: str, doc_id: str, auth: Optional[AuthContext]) -> None:
        logger.info(f"[admin] delete {collection}/{doc_id}")
        self._writer.delete_document_non_blocking(self._store.document(collection, doc_id), auth=auth)

    # Visitor log
    def force_expire_induction(self, visitor_id: str, auth: Optional[AuthContext]) -> None:
        """Clear the induction's validity flag. Nothing sets it back."""
        logger.info(f"[admin] force-expire induction {names.VISITORS}/{visitor_id}")
        self._writer.update_document_non_blocking(
            self._store.document(names.VISITORS, visitor_id), {"induction_valid": False}, auth=auth,
        )

    def clear_logs(self, visitor_ids: list, auth: Optional[AuthContext]) -> int:
        """Delete all given log entries in one atomic batch. Raises on failure; nothing is deleted then."""
        batch = self._store.batch()
        for visitor_id in visitor_ids:
            if visitor_id:
                batch.delete(self._store.document(names.VISITORS, visitor_id))
        try:
            batch.commit(auth=auth)
        except StoreError as exc:
            logger.error(f"Error clearing logs: {exc}")
            raise
        logger.info(f"[admin] cleared {len(batch)} log entries")
        return len(batch)

    # Settings
    def read_settings(self, auth: Optional[AuthContext] = None) -> dict:
        snapshot = self._store.get(self._store.document(names.SETTINGS, names.SETTINGS_DOC_ID), auth=auth)
        return {**default_settings(), **(snapshot.data or {})}

    def save_settings(self, changes: Mapping[str, Any], auth: Optional[AuthContext]) -> None:
        self._writer.set_document_non_blocking(
            self._store.document(names.SETTINGS, names.SETTINGS_DOC_ID), changes, merge=True, auth=auth,
        )

    # Diagnostics
    def run_permission_test(self, collection: str, auth: Optional[AuthContext]) -> list[dict]:
        """Write, read back and delete a `debug_tests` document as `auth`, logging each step."""
        lines: list[dict] = []

        def log(message: str, status: str = "info") -> None:
            lines.append({"timestamp": datetime.now().strftime("%H:%M:%S"), "message": message, "status": status})

        if auth is None:
            log("No signed-in user; the test needs one.", "error")
            return lines

        log(f"--- Starting test for '{collection}' collection ---")
        test_id = f"test_{auth.uid}_{int(datetime.now(timezone.utc).timestamp() * 1000)}"
        ref = self._store.document(names.DEBUG_TESTS, test_id)
        data = {"test_for": collection, "uid": auth.uid, "timestamp": datetime.now(timezone.utc)}

        log(f"[1/3] Attempting to WRITE to doc: {ref.path}")
        try:
            self._store.set(ref, data, auth=auth)
            log("WRITE successful.", "success")
        except StoreError as exc:
            log(f"WRITE failed: {exc}", "error")
            return lines

        log(f"[2/3] Attempting to READ back doc: {ref.path}")
        try:
            if self._store.get(ref, auth=auth).exists:
                log("READ successful. Document data confirmed.", "success")
            else:
                log("READ failed: Document does not exist after write.", "error")
        except StoreError as exc:
            log(f"READ failed: {exc}", "error")

        log(f"[3/3] Attempting to DELETE doc: {ref.path}")
        try:
            self._store.delete(ref, auth=auth)
            log("DELETE successful.", "success")
        except StoreError as exc:
            log(f"DELETE failed: {exc}", "error")

        log(f"--- Test for '{collection}' finished ---")
        return lines


def default_settings() -> dict:
    return {
        "site_name": settings.SITE_NAME,
        "badge_logo_url": settings.DEFAULT_BADGE_LOGO_URL,
        "email_notifications": False,
    }

# gatehouse/services/access_rules.py
"""
Access rules for the document store, evaluated before every read and write.

Roles:
  admin      root-level administrator, may do anything
  reception  front desk staff, manages the visitor log but not the directory
  guest      signed in, read-mostly
Anonymous callers (auth=None) are the check-in kiosk.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from gatehouse.services import collection_names as names
from gatehouse.services.errors import PermissionDeniedError


class UserRole(str, Enum):
    ADMIN = "admin"
    RECEPTION = "reception"
    GUEST = "guest"


@dataclass(frozen=True)
class AuthContext:
    uid: str
    role: UserRole = UserRole.GUEST
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_staff(self) -> bool:
        return self.role in (UserRole.ADMIN, UserRole.RECEPTION)


SERVICE_ACCOUNT = AuthContext(uid="service", role=UserRole.ADMIN)

READ_OPERATIONS = {"get", "list"}
WRITE_OPERATIONS = {"create", "update", "delete", "write"}

# Fields a kiosk may touch when checking somebody out
_CHECK_OUT_FIELDS = {"checked_out", "check_out_time"}


def _is_admin(auth: Optional[AuthContext]) -> bool:
    return auth is not None and auth.is_admin


def _is_staff(auth: Optional[AuthContext]) -> bool:
    return auth is not None and auth.is_staff


def _visitors_allowed(auth, operation: str, data: Optional[Mapping[str, Any]]) -> bool:
    if operation in READ_OPERATIONS or operation == "create":
        return True
    if operation == "delete":
        return _is_admin(auth)
    touched = set(data or {})
    if "induction_valid" in touched:
        return _is_admin(auth)
    if operation == "update" and touched and touched <= _CHECK_OUT_FIELDS:
        return data.get("checked_out") is True or _is_staff(auth)
    return _is_staff(auth)


def _directory_allowed(auth, operation: str, data) -> bool:
    if operation in READ_OPERATIONS:
        return True
    return _is_admin(auth)


def _users_allowed(auth, operation: str, data) -> bool:
    if operation in READ_OPERATIONS:
        return _is_staff(auth)
    return _is_admin(auth)


def _debug_allowed(auth, operation: str, data) -> bool:
    return auth is not None


_RULES = {
    names.VISITORS: _visitors_allowed,
    names.EMPLOYEES: _directory_allowed,
    names.COMPANIES: _directory_allowed,
    names.SETTINGS: _directory_allowed,
    names.USERS: _users_allowed,
    names.DEBUG_TESTS: _debug_allowed,
}


def check_access(
    auth: Optional[AuthContext],
    collection: str,
    operation: str,
    data: Optional[Mapping[str, Any]] = None,
    path: Optional[str] = None,
) -> None:
    """Raise PermissionDeniedError unless `auth` may run `operation` on `collection`."""
    rule = _RULES.get(collection)
    if rule is None or not rule(auth, operation, data):
        raise PermissionDeniedError(path or collection, operation)

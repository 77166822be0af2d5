# gatehouse/routers/activity_log.py
"""
Activity log: every check-in, newest first, with the admin actions on it.
Single-record actions are submitted without waiting; clearing the log is
one atomic batch and reports its outcome.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status
from gatehouse.dependencies import get_auth_context, get_backend, view_rows
from gatehouse.schemas.visitor_log import ClearLogsOut, VisitorLogEntry
from gatehouse.services import collection_names as names
from gatehouse.services.access_rules import AuthContext, check_access
from gatehouse.services.activity_log import LogFilters, filter_log_entries
from gatehouse.services.backend import Backend

router = APIRouter()


@router.get("/activity-log", response_model=list[VisitorLogEntry], summary="Check-in history")
def list_activity(
    type: str = "",
    name: str = "",
    company: str = "",
    contact: str = "",
    status: str = "",
    backend: Backend = Depends(get_backend),
    auth: Optional[AuthContext] = Depends(get_auth_context),
):
    """
    Filters (empty or `all` means any):
    - type: visitor | contractor
    - name, company, contact: case-insensitive substring
    - status: in | out
    """
    check_access(auth, names.VISITORS, "list")
    filters = LogFilters(type=type, name=name, company=company, contact=contact, status=status)
    return filter_log_entries(view_rows(backend.live_views.view("activity-log")), filters)


@router.delete("/activity-log/{visitor_id}", status_code=status.HTTP_202_ACCEPTED,
               summary="Delete one log entry")
async def delete_entry(
    visitor_id: str,
    backend: Backend = Depends(get_backend),
    auth: Optional[AuthContext] = Depends(get_auth_context),
):
    backend.directory.remove(names.VISITORS, visitor_id, auth)
    return {"status": "submitted", "id": visitor_id}


@router.delete("/activity-log", response_model=ClearLogsOut, summary="Clear the whole log")
def clear_log(
    backend: Backend = Depends(get_backend),
    auth: Optional[AuthContext] = Depends(get_auth_context),
):
    entries = view_rows(backend.live_views.view("activity-log"))
    deleted = backend.directory.clear_logs([entry["id"] for entry in entries], auth)
    return {"status": "cleared", "deleted": deleted}


@router.post("/activity-log/{visitor_id}/force-expire", status_code=status.HTTP_202_ACCEPTED,
             summary="Force a contractor's induction to expire")
async def force_expire(
    visitor_id: str,
    backend: Backend = Depends(get_backend),
    auth: Optional[AuthContext] = Depends(get_auth_context),
):
    backend.directory.force_expire_induction(visitor_id, auth)
    return {"status": "submitted", "id": visitor_id}

# gatehouse/routers/checkout.py
"""Kiosk check-out: who is on site, and signing somebody out."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from gatehouse.dependencies import get_auth_context, get_backend, view_rows
from gatehouse.schemas.visitor_log import VisitorLogEntry
from gatehouse.services import collection_names as names
from gatehouse.services.access_rules import AuthContext, check_access
from gatehouse.services.backend import Backend
from gatehouse.services.checkin_service import AlreadyCheckedOutError, check_out

router = APIRouter()


@router.get("/check-out", response_model=list[VisitorLogEntry], summary="Everyone currently on site")
def on_site(
    name: Optional[str] = None,
    backend: Backend = Depends(get_backend),
    auth: Optional[AuthContext] = Depends(get_auth_context),
):
    check_access(auth, names.VISITORS, "list")
    rows = view_rows(backend.live_views.view("on-site"))
    if name:
        rows = [row for row in rows if name.strip().lower() in (row.get("name") or "").lower()]
    return rows


@router.post("/check-out/{visitor_id}", response_model=VisitorLogEntry, summary="Check somebody out")
async def check_out_visitor(
    visitor_id: str,
    backend: Backend = Depends(get_backend),
    auth: Optional[AuthContext] = Depends(get_auth_context),
):
    try:
        return check_out(backend.store, backend.writer, visitor_id, auth=auth)
    except AlreadyCheckedOutError as e:
        raise HTTPException(status_code=409, detail=str(e))

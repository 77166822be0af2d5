# gatehouse/routers/induction_log.py
"""Induction log: contractor inductions with their expiry status."""

from typing import Optional

from fastapi import APIRouter, Depends
from gatehouse.dependencies import get_auth_context, get_backend, view_rows
from gatehouse.schemas.visitor_log import InductionRow
from gatehouse.services import collection_names as names
from gatehouse.services.access_rules import AuthContext, check_access
from gatehouse.services.backend import Backend
from gatehouse.services.induction import build_induction_rows, dedupe_inductees

router = APIRouter()


def _inductions(backend: Backend, auth: Optional[AuthContext]) -> list[dict]:
    check_access(auth, names.VISITORS, "list")
    return view_rows(backend.live_views.view("induction-log"))


@router.get("/induction-log", response_model=list[InductionRow], summary="Every induction, newest first")
def list_inductions(
    status: Optional[str] = None,
    backend: Backend = Depends(get_backend),
    auth: Optional[AuthContext] = Depends(get_auth_context),
):
    rows = build_induction_rows(_inductions(backend, auth))
    if status:
        rows = [row for row in rows if row["status"] == status]
    return rows


@router.get("/induction-log/inductees", response_model=list[InductionRow],
            summary="Latest induction per person and company")
def list_inductees(
    backend: Backend = Depends(get_backend),
    auth: Optional[AuthContext] = Depends(get_auth_context),
):
    return build_induction_rows(dedupe_inductees(_inductions(backend, auth)))

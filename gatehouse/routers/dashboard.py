# gatehouse/routers/dashboard.py
"""Front desk dashboard: today's numbers and the latest arrivals."""

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends
from gatehouse.dependencies import get_auth_context, get_backend, view_rows
from gatehouse.schemas.visitor_log import DashboardOut
from gatehouse.services import collection_names as names
from gatehouse.services.access_rules import AuthContext, check_access
from gatehouse.services.activity_log import summarize_dashboard
from gatehouse.services.backend import Backend

router = APIRouter()


@router.get("/dashboard", response_model=DashboardOut, summary="Today at a glance")
def dashboard(
    backend: Backend = Depends(get_backend),
    auth: Optional[AuthContext] = Depends(get_auth_context),
):
    check_access(auth, names.VISITORS, "list")
    today = view_rows(backend.live_views.today_view())
    on_site = view_rows(backend.live_views.view("on-site"))
    return asdict(summarize_dashboard(today, on_site))

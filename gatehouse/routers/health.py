# gatehouse/routers/health.py
"""
System health check endpoint.
Returns status of backend + DB + live views + backend project configuration.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from gatehouse.database import get_db
from gatehouse.config import settings
from gatehouse.dependencies import get_backend
from gatehouse.services.backend import Backend
from datetime import datetime, timezone

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db), backend: Backend = Depends(get_backend)):
    """
    Returns:
    - Backend status
    - Database connectivity
    - State of each live view (ok | loading | error | idle)
    - Which backend project settings are present (values are never returned)
    """
    result = {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "backend": "ok",
        "database": "unknown",
        "live_views": backend.live_views.status(),
        "backend_config": {
            key: "configured" if value else "missing"
            for key, value in settings.backend_config.items()
        },
    }

    # Check database
    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
    except Exception as e:
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"

    if any(state == "error" for state in result["live_views"].values()):
        result["status"] = "degraded"

    return result

# gatehouse/routers/site_settings.py
"""Site settings singleton (`settings/app`)."""

from typing import Optional

from fastapi import APIRouter, Depends, status
from gatehouse.dependencies import get_auth_context, get_backend
from gatehouse.schemas.site_settings import SettingsOut, SettingsUpdate
from gatehouse.services.access_rules import AuthContext
from gatehouse.services.backend import Backend

router = APIRouter()


@router.get("/settings", response_model=SettingsOut, summary="Current site settings")
def get_settings(backend: Backend = Depends(get_backend), auth: Optional[AuthContext] = Depends(get_auth_context)):
    return backend.directory.read_settings(auth)


@router.put("/settings", response_model=SettingsOut, status_code=status.HTTP_202_ACCEPTED,
            summary="Save site settings")
async def save_settings(body: SettingsUpdate, backend: Backend = Depends(get_backend),
                        auth: Optional[AuthContext] = Depends(get_auth_context)):
    """Merged into the stored settings; the response shows the settings as they will be once saved."""
    changes = body.model_dump(exclude_none=True)
    current = backend.directory.read_settings(auth)
    backend.directory.save_settings(changes, auth)
    return {**current, **changes}

# gatehouse/routers/debug.py
"""
Developer diagnostics: live log viewer, rejected writes, and a
write/read/delete permission probe run as the caller.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from gatehouse.dependencies import get_auth_context, get_backend
from gatehouse.schemas.debug import LiveLogEntry, PermissionErrorEntry, PermissionTestLine
from gatehouse.services.access_rules import AuthContext
from gatehouse.services.backend import Backend

router = APIRouter()


def _require_user(auth: Optional[AuthContext]) -> AuthContext:
    if auth is None:
        raise HTTPException(status_code=401, detail="Sign in to use the debug tools")
    return auth


@router.post("/debug/permission-tests/{collection}", response_model=list[PermissionTestLine],
             summary="Probe write/read/delete permissions")
def permission_test(collection: str, backend: Backend = Depends(get_backend),
                    auth: Optional[AuthContext] = Depends(get_auth_context)):
    return backend.directory.run_permission_test(collection, auth)


@router.get("/debug/logs", response_model=list[LiveLogEntry], summary="Live log, newest first")
def live_log(backend: Backend = Depends(get_backend), auth: Optional[AuthContext] = Depends(get_auth_context)):
    _require_user(auth)
    return [
        {"timestamp": entry.timestamp, "message": entry.payload.message, "data": entry.payload.data}
        for entry in backend.live_log.entries()
    ]


@router.get("/debug/permission-errors", response_model=list[PermissionErrorEntry],
            summary="Rejected writes, newest first")
def permission_errors(backend: Backend = Depends(get_backend),
                      auth: Optional[AuthContext] = Depends(get_auth_context)):
    _require_user(auth)
    return [
        {
            "timestamp": entry.timestamp,
            "path": entry.payload.path,
            "operation": entry.payload.operation,
            "request_resource_data": entry.payload.request_resource_data,
        }
        for entry in backend.permission_errors.entries()
    ]

# gatehouse/dependencies.py
"""
FastAPI dependencies: the backend created at startup and the caller's identity.

Identity, first match wins:
  X-API-Key equal to settings.API_KEY  → service account (admin)
  X-User-Id naming a `users` document  → that user, with the user's role
  neither                              → anonymous kiosk (None)
WebSocket clients may pass `api_key` / `user_id` as query parameters instead.
"""

from typing import Optional

from fastapi import Depends, HTTPException, status
from starlette.requests import HTTPConnection

from gatehouse.config import settings
from gatehouse.services import collection_names as names
from gatehouse.services.access_rules import SERVICE_ACCOUNT, AuthContext, UserRole
from gatehouse.services.backend import Backend
from gatehouse.services.event_emitter import LOG_EVENT, LogPayload
from gatehouse.services.subscriptions import CollectionSubscription


def get_backend(connection: HTTPConnection) -> Backend:
    backend = getattr(connection.app.state, "backend", None)
    if backend is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Backend is starting up")
    return backend


def get_auth_context(
    connection: HTTPConnection,
    backend: Backend = Depends(get_backend),
) -> Optional[AuthContext]:
    emit = backend.emitter.emit
    api_key = connection.headers.get("X-API-Key") or connection.query_params.get("api_key")
    if settings.API_KEY and api_key == settings.API_KEY:
        emit(LOG_EVENT, LogPayload("[auth] Service account request.", {"path": connection.url.path}))
        return SERVICE_ACCOUNT

    user_id = connection.headers.get("X-User-Id") or connection.query_params.get("user_id")
    if not user_id:
        return None

    snapshot = backend.store.get(backend.store.document(names.USERS, user_id), auth=SERVICE_ACCOUNT)
    if not snapshot.exists:
        emit(LOG_EVENT, LogPayload("[auth] Unknown user.", {"uid": user_id}))
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user")

    try:
        role = UserRole(snapshot.data.get("role") or UserRole.GUEST)
    except ValueError:
        role = UserRole.GUEST
    emit(LOG_EVENT, LogPayload("[auth] State changed.", {"uid": user_id, "role": role.value}))
    return AuthContext(uid=user_id, role=role, email=snapshot.data.get("email"))


def view_rows(subscription: CollectionSubscription) -> list[dict]:
    """Rows of a live view, or 503 while it is loading or broken."""
    if subscription.error is not None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                            detail=f"Live view unavailable: {subscription.error}")
    if subscription.is_loading:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Loading...")
    return list(subscription.data or [])

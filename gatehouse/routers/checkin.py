# gatehouse/routers/checkin.py
"""
Kiosk check-in: one wizard session per person being checked in.

The record is written to `visitors` when the session moves onto its badge
step; the write is not awaited, so `next` answers straight away.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from gatehouse.dependencies import get_auth_context, get_backend
from gatehouse.schemas.checkin import CheckInFields, CheckInSessionOut
from gatehouse.services.access_rules import AuthContext
from gatehouse.services.backend import Backend
from gatehouse.services.checkin_service import start_wizard
from gatehouse.services.checkin_wizard import CheckInWizard

router = APIRouter()


def _session_out(session_id: str, wizard: CheckInWizard) -> dict:
    return {"session_id": session_id, **wizard.state(), "record": wizard.record}


def _get_wizard(backend: Backend, session_id: str) -> CheckInWizard:
    try:
        return backend.wizard_sessions.get(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Check-in session not found")


@router.post("/check-in/{kind}", response_model=CheckInSessionOut, status_code=status.HTTP_201_CREATED,
             summary="Start a visitor or contractor check-in")
def start_check_in(
    kind: str,
    backend: Backend = Depends(get_backend),
    auth: Optional[AuthContext] = Depends(get_auth_context),
):
    try:
        wizard = start_wizard(kind, backend.writer, backend.store, auth=auth)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown check-in type '{kind}'")
    session_id = backend.wizard_sessions.open(wizard)
    return _session_out(session_id, wizard)


@router.get("/check-in/sessions/{session_id}", response_model=CheckInSessionOut, summary="Check-in session state")
def get_session(session_id: str, backend: Backend = Depends(get_backend)):
    return _session_out(session_id, _get_wizard(backend, session_id))


@router.patch("/check-in/sessions/{session_id}", response_model=CheckInSessionOut,
              summary="Fill in check-in fields")
def update_session(session_id: str, body: CheckInFields, backend: Backend = Depends(get_backend)):
    """Only the fields sent are changed; `null` resets a field."""
    wizard = _get_wizard(backend, session_id)
    wizard.update(**body.model_dump(exclude_unset=True))
    return _session_out(session_id, wizard)


@router.post("/check-in/sessions/{session_id}/next", response_model=CheckInSessionOut,
             summary="Advance to the next step")
async def next_step(session_id: str, backend: Backend = Depends(get_backend)):
    # async: the final step schedules the write on the running loop
    wizard = _get_wizard(backend, session_id)
    wizard.next()
    return _session_out(session_id, wizard)


@router.post("/check-in/sessions/{session_id}/back", response_model=CheckInSessionOut,
             summary="Go back one step")
def previous_step(session_id: str, backend: Backend = Depends(get_backend)):
    wizard = _get_wizard(backend, session_id)
    wizard.back()
    return _session_out(session_id, wizard)


@router.delete("/check-in/sessions/{session_id}", summary="Abandon or finish a check-in session")
def close_session(session_id: str, backend: Backend = Depends(get_backend)):
    if backend.wizard_sessions.discard(session_id) is None:
        raise HTTPException(status_code=404, detail="Check-in session not found")
    return {"status": "closed", "session_id": session_id}

# gatehouse/routers/live.py
"""
WebSocket push of a live view.

Each connection opens its own subscription as the caller, sends the
subscription state ({view, data, is_loading, error}) on every change, and
closes the subscription when the socket goes away.
"""

import asyncio

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect, status
from fastapi.encoders import jsonable_encoder
from gatehouse.dependencies import get_auth_context, get_backend
from gatehouse.services.live_views import VIEW_COLLECTIONS
from gatehouse.services.subscriptions import CollectionSubscription, SubscriptionState
from gatehouse.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


def _encode(view: str, state: SubscriptionState) -> dict:
    return {
        "view": view,
        "data": jsonable_encoder(state.data),
        "is_loading": state.is_loading,
        "error": str(state.error) if state.error else None,
    }


@router.websocket("/live/{view}")
async def live_view(websocket: WebSocket, view: str):
    backend = get_backend(websocket)
    if view not in VIEW_COLLECTIONS:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    try:
        auth = get_auth_context(websocket, backend)
    except HTTPException as e:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=e.detail)
        return

    await websocket.accept()
    loop = asyncio.get_running_loop()
    changes: asyncio.Queue = asyncio.Queue()

    # Commits may notify from a worker thread
    def on_change(state: SubscriptionState) -> None:
        loop.call_soon_threadsafe(changes.put_nowait, state)

    client = websocket.client.host if websocket.client else "?"
    logger.info(f"📡 Live view '{view}' opened by {client}")
    receiver = asyncio.ensure_future(websocket.receive_text())
    try:
        with CollectionSubscription(backend.store, auth=auth, on_change=on_change) as subscription:
            subscription.watch(backend.live_views.queries[view])
            while True:
                getter = asyncio.ensure_future(changes.get())
                done, _ = await asyncio.wait({getter, receiver}, return_when=asyncio.FIRST_COMPLETED)
                if getter in done:
                    await websocket.send_json(_encode(view, getter.result()))
                else:
                    getter.cancel()
                if receiver in done:
                    receiver.result()  # raises WebSocketDisconnect once the client is gone
                    # Client messages carry nothing; keep listening
                    receiver = asyncio.ensure_future(websocket.receive_text())
    except WebSocketDisconnect:
        logger.info(f"Live view '{view}' closed by {client}")
    finally:
        receiver.cancel()

import asyncio
import logging

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect, status

from app.api import deps
from app.services.realtime import Subscription, hub, user_topic

logger = logging.getLogger(__name__)

router = APIRouter()


async def _forward(websocket: WebSocket, subscription: Subscription) -> None:
    try:
        while True:
            payload = await subscription.get()
            await websocket.send_json(payload)
    except WebSocketDisconnect:
        pass


async def _wait_for_close(websocket: WebSocket) -> None:
    # Client messages are ignored, only the disconnect matters
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


@router.websocket("/ws")
async def live_events(
    websocket: WebSocket,
    session_factory: deps.SessionFactoryDep,
    token: str = Query(...),
):
    """
    Push every event addressed to the caller as JSON while the socket is open.
    """
    # Authenticate in a short session so no connection is held for the socket's lifetime
    with session_factory() as session:
        try:
            context = deps.session_from_token(session, token)
        except HTTPException:
            context = None
        user_id = context.user.id if context else None

    if user_id is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    topic = user_topic(user_id)
    subscription = hub.subscribe(topic)
    logger.info("Realtime subscriber joined %s", topic)
    try:
        await websocket.accept()
        tasks = {
            asyncio.ensure_future(_forward(websocket, subscription)),
            asyncio.ensure_future(_wait_for_close(websocket)),
        }
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        for task in done:
            task.result()
    finally:
        hub.unsubscribe(subscription)
        logger.info("Realtime subscriber left %s", topic)

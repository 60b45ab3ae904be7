"""
Realtime Router
WebSocket streams for presence and chat. A connection's subscription and
its online flag both end when the socket closes.
"""
import asyncio
import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status

from dependencies import get_chat_service, get_optional_session, get_presence_tracker
from errors import MarketplaceError
from services.chat import ChatService
from services.presence import PresenceTracker
from services.realtime import Subscription
from services.session_cache import Session

router = APIRouter(prefix="/ws", tags=["realtime"])
logger = logging.getLogger(__name__)


async def _forward(websocket: WebSocket, subscription: Subscription, kind: str):
    async for payload in subscription:
        if hasattr(payload, "model_dump"):
            payload = payload.model_dump(mode="json")
        await websocket.send_json({"type": kind, "data": payload})


@router.websocket("/presence/{user_id}")
async def presence_stream(
    websocket: WebSocket,
    user_id: str,
    session: Optional[Session] = Depends(get_optional_session),
    presence: PresenceTracker = Depends(get_presence_tracker)
):
    """Watch user_id's status; the connected viewer counts as online meanwhile"""
    if session is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    viewer_id = session.user_id
    session_key = f"ws_{uuid.uuid4().hex[:12]}"
    await presence.mark_online(viewer_id, session_key)

    subscription = presence.subscribe(user_id)
    forwarder = asyncio.create_task(_forward(websocket, subscription, "status"))
    try:
        current = await presence.get_status(user_id)
        await websocket.send_json({"type": "status", "data": current.model_dump(mode="json")})
        while True:
            message = await websocket.receive_json()
            if message.get("type") == "heartbeat":
                await presence.heartbeat(viewer_id)
                await websocket.send_json({"type": "ack"})
    except WebSocketDisconnect:
        logger.debug(f"Presence socket closed for {viewer_id}")
    finally:
        subscription.cancel()
        forwarder.cancel()
        await presence.mark_offline(viewer_id, session_key)


@router.websocket("/chat/{chat_id}")
async def chat_stream(
    websocket: WebSocket,
    chat_id: str,
    session: Optional[Session] = Depends(get_optional_session),
    service: ChatService = Depends(get_chat_service)
):
    """Push every new message of the chat room"""
    if session is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    try:
        await service.get_room(chat_id, session.user)
    except MarketplaceError as e:
        logger.info(f"Chat socket refused for {session.user_id}: {e.message}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    async with service.subscribe(chat_id) as subscription:
        forwarder = asyncio.create_task(_forward(websocket, subscription, "message"))
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            logger.debug(f"Chat socket closed for {session.user_id}")
        finally:
            forwarder.cancel()

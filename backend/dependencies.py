import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends
from fastapi.requests import HTTPConnection

from config import SESSION_COOKIE_NAME
from database import from_iso, get_db, store_errors
from errors import AuthRequiredError
from models.user import User
from services.chat import ChatService
from services.notifications import NotificationService
from services.orders import OrderService
from services.presence import PresenceTracker
from services.realtime import Channel, get_channel
from services.session_cache import Session, SessionCache, get_session_cache

logger = logging.getLogger(__name__)


def extract_token(conn: HTTPConnection) -> Optional[str]:
    """Session token from the session cookie or an Authorization bearer header"""
    session_token = conn.cookies.get(SESSION_COOKIE_NAME)
    if not session_token:
        auth_header = conn.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            session_token = auth_header.split(" ", 1)[1]
    return session_token or None


async def resolve_session(token: str, db, cache: SessionCache) -> Session:
    cached = cache.get(token)
    if cached and cached.expires_at > datetime.now(timezone.utc):
        return cached

    with store_errors("Load session"):
        session_doc = await db.user_sessions.find_one({"session_token": token}, {"_id": 0})
    if not session_doc:
        cache.invalidate(token)
        raise AuthRequiredError("Invalid session")

    expires_at = from_iso(session_doc.get("expires_at"))
    if expires_at < datetime.now(timezone.utc):
        cache.invalidate(token)
        raise AuthRequiredError("Session expired")

    with store_errors("Load user"):
        user_doc = await db.users.find_one({"user_id": session_doc["user_id"]}, {"_id": 0})
    if not user_doc:
        raise AuthRequiredError("User not found")

    session = Session(token=token, user=User(**user_doc), expires_at=expires_at)
    cache.put(session)
    return session


async def get_optional_session(
    conn: HTTPConnection,
    db=Depends(get_db),
    cache: SessionCache = Depends(get_session_cache)
) -> Optional[Session]:
    token = extract_token(conn)
    if not token:
        return None
    try:
        return await resolve_session(token, db, cache)
    except AuthRequiredError:
        return None


async def get_session(
    conn: HTTPConnection,
    db=Depends(get_db),
    cache: SessionCache = Depends(get_session_cache)
) -> Session:
    token = extract_token(conn)
    if not token:
        raise AuthRequiredError("Not authenticated")
    return await resolve_session(token, db, cache)


async def get_current_user(session: Session = Depends(get_session)) -> User:
    return session.user


def get_notification_service(db=Depends(get_db)) -> NotificationService:
    return NotificationService(db)


def get_order_service(
    db=Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service)
) -> OrderService:
    return OrderService(db, notifications)


def get_presence_tracker(db=Depends(get_db), channel: Channel = Depends(get_channel)) -> PresenceTracker:
    return PresenceTracker(db, channel)


def get_chat_service(db=Depends(get_db), channel: Channel = Depends(get_channel)) -> ChatService:
    return ChatService(db, channel)

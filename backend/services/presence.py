"""
Presence tracking

A user is online while at least one of their sessions is registered in the
``sessions`` set of their ``user_status`` document. Sessions prove liveness
through heartbeats; a status whose heartbeat is older than the TTL reads as
offline and is flipped by ``expire_stale`` on the scheduler.
"""
import hashlib
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from pymongo import ReturnDocument

from config import PRESENCE_TTL_SECONDS
from database import from_iso, store_errors, to_iso, utc_now
from models.presence import UserStatus
from services.realtime import Callback, Channel, Subscription

logger = logging.getLogger(__name__)

DEFAULT_SESSION = "default"


def presence_topic(user_id: str) -> str:
    return f"presence:{user_id}"


def session_key_for(token: str) -> str:
    """Stable per-login session key that does not store the token itself"""
    return "http_" + hashlib.sha256(token.encode()).hexdigest()[:16]


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def format_last_seen(now: datetime, last_seen: Optional[datetime]) -> str:
    """Human readable time elapsed since last_seen"""
    if last_seen is None:
        return "not available"

    minutes = int((now - last_seen).total_seconds() // 60)
    if minutes < 1:
        return "a moment ago"
    if minutes < 60:
        return f"{_plural(minutes, 'minute')} ago"

    hours = minutes // 60
    if hours < 24:
        return f"{_plural(hours, 'hour')} ago"

    days = hours // 24
    if days == 1:
        return "yesterday"
    return f"{days} days ago"


def status_label(status: UserStatus, now: datetime) -> str:
    if status.is_online:
        return "online"
    return f"last seen {format_last_seen(now, status.last_seen)}"


class PresenceTracker:
    def __init__(self, db, channel: Channel, ttl_seconds: int = PRESENCE_TTL_SECONDS,
                 clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.channel = channel
        self.ttl = timedelta(seconds=ttl_seconds)
        self.clock = clock

    def _to_status(self, user_id: str, doc: Optional[dict]) -> UserStatus:
        if not doc:
            return UserStatus(user_id=user_id, is_online=False)
        last_seen = from_iso(doc.get("last_seen"))
        if doc.get("is_online"):
            heartbeat_at = from_iso(doc.get("heartbeat_at"))
            if heartbeat_at is not None and self.clock() - heartbeat_at > self.ttl:
                return UserStatus(user_id=user_id, is_online=False, last_seen=heartbeat_at)
            return UserStatus(user_id=user_id, is_online=True, last_seen=last_seen)
        return UserStatus(user_id=user_id, is_online=False, last_seen=last_seen)

    async def _publish(self, status: UserStatus):
        await self.channel.publish(presence_topic(status.user_id), status)

    async def mark_online(self, user_id: str, session_key: str = DEFAULT_SESSION) -> UserStatus:
        """Register a live session; calling it again for the same session is a no-op"""
        now = to_iso(self.clock())
        with store_errors("Mark online"):
            doc = await self.db.user_status.find_one_and_update(
                {"user_id": user_id},
                {
                    "$addToSet": {"sessions": session_key},
                    "$set": {"is_online": True, "heartbeat_at": now},
                },
                projection={"_id": 0},
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        status = self._to_status(user_id, doc)
        await self._publish(status)
        return status

    async def mark_offline(self, user_id: str, session_key: Optional[str] = None) -> UserStatus:
        """Drop one session, or all of them when session_key is None"""
        now = to_iso(self.clock())
        with store_errors("Mark offline"):
            matched = 0
            if session_key is not None:
                result = await self.db.user_status.update_one(
                    {"user_id": user_id}, {"$pull": {"sessions": session_key}}
                )
                matched = result.matched_count
            if not matched:
                await self.db.user_status.update_one(
                    {"user_id": user_id}, {"$set": {"sessions": []}}, upsert=True
                )
            # Only flip to offline if no session registered in the meantime
            await self.db.user_status.update_one(
                {"user_id": user_id, "sessions": {"$size": 0}},
                {"$set": {"is_online": False, "last_seen": now}}
            )
            doc = await self.db.user_status.find_one({"user_id": user_id}, {"_id": 0})

        status = self._to_status(user_id, doc)
        await self._publish(status)
        return status

    async def heartbeat(self, user_id: str) -> bool:
        """Refresh liveness; returns False when the user has no live session"""
        with store_errors("Heartbeat"):
            result = await self.db.user_status.update_one(
                {"user_id": user_id, "is_online": True},
                {"$set": {"heartbeat_at": to_iso(self.clock())}}
            )
        return result.matched_count > 0

    async def get_status(self, user_id: str) -> UserStatus:
        with store_errors("Get status"):
            doc = await self.db.user_status.find_one({"user_id": user_id}, {"_id": 0})
        return self._to_status(user_id, doc)

    async def expire_stale(self) -> int:
        """Mark every status with an expired heartbeat offline; returns how many"""
        cutoff = to_iso(self.clock() - self.ttl)
        with store_errors("Expire presence"):
            stale = await self.db.user_status.find(
                {"is_online": True, "heartbeat_at": {"$lt": cutoff}},
                {"_id": 0}
            ).to_list(None)

        expired = 0
        for doc in stale:
            user_id = doc["user_id"]
            with store_errors("Expire presence"):
                result = await self.db.user_status.update_one(
                    {"user_id": user_id, "is_online": True, "heartbeat_at": doc["heartbeat_at"]},
                    {"$set": {"is_online": False, "sessions": [], "last_seen": doc["heartbeat_at"]}}
                )
            if result.modified_count:
                expired += 1
                await self._publish(UserStatus(
                    user_id=user_id, is_online=False, last_seen=from_iso(doc["heartbeat_at"])
                ))

        if expired:
            logger.info(f"[Presence] Expired {expired} stale session(s)")
        return expired

    def subscribe(self, user_id: str, callback: Optional[Callback] = None) -> Subscription:
        """Receive every later status change for user_id until cancelled"""
        return self.channel.subscribe(presence_topic(user_id), callback)

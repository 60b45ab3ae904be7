"""
Chat Service
Client/artist chat rooms, messages, stars, search and per-user clearing
"""
import logging
import uuid
from datetime import datetime
from typing import Callable, List, Optional

from database import store_errors, to_iso, utc_now
from errors import NotFoundError, PermissionDeniedError, ValidationError
from models.chat import MessageType, ReplyTo
from models.user import User, UserRole
from services.realtime import Channel, Subscription

logger = logging.getLogger(__name__)

SEARCH_WINDOW = 100
CLEARED_TEXT = "Chat cleared"


def chat_topic(chat_id: str) -> str:
    return f"chat:{chat_id}"


class ChatService:
    def __init__(self, db, channel: Channel, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.channel = channel
        self.clock = clock

    async def get_or_create_room(self, client: User, artist_id: str) -> str:
        with store_errors("Load artist"):
            artist = await self.db.users.find_one({"user_id": artist_id}, {"_id": 0})
        if not artist or artist.get("role") != UserRole.ARTIST.value:
            raise ValidationError("User is not a valid artist")

        with store_errors("Find chat room"):
            existing = await self.db.chats.find_one(
                {"client.id": client.user_id, "artist.id": artist_id},
                {"_id": 0, "chat_id": 1}
            )
        if existing:
            return existing["chat_id"]

        now = to_iso(self.clock())
        chat_id = f"chat_{uuid.uuid4().hex[:12]}"
        with store_errors("Create chat room"):
            await self.db.chats.insert_one({
                "chat_id": chat_id,
                "client": {"id": client.user_id, "email": client.email},
                "artist": {"id": artist_id, "email": artist.get("email", "")},
                "last_message": None,
                "created_at": now,
                "updated_at": now,
            })
        logger.info(f"Chat room {chat_id} created for {client.user_id} and {artist_id}")
        return chat_id

    async def get_room(self, chat_id: str, viewer: User) -> dict:
        with store_errors("Get chat room"):
            room = await self.db.chats.find_one({"chat_id": chat_id}, {"_id": 0})
        if not room:
            raise NotFoundError("Chat not found")
        if viewer.user_id not in (room["client"]["id"], room["artist"]["id"]) and viewer.role != UserRole.ADMIN:
            raise PermissionDeniedError("Not a participant of this chat")
        return room

    async def list_rooms(self, user: User) -> List[dict]:
        with store_errors("List chat rooms"):
            return await self.db.chats.find(
                {"$or": [{"client.id": user.user_id}, {"artist.id": user.user_id}]},
                {"_id": 0}
            ).sort("updated_at", -1).to_list(None)

    async def send_message(self, chat_id: str, sender: User, content: str,
                           type: MessageType = MessageType.TEXT,
                           reply_to: Optional[ReplyTo] = None) -> dict:
        if not content or not content.strip():
            raise ValidationError("Message content is required")
        room = await self.get_room(chat_id, sender)
        if sender.user_id == room["client"]["id"]:
            sender_role, receiver_id = UserRole.CLIENT.value, room["artist"]["id"]
        elif sender.user_id == room["artist"]["id"]:
            sender_role, receiver_id = UserRole.ARTIST.value, room["client"]["id"]
        else:
            raise PermissionDeniedError("Only participants can send messages")

        now = to_iso(self.clock())
        message = {
            "message_id": f"msg_{uuid.uuid4().hex[:12]}",
            "chat_id": chat_id,
            "content": content,
            "type": type.value,
            "sender_id": sender.user_id,
            "sender_email": sender.email,
            "sender_role": sender_role,
            "receiver_id": receiver_id,
            "timestamp": now,
            "is_starred": False,
            "reply_to": reply_to.model_dump() if reply_to else None,
            "deleted_by": [],
        }
        with store_errors("Send message"):
            await self.db.chat_messages.insert_one(dict(message))
            await self.db.chats.update_one(
                {"chat_id": chat_id},
                {"$set": {
                    "last_message": {"content": content, "type": type.value, "timestamp": now},
                    "updated_at": now,
                }}
            )

        await self.channel.publish(chat_topic(chat_id), message)
        return message

    async def list_messages(self, chat_id: str, viewer: User, limit: Optional[int] = None) -> List[dict]:
        """Newest first, without messages the viewer cleared"""
        await self.get_room(chat_id, viewer)
        with store_errors("List messages"):
            cursor = self.db.chat_messages.find(
                {"chat_id": chat_id, "deleted_by": {"$ne": viewer.user_id}},
                {"_id": 0}
            ).sort("timestamp", -1)
            if limit:
                cursor = cursor.limit(limit)
            return await cursor.to_list(limit)

    async def toggle_star(self, chat_id: str, message_id: str, viewer: User) -> bool:
        await self.get_room(chat_id, viewer)
        with store_errors("Star message"):
            message = await self.db.chat_messages.find_one(
                {"chat_id": chat_id, "message_id": message_id}, {"_id": 0, "is_starred": 1}
            )
            if not message:
                raise NotFoundError("Message not found")
            starred = not message.get("is_starred", False)
            await self.db.chat_messages.update_one(
                {"chat_id": chat_id, "message_id": message_id},
                {"$set": {"is_starred": starred}}
            )
        return starred

    async def starred_messages(self, chat_id: str, viewer: User) -> List[dict]:
        await self.get_room(chat_id, viewer)
        with store_errors("List starred messages"):
            return await self.db.chat_messages.find(
                {"chat_id": chat_id, "is_starred": True, "deleted_by": {"$ne": viewer.user_id}},
                {"_id": 0}
            ).sort("timestamp", -1).to_list(None)

    async def search_messages(self, chat_id: str, viewer: User, term: str) -> List[dict]:
        if not term or not term.strip():
            return []
        recent = await self.list_messages(chat_id, viewer, limit=SEARCH_WINDOW)
        needle = term.strip().lower()
        return [m for m in recent if needle in (m.get("content") or "").lower()]

    async def clear_for_user(self, chat_id: str, viewer: User) -> int:
        """Hide every message of the chat from the viewer only"""
        await self.get_room(chat_id, viewer)
        now = to_iso(self.clock())
        with store_errors("Clear chat"):
            result = await self.db.chat_messages.update_many(
                {"chat_id": chat_id},
                {"$addToSet": {"deleted_by": viewer.user_id}}
            )
            await self.db.chats.update_one(
                {"chat_id": chat_id},
                {"$set": {
                    "last_message": {"content": CLEARED_TEXT, "type": MessageType.TEXT.value, "timestamp": now},
                    "updated_at": now,
                }}
            )
        return result.modified_count

    def subscribe(self, chat_id: str) -> Subscription:
        return self.channel.subscribe(chat_topic(chat_id))

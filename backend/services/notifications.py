"""
Notifications Service
In-app notifications raised by order activity
"""
import logging
import uuid
from typing import List, Optional

from database import store_errors, to_iso, utc_now
from errors import NotFoundError
from models.notification import NotificationType

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, db):
        self.db = db

    async def notify(self, user_id: str, type: NotificationType, message: str,
                     order_id: Optional[str] = None) -> str:
        notification_id = f"ntf_{uuid.uuid4().hex[:12]}"
        doc = {
            "notification_id": notification_id,
            "user_id": user_id,
            "type": type.value,
            "message": message,
            "order_id": order_id,
            "read": False,
            "created_at": to_iso(utc_now()),
        }
        with store_errors("Create notification"):
            await self.db.notifications.insert_one(doc)
        logger.info(f"Notification {notification_id} ({type.value}) for {user_id}")
        return notification_id

    async def list_for_user(self, user_id: str, unread_only: bool = False, limit: int = 50) -> List[dict]:
        query = {"user_id": user_id}
        if unread_only:
            query["read"] = False
        with store_errors("List notifications"):
            return await self.db.notifications.find(
                query, {"_id": 0}
            ).sort("created_at", -1).limit(limit).to_list(limit)

    async def unread_count(self, user_id: str) -> int:
        with store_errors("Count notifications"):
            return await self.db.notifications.count_documents({"user_id": user_id, "read": False})

    async def mark_read(self, user_id: str, notification_id: str):
        with store_errors("Mark notification read"):
            result = await self.db.notifications.update_one(
                {"notification_id": notification_id, "user_id": user_id},
                {"$set": {"read": True, "read_at": to_iso(utc_now())}}
            )
        if result.matched_count == 0:
            raise NotFoundError("Notification not found")

    async def mark_all_read(self, user_id: str) -> int:
        with store_errors("Mark notifications read"):
            result = await self.db.notifications.update_many(
                {"user_id": user_id, "read": False},
                {"$set": {"read": True, "read_at": to_iso(utc_now())}}
            )
        return result.modified_count

    async def delete(self, user_id: str, notification_id: str):
        with store_errors("Delete notification"):
            result = await self.db.notifications.delete_one({
                "notification_id": notification_id,
                "user_id": user_id
            })
        if result.deleted_count == 0:
            raise NotFoundError("Notification not found")

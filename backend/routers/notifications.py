"""
Notifications Router
Handles user notifications
"""
from fastapi import APIRouter, Depends, Query

from dependencies import get_current_user, get_notification_service
from models.user import User
from services.notifications import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
async def get_notifications(
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=100),
    user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    """Get user's notifications"""
    notifications = await service.list_for_user(user.user_id, unread_only, limit)
    unread_count = await service.unread_count(user.user_id)
    return {
        "notifications": notifications,
        "unread_count": unread_count
    }


@router.get("/unread-count")
async def get_unread_count(
    user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    return {"unread_count": await service.unread_count(user.user_id)}


@router.put("/read-all")
async def mark_all_as_read(
    user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    marked = await service.mark_all_read(user.user_id)
    return {"success": True, "marked_read": marked}


@router.put("/{notification_id}/read")
async def mark_as_read(
    notification_id: str,
    user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    await service.mark_read(user.user_id, notification_id)
    return {"success": True}


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: str,
    user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    await service.delete(user.user_id, notification_id)
    return {"success": True}

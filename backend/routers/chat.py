from fastapi import APIRouter, Depends, Query

from dependencies import get_chat_service, get_current_user
from errors import PermissionDeniedError
from models.chat import MessageCreate, RoomCreate
from models.user import User, UserRole
from services.chat import ChatService

router = APIRouter(prefix="/chats", tags=["chat"])


@router.get("")
async def get_rooms(user: User = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    """Chat rooms the caller takes part in, most recent first"""
    return await service.list_rooms(user)


@router.post("")
async def open_room(
    body: RoomCreate,
    user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service)
):
    if user.role != UserRole.CLIENT:
        raise PermissionDeniedError("Only clients can start a chat with an artist")
    chat_id = await service.get_or_create_room(user, body.artist_id)
    return {"chat_id": chat_id}


@router.get("/{chat_id}")
async def get_room(chat_id: str, user: User = Depends(get_current_user),
                   service: ChatService = Depends(get_chat_service)):
    return await service.get_room(chat_id, user)


@router.get("/{chat_id}/messages")
async def get_messages(
    chat_id: str,
    limit: int = Query(200, ge=1, le=500),
    user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service)
):
    return await service.list_messages(chat_id, user, limit)


@router.post("/{chat_id}/messages")
async def send_message(
    chat_id: str,
    body: MessageCreate,
    user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service)
):
    return await service.send_message(chat_id, user, body.content, body.type, body.reply_to)


@router.delete("/{chat_id}/messages")
async def clear_messages(chat_id: str, user: User = Depends(get_current_user),
                         service: ChatService = Depends(get_chat_service)):
    """Clear the conversation for the caller only"""
    cleared = await service.clear_for_user(chat_id, user)
    return {"success": True, "cleared": cleared}


@router.get("/{chat_id}/starred")
async def get_starred(chat_id: str, user: User = Depends(get_current_user),
                      service: ChatService = Depends(get_chat_service)):
    return await service.starred_messages(chat_id, user)


@router.put("/{chat_id}/messages/{message_id}/star")
async def toggle_star(chat_id: str, message_id: str, user: User = Depends(get_current_user),
                      service: ChatService = Depends(get_chat_service)):
    return {"is_starred": await service.toggle_star(chat_id, message_id, user)}


@router.get("/{chat_id}/search")
async def search_messages(
    chat_id: str,
    q: str = "",
    user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service)
):
    return await service.search_messages(chat_id, user, q)

from fastapi import APIRouter, Depends, Request

from database import utc_now
from dependencies import extract_token, get_current_user, get_presence_tracker
from models.presence import UserStatus
from models.user import User
from services.presence import PresenceTracker, session_key_for, status_label

router = APIRouter(prefix="/presence", tags=["presence"])


def status_response(status: UserStatus) -> dict:
    return {**status.model_dump(mode="json"), "label": status_label(status, utc_now())}


@router.get("/{user_id}")
async def get_user_status(
    user_id: str,
    user: User = Depends(get_current_user),
    presence: PresenceTracker = Depends(get_presence_tracker)
):
    return status_response(await presence.get_status(user_id))


@router.post("/online")
async def go_online(
    request: Request,
    user: User = Depends(get_current_user),
    presence: PresenceTracker = Depends(get_presence_tracker)
):
    status = await presence.mark_online(user.user_id, session_key_for(extract_token(request)))
    return status_response(status)


@router.post("/heartbeat")
async def heartbeat(
    user: User = Depends(get_current_user),
    presence: PresenceTracker = Depends(get_presence_tracker)
):
    return {"alive": await presence.heartbeat(user.user_id)}


@router.post("/offline")
async def go_offline(
    request: Request,
    user: User = Depends(get_current_user),
    presence: PresenceTracker = Depends(get_presence_tracker)
):
    status = await presence.mark_offline(user.user_id, session_key_for(extract_token(request)))
    return status_response(status)

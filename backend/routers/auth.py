from fastapi import APIRouter, Depends, Request, Response
from datetime import timedelta
import uuid
import logging

from config import COOKIE_SECURE, SESSION_COOKIE_NAME, SESSION_TTL_DAYS
from database import get_db, store_errors, to_iso, utc_now
from dependencies import extract_token, get_current_user, get_presence_tracker
from models.user import SessionExchange, User, UserRole
from services.identity import IdentityProvider, get_identity_provider
from services.presence import PresenceTracker, session_key_for
from services.session_cache import SessionCache, get_session_cache

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


@router.post("/session")
async def create_session(
    body: SessionExchange,
    response: Response,
    db=Depends(get_db),
    identity: IdentityProvider = Depends(get_identity_provider),
    presence: PresenceTracker = Depends(get_presence_tracker)
):
    """Exchange an identity provider session id for a session token"""
    user_data = await identity.fetch_session_data(body.session_id)
    email = user_data["email"]

    with store_errors("Sign in"):
        existing_user = await db.users.find_one({"email": email}, {"_id": 0})
        if existing_user:
            user_id = existing_user["user_id"]
            await db.users.update_one(
                {"email": email},
                {"$set": {
                    "name": user_data.get("name", existing_user.get("name", "")),
                    "picture": user_data.get("picture", existing_user.get("picture"))
                }}
            )
        else:
            user_id = f"user_{uuid.uuid4().hex[:12]}"
            await db.users.insert_one({
                "user_id": user_id,
                "email": email,
                "name": user_data.get("name") or email.split("@")[0],
                "picture": user_data.get("picture"),
                "role": UserRole.CLIENT.value,
                "created_at": to_iso(utc_now())
            })
            logger.info(f"Registered new user {user_id}")

        session_token = user_data.get("session_token") or f"sess_{uuid.uuid4().hex}"
        now = utc_now()
        await db.user_sessions.insert_one({
            "user_id": user_id,
            "session_token": session_token,
            "expires_at": to_iso(now + timedelta(days=SESSION_TTL_DAYS)),
            "created_at": to_iso(now)
        })
        user_doc = await db.users.find_one({"user_id": user_id}, {"_id": 0})

    await presence.mark_online(user_id, session_key_for(session_token))

    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=session_token,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="lax",
        path="/",
        max_age=SESSION_TTL_DAYS * 24 * 60 * 60
    )
    return {**user_doc, "session_token": session_token}


@router.get("/me")
async def get_me(user: User = Depends(get_current_user)):
    """Get current authenticated user"""
    return user.model_dump()


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    db=Depends(get_db),
    cache: SessionCache = Depends(get_session_cache),
    presence: PresenceTracker = Depends(get_presence_tracker)
):
    """Logout user"""
    session_token = extract_token(request)
    if session_token:
        cache.invalidate(session_token)
        with store_errors("Logout"):
            session_doc = await db.user_sessions.find_one_and_delete({"session_token": session_token})
        if session_doc:
            await presence.mark_offline(session_doc["user_id"], session_key_for(session_token))

    response.delete_cookie(key=SESSION_COOKIE_NAME, path="/", samesite="lax", secure=COOKIE_SECURE)
    return {"message": "Logged out"}

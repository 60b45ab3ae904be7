from fastapi import APIRouter, HTTPException, Depends

from database import get_db, store_errors
from dependencies import get_current_user
from models.user import RoleUpdate, User, UserRole
from services.session_cache import SessionCache, get_session_cache

router = APIRouter(prefix="/users", tags=["users"])


@router.get("")
async def get_users(user: User = Depends(get_current_user), db=Depends(get_db)):
    """Get all users (admins only)"""
    if user.role != UserRole.ADMIN:
        raise HTTPException(status_code=403, detail="Not authorized")

    with store_errors("List users"):
        return await db.users.find({}, {"_id": 0}).sort("created_at", 1).to_list(1000)


@router.get("/artists")
async def get_artists(user: User = Depends(get_current_user), db=Depends(get_db)):
    """Artists a client can commission or chat with"""
    with store_errors("List artists"):
        return await db.users.find(
            {"role": UserRole.ARTIST.value},
            {"_id": 0, "user_id": 1, "name": 1, "email": 1, "picture": 1}
        ).sort("name", 1).to_list(1000)


@router.put("/{user_id}/role")
async def update_user_role(
    user_id: str,
    body: RoleUpdate,
    user: User = Depends(get_current_user),
    db=Depends(get_db),
    cache: SessionCache = Depends(get_session_cache)
):
    """Update user role (admin only)"""
    if user.role != UserRole.ADMIN:
        raise HTTPException(status_code=403, detail="Not authorized")

    with store_errors("Update role"):
        result = await db.users.update_one(
            {"user_id": user_id},
            {"$set": {"role": body.role.value}}
        )

    if result.matched_count == 0:
        raise HTTPException(status_code=404, detail="User not found")

    # Cached sessions still carry the old role
    cache.invalidate_user(user_id)
    return {"message": "Role updated", "user_id": user_id, "role": body.role.value}


@router.get("/{user_id}")
async def get_user(user_id: str, user: User = Depends(get_current_user), db=Depends(get_db)):
    """Get a specific user's public profile"""
    with store_errors("Get user"):
        target_user = await db.users.find_one({"user_id": user_id}, {"_id": 0})
    if not target_user:
        raise HTTPException(status_code=404, detail="User not found")

    if user.role != UserRole.ADMIN and user.user_id != user_id:
        return {k: target_user.get(k) for k in ("user_id", "name", "picture", "role")}
    return target_user

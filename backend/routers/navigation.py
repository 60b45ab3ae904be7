from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends

from dependencies import get_optional_session
from services.navigation import Role, navigation_for, parse_role
from services.session_cache import Session

router = APIRouter(prefix="/navigation", tags=["navigation"])


@router.get("")
async def get_navigation(session: Optional[Session] = Depends(get_optional_session)):
    """Menu configuration for the caller's role; signed-out visitors get the guest menu"""
    role = parse_role(session.user.role.value) if session else Role.GUEST
    return {"role": role.value, **asdict(navigation_for(role))}

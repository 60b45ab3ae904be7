from pydantic import BaseModel, ConfigDict
from typing import Optional
from enum import Enum


class UserRole(str, Enum):
    CLIENT = "client"
    ARTIST = "artist"
    ADMIN = "admin"


class User(BaseModel):
    model_config = ConfigDict(extra="ignore")
    user_id: str
    email: str
    name: str = ""
    picture: Optional[str] = None
    role: UserRole = UserRole.CLIENT
    created_at: Optional[str] = None


class SessionExchange(BaseModel):
    session_id: str


class RoleUpdate(BaseModel):
    role: UserRole

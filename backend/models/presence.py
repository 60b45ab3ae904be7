from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class UserStatus(BaseModel):
    user_id: str
    is_online: bool = False
    last_seen: Optional[datetime] = None

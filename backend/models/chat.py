from pydantic import BaseModel
from typing import Optional
from enum import Enum


class MessageType(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    AUDIO = "audio"


class ReplyTo(BaseModel):
    id: str
    content: str
    sender_name: str


class RoomCreate(BaseModel):
    artist_id: str


class MessageCreate(BaseModel):
    content: str
    type: MessageType = MessageType.TEXT
    reply_to: Optional[ReplyTo] = None

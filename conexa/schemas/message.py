"""Pydantic schemas for direct messages and reactions."""
from datetime import datetime

from pydantic import BaseModel, Field

from conexa.models.message import MessageType
from conexa.schemas.common import ApiModel


class MessageSend(BaseModel):
    message: str = Field(..., max_length=5000)


class MessageEdit(BaseModel):
    message: str = Field(..., min_length=1, max_length=5000)


class MessageResponse(ApiModel):
    id: str = Field(serialization_alias="_id")
    sender_id: str
    receiver_id: str
    message: str | None = None
    message_type: MessageType = MessageType.TEXT
    is_deleted: bool = False
    deleted_at: datetime | None = None
    is_edited: bool = False
    edited_at: datetime | None = None
    timestamp: datetime


class ReactionCreate(BaseModel):
    message_id: str = Field(alias="messageId")
    emoji: str = Field(..., min_length=1, max_length=32)

    class Config:
        populate_by_name = True


class ReactionUpdate(BaseModel):
    emoji: str = Field(..., min_length=1, max_length=32)


class ReactionUser(ApiModel):
    username: str
    profile_picture: str = ""


class ReactionResponse(ApiModel):
    id: str = Field(serialization_alias="_id")
    message_id: str
    user_id: str
    emoji: str
    timestamp: datetime
    user: ReactionUser

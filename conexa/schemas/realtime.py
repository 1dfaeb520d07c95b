"""Inbound real-time notices sent by clients (camelCase on the wire)."""
from datetime import datetime

from pydantic import BaseModel, Field


class MessagesSeenNotice(BaseModel):
    """`messages-seen`: userId has read the conversation with selectedUserId."""
    user_id: str = Field(alias="userId", min_length=1)
    selected_user_id: str = Field(alias="selectedUserId", min_length=1)

    class Config:
        populate_by_name = True


class MessageEditedNotice(BaseModel):
    """`message-edited` relayed by the editing client to both parties."""
    message_id: str = Field(alias="messageId")
    new_message: str | None = Field(default=None, alias="newMessage")
    edited_at: datetime | None = Field(default=None, alias="editedAt")
    is_edited: bool = Field(default=True, alias="isEdited")
    sender_id: str = Field(alias="senderId")
    receiver_id: str = Field(alias="receiverId")

    class Config:
        populate_by_name = True

"""Pydantic schemas for posts and notifications."""
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from conexa.models.notification import NotificationType
from conexa.schemas.common import ApiModel, UserSummary

MAX_CATEGORIES = 10


class PostCreate(BaseModel):
    caption: str = Field(default="", max_length=500)
    image: str = Field(..., min_length=1, max_length=512)
    categories: list[str]

    @field_validator("categories")
    @classmethod
    def clean_categories(cls, value: list[str]) -> list[str]:
        cleaned = [c.strip() for c in value if c and c.strip()]
        if not cleaned:
            raise ValueError("At least one category is required")
        if len(cleaned) > MAX_CATEGORIES:
            raise ValueError(f"Maximum of {MAX_CATEGORIES} categories allowed")
        return cleaned


class PostResponse(ApiModel):
    id: str = Field(serialization_alias="_id")
    caption: str = ""
    image: str
    categories: list[str]
    author: UserSummary
    created_at: datetime
    likes: list[str] = []
    dislikes: list[str] = []
    share_count: int = 0


class ShareRequest(BaseModel):
    """Optional recipient: sharing a post into a direct conversation."""
    to_user_id: str | None = Field(default=None, alias="toUserId")

    class Config:
        populate_by_name = True


class NotificationResponse(ApiModel):
    id: str = Field(serialization_alias="_id")
    type: NotificationType
    sender: UserSummary
    post_id: str | None = None
    read: bool = False
    timestamp: datetime

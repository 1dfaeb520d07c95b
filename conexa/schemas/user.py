"""Pydantic schemas for auth, profiles and the follow graph."""
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from conexa.schemas.common import ApiModel, UserSummary


class UserCreate(BaseModel):
    """Request body for POST /auth/register."""
    username: str = Field(..., min_length=1, max_length=64, pattern=r"^[A-Za-z0-9_.]+$")
    email: EmailStr
    password: str = Field(..., min_length=6)


class LoginRequest(BaseModel):
    """Request body for POST /auth/login."""
    email: EmailStr
    password: str


class Token(BaseModel):
    """Response for login: access_token and type."""
    access_token: str
    token_type: str = "bearer"


class UserResponse(ApiModel):
    """The authenticated user (no password)."""
    id: str = Field(serialization_alias="_id")
    username: str
    email: str
    profile_picture: str = ""
    bio: str = ""
    gender: str | None = None
    is_private: bool = False
    created_at: datetime


class UserUpdate(BaseModel):
    """Request body for PATCH /auth/me."""
    bio: str | None = Field(default=None, max_length=500)
    gender: str | None = Field(default=None, pattern=r"^(male|female)$")
    profile_picture: str | None = Field(default=None, max_length=512)
    is_private: bool | None = None


class UserProfile(ApiModel):
    """Public profile with follow counts."""
    id: str = Field(serialization_alias="_id")
    username: str
    profile_picture: str = ""
    bio: str = ""
    is_private: bool = False
    followers_count: int = 0
    following_count: int = 0
    is_following: bool = False


class FollowResult(ApiModel):
    status: str  # followed | unfollowed | requested | request-cancelled | accepted | rejected | removed
    target_id: str


class FollowRequestResponse(ApiModel):
    id: str = Field(serialization_alias="_id")
    requester: UserSummary
    created_at: datetime


class LastActiveResponse(ApiModel):
    user_id: str
    last_active: datetime | None = None

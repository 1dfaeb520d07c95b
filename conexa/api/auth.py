"""Auth routes: register, login, profile (GET/PATCH /me)."""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from conexa.auth.jwt import create_access_token
from conexa.auth.password import hash_password, verify_password
from conexa.database import get_db
from conexa.deps import get_current_user
from conexa.models.user import User
from conexa.schemas.user import LoginRequest, Token, UserCreate, UserResponse, UserUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(body: UserCreate, db: AsyncSession = Depends(get_db)):
    """Create a new user. Returns user (no password)."""
    result = await db.execute(
        select(User).where(or_(User.email == body.email, User.username == body.username))
    )
    existing = result.scalars().first()
    if existing:
        detail = "Email already registered" if existing.email == body.email else "Username already taken"
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)
    user = User(
        username=body.username,
        email=body.email,
        hashed_password=hash_password(body.password),
    )
    db.add(user)
    await db.flush()
    logger.info("Registered user %s (%s)", user.id, user.username)
    return user


@router.post("/login", response_model=Token)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Login with email + password; returns JWT access_token."""
    result = await db.execute(select(User).where(User.email == body.email))
    user = result.scalar_one_or_none()
    if not user or not verify_password(body.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect email or password")
    return Token(access_token=create_access_token(data={"sub": user.id}))


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.patch("/me", response_model=UserResponse)
async def update_me(
    body: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Update current user profile (bio, gender, picture URL, privacy)."""
    if body.bio is not None:
        current_user.bio = body.bio
    if body.gender is not None:
        current_user.gender = body.gender
    if body.profile_picture is not None:
        current_user.profile_picture = body.profile_picture
    if body.is_private is not None:
        current_user.is_private = body.is_private
    await db.flush()
    return current_user

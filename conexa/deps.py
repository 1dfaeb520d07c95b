"""Shared dependencies: current user, real-time gateway and router."""
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from conexa.auth.jwt import token_subject
from conexa.database import get_db
from conexa.models.user import User
from conexa.services.event_router import EventRouter
from conexa.services.gateway import RealtimeGateway

security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Validate JWT from Authorization: Bearer <token> and return the User. Raises 401 if missing/invalid."""
    if not credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    user_id = token_subject(credentials.credentials)
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


def get_gateway(request: Request) -> RealtimeGateway:
    """The gateway is created once per app in create_app() and kept on app.state."""
    return request.app.state.gateway


def get_event_router(gateway: Annotated[RealtimeGateway, Depends(get_gateway)]) -> EventRouter:
    return gateway.router

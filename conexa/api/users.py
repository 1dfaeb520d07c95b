"""User routes: profiles, follow graph (follow / request / accept), presence and last-active."""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from conexa.database import get_db
from conexa.deps import get_current_user, get_event_router, get_gateway
from conexa.models.follow import Follow, FollowRequest
from conexa.models.notification import Notification, NotificationType
from conexa.models.user import User
from conexa.redis_client import get_redis
from conexa.schemas.user import FollowRequestResponse, FollowResult, LastActiveResponse, UserProfile
from conexa.services import events
from conexa.services.event_router import EventRouter
from conexa.services.gateway import RealtimeGateway
from conexa.services.last_active import get_last_active, set_last_active

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


async def get_user_or_404(db: AsyncSession, user_id: str) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


async def _follow_edge(db: AsyncSession, follower_id: str, followee_id: str) -> Follow | None:
    result = await db.execute(
        select(Follow).where(Follow.follower_id == follower_id, Follow.followee_id == followee_id)
    )
    return result.scalars().first()


async def _count(db: AsyncSession, column, user_id: str) -> int:
    result = await db.execute(select(func.count()).select_from(Follow).where(column == user_id))
    return int(result.scalar_one())


@router.get("/online")
def online_users(gateway: RealtimeGateway = Depends(get_gateway)):
    """Identities with at least one live real-time connection."""
    return {"onlineUsers": gateway.directory.online_identities()}


@router.get("/me/follow-requests", response_model=list[FollowRequestResponse])
async def list_follow_requests(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = await db.execute(
        select(FollowRequest)
        .where(FollowRequest.target_id == current_user.id)
        .order_by(FollowRequest.created_at.desc())
    )
    return result.scalars().unique().all()


@router.get("/me/follow-notifications")
async def follow_notifications(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Who followed me and when, newest first, with display details."""
    result = await db.execute(
        select(Follow).where(Follow.followee_id == current_user.id).order_by(Follow.created_at.desc())
    )
    follows = result.scalars().unique().all()
    return {
        "followNotifications": [
            events.follow_event("follow", follow.follower, follow.created_at) for follow in follows
        ]
    }


@router.put("/me/last-active", response_model=LastActiveResponse)
async def touch_last_active(
    current_user: User = Depends(get_current_user),
    redis=Depends(get_redis),
):
    now = datetime.now(timezone.utc)
    await set_last_active(redis, current_user.id, now)
    return LastActiveResponse(user_id=current_user.id, last_active=now)


@router.post("/follow-requests/{request_id}/accept", response_model=FollowResult)
async def accept_follow_request(
    request_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    event_router: EventRouter = Depends(get_event_router),
):
    """Turn a pending request into a follow edge and tell the requester."""
    follow_request = await db.get(FollowRequest, request_id)
    if not follow_request or follow_request.target_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Follow request not found")
    requester_id = follow_request.requester_id
    if not await _follow_edge(db, requester_id, current_user.id):
        db.add(Follow(follower_id=requester_id, followee_id=current_user.id))
    db.add(Notification(user_id=requester_id, sender_id=current_user.id, type=NotificationType.FOLLOW_ACCEPTED))
    await db.delete(follow_request)
    await db.commit()
    await event_router.emit_to_identity(
        requester_id, events.FOLLOW_ACCEPTED, events.follow_event("followAccepted", current_user)
    )
    return FollowResult(status="accepted", target_id=requester_id)


@router.post("/follow-requests/{request_id}/reject", response_model=FollowResult)
async def reject_follow_request(
    request_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    follow_request = await db.get(FollowRequest, request_id)
    if not follow_request or follow_request.target_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Follow request not found")
    requester_id = follow_request.requester_id
    await db.delete(follow_request)
    await db.flush()
    return FollowResult(status="rejected", target_id=requester_id)


@router.post("/followers/{follower_id}/remove", response_model=FollowResult)
async def remove_follower(
    follower_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    edge = await _follow_edge(db, follower_id, current_user.id)
    if not edge:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Not a follower")
    await db.delete(edge)
    await db.flush()
    return FollowResult(status="removed", target_id=follower_id)


@router.get("/{user_id}", response_model=UserProfile)
async def get_profile(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user = await get_user_or_404(db, user_id)
    return UserProfile(
        id=user.id,
        username=user.username,
        profile_picture=user.profile_picture,
        bio=user.bio,
        is_private=user.is_private,
        followers_count=await _count(db, Follow.followee_id, user.id),
        following_count=await _count(db, Follow.follower_id, user.id),
        is_following=await _follow_edge(db, current_user.id, user.id) is not None,
    )


@router.get("/{user_id}/last-active", response_model=LastActiveResponse)
async def read_last_active(
    user_id: str,
    current_user: User = Depends(get_current_user),
    redis=Depends(get_redis),
):
    return LastActiveResponse(user_id=user_id, last_active=await get_last_active(redis, user_id))


@router.post("/{user_id}/follow", response_model=FollowResult)
async def follow_or_unfollow(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    event_router: EventRouter = Depends(get_event_router),
):
    """Toggle following. Private targets get a follow request instead of a follower."""
    target = await get_user_or_404(db, user_id)
    if target.id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot follow yourself")

    edge = await _follow_edge(db, current_user.id, target.id)
    if edge:
        await db.delete(edge)
        await db.commit()
        return FollowResult(status="unfollowed", target_id=target.id)

    if target.is_private:
        result = await db.execute(
            select(FollowRequest).where(
                FollowRequest.requester_id == current_user.id, FollowRequest.target_id == target.id
            )
        )
        pending = result.scalars().first()
        if pending:
            # asking again withdraws the request
            await db.delete(pending)
            await db.commit()
            return FollowResult(status="request-cancelled", target_id=target.id)
        follow_request = FollowRequest(requester_id=current_user.id, target_id=target.id)
        db.add(follow_request)
        db.add(Notification(user_id=target.id, sender_id=current_user.id, type=NotificationType.FOLLOW_REQUEST))
        await db.commit()
        payload = events.follow_event("followRequest", current_user, follow_request.created_at)
        payload["requestId"] = follow_request.id
        await event_router.emit_to_identity(target.id, events.FOLLOW_REQUEST, payload)
        return FollowResult(status="requested", target_id=target.id)

    follow = Follow(follower_id=current_user.id, followee_id=target.id)
    db.add(follow)
    db.add(Notification(user_id=target.id, sender_id=current_user.id, type=NotificationType.FOLLOW))
    await db.commit()
    await event_router.emit_to_identity(
        target.id, events.FOLLOW, events.follow_event("follow", current_user, follow.created_at)
    )
    logger.info("User %s followed %s", current_user.id, target.id)
    return FollowResult(status="followed", target_id=target.id)

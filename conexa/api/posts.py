"""Post routes: create, feed, delete, and engagement (like / dislike / share) with live notifications."""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from conexa.api.messages import deliver_new_message
from conexa.api.users import get_user_or_404
from conexa.database import get_db
from conexa.deps import get_current_user, get_event_router
from conexa.models.message import Message, MessageType
from conexa.models.notification import Notification, NotificationType
from conexa.models.post import Post, PostVote, VoteKind
from conexa.models.user import User
from conexa.schemas.common import UserSummary
from conexa.schemas.post import PostCreate, PostResponse, ShareRequest
from conexa.services import events
from conexa.services.event_router import EventRouter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["posts"])

_VOTE_MESSAGES = {
    VoteKind.LIKE: "Your post was liked",
    VoteKind.DISLIKE: "Your post was disliked",
}


async def _get_post_or_404(db: AsyncSession, post_id: str) -> Post:
    post = await db.get(Post, post_id)
    if not post:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return post


async def _post_responses(db: AsyncSession, posts: list[Post]) -> list[PostResponse]:
    votes: dict[str, dict[VoteKind, list[str]]] = {p.id: {VoteKind.LIKE: [], VoteKind.DISLIKE: []} for p in posts}
    if posts:
        result = await db.execute(select(PostVote).where(PostVote.post_id.in_(list(votes))))
        for vote in result.scalars().all():
            votes[vote.post_id][vote.kind].append(vote.user_id)
    return [
        PostResponse(
            id=post.id,
            caption=post.caption,
            image=post.image,
            categories=post.categories,
            author=UserSummary.model_validate(post.author),
            created_at=post.created_at,
            likes=votes[post.id][VoteKind.LIKE],
            dislikes=votes[post.id][VoteKind.DISLIKE],
            share_count=post.share_count,
        )
        for post in posts
    ]


async def _notify_author(
    db: AsyncSession,
    event_router: EventRouter,
    post: Post,
    actor: User,
    kind: NotificationType,
    message: str,
) -> None:
    """Store and push a `notification` to the post author, unless the actor is the author."""
    if post.author_id == actor.id:
        return
    notification = Notification(user_id=post.author_id, sender_id=actor.id, type=kind, post_id=post.id)
    db.add(notification)
    await db.commit()
    await event_router.emit_to_identity(
        post.author_id,
        events.NOTIFICATION,
        events.post_notification(
            kind.value,
            actor,
            post.id,
            message,
            post_image=post.image if kind == NotificationType.LIKE else None,
            timestamp=notification.timestamp,
        ),
    )


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    body: PostCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    post = Post(
        author_id=current_user.id,
        author=current_user,
        caption=body.caption,
        image=body.image,
        categories=body.categories,
    )
    db.add(post)
    await db.flush()
    return (await _post_responses(db, [post]))[0]


@router.get("", response_model=list[PostResponse])
async def list_posts(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """All posts, newest first."""
    result = await db.execute(select(Post).order_by(Post.created_at.desc()))
    return await _post_responses(db, list(result.scalars().unique().all()))


@router.delete("/{post_id}")
async def delete_post(
    post_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    post = await _get_post_or_404(db, post_id)
    if post.author_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unauthorized")
    await db.delete(post)
    await db.flush()
    return {"success": True, "message": "Post deleted"}


async def _vote(
    post_id: str,
    kind: VoteKind,
    db: AsyncSession,
    current_user: User,
    event_router: EventRouter,
) -> PostResponse:
    post = await _get_post_or_404(db, post_id)
    result = await db.execute(
        select(PostVote).where(PostVote.post_id == post.id, PostVote.user_id == current_user.id)
    )
    vote = result.scalars().first()
    # a like replaces a dislike and vice versa
    if vote:
        vote.kind = kind
    else:
        db.add(PostVote(post_id=post.id, user_id=current_user.id, kind=kind))
    await db.commit()
    await _notify_author(
        db, event_router, post, current_user, NotificationType(kind.value), _VOTE_MESSAGES[kind]
    )
    return (await _post_responses(db, [post]))[0]


@router.post("/{post_id}/like", response_model=PostResponse)
async def like_post(
    post_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    event_router: EventRouter = Depends(get_event_router),
):
    return await _vote(post_id, VoteKind.LIKE, db, current_user, event_router)


@router.post("/{post_id}/dislike", response_model=PostResponse)
async def dislike_post(
    post_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    event_router: EventRouter = Depends(get_event_router),
):
    return await _vote(post_id, VoteKind.DISLIKE, db, current_user, event_router)


@router.post("/{post_id}/share")
async def share_post(
    post_id: str,
    body: ShareRequest | None = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    event_router: EventRouter = Depends(get_event_router),
):
    """Count a share; with toUserId the post is also sent as a direct message."""
    post = await _get_post_or_404(db, post_id)
    post.share_count += 1
    if body and body.to_user_id:
        await get_user_or_404(db, body.to_user_id)
        message = Message(
            sender_id=current_user.id,
            receiver_id=body.to_user_id,
            message=post.id,
            message_type=MessageType.POST,
        )
        db.add(message)
        await deliver_new_message(db, event_router, message)
    else:
        await db.commit()
    await _notify_author(db, event_router, post, current_user, NotificationType.SHARE, "Your post was shared")
    logger.info("Post %s shared by %s", post.id, current_user.id)
    return {"success": True, "message": "Post shared successfully", "shareCount": post.share_count}

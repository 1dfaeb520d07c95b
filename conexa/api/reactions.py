"""Reaction routes. Live updates go to the two parties of the message, not to everyone."""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from conexa.database import get_db
from conexa.deps import get_current_user, get_event_router
from conexa.models.base import utcnow
from conexa.models.message import Message
from conexa.models.reaction import Reaction
from conexa.models.user import User
from conexa.schemas.message import ReactionCreate, ReactionResponse, ReactionUpdate
from conexa.services import events
from conexa.services.event_router import EventRouter

router = APIRouter(prefix="/reactions", tags=["reactions"])


async def _message_for_participant(db: AsyncSession, message_id: str, user: User) -> Message:
    message = await db.get(Message, message_id)
    if not message or user.id not in (message.sender_id, message.receiver_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
    return message


async def _own_reaction(db: AsyncSession, message_id: str, user_id: str) -> Reaction | None:
    result = await db.execute(
        select(Reaction).where(Reaction.message_id == message_id, Reaction.user_id == user_id)
    )
    return result.scalars().first()


@router.get("/{message_id}", response_model=list[ReactionResponse])
async def list_reactions(
    message_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await _message_for_participant(db, message_id, current_user)
    result = await db.execute(
        select(Reaction).where(Reaction.message_id == message_id).order_by(Reaction.timestamp)
    )
    return result.scalars().unique().all()


@router.post("", response_model=ReactionResponse, status_code=status.HTTP_201_CREATED)
async def add_reaction(
    body: ReactionCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    event_router: EventRouter = Depends(get_event_router),
):
    """Add a reaction; reacting again to the same message replaces the emoji."""
    message = await _message_for_participant(db, body.message_id, current_user)
    reaction = await _own_reaction(db, message.id, current_user.id)
    if reaction:
        reaction.emoji = body.emoji
        reaction.timestamp = utcnow()
    else:
        reaction = Reaction(message_id=message.id, user_id=current_user.id, user=current_user, emoji=body.emoji)
        db.add(reaction)
    await db.commit()
    response = ReactionResponse.model_validate(reaction)
    await event_router.emit_to_identities(
        [message.sender_id, message.receiver_id], events.NEW_REACTION, response.wire()
    )
    return response


@router.put("/{message_id}", response_model=ReactionResponse)
async def update_reaction(
    message_id: str,
    body: ReactionUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    event_router: EventRouter = Depends(get_event_router),
):
    message = await _message_for_participant(db, message_id, current_user)
    reaction = await _own_reaction(db, message.id, current_user.id)
    if not reaction:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reaction not found")
    reaction.emoji = body.emoji
    reaction.timestamp = utcnow()
    await db.commit()
    response = ReactionResponse.model_validate(reaction)
    await event_router.emit_to_identities(
        [message.sender_id, message.receiver_id], events.NEW_REACTION, response.wire()
    )
    return response


@router.delete("/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reaction(
    message_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    event_router: EventRouter = Depends(get_event_router),
):
    message = await _message_for_participant(db, message_id, current_user)
    reaction = await _own_reaction(db, message.id, current_user.id)
    if not reaction:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reaction not found")
    await db.delete(reaction)
    await db.commit()
    await event_router.emit_to_identities(
        [message.sender_id, message.receiver_id],
        events.REACTION_DELETED,
        events.reaction_deleted(message.id, current_user.id),
    )

"""Direct message routes: send, list conversation, edit, soft delete. Each change is pushed live to both parties."""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from conexa.api.users import get_user_or_404
from conexa.database import get_db
from conexa.deps import get_current_user, get_event_router
from conexa.models.message import Message, MessageType
from conexa.models.user import User
from conexa.schemas.message import MessageEdit, MessageResponse, MessageSend
from conexa.services import events
from conexa.services.event_router import EventRouter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["messages"])


async def deliver_new_message(db: AsyncSession, event_router: EventRouter, message: Message) -> MessageResponse:
    """Commit the message, then push `newMessage` to receiver and sender."""
    await db.commit()
    response = MessageResponse.model_validate(message)
    await event_router.emit_to_identities(
        [message.receiver_id, message.sender_id], events.NEW_MESSAGE, response.wire()
    )
    return response


@router.post("/send/{receiver_id}", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    receiver_id: str,
    body: MessageSend,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    event_router: EventRouter = Depends(get_event_router),
):
    if not body.message.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Message text is required for text messages.",
        )
    await get_user_or_404(db, receiver_id)
    message = Message(
        sender_id=current_user.id,
        receiver_id=receiver_id,
        message=body.message,
        message_type=MessageType.TEXT,
    )
    db.add(message)
    return await deliver_new_message(db, event_router, message)


@router.get("/{other_user_id}", response_model=list[MessageResponse])
async def get_conversation(
    other_user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """All messages between the current user and other_user_id, oldest first."""
    result = await db.execute(
        select(Message)
        .where(
            or_(
                and_(Message.sender_id == current_user.id, Message.receiver_id == other_user_id),
                and_(Message.sender_id == other_user_id, Message.receiver_id == current_user.id),
            )
        )
        .order_by(Message.timestamp)
    )
    return result.scalars().all()


@router.put("/{message_id}", response_model=MessageResponse)
async def edit_message(
    message_id: str,
    body: MessageEdit,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    event_router: EventRouter = Depends(get_event_router),
):
    message = await db.get(Message, message_id)
    if not message or message.is_deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
    if message.sender_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only edit your own messages")
    message.message = body.message
    message.is_edited = True
    message.edited_at = datetime.now(timezone.utc)
    await db.commit()
    await event_router.emit_to_identities(
        [message.receiver_id, message.sender_id], events.MESSAGE_EDITED, events.message_edited(message)
    )
    return message


@router.delete("/{message_id}")
async def delete_message(
    message_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    event_router: EventRouter = Depends(get_event_router),
):
    """Soft delete: only the sender may delete; text is cleared and the row kept."""
    result = await db.execute(
        select(Message).where(Message.id == message_id, Message.sender_id == current_user.id)
    )
    message = result.scalar_one_or_none()
    if not message:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Message not found or not authorized to delete",
        )
    message.message = None
    message.is_deleted = True
    message.deleted_at = datetime.now(timezone.utc)
    await db.commit()
    await event_router.emit_to_identities(
        [message.receiver_id, message.sender_id],
        events.MESSAGE_DELETED,
        events.message_deleted(message.id, message.deleted_at, current_user.username),
    )
    logger.info("Message %s deleted by %s", message.id, current_user.id)
    return {"success": True, "message": "Message deleted successfully"}

"""Stored notification (the live copy is pushed over the real-time channel)."""
import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from conexa.models.base import Base, new_id, utcnow


class NotificationType(str, enum.Enum):
    FOLLOW = "follow"
    FOLLOW_REQUEST = "followRequest"
    FOLLOW_ACCEPTED = "followAccepted"
    LIKE = "like"
    DISLIKE = "dislike"
    SHARE = "share"


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    # the user receiving the notification
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # the user who triggered it
    sender_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type: Mapped[NotificationType] = mapped_column(
        Enum(NotificationType, values_callable=lambda e: [m.value for m in e]), nullable=False
    )
    post_id: Mapped[str | None] = mapped_column(ForeignKey("posts.id", ondelete="CASCADE"), nullable=True)
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)

    sender = relationship("User", foreign_keys=[sender_id], lazy="joined")

from conexa.models.base import Base
from conexa.models.follow import Follow, FollowRequest
from conexa.models.message import Message, MessageType
from conexa.models.notification import Notification, NotificationType
from conexa.models.post import Post, PostVote, VoteKind
from conexa.models.reaction import Reaction
from conexa.models.user import User

__all__ = [
    "Base",
    "User",
    "Follow",
    "FollowRequest",
    "Message",
    "MessageType",
    "Notification",
    "NotificationType",
    "Post",
    "PostVote",
    "VoteKind",
    "Reaction",
]

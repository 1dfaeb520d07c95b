"""Real-time event names and payload shapes (the client wire contract)."""
from datetime import datetime, timezone
from typing import Any

from conexa.config import settings

# server -> client
PRESENCE_UPDATE = "presence-update"
NEW_MESSAGE = "newMessage"
MESSAGE_DELETED = "message-deleted"
MESSAGE_EDITED = "message-edited"
MESSAGES_SEEN = "messages-seen"
NEW_REACTION = "new-reaction"
REACTION_DELETED = "reaction-deleted"
NOTIFICATION = "notification"
FOLLOW = "follow"
FOLLOW_REQUEST = "followRequest"
FOLLOW_ACCEPTED = "followAccepted"
PONG = "pong"

# client -> server
PING = "ping"
JOIN = "join"


def user_details(user) -> dict[str, str]:
    return {
        "username": user.username,
        "profilePicture": user.profile_picture or settings.DEFAULT_AVATAR_URL,
    }


def message_deleted(message_id: str, deleted_at: datetime, sender_username: str) -> dict[str, Any]:
    return {"messageId": message_id, "deletedAt": deleted_at, "senderUsername": sender_username}


def message_edited(message) -> dict[str, Any]:
    return {
        "messageId": message.id,
        "newMessage": message.message,
        "editedAt": message.edited_at,
        "isEdited": message.is_edited,
        "senderId": message.sender_id,
        "receiverId": message.receiver_id,
    }


def reaction_deleted(message_id: str, user_id: str) -> dict[str, str]:
    return {"messageId": message_id, "userId": user_id}


def post_notification(
    kind: str,
    actor,
    post_id: str,
    message: str,
    post_image: str | None = None,
    timestamp: datetime | None = None,
) -> dict[str, Any]:
    """Payload of `notification` for like / dislike / share on a post."""
    payload: dict[str, Any] = {
        "type": kind,
        "userId": actor.id,
        "userDetails": user_details(actor),
        "postId": post_id,
        "message": message,
        "timestamp": timestamp or datetime.now(timezone.utc),
    }
    if post_image:
        payload["postImage"] = post_image
    return payload


def follow_event(kind: str, actor, timestamp: datetime | None = None) -> dict[str, Any]:
    """Payload of `follow`, `followRequest` and `followAccepted`."""
    return {
        "type": kind,
        "userId": actor.id,
        "userDetails": user_details(actor),
        "timestamp": timestamp or datetime.now(timezone.utc),
    }

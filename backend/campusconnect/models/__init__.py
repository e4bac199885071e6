# SPDX-License-Identifier: Apache-2.0
"""SQLModel table definitions."""
from campusconnect.models.badge import Badge, UserBadge
from campusconnect.models.connection import Connection
from campusconnect.models.message import Message
from campusconnect.models.post import Comment, Like, Post, Share
from campusconnect.models.user import User
from campusconnect.models.workshop import Workshop, WorkshopMessage, WorkshopParticipant

__all__ = [
    "Badge",
    "Comment",
    "Connection",
    "Like",
    "Message",
    "Post",
    "Share",
    "User",
    "UserBadge",
    "Workshop",
    "WorkshopMessage",
    "WorkshopParticipant",
]

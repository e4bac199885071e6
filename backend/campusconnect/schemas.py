# SPDX-License-Identifier: Apache-2.0
"""Pydantic request/response schemas."""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field as PydanticField


# Requests

class SignupRequest(BaseModel):
    name: str = PydanticField("", max_length=100)
    email: str = PydanticField("", max_length=254)
    password: str = PydanticField("", max_length=128)


class LoginRequest(BaseModel):
    email: str = PydanticField("", max_length=254)
    password: str = PydanticField("", max_length=128)


class ProfileUpdate(BaseModel):
    """Only fields present in the request body are applied."""

    name: str | None = PydanticField(None, max_length=100)
    branch: str | None = PydanticField(None, max_length=100)
    year: str | None = PydanticField(None, max_length=20)
    bio: str | None = PydanticField(None, max_length=500)


class MessageCreate(BaseModel):
    content: str = PydanticField("", max_length=5000)


class WorkshopCreate(BaseModel):
    title: str = PydanticField("", max_length=200)
    description: str | None = PydanticField(None, max_length=2000)
    scheduled_at: datetime | None = None
    duration: int = PydanticField(60, ge=1, le=24 * 60)
    max_participants: int = PydanticField(50, ge=1, le=10000)


class CommentCreate(BaseModel):
    content: str = PydanticField("", max_length=2000)


class ShareCreate(BaseModel):
    content: str = PydanticField("", max_length=5000)


class BadgeAward(BaseModel):
    user_id: int | None = None
    badge_name: str = ""
    workshop_id: int | None = None


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str = PydanticField(..., max_length=4000)


class ChatRequest(BaseModel):
    message: str = PydanticField("", max_length=4000)
    history: list[ChatTurn] = []


# Responses

class UserSummary(BaseModel):
    id: int
    name: str
    profile_photo: str | None = None
    branch: str | None = None
    year: str | None = None


class UserProfile(BaseModel):
    id: int
    name: str
    email: str
    branch: str | None = None
    year: str | None = None
    bio: str | None = None
    profile_photo: str | None = None
    profile_completed: bool
    created_at: datetime


class SearchResult(UserSummary):
    bio: str | None = None


class PublicProfile(BaseModel):
    id: int
    name: str
    branch: str | None = None
    year: str | None = None
    bio: str | None = None
    profile_photo: str | None = None
    created_at: datetime
    connection_status: str | None = None
    connection_id: int | None = None
    post_count: int = 0
    connection_count: int = 0
    is_own_profile: bool = False


class LoginResponse(BaseModel):
    token: str
    user: UserProfile


class ConnectionStatus(BaseModel):
    status: str
    connection_id: int | None = None


class ConnectionEntry(BaseModel):
    id: int
    status: str
    created_at: datetime
    user: UserSummary


class MessageOut(BaseModel):
    id: int
    sender_id: int
    receiver_id: int
    content: str
    is_read: bool
    created_at: datetime
    is_own_message: bool


class Thread(BaseModel):
    user: UserSummary
    last_message: MessageOut | None = None
    unread_count: int = 0


class Conversation(BaseModel):
    user: UserSummary
    messages: list[MessageOut]


class WorkshopSummary(BaseModel):
    id: int
    title: str
    description: str | None = None
    scheduled_at: datetime
    duration: int
    max_participants: int
    status: str
    created_at: datetime
    instructor: UserSummary
    participant_count: int = 0


class ParticipantOut(BaseModel):
    id: int
    name: str
    profile_photo: str | None = None
    joined_at: datetime
    attended: bool


class WorkshopDetail(WorkshopSummary):
    participants: list[ParticipantOut] = []
    user_joined: bool = False
    is_instructor: bool = False


class WorkshopChatMessage(BaseModel):
    id: int
    content: str
    created_at: datetime
    user: UserSummary


class BadgeOut(BaseModel):
    id: int
    name: str
    description: str
    icon: str


class UserBadgeOut(BadgeOut):
    awarded_at: datetime
    workshop_id: int | None = None
    workshop_title: str | None = None


class OriginalPost(BaseModel):
    id: int
    content: str
    image: str | None = None
    media_type: str | None = None
    created_at: datetime
    author_id: int
    author_name: str
    author_photo: str | None = None


class PostOut(BaseModel):
    id: int
    user_id: int
    content: str
    image: str | None = None
    media_type: str | None = None
    created_at: datetime
    author_name: str
    author_photo: str | None = None
    like_count: int = 0
    comment_count: int = 0
    share_count: int = 0
    user_liked: bool = False
    hashtags: list[str] = []
    is_own_post: bool = False
    original_post: OriginalPost | None = None


class CommentOut(BaseModel):
    id: int
    content: str
    created_at: datetime
    user_id: int
    author_name: str
    author_photo: str | None = None
    is_own_comment: bool = False


class PostDetail(PostOut):
    comments: list[CommentOut] = []


class Presence(BaseModel):
    user_id: int
    is_online: bool
    last_seen: datetime | None = None


class ChatReply(BaseModel):
    message: str
    model: str

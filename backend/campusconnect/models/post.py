# SPDX-License-Identifier: Apache-2.0
"""Post, Comment, Like, Share models."""
from datetime import datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from campusconnect.core.clock import utc_now


class Post(SQLModel, table=True):
    __tablename__ = "posts"
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    content: str = ""
    image: str | None = None
    media_type: str | None = None
    original_post_id: int | None = Field(default=None, foreign_key="posts.id", ondelete="SET NULL")
    created_at: datetime = Field(default_factory=utc_now, index=True)


class Comment(SQLModel, table=True):
    __tablename__ = "comments"
    id: int | None = Field(default=None, primary_key=True)
    post_id: int = Field(foreign_key="posts.id", index=True, ondelete="CASCADE")
    user_id: int = Field(foreign_key="users.id")
    content: str
    created_at: datetime = Field(default_factory=utc_now)


class Like(SQLModel, table=True):
    __tablename__ = "likes"
    __table_args__ = (UniqueConstraint("post_id", "user_id", name="uq_likes_post_user"),)
    id: int | None = Field(default=None, primary_key=True)
    post_id: int = Field(foreign_key="posts.id", index=True, ondelete="CASCADE")
    user_id: int = Field(foreign_key="users.id")


class Share(SQLModel, table=True):
    __tablename__ = "shares"
    id: int | None = Field(default=None, primary_key=True)
    post_id: int = Field(foreign_key="posts.id", index=True, ondelete="CASCADE")
    user_id: int = Field(foreign_key="users.id")
    created_at: datetime = Field(default_factory=utc_now)

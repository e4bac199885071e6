# SPDX-License-Identifier: Apache-2.0
"""User model."""
from datetime import datetime

from sqlmodel import Field, SQLModel

from campusconnect.core.clock import utc_now


class User(SQLModel, table=True):
    __tablename__ = "users"
    id: int | None = Field(default=None, primary_key=True)
    name: str
    email: str = Field(unique=True, index=True)
    password_hash: str
    branch: str | None = None
    year: str | None = None
    bio: str | None = None
    profile_photo: str | None = None
    is_verified: bool = False
    verification_token: str | None = Field(default=None, index=True)
    profile_completed: bool = False
    is_online: bool = False
    last_seen: datetime | None = None
    created_at: datetime = Field(default_factory=utc_now)

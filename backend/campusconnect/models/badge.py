# SPDX-License-Identifier: Apache-2.0
"""Badge catalog and award records."""
from datetime import datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from campusconnect.core.clock import utc_now


class Badge(SQLModel, table=True):
    __tablename__ = "badges"
    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(unique=True)
    description: str = ""
    icon: str = ""


class UserBadge(SQLModel, table=True):
    __tablename__ = "user_badges"
    __table_args__ = (UniqueConstraint("user_id", "badge_id", "workshop_id", name="uq_user_badge_scope"),)
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    badge_id: int = Field(foreign_key="badges.id")
    workshop_id: int | None = Field(default=None, foreign_key="workshops.id")
    awarded_at: datetime = Field(default_factory=utc_now)

# SPDX-License-Identifier: Apache-2.0
"""Workshop, WorkshopParticipant, WorkshopMessage models."""
from datetime import datetime

from sqlalchemy import CheckConstraint, UniqueConstraint
from sqlmodel import Field, SQLModel

from campusconnect.core.clock import utc_now

SCHEDULED = "scheduled"
LIVE = "live"
COMPLETED = "completed"
STATUSES = (SCHEDULED, LIVE, COMPLETED)


class Workshop(SQLModel, table=True):
    __tablename__ = "workshops"
    __table_args__ = (
        CheckConstraint("status IN ('scheduled', 'live', 'completed')", name="ck_workshops_status"),
    )
    id: int | None = Field(default=None, primary_key=True)
    title: str
    description: str | None = None
    instructor_id: int = Field(foreign_key="users.id", index=True)
    scheduled_at: datetime
    duration: int = 60
    max_participants: int = 50
    status: str = SCHEDULED
    created_at: datetime = Field(default_factory=utc_now)


class WorkshopParticipant(SQLModel, table=True):
    __tablename__ = "workshop_participants"
    __table_args__ = (UniqueConstraint("workshop_id", "user_id", name="uq_workshop_participant"),)
    id: int | None = Field(default=None, primary_key=True)
    workshop_id: int = Field(foreign_key="workshops.id", index=True, ondelete="CASCADE")
    user_id: int = Field(foreign_key="users.id", index=True)
    attended: bool = False
    joined_at: datetime = Field(default_factory=utc_now)


class WorkshopMessage(SQLModel, table=True):
    __tablename__ = "workshop_messages"
    id: int | None = Field(default=None, primary_key=True)
    workshop_id: int = Field(foreign_key="workshops.id", index=True, ondelete="CASCADE")
    user_id: int = Field(foreign_key="users.id")
    content: str
    created_at: datetime = Field(default_factory=utc_now)

# SPDX-License-Identifier: Apache-2.0
"""Direct message model."""
from datetime import datetime

from sqlmodel import Field, SQLModel

from campusconnect.core.clock import utc_now


class Message(SQLModel, table=True):
    __tablename__ = "messages"
    id: int | None = Field(default=None, primary_key=True)
    sender_id: int = Field(foreign_key="users.id", index=True)
    receiver_id: int = Field(foreign_key="users.id", index=True)
    content: str
    is_read: bool = False
    created_at: datetime = Field(default_factory=utc_now)

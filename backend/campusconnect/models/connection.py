# SPDX-License-Identifier: Apache-2.0
"""Connection model: one row per unordered pair of users."""
from datetime import datetime

from sqlalchemy import CheckConstraint, UniqueConstraint
from sqlmodel import Field, SQLModel

from campusconnect.core.clock import utc_now

PENDING = "pending"
ACCEPTED = "accepted"


class Connection(SQLModel, table=True):
    __tablename__ = "connections"
    __table_args__ = (
        UniqueConstraint("user_low_id", "user_high_id", name="uq_connections_pair"),
        CheckConstraint("status IN ('pending', 'accepted')", name="ck_connections_status"),
    )
    id: int | None = Field(default=None, primary_key=True)
    requester_id: int = Field(foreign_key="users.id", index=True)
    receiver_id: int = Field(foreign_key="users.id", index=True)
    # min/max of the two ids; the unique constraint above is what forbids reciprocal rows
    user_low_id: int
    user_high_id: int
    status: str = PENDING
    created_at: datetime = Field(default_factory=utc_now)

    @classmethod
    def between(cls, requester_id: int, receiver_id: int) -> "Connection":
        return cls(
            requester_id=requester_id,
            receiver_id=receiver_id,
            user_low_id=min(requester_id, receiver_id),
            user_high_id=max(requester_id, receiver_id),
            status=PENDING,
        )

    def other_party(self, user_id: int) -> int:
        return self.receiver_id if self.requester_id == user_id else self.requester_id

# SPDX-License-Identifier: Apache-2.0
"""Online/offline flags driven by client heartbeats."""
from __future__ import annotations

from sqlalchemy import or_, update
from sqlmodel import select

from campusconnect.core.clock import utc_now
from campusconnect.core.exceptions import NotFound
from campusconnect.database import Store
from campusconnect.models import Connection, User
from campusconnect.models.connection import ACCEPTED
from campusconnect.schemas import Presence


def _presence(user: User) -> Presence:
    return Presence(user_id=user.id, is_online=user.is_online, last_seen=user.last_seen)


class PresenceService:
    def __init__(self, store: Store) -> None:
        self.store = store

    def _set_online(self, user_id: int, online: bool) -> None:
        with self.store.transaction() as session:
            session.exec(
                update(User).where(User.id == user_id).values(is_online=online, last_seen=utc_now())
            )

    def heartbeat(self, user_id: int) -> None:
        self._set_online(user_id, True)

    def offline(self, user_id: int) -> None:
        self._set_online(user_id, False)

    def presence_of(self, user_id: int) -> Presence:
        with self.store.session() as session:
            user = session.get(User, user_id)
        if user is None:
            raise NotFound("User not found")
        return _presence(user)

    def connections_presence(self, user_id: int) -> dict[int, Presence]:
        """Presence of every accepted connection, keyed by the counterpart's id."""
        with self.store.session() as session:
            connections = session.exec(
                select(Connection).where(
                    or_(Connection.requester_id == user_id, Connection.receiver_id == user_id),
                    Connection.status == ACCEPTED,
                )
            ).all()
            others = [c.other_party(user_id) for c in connections]
            users = session.exec(select(User).where(User.id.in_(others))).all() if others else []
        return {u.id: _presence(u) for u in users}

# SPDX-License-Identifier: Apache-2.0
"""Connection graph: pairwise request/accept/remove state machine between users."""
from __future__ import annotations

import logging

from sqlalchemy import and_, func, or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from campusconnect.core.exceptions import (
    AlreadyConnected,
    AlreadyPending,
    Forbidden,
    InvalidState,
    NotFound,
    ValidationError,
)
from campusconnect.database import Store
from campusconnect.models import Connection, User
from campusconnect.models.connection import ACCEPTED, PENDING
from campusconnect.schemas import ConnectionEntry, ConnectionStatus, UserSummary

logger = logging.getLogger(__name__)


def pair_filter(user_a: int, user_b: int):
    """WHERE clause matching the single connection row of an unordered pair."""
    return and_(
        Connection.user_low_id == min(user_a, user_b),
        Connection.user_high_id == max(user_a, user_b),
    )


def find_between(session: Session, user_a: int, user_b: int) -> Connection | None:
    return session.exec(select(Connection).where(pair_filter(user_a, user_b))).first()


def are_connected(session: Session, user_a: int, user_b: int) -> bool:
    """Gate query: do the two users currently hold an accepted connection?"""
    row = session.exec(
        select(Connection.id).where(pair_filter(user_a, user_b), Connection.status == ACCEPTED)
    ).first()
    return row is not None


def user_summary(user: User) -> UserSummary:
    return UserSummary(
        id=user.id,
        name=user.name,
        profile_photo=user.profile_photo,
        branch=user.branch,
        year=user.year,
    )


class ConnectionGraph:
    def __init__(self, store: Store) -> None:
        self.store = store

    def request(self, requester_id: int, receiver_id: int) -> Connection:
        if requester_id == receiver_id:
            raise ValidationError("You cannot connect with yourself")
        with self.store.transaction() as session:
            receiver = session.get(User, receiver_id)
            if receiver is None or not receiver.is_verified:
                raise NotFound("User not found")
            existing = find_between(session, requester_id, receiver_id)
            if existing is not None:
                raise AlreadyConnected() if existing.status == ACCEPTED else AlreadyPending()
            connection = Connection.between(requester_id, receiver_id)
            session.add(connection)
            try:
                session.flush()
            except IntegrityError:
                raise AlreadyPending()
            session.refresh(connection)
        logger.info("Connection %s requested: %s -> %s", connection.id, requester_id, receiver_id)
        return connection

    def accept(self, connection_id: int, acting_user_id: int) -> Connection:
        with self.store.transaction() as session:
            connection = session.get(Connection, connection_id)
            if connection is None:
                raise NotFound("Connection request not found")
            if connection.receiver_id != acting_user_id:
                raise Forbidden("You can only accept requests sent to you")
            if connection.status != PENDING:
                raise InvalidState("This request has already been processed")
            connection.status = ACCEPTED
            session.add(connection)
        logger.info("Connection %s accepted by %s", connection_id, acting_user_id)
        return connection

    def remove(self, connection_id: int, acting_user_id: int) -> None:
        """Reject a pending request or drop an accepted connection. Messages stay stored."""
        with self.store.transaction() as session:
            connection = session.get(Connection, connection_id)
            if connection is None:
                raise NotFound("Connection not found")
            if acting_user_id not in (connection.requester_id, connection.receiver_id):
                raise Forbidden("You are not part of this connection")
            session.delete(connection)
        logger.info("Connection %s removed by %s", connection_id, acting_user_id)

    def status_between(self, user_a: int, user_b: int) -> ConnectionStatus:
        if user_a == user_b:
            return ConnectionStatus(status="self")
        with self.store.session() as session:
            connection = find_between(session, user_a, user_b)
        if connection is None:
            return ConnectionStatus(status="none")
        if connection.status == ACCEPTED:
            status = "connected"
        elif connection.requester_id == user_a:
            status = "pending_sent"
        else:
            status = "pending_received"
        return ConnectionStatus(status=status, connection_id=connection.id)

    def are_connected(self, user_a: int, user_b: int) -> bool:
        with self.store.session() as session:
            return are_connected(session, user_a, user_b)

    def list_connections(self, user_id: int) -> list[ConnectionEntry]:
        """Accepted connections of user_id, newest first."""
        return self._entries(
            user_id,
            or_(Connection.requester_id == user_id, Connection.receiver_id == user_id),
            Connection.status == ACCEPTED,
        )

    def list_incoming(self, user_id: int) -> list[ConnectionEntry]:
        return self._entries(user_id, Connection.receiver_id == user_id, Connection.status == PENDING)

    def list_outgoing(self, user_id: int) -> list[ConnectionEntry]:
        return self._entries(user_id, Connection.requester_id == user_id, Connection.status == PENDING)

    def count_connections(self, user_id: int) -> int:
        with self.store.session() as session:
            return session.exec(
                select(func.count(Connection.id)).where(
                    or_(Connection.requester_id == user_id, Connection.receiver_id == user_id),
                    Connection.status == ACCEPTED,
                )
            ).one()

    def _entries(self, user_id: int, *criteria) -> list[ConnectionEntry]:
        with self.store.session() as session:
            rows = session.exec(
                select(Connection)
                .where(*criteria)
                .order_by(Connection.created_at.desc(), Connection.id.desc())
            ).all()
            others = {c.other_party(user_id) for c in rows}
            users = {u.id: u for u in session.exec(select(User).where(User.id.in_(others)))} if others else {}
        return [
            ConnectionEntry(
                id=c.id,
                status=c.status,
                created_at=c.created_at,
                user=user_summary(users[c.other_party(user_id)]),
            )
            for c in rows
            if c.other_party(user_id) in users
        ]

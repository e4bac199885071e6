# SPDX-License-Identifier: Apache-2.0
"""Direct messages between connected users.

Every operation re-checks the connection table before touching messages.
Removing a connection leaves its messages stored, but the pair can no longer
read, write, or mark them read until they connect again.
"""
from __future__ import annotations

import logging

from sqlalchemy import and_, exists, func, or_, update
from sqlmodel import Session, select

from campusconnect.core.exceptions import NotConnected, NotFound, ValidationError
from campusconnect.database import Store
from campusconnect.models import Connection, Message, User
from campusconnect.models.connection import ACCEPTED
from campusconnect.schemas import Conversation, MessageOut, Thread
from campusconnect.services.connection_service import are_connected, user_summary

logger = logging.getLogger(__name__)


def _between(user_a: int, user_b: int):
    return or_(
        and_(Message.sender_id == user_a, Message.receiver_id == user_b),
        and_(Message.sender_id == user_b, Message.receiver_id == user_a),
    )


def _message_out(message: Message, viewer_id: int) -> MessageOut:
    return MessageOut(
        id=message.id,
        sender_id=message.sender_id,
        receiver_id=message.receiver_id,
        content=message.content,
        is_read=message.is_read,
        created_at=message.created_at,
        is_own_message=message.sender_id == viewer_id,
    )


def _require_connected(session: Session, user_id: int, other_id: int, message: str | None = None) -> None:
    if not are_connected(session, user_id, other_id):
        raise NotConnected(message)


class MessagingGate:
    def __init__(self, store: Store) -> None:
        self.store = store

    def send(self, sender_id: int, receiver_id: int, content: str | None) -> MessageOut:
        content = (content or "").strip()
        if not content:
            raise ValidationError("Message content is required")
        if sender_id == receiver_id:
            raise ValidationError("You cannot message yourself")
        with self.store.transaction() as session:
            _require_connected(
                session, sender_id, receiver_id,
                "You can only message connected users. Please connect first.",
            )
            message = Message(sender_id=sender_id, receiver_id=receiver_id, content=content)
            session.add(message)
            session.flush()
            session.refresh(message)
        return _message_out(message, sender_id)

    def list_threads(self, user_id: int) -> list[Thread]:
        """One thread per accepted connection, most recent conversation first."""
        with self.store.session() as session:
            connections = session.exec(
                select(Connection).where(
                    or_(Connection.requester_id == user_id, Connection.receiver_id == user_id),
                    Connection.status == ACCEPTED,
                ).order_by(Connection.id)
            ).all()
            threads = []
            for connection in connections:
                other = session.get(User, connection.other_party(user_id))
                if other is None:
                    continue
                last = session.exec(
                    select(Message)
                    .where(_between(user_id, other.id))
                    .order_by(Message.created_at.desc(), Message.id.desc())
                    .limit(1)
                ).first()
                unread = session.exec(
                    select(func.count(Message.id)).where(
                        Message.sender_id == other.id,
                        Message.receiver_id == user_id,
                        Message.is_read == False,  # noqa: E712
                    )
                ).one()
                threads.append(
                    Thread(
                        user=user_summary(other),
                        last_message=_message_out(last, user_id) if last else None,
                        unread_count=unread,
                    )
                )
        with_messages = [t for t in threads if t.last_message is not None]
        without_messages = [t for t in threads if t.last_message is None]
        with_messages.sort(key=lambda t: (t.last_message.created_at, t.last_message.id), reverse=True)
        return with_messages + without_messages

    def conversation(self, user_id: int, other_id: int) -> Conversation:
        with self.store.session() as session:
            _require_connected(session, user_id, other_id)
            other = session.get(User, other_id)
            if other is None:
                raise NotFound("User not found")
            messages = session.exec(
                select(Message)
                .where(_between(user_id, other_id))
                .order_by(Message.created_at.asc(), Message.id.asc())
            ).all()
        return Conversation(
            user=user_summary(other),
            messages=[_message_out(m, user_id) for m in messages],
        )

    def mark_read(self, user_id: int, other_id: int) -> int:
        """Mark everything other_id sent to user_id as read; returns how many rows changed."""
        with self.store.transaction() as session:
            _require_connected(
                session, user_id, other_id, "You can only access messages from connected users"
            )
            result = session.exec(
                update(Message)
                .where(
                    Message.sender_id == other_id,
                    Message.receiver_id == user_id,
                    Message.is_read == False,  # noqa: E712
                )
                .values(is_read=True)
            )
            updated = result.rowcount
        return updated

    def unread_count(self, user_id: int) -> int:
        """Unread messages to user_id from senders still connected to user_id."""
        connected_sender = exists().where(
            Connection.user_low_id == func.min(Message.sender_id, user_id),
            Connection.user_high_id == func.max(Message.sender_id, user_id),
            Connection.status == ACCEPTED,
        )
        with self.store.session() as session:
            return session.exec(
                select(func.count(Message.id)).where(
                    Message.receiver_id == user_id,
                    Message.is_read == False,  # noqa: E712
                    connected_sender,
                )
            ).one()

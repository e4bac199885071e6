# SPDX-License-Identifier: Apache-2.0
"""Append-only chat inside a workshop, polled by message id."""
from __future__ import annotations

import logging

from sqlalchemy import update
from sqlmodel import Session, select

from campusconnect.config import WORKSHOP_CHAT_PAGE_SIZE
from campusconnect.core.exceptions import Forbidden, InvalidState, NotFound, ValidationError
from campusconnect.database import Store
from campusconnect.models import User, Workshop, WorkshopMessage, WorkshopParticipant
from campusconnect.models.workshop import LIVE
from campusconnect.schemas import WorkshopChatMessage
from campusconnect.services.connection_service import user_summary

logger = logging.getLogger(__name__)


def _is_participant(session: Session, workshop_id: int, user_id: int) -> bool:
    row = session.exec(
        select(WorkshopParticipant.id).where(
            WorkshopParticipant.workshop_id == workshop_id,
            WorkshopParticipant.user_id == user_id,
        )
    ).first()
    return row is not None


class WorkshopChat:
    def __init__(self, store: Store) -> None:
        self.store = store

    def post_message(self, workshop_id: int, user_id: int, content: str | None) -> WorkshopChatMessage:
        with self.store.transaction() as session:
            workshop = session.get(Workshop, workshop_id)
            if workshop is None:
                raise NotFound("Workshop not found")
            content = (content or "").strip()
            if not content:
                raise ValidationError("Message content is required")
            if workshop.status != LIVE:
                raise InvalidState("Chat is only available during live sessions")
            is_instructor = workshop.instructor_id == user_id
            is_participant = _is_participant(session, workshop_id, user_id)
            if not is_instructor and not is_participant:
                raise Forbidden("You must join the workshop to chat")
            message = WorkshopMessage(workshop_id=workshop_id, user_id=user_id, content=content)
            session.add(message)
            if is_participant and not is_instructor:
                # Speaking in a live session counts as attending it.
                session.exec(
                    update(WorkshopParticipant)
                    .where(
                        WorkshopParticipant.workshop_id == workshop_id,
                        WorkshopParticipant.user_id == user_id,
                    )
                    .values(attended=True)
                )
            session.flush()
            session.refresh(message)
            author = session.get(User, user_id)
        return WorkshopChatMessage(
            id=message.id,
            content=message.content,
            created_at=message.created_at,
            user=user_summary(author),
        )

    def list_messages(
        self, workshop_id: int, user_id: int, since_id: int | None = None
    ) -> list[WorkshopChatMessage]:
        """Messages after since_id in id order. Readable after the session ends."""
        with self.store.session() as session:
            workshop = session.get(Workshop, workshop_id)
            if workshop is None:
                raise NotFound("Workshop not found")
            if workshop.instructor_id != user_id and not _is_participant(session, workshop_id, user_id):
                raise Forbidden("You must join the workshop to view chat")
            query = (
                select(WorkshopMessage, User)
                .join(User, User.id == WorkshopMessage.user_id)
                .where(WorkshopMessage.workshop_id == workshop_id)
            )
            if since_id is not None:
                query = query.where(WorkshopMessage.id > since_id)
            rows = session.exec(query.order_by(WorkshopMessage.id.asc()).limit(WORKSHOP_CHAT_PAGE_SIZE)).all()
        return [
            WorkshopChatMessage(id=m.id, content=m.content, created_at=m.created_at, user=user_summary(u))
            for m, u in rows
        ]

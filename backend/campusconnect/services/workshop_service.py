# SPDX-License-Identifier: Apache-2.0
"""Workshop lifecycle: scheduled -> live -> completed, plus participation and attendance."""
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import delete, func, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from campusconnect.config import ATTENDEE_BADGE
from campusconnect.core.clock import as_utc
from campusconnect.core.exceptions import (
    AlreadyJoined,
    Capacity,
    Forbidden,
    InvalidState,
    NotFound,
    NotParticipant,
    ValidationError,
)
from campusconnect.core.security import sanitize_text
from campusconnect.database import Store
from campusconnect.models import User, Workshop, WorkshopParticipant
from campusconnect.models.workshop import COMPLETED, LIVE, SCHEDULED, STATUSES
from campusconnect.schemas import ParticipantOut, WorkshopDetail, WorkshopSummary
from campusconnect.services.badge_service import award_badge
from campusconnect.services.connection_service import user_summary

logger = logging.getLogger(__name__)


def _get_workshop(session: Session, workshop_id: int) -> Workshop:
    workshop = session.get(Workshop, workshop_id)
    if workshop is None:
        raise NotFound("Workshop not found")
    return workshop


def _participant_count(session: Session, workshop_id: int) -> int:
    return session.exec(
        select(func.count(WorkshopParticipant.id)).where(WorkshopParticipant.workshop_id == workshop_id)
    ).one()


def _require_instructor(workshop: Workshop, acting_user_id: int, action: str) -> None:
    if workshop.instructor_id != acting_user_id:
        raise Forbidden(f"Only the instructor can {action} this workshop")


def _summary_fields(workshop: Workshop, instructor: User, participant_count: int) -> dict:
    return {
        "id": workshop.id,
        "title": workshop.title,
        "description": workshop.description,
        "scheduled_at": workshop.scheduled_at,
        "duration": workshop.duration,
        "max_participants": workshop.max_participants,
        "status": workshop.status,
        "created_at": workshop.created_at,
        "instructor": user_summary(instructor),
        "participant_count": participant_count,
    }


class WorkshopLifecycle:
    def __init__(self, store: Store) -> None:
        self.store = store

    def create(
        self,
        instructor_id: int,
        title: str | None,
        scheduled_at: datetime | None,
        duration: int = 60,
        max_participants: int = 50,
        description: str | None = None,
    ) -> Workshop:
        title = sanitize_text(title, 200)
        if not title or scheduled_at is None:
            raise ValidationError("Title and scheduled time are required")
        workshop = Workshop(
            title=title,
            description=sanitize_text(description, 2000) or None,
            instructor_id=instructor_id,
            scheduled_at=as_utc(scheduled_at),
            duration=duration,
            max_participants=max_participants,
        )
        with self.store.transaction() as session:
            session.add(workshop)
            session.flush()
            session.refresh(workshop)
        logger.info("Workshop %s created by %s", workshop.id, instructor_id)
        return workshop

    def join(self, workshop_id: int, user_id: int) -> WorkshopParticipant:
        """Capacity check and insert share one IMMEDIATE transaction, so the count cannot go stale."""
        with self.store.transaction() as session:
            workshop = _get_workshop(session, workshop_id)
            if workshop.status == COMPLETED:
                raise InvalidState("Cannot join a completed workshop")
            if _participant_count(session, workshop_id) >= workshop.max_participants:
                raise Capacity()
            existing = session.exec(
                select(WorkshopParticipant.id).where(
                    WorkshopParticipant.workshop_id == workshop_id,
                    WorkshopParticipant.user_id == user_id,
                )
            ).first()
            if existing is not None:
                raise AlreadyJoined()
            participant = WorkshopParticipant(workshop_id=workshop_id, user_id=user_id)
            session.add(participant)
            try:
                session.flush()
            except IntegrityError:
                raise AlreadyJoined()
            session.refresh(participant)
        logger.info("User %s joined workshop %s", user_id, workshop_id)
        return participant

    def leave(self, workshop_id: int, user_id: int) -> None:
        with self.store.transaction() as session:
            result = session.exec(
                delete(WorkshopParticipant).where(
                    WorkshopParticipant.workshop_id == workshop_id,
                    WorkshopParticipant.user_id == user_id,
                )
            )
            if result.rowcount == 0:
                raise NotParticipant()
        logger.info("User %s left workshop %s", user_id, workshop_id)

    def start(self, workshop_id: int, acting_user_id: int) -> Workshop:
        with self.store.transaction() as session:
            workshop = _get_workshop(session, workshop_id)
            _require_instructor(workshop, acting_user_id, "start")
            if workshop.status != SCHEDULED:
                raise InvalidState("Only a scheduled workshop can be started")
            workshop.status = LIVE
            session.add(workshop)
        logger.info("Workshop %s is live", workshop_id)
        return workshop

    def end(self, workshop_id: int, acting_user_id: int) -> int:
        """Complete the workshop, mark everyone attended, and award the attendee badge.

        Returns the number of badges newly awarded. All of it commits together.
        """
        with self.store.transaction() as session:
            workshop = _get_workshop(session, workshop_id)
            _require_instructor(workshop, acting_user_id, "end")
            if workshop.status != LIVE:
                raise InvalidState("Only a live workshop can be ended")
            workshop.status = COMPLETED
            session.add(workshop)
            session.exec(
                update(WorkshopParticipant)
                .where(WorkshopParticipant.workshop_id == workshop_id)
                .values(attended=True)
            )
            attendee_ids = session.exec(
                select(WorkshopParticipant.user_id).where(
                    WorkshopParticipant.workshop_id == workshop_id,
                    WorkshopParticipant.attended == True,  # noqa: E712
                )
            ).all()
            awarded = sum(award_badge(session, uid, ATTENDEE_BADGE, workshop_id) for uid in attendee_ids)
        logger.info(
            "Workshop %s completed: %d attendee(s), %d badge(s) awarded", workshop_id, len(attendee_ids), awarded
        )
        return awarded

    def mark_attendance(self, workshop_id: int, user_id: int) -> bool:
        """Flip the caller's own participant row to attended. Returns whether a row was found."""
        with self.store.transaction() as session:
            workshop = _get_workshop(session, workshop_id)
            if workshop.status != LIVE:
                raise InvalidState("Attendance can only be marked while the workshop is live")
            result = session.exec(
                update(WorkshopParticipant)
                .where(
                    WorkshopParticipant.workshop_id == workshop_id,
                    WorkshopParticipant.user_id == user_id,
                )
                .values(attended=True)
            )
            return result.rowcount > 0

    def list(self, status: str | None = None) -> list[WorkshopSummary]:
        if status is not None and status not in STATUSES:
            raise ValidationError(f"Unknown workshop status '{status}'")
        counts = (
            select(WorkshopParticipant.workshop_id, func.count(WorkshopParticipant.id).label("n"))
            .group_by(WorkshopParticipant.workshop_id)
            .subquery()
        )
        query = (
            select(Workshop, User, func.coalesce(counts.c.n, 0))
            .join(User, User.id == Workshop.instructor_id)
            .outerjoin(counts, counts.c.workshop_id == Workshop.id)
        )
        if status is not None:
            query = query.where(Workshop.status == status)
        with self.store.session() as session:
            rows = session.exec(query.order_by(Workshop.scheduled_at.asc(), Workshop.id.asc())).all()
        return [WorkshopSummary(**_summary_fields(w, instructor, n)) for w, instructor, n in rows]

    def detail(self, workshop_id: int, viewer_id: int) -> WorkshopDetail:
        with self.store.session() as session:
            workshop = _get_workshop(session, workshop_id)
            instructor = session.get(User, workshop.instructor_id)
            rows = session.exec(
                select(WorkshopParticipant, User)
                .join(User, User.id == WorkshopParticipant.user_id)
                .where(WorkshopParticipant.workshop_id == workshop_id)
                .order_by(WorkshopParticipant.joined_at.asc(), WorkshopParticipant.id.asc())
            ).all()
        participants = [
            ParticipantOut(
                id=user.id,
                name=user.name,
                profile_photo=user.profile_photo,
                joined_at=p.joined_at,
                attended=p.attended,
            )
            for p, user in rows
        ]
        return WorkshopDetail(
            **_summary_fields(workshop, instructor, len(participants)),
            participants=participants,
            user_joined=any(p.id == viewer_id for p in participants),
            is_instructor=workshop.instructor_id == viewer_id,
        )

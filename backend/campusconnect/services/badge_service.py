# SPDX-License-Identifier: Apache-2.0
"""Badge catalog and awards.

Awards are insert-only. The automatic workshop award goes through
``award_badge`` and silently ignores duplicates; the manual endpoint reports
them as a conflict instead.
"""
from __future__ import annotations

import logging

from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlmodel import Session, select

from campusconnect.config import settings
from campusconnect.core.auth import Caller
from campusconnect.core.clock import utc_now
from campusconnect.core.exceptions import Conflict, Forbidden, NotFound, ValidationError
from campusconnect.database import Store
from campusconnect.models import Badge, User, UserBadge, Workshop
from campusconnect.schemas import BadgeOut, UserBadgeOut

logger = logging.getLogger(__name__)

CATALOG = (
    ("Workshop Attendee", "Attended a workshop until the end", "🎓"),
    ("Workshop Host", "Hosted a workshop for fellow students", "🎤"),
    ("First Post", "Shared a first post with the campus", "📝"),
    ("Networker", "Built a network of campus connections", "🤝"),
)


def seed_catalog(session: Session) -> int:
    """Insert catalog badges that are not in the table yet. Returns how many were added."""
    existing = set(session.exec(select(Badge.name)).all())
    added = 0
    for name, description, icon in CATALOG:
        if name not in existing:
            session.add(Badge(name=name, description=description, icon=icon))
            added += 1
    return added


def _badge_by_name(session: Session, badge_name: str) -> Badge:
    badge = session.exec(select(Badge).where(Badge.name == badge_name)).first()
    if badge is None:
        raise NotFound(f"Badge '{badge_name}' not found")
    return badge


def _already_awarded(session: Session, user_id: int, badge_id: int, workshop_id: int | None) -> bool:
    query = select(UserBadge.id).where(UserBadge.user_id == user_id, UserBadge.badge_id == badge_id)
    if workshop_id is None:
        query = query.where(UserBadge.workshop_id.is_(None))
    else:
        query = query.where(UserBadge.workshop_id == workshop_id)
    return session.exec(query).first() is not None


def award_badge(session: Session, user_id: int, badge_name: str, workshop_id: int | None = None) -> bool:
    """Idempotently award a badge inside the caller's transaction.

    Returns True when a new row was written. Workshop-scoped awards rely on the
    unique constraint; unscoped awards are checked first because SQLite treats
    NULL workshop ids as distinct.
    """
    badge = _badge_by_name(session, badge_name)
    if workshop_id is None:
        if _already_awarded(session, user_id, badge.id, None):
            return False
        session.add(UserBadge(user_id=user_id, badge_id=badge.id))
        session.flush()
        created = True
    else:
        statement = (
            sqlite_insert(UserBadge)
            .values(
                user_id=user_id,
                badge_id=badge.id,
                workshop_id=workshop_id,
                awarded_at=utc_now(),
            )
            .on_conflict_do_nothing()
        )
        created = session.exec(statement).rowcount > 0
    if created:
        logger.info("Badge '%s' awarded to user %s (workshop %s)", badge_name, user_id, workshop_id)
    return created


def _user_badge_out(user_badge: UserBadge, badge: Badge, workshop_title: str | None) -> UserBadgeOut:
    return UserBadgeOut(
        id=badge.id,
        name=badge.name,
        description=badge.description,
        icon=badge.icon,
        awarded_at=user_badge.awarded_at,
        workshop_id=user_badge.workshop_id,
        workshop_title=workshop_title,
    )


class BadgeService:
    def __init__(self, store: Store) -> None:
        self.store = store

    def catalog(self) -> list[BadgeOut]:
        with self.store.session() as session:
            badges = session.exec(select(Badge).order_by(Badge.id)).all()
        return [BadgeOut(id=b.id, name=b.name, description=b.description, icon=b.icon) for b in badges]

    def badges_for(self, user_id: int) -> list[UserBadgeOut]:
        """Badges held by user_id, newest first, with the scoping workshop's title."""
        with self.store.session() as session:
            if session.get(User, user_id) is None:
                raise NotFound("User not found")
            rows = session.exec(
                select(UserBadge, Badge, Workshop.title)
                .join(Badge, Badge.id == UserBadge.badge_id)
                .outerjoin(Workshop, Workshop.id == UserBadge.workshop_id)
                .where(UserBadge.user_id == user_id)
                .order_by(UserBadge.awarded_at.desc(), UserBadge.id.desc())
            ).all()
        return [_user_badge_out(ub, badge, title) for ub, badge, title in rows]

    def award(self, user_id: int, badge_name: str, workshop_id: int | None = None) -> bool:
        with self.store.transaction() as session:
            return award_badge(session, user_id, badge_name, workshop_id)

    def award_manually(
        self, caller: Caller, user_id: int | None, badge_name: str, workshop_id: int | None = None
    ) -> None:
        badge_name = (badge_name or "").strip()
        if not user_id or not badge_name:
            raise ValidationError("User ID and badge name are required")
        with self.store.transaction() as session:
            badge = _badge_by_name(session, badge_name)
            if session.get(User, user_id) is None:
                raise NotFound("User not found")
            if workshop_id is not None:
                workshop = session.get(Workshop, workshop_id)
                if workshop is None:
                    raise NotFound("Workshop not found")
                if workshop.instructor_id != caller.id:
                    raise Forbidden("Only the workshop instructor can award badges for it")
            elif caller.email.lower() not in {e.lower() for e in settings.badge_admin_emails}:
                raise Forbidden("Not allowed to award badges")
            if _already_awarded(session, user_id, badge.id, workshop_id):
                raise Conflict("Badge already awarded")
            session.add(UserBadge(user_id=user_id, badge_id=badge.id, workshop_id=workshop_id))
        logger.info(
            "Badge '%s' awarded to user %s by %s (workshop %s)", badge_name, user_id, caller.id, workshop_id
        )

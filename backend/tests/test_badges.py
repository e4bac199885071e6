# SPDX-License-Identifier: Apache-2.0
"""Badge catalog, idempotent awards, manual awards."""
from datetime import datetime

import pytest
from sqlmodel import select

from campusconnect.config import settings
from campusconnect.core.auth import Caller
from campusconnect.core.exceptions import Conflict, Forbidden, NotFound, ValidationError
from campusconnect.models import UserBadge
from campusconnect.services.badge_service import BadgeService
from campusconnect.services.workshop_service import WorkshopLifecycle


def _caller(user):
    return Caller(
        id=user.id, name=user.name, email=user.email, is_verified=True, profile_completed=True
    )


def test_catalog(store):
    names = [b.name for b in BadgeService(store).catalog()]
    assert names == ["Workshop Attendee", "Workshop Host", "First Post", "Networker"]


def test_award_is_idempotent(store, make_user):
    host, user = make_user(), make_user()
    workshop = WorkshopLifecycle(store).create(host.id, "W", datetime(2030, 1, 1))
    badges = BadgeService(store)
    assert badges.award(user.id, "Workshop Attendee", workshop.id) is True
    assert badges.award(user.id, "Workshop Attendee", workshop.id) is False
    assert badges.award(user.id, "Networker") is True
    assert badges.award(user.id, "Networker") is False
    with store.session() as session:
        assert len(session.exec(select(UserBadge).where(UserBadge.user_id == user.id)).all()) == 2
    with pytest.raises(NotFound):
        badges.award(user.id, "Made Up")


def test_one_attendee_badge_per_workshop(store, make_user):
    host, user = make_user(), make_user()
    lifecycle = WorkshopLifecycle(store)
    for title in ("First", "Second"):
        workshop = lifecycle.create(host.id, title, datetime(2030, 1, 1))
        lifecycle.join(workshop.id, user.id)
        lifecycle.start(workshop.id, host.id)
        lifecycle.end(workshop.id, host.id)
    held = BadgeService(store).badges_for(user.id)
    assert sorted(h.workshop_title for h in held) == ["First", "Second"]


def test_award_manually_by_instructor(store, make_user):
    host, student, stranger = make_user(), make_user(), make_user()
    workshop = WorkshopLifecycle(store).create(host.id, "W", datetime(2030, 1, 1))
    badges = BadgeService(store)
    with pytest.raises(ValidationError):
        badges.award_manually(_caller(host), None, "Workshop Host", workshop.id)
    with pytest.raises(NotFound):
        badges.award_manually(_caller(host), student.id, "Nope", workshop.id)
    with pytest.raises(NotFound):
        badges.award_manually(_caller(host), 9999, "Workshop Host", workshop.id)
    with pytest.raises(NotFound):
        badges.award_manually(_caller(host), student.id, "Workshop Host", 9999)
    with pytest.raises(Forbidden):
        badges.award_manually(_caller(stranger), student.id, "Workshop Host", workshop.id)
    badges.award_manually(_caller(host), student.id, "Workshop Host", workshop.id)
    with pytest.raises(Conflict):
        badges.award_manually(_caller(host), student.id, "Workshop Host", workshop.id)


def test_award_manually_without_workshop_needs_admin(store, make_user, monkeypatch):
    admin, student = make_user(), make_user()
    badges = BadgeService(store)
    with pytest.raises(Forbidden):
        badges.award_manually(_caller(admin), student.id, "Networker")
    monkeypatch.setattr(settings, "badge_admin_emails", [admin.email.upper()])
    badges.award_manually(_caller(admin), student.id, "Networker")
    with pytest.raises(Conflict):
        badges.award_manually(_caller(admin), student.id, "Networker")


def test_api(client, store, make_user, auth):
    host, student = make_user(), make_user()
    workshop = WorkshopLifecycle(store).create(host.id, "W", datetime(2030, 1, 1))
    assert len(client.get("/badges", headers=auth(student)).json()) == 4
    r = client.post(
        "/badges/award",
        json={"user_id": student.id, "badge_name": "Workshop Host", "workshop_id": workshop.id},
        headers=auth(host),
    )
    assert r.status_code == 201
    r = client.post(
        "/badges/award",
        json={"user_id": student.id, "badge_name": "Workshop Host", "workshop_id": workshop.id},
        headers=auth(host),
    )
    assert r.status_code == 400
    assert r.json()["error"] == "Badge already awarded"
    mine = client.get("/badges/my", headers=auth(student)).json()
    assert [b["name"] for b in mine] == ["Workshop Host"]
    assert client.get(f"/badges/user/{student.id}", headers=auth(host)).json() == mine
    assert client.get("/badges/user/9999", headers=auth(host)).status_code == 404

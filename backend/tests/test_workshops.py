# SPDX-License-Identifier: Apache-2.0
"""Workshop lifecycle, capacity and attendance."""
from datetime import datetime, timedelta, timezone

import pytest

from campusconnect.core.clock import as_utc, utc_now
from campusconnect.core.exceptions import (
    AlreadyJoined,
    Capacity,
    Forbidden,
    InvalidState,
    NotFound,
    NotParticipant,
    ValidationError,
)
from campusconnect.services.badge_service import BadgeService
from campusconnect.services.workshop_service import WorkshopLifecycle

WHEN = datetime(2030, 1, 15, 10, 0)


@pytest.fixture
def lifecycle(store):
    return WorkshopLifecycle(store)


def test_create(lifecycle, make_user):
    host = make_user()
    workshop = lifecycle.create(host.id, " Intro to Rust ", WHEN)
    assert workshop.status == "scheduled"
    assert workshop.title == "Intro to Rust"
    assert workshop.duration == 60
    assert workshop.max_participants == 50
    assert lifecycle.detail(workshop.id, host.id).participant_count == 0
    with pytest.raises(ValidationError):
        lifecycle.create(host.id, "  ", WHEN)
    with pytest.raises(ValidationError):
        lifecycle.create(host.id, "No time", None)


def test_join_capacity_and_duplicates(lifecycle, make_user):
    host, a, b = make_user(), make_user(), make_user()
    workshop = lifecycle.create(host.id, "Tiny", WHEN, max_participants=1)
    with pytest.raises(NotFound):
        lifecycle.join(9999, a.id)
    lifecycle.join(workshop.id, a.id)
    with pytest.raises(Capacity):
        lifecycle.join(workshop.id, b.id)

    roomy = lifecycle.create(host.id, "Roomy", WHEN)
    lifecycle.join(roomy.id, a.id)
    with pytest.raises(AlreadyJoined):
        lifecycle.join(roomy.id, a.id)
    assert lifecycle.detail(roomy.id, a.id).participant_count == 1


def test_leave(lifecycle, make_user):
    host, a = make_user(), make_user()
    workshop = lifecycle.create(host.id, "W", WHEN)
    with pytest.raises(NotParticipant):
        lifecycle.leave(workshop.id, a.id)
    lifecycle.join(workshop.id, a.id)
    lifecycle.start(workshop.id, host.id)
    lifecycle.leave(workshop.id, a.id)
    detail = lifecycle.detail(workshop.id, a.id)
    assert detail.user_joined is False
    assert detail.participants == []


def test_transitions(lifecycle, make_user):
    host, other = make_user(), make_user()
    workshop = lifecycle.create(host.id, "W", WHEN)
    with pytest.raises(Forbidden):
        lifecycle.start(workshop.id, other.id)
    with pytest.raises(InvalidState):
        lifecycle.end(workshop.id, host.id)
    assert lifecycle.start(workshop.id, host.id).status == "live"
    with pytest.raises(InvalidState):
        lifecycle.start(workshop.id, host.id)
    with pytest.raises(Forbidden):
        lifecycle.end(workshop.id, other.id)
    lifecycle.end(workshop.id, host.id)
    with pytest.raises(InvalidState):
        lifecycle.end(workshop.id, host.id)
    with pytest.raises(InvalidState):
        lifecycle.start(workshop.id, host.id)
    with pytest.raises(InvalidState):
        lifecycle.join(workshop.id, other.id)
    with pytest.raises(NotFound):
        lifecycle.start(9999, host.id)


def test_end_marks_attendance_and_awards_badges(store, lifecycle, make_user):
    host, a, b = make_user(), make_user(), make_user()
    workshop = lifecycle.create(host.id, "Git basics", WHEN)
    lifecycle.join(workshop.id, a.id)
    lifecycle.join(workshop.id, b.id)
    lifecycle.start(workshop.id, host.id)
    assert lifecycle.end(workshop.id, host.id) == 2

    detail = lifecycle.detail(workshop.id, host.id)
    assert detail.status == "completed"
    assert all(p.attended for p in detail.participants)
    badges = BadgeService(store)
    for user in (a, b):
        held = badges.badges_for(user.id)
        assert [(h.name, h.workshop_id, h.workshop_title) for h in held] == [
            ("Workshop Attendee", workshop.id, "Git basics")
        ]
    assert badges.badges_for(host.id) == []


def test_mark_attendance(lifecycle, make_user):
    host, a, outsider = make_user(), make_user(), make_user()
    workshop = lifecycle.create(host.id, "W", WHEN)
    lifecycle.join(workshop.id, a.id)
    with pytest.raises(InvalidState):
        lifecycle.mark_attendance(workshop.id, a.id)
    lifecycle.start(workshop.id, host.id)
    assert lifecycle.mark_attendance(workshop.id, a.id) is True
    assert lifecycle.mark_attendance(workshop.id, outsider.id) is False
    assert lifecycle.detail(workshop.id, a.id).participants[0].attended is True


def test_list_filters_and_orders(lifecycle, make_user):
    host, a = make_user(), make_user()
    later = lifecycle.create(host.id, "Later", WHEN + timedelta(days=2))
    sooner = lifecycle.create(host.id, "Sooner", WHEN)
    lifecycle.join(later.id, a.id)
    lifecycle.start(sooner.id, host.id)

    everything = lifecycle.list()
    assert [w.title for w in everything] == ["Sooner", "Later"]
    assert everything[1].participant_count == 1
    assert everything[0].instructor.id == host.id
    assert [w.title for w in lifecycle.list("live")] == ["Sooner"]
    with pytest.raises(ValidationError):
        lifecycle.list("cancelled")


def test_scheduled_at_stored_as_utc(lifecycle, make_user):
    """Offsets are folded into UTC before storage, so ordering follows the real instant."""
    host, a = make_user(), make_user()
    ist = timezone(timedelta(hours=5, minutes=30))
    morning_ist = lifecycle.create(host.id, "IST morning", datetime(2030, 1, 15, 10, 0, tzinfo=ist))
    naive_utc = lifecycle.create(host.id, "UTC five", datetime(2030, 1, 15, 5, 0))
    lifecycle.join(morning_ist.id, a.id)

    assert [w.title for w in lifecycle.list()] == ["IST morning", "UTC five"]
    detail = lifecycle.detail(morning_ist.id, a.id)
    assert as_utc(detail.scheduled_at) == datetime(2030, 1, 15, 4, 30, tzinfo=timezone.utc)
    assert as_utc(lifecycle.detail(naive_utc.id, a.id).scheduled_at).hour == 5
    joined_at = as_utc(detail.participants[0].joined_at)
    assert abs(utc_now() - joined_at) < timedelta(minutes=5)


def test_api_flow(client, make_user, auth):
    host, a = make_user(), make_user()
    r = client.post(
        "/workshops",
        json={"title": "APIs 101", "scheduled_at": "2030-01-15T10:00:00", "max_participants": 5},
        headers=auth(host),
    )
    assert r.status_code == 201
    workshop = r.json()
    assert workshop["is_instructor"] is True
    wid = workshop["id"]

    assert client.post("/workshops", json={"title": "No time"}, headers=auth(host)).status_code == 400
    assert client.post(f"/workshops/{wid}/join", headers=auth(a)).status_code == 200
    r = client.post(f"/workshops/{wid}/join", headers=auth(a))
    assert r.status_code == 400
    assert r.json()["code"] == "ALREADY_JOINED"

    r = client.get(f"/workshops/{wid}", headers=auth(a))
    assert r.json()["user_joined"] is True
    assert r.json()["participant_count"] == 1

    assert client.post(f"/workshops/{wid}/start", headers=auth(a)).status_code == 403
    assert client.post(f"/workshops/{wid}/start", headers=auth(host)).json()["status"] == "live"
    assert client.post(f"/workshops/{wid}/attend", headers=auth(a)).json()["attended"] is True
    r = client.post(f"/workshops/{wid}/end", headers=auth(host))
    assert r.status_code == 200
    assert r.json()["badges_awarded"] == 1
    r = client.post(f"/workshops/{wid}/end", headers=auth(host))
    assert r.json()["code"] == "INVALID_STATE"

    assert [w["id"] for w in client.get("/workshops", params={"status": "completed"}, headers=auth(a)).json()] == [wid]
    assert client.get("/workshops/9999", headers=auth(a)).status_code == 404

# SPDX-License-Identifier: Apache-2.0
"""Presence flags."""


def test_heartbeat_and_offline(client, make_user, auth):
    a, b = make_user(), make_user()
    r = client.get(f"/presence/{a.id}", headers=auth(b))
    assert r.json() == {"user_id": a.id, "is_online": False, "last_seen": None}

    assert client.post("/presence/heartbeat", headers=auth(a)).json() == {"success": True, "online": True}
    r = client.get(f"/presence/{a.id}", headers=auth(b)).json()
    assert r["is_online"] is True
    assert r["last_seen"] is not None

    client.post("/presence/offline", headers=auth(a))
    assert client.get(f"/presence/{a.id}", headers=auth(b)).json()["is_online"] is False
    assert client.get("/presence/9999", headers=auth(b)).status_code == 404


def test_connections_presence(client, make_user, auth, connect):
    me, friend, stranger = make_user(), make_user(), make_user()
    connect(me, friend)
    client.post("/presence/heartbeat", headers=auth(friend))
    client.post("/presence/heartbeat", headers=auth(stranger))
    r = client.get("/presence/connections/status", headers=auth(me))
    assert r.status_code == 200
    body = r.json()
    assert list(body) == [str(friend.id)]
    assert body[str(friend.id)]["is_online"] is True

# SPDX-License-Identifier: Apache-2.0
"""Signup, verification, login and the identity gates."""
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from campusconnect.config import settings
from campusconnect.core.auth import ALGORITHM, create_access_token, decode_access_token
from campusconnect.core.exceptions import Unauthenticated
from campusconnect.services.identity_service import is_academic_email


def _signup(client, email="asha@iitb.ac.in", password="secret123", name="Asha"):
    return client.post("/auth/signup", json={"name": name, "email": email, "password": password})


def test_academic_email_suffix_match():
    assert is_academic_email("a@mit.edu")
    assert is_academic_email("a@cs.ox.ac.uk")
    assert is_academic_email("a@edu")
    assert not is_academic_email("a@gmail.com")
    assert not is_academic_email("a@notedu")


def test_signup_verify_login_flow(client):
    r = _signup(client)
    assert r.status_code == 201
    token = r.json()["verification_token"]

    r = client.post("/auth/login", json={"email": "asha@iitb.ac.in", "password": "secret123"})
    assert r.status_code == 403
    assert r.json()["code"] == "EMAIL_NOT_VERIFIED"

    r = client.get(f"/auth/verify-email/{token}")
    assert r.status_code == 200

    r = client.post("/auth/login", json={"email": "ASHA@iitb.ac.in", "password": "secret123"})
    assert r.status_code == 200
    body = r.json()
    assert body["user"]["email"] == "asha@iitb.ac.in"
    assert body["user"]["profile_completed"] is False
    assert decode_access_token(body["token"]) == body["user"]["id"]


def test_signup_hides_token_when_disabled(client, monkeypatch):
    monkeypatch.setattr(settings, "expose_verification_token", False)
    r = _signup(client)
    assert r.status_code == 201
    assert "verification_token" not in r.json()


@pytest.mark.parametrize(
    "payload, message",
    [
        ({"name": "", "email": "a@mit.edu", "password": "secret123"}, "required"),
        ({"name": "A", "email": "not-an-email", "password": "secret123"}, "Invalid email"),
        ({"name": "A", "email": "a@gmail.com", "password": "secret123"}, "college"),
        ({"name": "A", "email": "a@mit.edu", "password": "123"}, "at least 6"),
    ],
)
def test_signup_validation(client, payload, message):
    r = client.post("/auth/signup", json=payload)
    assert r.status_code == 400
    assert message in r.json()["error"]


def test_signup_duplicate_email(client):
    assert _signup(client).status_code == 201
    r = _signup(client, email="Asha@IITB.ac.in")
    assert r.status_code == 400
    assert r.json()["code"] == "CONFLICT"


def test_verify_unknown_and_repeated_token(client):
    assert client.get("/auth/verify-email/nope").status_code == 400
    token = _signup(client).json()["verification_token"]
    assert client.get(f"/auth/verify-email/{token}").status_code == 200
    # the token is cleared on verification
    assert client.get(f"/auth/verify-email/{token}").status_code == 400


def test_login_bad_credentials(client, make_user):
    user = make_user()
    r = client.post("/auth/login", json={"email": user.email, "password": "wrong-password"})
    assert r.status_code == 401
    r = client.post("/auth/login", json={"email": "ghost@mit.edu", "password": "secret123"})
    assert r.status_code == 401


def test_logout(client):
    assert client.post("/auth/logout").status_code == 200


def test_missing_token_is_401(client):
    r = client.get("/users/me")
    assert r.status_code == 401
    assert r.json()["code"] == "UNAUTHENTICATED"


def test_garbage_token_is_401(client):
    r = client.get("/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


def test_expired_token_is_401(client, make_user):
    user = make_user()
    past = datetime.now(timezone.utc) - timedelta(days=1)
    token = jwt.encode({"sub": str(user.id), "exp": past}, settings.secret_key, algorithm=ALGORITHM)
    with pytest.raises(Unauthenticated):
        decode_access_token(token)
    r = client.get("/users/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.json()["error"] == "Token expired"


def test_token_for_deleted_user_is_401(client):
    r = client.get("/users/me", headers={"Authorization": f"Bearer {create_access_token(9999)}"})
    assert r.status_code == 401


def test_unverified_user_blocked(client, make_user, auth):
    user = make_user(verified=False)
    r = client.get("/users/me", headers=auth(user))
    assert r.status_code == 403
    assert r.json()["code"] == "EMAIL_NOT_VERIFIED"


def test_profile_gate_on_full_routes(client, make_user, auth):
    user = make_user(profiled=False)
    other = make_user()
    assert client.get("/users/me", headers=auth(user)).status_code == 200
    r = client.post(f"/connections/{other.id}", headers=auth(user))
    assert r.status_code == 403
    assert r.json()["code"] == "PROFILE_NOT_COMPLETED"

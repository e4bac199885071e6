# SPDX-License-Identifier: Apache-2.0
"""Bearer tokens, password hashing, and the identity gates used as route dependencies."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from campusconnect.config import settings
from campusconnect.core.exceptions import EmailNotVerified, ProfileNotCompleted, Unauthenticated
from campusconnect.database import Store, get_store
from campusconnect.models import User

ALGORITHM = "HS256"

PASSWORD_HASHER = PasswordHasher()

_bearer = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return PASSWORD_HASHER.hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    try:
        return PASSWORD_HASHER.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def create_access_token(user_id: int) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(days=settings.access_token_ttl_days),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> int:
    """Return the user id carried by the token. Raises Unauthenticated."""
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise Unauthenticated("Token expired")
    except jwt.InvalidTokenError:
        raise Unauthenticated("Invalid token")
    try:
        return int(payload["sub"])
    except (TypeError, ValueError):
        raise Unauthenticated("Invalid token")


@dataclass(frozen=True)
class Caller:
    """The authenticated user, re-read from the store on every request."""

    id: int
    name: str
    email: str
    is_verified: bool
    profile_completed: bool


def resolve_caller(store: Store, token: str) -> Caller | None:
    user_id = decode_access_token(token)
    with store.session() as session:
        user = session.get(User, user_id)
        if user is None:
            return None
        return Caller(
            id=user.id,
            name=user.name,
            email=user.email,
            is_verified=user.is_verified,
            profile_completed=user.profile_completed,
        )


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    store: Store = Depends(get_store),
) -> Caller:
    """Basic gate: identified and email-verified."""
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise Unauthenticated()
    caller = resolve_caller(store, credentials.credentials)
    if caller is None:
        raise Unauthenticated("User not found")
    if not caller.is_verified:
        raise EmailNotVerified()
    return caller


def get_profiled_user(caller: Caller = Depends(get_current_user)) -> Caller:
    """Full gate: basic plus a completed profile."""
    if not caller.profile_completed:
        raise ProfileNotCompleted()
    return caller

# SPDX-License-Identifier: Apache-2.0
"""Accounts: signup with academic email, verification, login, and profiles."""
from __future__ import annotations

import logging
import re
import uuid

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from campusconnect.config import MIN_PASSWORD_LENGTH, USER_SEARCH_LIMIT, settings
from campusconnect.core.auth import create_access_token, hash_password, verify_password
from campusconnect.core.exceptions import (
    Conflict,
    EmailNotVerified,
    NotFound,
    Unauthenticated,
    ValidationError,
)
from campusconnect.core.security import sanitize_text
from campusconnect.database import Store
from campusconnect.models import Post, User
from campusconnect.schemas import LoginResponse, ProfileUpdate, PublicProfile, SearchResult, UserProfile
from campusconnect.services import media_service
from campusconnect.services.connection_service import ConnectionGraph

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_academic_email(email: str) -> bool:
    """Suffix match of the email's domain against the configured allow-list."""
    _, _, domain = email.rpartition("@")
    if not domain:
        return False
    domain = domain.lower()
    return any(domain == allowed or domain.endswith("." + allowed) for allowed in settings.allowed_email_domains)


def user_profile(user: User) -> UserProfile:
    return UserProfile(
        id=user.id,
        name=user.name,
        email=user.email,
        branch=user.branch,
        year=user.year,
        bio=user.bio,
        profile_photo=user.profile_photo,
        profile_completed=user.profile_completed,
        created_at=user.created_at,
    )


class IdentityService:
    def __init__(self, store: Store) -> None:
        self.store = store

    def signup(self, name: str, email: str, password: str) -> str:
        """Create an unverified account and return its verification token."""
        name = (name or "").strip()
        email = (email or "").strip().lower()
        if not name or not email or not password:
            raise ValidationError("Name, email, and password are required")
        if not EMAIL_RE.match(email):
            raise ValidationError("Invalid email format")
        if not is_academic_email(email):
            raise ValidationError(
                "Only college/university email addresses are allowed. Email must end with .edu, .ac.in, etc."
            )
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        token = str(uuid.uuid4())
        password_hash = hash_password(password)
        with self.store.transaction() as session:
            if session.exec(select(User.id).where(User.email == email)).first() is not None:
                raise Conflict("Email already registered")
            session.add(User(name=name, email=email, password_hash=password_hash, verification_token=token))
            try:
                session.flush()
            except IntegrityError:
                raise Conflict("Email already registered")
        logger.info("Account created for %s", email)
        logger.info("Verification link: %s/verify-email/%s", settings.frontend_url.rstrip("/"), token)
        return token

    def verify_email(self, token: str) -> None:
        if not token:
            raise ValidationError("Verification token required")
        with self.store.transaction() as session:
            user = session.exec(select(User).where(User.verification_token == token)).first()
            if user is None:
                raise ValidationError("Invalid or expired verification token")
            if user.is_verified:
                raise ValidationError("Email already verified")
            user.is_verified = True
            user.verification_token = None
            session.add(user)
        logger.info("Email verified for user %s", user.id)

    def login(self, email: str, password: str) -> LoginResponse:
        email = (email or "").strip().lower()
        if not email or not password:
            raise ValidationError("Email and password are required")
        with self.store.session() as session:
            user = session.exec(select(User).where(User.email == email)).first()
        if user is None or not verify_password(user.password_hash, password):
            raise Unauthenticated("Invalid email or password")
        if not user.is_verified:
            raise EmailNotVerified("Please verify your email before logging in")
        return LoginResponse(token=create_access_token(user.id), user=user_profile(user))

    def get_profile(self, user_id: int) -> UserProfile:
        with self.store.session() as session:
            user = session.get(User, user_id)
        if user is None:
            raise NotFound("User not found")
        return user_profile(user)

    def update_profile(self, user_id: int, update: ProfileUpdate) -> UserProfile:
        """Apply the fields present in the request; completes the profile once name, branch and year are set."""
        changes = {k: sanitize_text(v, 500) for k, v in update.model_dump(exclude_unset=True).items()}
        if not changes:
            raise ValidationError("No fields to update")
        if "name" in changes and not changes["name"]:
            raise ValidationError("Name cannot be empty")
        with self.store.transaction() as session:
            user = session.get(User, user_id)
            if user is None:
                raise NotFound("User not found")
            for field, value in changes.items():
                setattr(user, field, value)
            if user.name and user.branch and user.year:
                user.profile_completed = True
            session.add(user)
        return user_profile(user)

    def set_photo(self, user_id: int, filename: str | None, contents: bytes) -> str:
        """Store a new profile photo and drop the previous file."""
        if not contents:
            raise ValidationError("No image file provided")
        photo_path = media_service.save_profile_photo(filename, contents)
        with self.store.transaction() as session:
            user = session.get(User, user_id)
            if user is None:
                raise NotFound("User not found")
            previous = user.profile_photo
            user.profile_photo = photo_path
            session.add(user)
        if previous:
            media_service.remove_file(previous)
        return photo_path

    def search(self, user_id: int, q: str | None) -> list[SearchResult]:
        q = (q or "").strip()
        if len(q) < 2:
            raise ValidationError("Search query must be at least 2 characters")
        term = f"%{q}%"
        with self.store.session() as session:
            users = session.exec(
                select(User)
                .where(
                    User.id != user_id,
                    User.is_verified == True,  # noqa: E712
                    or_(User.name.ilike(term), User.branch.ilike(term)),
                )
                .order_by(User.name, User.id)
                .limit(USER_SEARCH_LIMIT)
            ).all()
        return [
            SearchResult(
                id=u.id, name=u.name, profile_photo=u.profile_photo, branch=u.branch, year=u.year, bio=u.bio
            )
            for u in users
        ]

    def public_profile(self, viewer_id: int, user_id: int) -> PublicProfile:
        graph = ConnectionGraph(self.store)
        with self.store.session() as session:
            user = session.get(User, user_id)
            if user is None or not user.is_verified:
                raise NotFound("User not found")
            post_count = session.exec(select(func.count(Post.id)).where(Post.user_id == user_id)).one()
        status = graph.status_between(viewer_id, user_id)
        return PublicProfile(
            id=user.id,
            name=user.name,
            branch=user.branch,
            year=user.year,
            bio=user.bio,
            profile_photo=user.profile_photo,
            created_at=user.created_at,
            connection_status=status.status if status.status not in ("none", "self") else None,
            connection_id=status.connection_id,
            post_count=post_count,
            connection_count=graph.count_connections(user_id),
            is_own_profile=viewer_id == user_id,
        )

# SPDX-License-Identifier: Apache-2.0
"""All configuration via environment variables (12-factor). No hardcoded values."""
from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = Field(default="sqlite:///./campusconnect.db", description="Database URL")
    sqlite_busy_timeout: float = Field(default=15.0, ge=0, description="Seconds a writer waits for the write lock")

    # Storage
    upload_dir: str = Field(default="./uploads", description="Base directory for uploads")
    max_image_size_mb: int = Field(default=5, ge=1, le=50, description="Max image size in MB")
    max_video_size_mb: int = Field(default=50, ge=1, le=500, description="Max video size in MB")

    # Security: set a real secret_key in production via .env
    secret_key: str = Field(default="dev-secret-key-change-in-production", min_length=16)
    access_token_ttl_days: int = Field(default=7, ge=1, le=90)
    rate_limit_enabled: bool = Field(default=True)

    # CORS
    allowed_origins: list[str] = Field(
        default=["http://localhost:5173", "http://localhost:3000", "http://127.0.0.1:5173"],
        description="Allowed CORS origins",
    )

    # Identity
    allowed_email_domains: list[str] = Field(
        default=["edu", "edu.in", "ac.in", "ac.uk", "edu.au", "college.edu", "university.edu"],
        description="Academic email domain suffixes accepted at signup",
    )
    expose_verification_token: bool = Field(
        default=True, description="Echo the verification token in the signup response (development only)"
    )
    frontend_url: str = Field(default="http://localhost:5173", description="Base URL for verification links")

    # Badges
    badge_admin_emails: list[str] = Field(
        default=[], description="Accounts allowed to award badges outside a workshop"
    )

    # Assistant (OpenAI-compatible chat completions endpoint)
    chatbot_api_url: str = Field(default="https://openrouter.ai/api/v1/chat/completions")
    chatbot_api_key: str = Field(default="", description="Bearer key; the assistant is off while empty")
    chatbot_model: str = Field(default="z-ai/glm-4.5-air:free")
    chatbot_max_tokens: int = Field(default=500, ge=1, le=8192)
    chatbot_temperature: float = Field(default=0.7, ge=0, le=2)
    chatbot_timeout: float = Field(default=30.0, gt=0, description="Seconds to wait for the upstream reply")

    # Logging
    log_level: str = Field(default="INFO")

    # Derived / internal
    @property
    def upload_dir_path(self) -> Path:
        return Path(self.upload_dir)

    @property
    def profiles_upload_dir_path(self) -> Path:
        return self.upload_dir_path / "profiles"

    @property
    def posts_upload_dir_path(self) -> Path:
        return self.upload_dir_path / "posts"

    @property
    def videos_upload_dir_path(self) -> Path:
        return self.upload_dir_path / "videos"

    @property
    def max_image_bytes(self) -> int:
        return self.max_image_size_mb * 1024 * 1024

    @property
    def max_video_bytes(self) -> int:
        return self.max_video_size_mb * 1024 * 1024

    @property
    def production(self) -> bool:
        return self.secret_key != "dev-secret-key-change-in-production"


settings = Settings()

ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png"}
ALLOWED_VIDEO_EXTENSIONS = {".mp4", ".webm", ".mov"}
ATTENDEE_BADGE = "Workshop Attendee"
WORKSHOP_CHAT_PAGE_SIZE = 200
USER_SEARCH_LIMIT = 20
FEED_PAGE_SIZE = 20
MIN_PASSWORD_LENGTH = 6

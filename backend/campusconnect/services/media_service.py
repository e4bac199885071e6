# SPDX-License-Identifier: Apache-2.0
"""Profile photo and post media storage on local disk, served under /uploads."""
from __future__ import annotations

import logging
import uuid
from pathlib import Path

from campusconnect.config import ALLOWED_IMAGE_EXTENSIONS, ALLOWED_VIDEO_EXTENSIONS, settings
from campusconnect.core.exceptions import PayloadTooLarge, ValidationError
from campusconnect.core.security import secure_filename

logger = logging.getLogger(__name__)

URL_PREFIX = "/uploads"

IMAGE = "image"
VIDEO = "video"


def ensure_upload_dirs() -> None:
    for path in (
        settings.profiles_upload_dir_path,
        settings.posts_upload_dir_path,
        settings.videos_upload_dir_path,
    ):
        path.mkdir(parents=True, exist_ok=True)


def _store_file(directory: Path, subdir: str, filename: str, contents: bytes) -> str:
    safe_name = f"{uuid.uuid4().hex}_{secure_filename(filename, default='upload')}"
    file_path = (directory / safe_name).resolve()
    try:
        file_path.relative_to(directory.resolve())
    except ValueError:
        raise ValidationError("Invalid upload path")
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_bytes(contents)
    logger.info("Stored upload %s (%d bytes)", file_path.name, len(contents))
    return f"{URL_PREFIX}/{subdir}/{safe_name}"


def save_profile_photo(filename: str | None, contents: bytes) -> str:
    """Validate and store a profile photo. Returns its public URL path."""
    if Path(filename or "").suffix.lower() not in ALLOWED_IMAGE_EXTENSIONS:
        raise ValidationError("Only .jpg, .jpeg and .png images are allowed")
    if len(contents) > settings.max_image_bytes:
        raise PayloadTooLarge(f"File too large (max {settings.max_image_size_mb} MB)")
    return _store_file(settings.profiles_upload_dir_path, "profiles", filename, contents)


def save_post_media(filename: str | None, contents: bytes) -> tuple[str, str]:
    """Validate and store a post attachment. Returns (URL path, media type)."""
    suffix = Path(filename or "").suffix.lower()
    if suffix in ALLOWED_IMAGE_EXTENSIONS:
        if len(contents) > settings.max_image_bytes:
            raise PayloadTooLarge(f"Image too large (max {settings.max_image_size_mb} MB)")
        return _store_file(settings.posts_upload_dir_path, "posts", filename, contents), IMAGE
    if suffix in ALLOWED_VIDEO_EXTENSIONS:
        if len(contents) > settings.max_video_bytes:
            raise PayloadTooLarge(f"Video too large (max {settings.max_video_size_mb} MB)")
        return _store_file(settings.videos_upload_dir_path, "videos", filename, contents), VIDEO
    raise ValidationError("Only images (.jpg, .jpeg, .png) and videos (.mp4, .webm, .mov) are allowed")


def remove_file(url_path: str | None) -> bool:
    """Delete a stored upload given its public URL path. Paths outside the upload dir are ignored."""
    if not url_path or not url_path.startswith(URL_PREFIX + "/"):
        return False
    base = settings.upload_dir_path.resolve()
    file_path = (base / url_path[len(URL_PREFIX) + 1:]).resolve()
    try:
        file_path.relative_to(base)
    except ValueError:
        return False
    if not file_path.is_file():
        return False
    file_path.unlink()
    return True

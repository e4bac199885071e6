# SPDX-License-Identifier: Apache-2.0
"""Custom exception classes. Each maps to one HTTP status and a machine-readable code."""
from __future__ import annotations


class CampusConnectError(Exception):
    """Base exception for CampusConnect."""

    status_code: int = 400
    code: str = "ERROR"
    message: str = "Request failed"

    def __init__(self, message: str | None = None, code: str | None = None) -> None:
        super().__init__(message or self.message)
        if message:
            self.message = message
        if code:
            self.code = code


class ValidationError(CampusConnectError):
    """Input missing or malformed."""

    code = "VALIDATION_ERROR"
    message = "Invalid request"


class Unauthenticated(CampusConnectError):
    """Missing or invalid credential."""

    status_code = 401
    code = "UNAUTHENTICATED"
    message = "Authentication required"


class Forbidden(CampusConnectError):
    """Authenticated but not entitled."""

    status_code = 403
    code = "FORBIDDEN"
    message = "Not allowed"


class NotConnected(Forbidden):
    code = "NOT_CONNECTED"
    message = "You can only message connected users"


class EmailNotVerified(Forbidden):
    code = "EMAIL_NOT_VERIFIED"
    message = "Email not verified"


class ProfileNotCompleted(Forbidden):
    code = "PROFILE_NOT_COMPLETED"
    message = "Please complete your profile first"


class NotFound(CampusConnectError):
    status_code = 404
    code = "NOT_FOUND"
    message = "Not found"


class Conflict(CampusConnectError):
    """Duplicate of something that may exist only once."""

    code = "CONFLICT"
    message = "Already exists"


class AlreadyConnected(Conflict):
    code = "ALREADY_CONNECTED"
    message = "Already connected with this user"


class AlreadyPending(Conflict):
    code = "ALREADY_PENDING"
    message = "Connection request already pending"


class AlreadyJoined(Conflict):
    code = "ALREADY_JOINED"
    message = "Already joined this workshop"


class InvalidState(CampusConnectError):
    """Transition not allowed from the current status."""

    code = "INVALID_STATE"
    message = "Not allowed in the current state"


class Capacity(CampusConnectError):
    code = "CAPACITY"
    message = "Workshop is full"


class NotParticipant(CampusConnectError):
    code = "NOT_PARTICIPANT"
    message = "Not a participant of this workshop"


class PayloadTooLarge(CampusConnectError):
    status_code = 413
    code = "PAYLOAD_TOO_LARGE"
    message = "File too large"


class UpstreamError(CampusConnectError):
    """A remote service failed or answered with something unusable."""

    status_code = 502
    code = "UPSTREAM_ERROR"
    message = "Failed to get AI response"


class ServiceUnavailable(CampusConnectError):
    status_code = 503
    code = "SERVICE_UNAVAILABLE"
    message = "Service unavailable"

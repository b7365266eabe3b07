"""
core/errors.py -- Typed failures raised by the account services.

Each error carries the HTTP status it maps to and a human-readable message
that is safe to show to the end user. Services raise these; only the API
layer (api/main.py exception handlers) turns them into responses, always as
the {"success": false, "message": ...} envelope.

Layer rule: core/ is the kernel. No imports from api/, auth/ or media/.
"""

from __future__ import annotations


class JobPortalError(Exception):
    """Base class for every expected failure. status_code is the HTTP status."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(JobPortalError):
    """A required input is missing or has an unacceptable value."""

    status_code = 400


class ConflictError(JobPortalError):
    """Email already taken, or an account exists under a different role."""

    status_code = 400


class AuthError(JobPortalError):
    """Bad credentials, role mismatch or a failed identity-token check."""

    status_code = 400


class NotAuthenticatedError(AuthError):
    """No session credential was presented, or it failed verification."""

    status_code = 401


class NotFoundError(JobPortalError):
    status_code = 404


class UploadError(JobPortalError):
    """The file could not be encoded or the media host rejected the upload."""

    status_code = 500


class UnknownError(JobPortalError):
    status_code = 500

"""
API request and response models for the JobPortal user endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py, which own the
internal domain representation; route handlers map between the two.

Wire format is camelCase (phoneNumber, resumeOriginalName, ...) to match the
React frontend. Response models are built with snake_case names and dumped
with by_alias=True.

The user projection has no password field at all -- sanitization is a
property of the type, not something each handler has to remember.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from auth.models import User

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/user/login.

    Every field is optional at the schema level so a missing one is reported
    as "Something is missing" (400) by the verifier rather than a schema 422.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=255)
    role: Optional[str] = Field(default=None, max_length=30)


class GoogleAuthRequest(BaseModel):
    """Request body for POST /api/v1/user/google.

    token is the ID token from Google Identity Services. role defaults to
    "student" when omitted.
    """

    token: Optional[str] = Field(default=None, max_length=8192)
    role: Optional[str] = Field(default=None, max_length=30)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class _CamelModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class ProfileResponse(_CamelModel):
    bio: str
    skills: list[str]
    resume: Optional[str]
    resume_original_name: Optional[str]
    profile_photo: str


class UserResponse(_CamelModel):
    """Sanitized user projection returned by every endpoint that returns a user."""

    id: int
    fullname: str
    email: str
    phone_number: str
    role: str
    profile: ProfileResponse


class MessageResponse(BaseModel):
    """Envelope for responses without a user: success flag plus a message."""

    model_config = ConfigDict(frozen=True)

    success: bool
    message: str


class UserEnvelope(BaseModel):
    """Envelope for responses that carry the signed-in or updated user."""

    model_config = ConfigDict(frozen=True)

    success: bool
    message: str
    user: UserResponse


class HealthResponse(BaseModel):
    status: str
    version: str
    components: dict[str, str]


# ---------------------------------------------------------------------------
# Mapping
# ---------------------------------------------------------------------------


def user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        fullname=user.fullname,
        email=user.email,
        phone_number=user.phone_number,
        role=user.role,
        profile=ProfileResponse(
            bio=user.profile.bio,
            skills=list(user.profile.skills),
            resume=user.profile.resume,
            resume_original_name=user.profile.resume_original_name,
            profile_photo=user.profile.profile_photo,
        ),
    )


def user_envelope(user: User, message: str) -> dict:
    """Return the JSON-ready {success, message, user} body with camelCase keys."""
    return UserEnvelope(success=True, message=message, user=user_to_response(user)).model_dump(by_alias=True)

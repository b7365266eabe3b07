"""
auth/models.py -- Domain dataclasses for accounts.

Pattern: Data class (pure data container, zero logic). The store maps rows
to these objects; the verifier mutates them; the API layer projects them into
response models. None of them knows about HTTP or SQL.

Layer rule: no imports from api/ or media/.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# Closed set of account roles. Extend here; every check reads this tuple.
ROLES: tuple[str, ...] = ("student", "recruiter")
DEFAULT_ROLE = "student"


@dataclass
class Profile:
    """The editable, user-facing part of an account.

    skills keeps the order the user typed them in. resume and profile_photo
    hold secure URLs returned by the media host, never file contents.
    """

    bio: str = ""
    skills: list[str] = field(default_factory=list)
    resume: str | None = None
    resume_original_name: str | None = None
    profile_photo: str = ""


@dataclass
class User:
    """One account.

    email is unique across all accounts (enforced by the store). role is set
    at creation and never changed by sign-in flows. hashed_password is always
    a bcrypt hash -- Google-created accounts get a random one so every record
    has the same shape.
    """

    fullname: str
    email: str
    phone_number: str
    role: str  # one of ROLES
    hashed_password: str
    id: int | None = None
    profile: Profile = field(default_factory=Profile)
    created_at: str | None = None
    updated_at: str | None = None

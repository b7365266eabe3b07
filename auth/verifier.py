"""
auth/verifier.py -- Registration, sign-in and profile updates.

CredentialVerifier is the single entry point the API layer calls for account
operations. It is constructed with its collaborators (user store, session
issuer, Google token verifier, media uploader) and holds no other state, so
one instance is shared across all requests.

Failure policy: every rejected request raises one of the typed errors in
core.errors. Nothing here builds HTTP responses or swallows exceptions;
api/main.py turns the errors into {"success": false, "message": ...}.

Login messages are deliberately coarse: an unknown email and a wrong
password produce the same text and cost the same bcrypt work.

Layer rule: no imports from api/. media/ is used only for its UploadedFile
and to_data_uri helpers and the uploader passed in.
"""

from __future__ import annotations

import logging
from typing import Protocol

from sqlalchemy.exc import IntegrityError

from auth.models import DEFAULT_ROLE, ROLES, Profile, User
from auth.store import UserStore
from auth.tokens import (
    SessionIssuer,
    burn_password_check,
    generate_random_password,
    hash_password,
    password_too_long,
    verify_password,
)
from core.errors import AuthError, ConflictError, NotFoundError, UploadError, ValidationError
from media.uploader import UploadedFile, to_data_uri

logger = logging.getLogger("jobportal.auth.verifier")

MISSING_FIELDS = "Something is missing"
INVALID_ROLE = "Invalid role."
EMAIL_TAKEN = "User already exist with this email."
BAD_CREDENTIALS = "Incorrect email or password."
ROLE_MISMATCH = "Account doesn't exist with current role."
OTHER_ROLE = "User already exists but with other role."
INCOMPLETE_GOOGLE_PROFILE = "Incomplete Google profile."
USER_NOT_FOUND = "User not found"
PASSWORD_TOO_LONG = "Password must be at most 72 bytes."
EMAIL_NOT_VERIFIED = "Google email is not verified."


class IdentityVerifier(Protocol):
    def verify(self, id_token: str) -> dict: ...


class Uploader(Protocol):
    def upload(self, data_uri: str, resource_type: str = "image") -> str: ...


def _present(*values: str | None) -> bool:
    return all(v is not None and str(v).strip() for v in values)


def parse_skills(raw: str) -> list[str]:
    """Split a comma-separated skills string into a trimmed, ordered list."""
    return [s.strip() for s in raw.split(",") if s.strip()]


class CredentialVerifier:
    def __init__(
        self,
        store: UserStore,
        issuer: SessionIssuer,
        identity_verifier: IdentityVerifier,
        uploader: Uploader,
    ) -> None:
        self.store = store
        self.issuer = issuer
        self.identity_verifier = identity_verifier
        self.uploader = uploader

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(
        self,
        fullname: str | None,
        email: str | None,
        phone_number: str | None,
        password: str | None,
        role: str | None,
        photo: UploadedFile | None = None,
    ) -> User:
        """Create a password account. The caller must log in separately."""
        if not _present(fullname, email, phone_number, password, role):
            raise ValidationError(MISSING_FIELDS)
        if role not in ROLES:
            raise ValidationError(INVALID_ROLE)
        if password_too_long(password):
            raise ValidationError(PASSWORD_TOO_LONG)
        email = email.strip()
        if self.store.get_by_email(email) is not None:
            raise ConflictError(EMAIL_TAKEN)

        profile = Profile()
        if photo is not None:
            profile.profile_photo = self.uploader.upload(to_data_uri(photo), resource_type="image")

        user = User(
            fullname=fullname.strip(),
            email=email,
            phone_number=phone_number.strip(),
            role=role,
            hashed_password=hash_password(password),
            profile=profile,
        )
        return self._create(user)

    def _create(self, user: User) -> User:
        try:
            user.id = self.store.create_user(user)
        except IntegrityError as exc:
            # Lost a race with a concurrent create for the same email.
            raise ConflictError(EMAIL_TAKEN) from exc
        logger.info("Account created: id=%s role=%s", user.id, user.role)
        return self.store.get_by_id(user.id) or user

    # ------------------------------------------------------------------
    # Sign-in
    # ------------------------------------------------------------------

    def login(self, email: str | None, password: str | None, role: str | None) -> tuple[User, str]:
        """Check email, password and role, in that order. Returns (user, session token)."""
        if not _present(email, password, role):
            raise ValidationError(MISSING_FIELDS)

        user = self.store.get_by_email(email)
        if user is None:
            burn_password_check(password)
            logger.info("Login failed: unknown email")
            raise AuthError(BAD_CREDENTIALS)
        if not verify_password(password, user.hashed_password):
            logger.info("Login failed: bad password for user id=%s", user.id)
            raise AuthError(BAD_CREDENTIALS)
        if role != user.role:
            logger.info("Login failed: role %r requested for %s account id=%s", role, user.role, user.id)
            raise AuthError(ROLE_MISMATCH)

        return user, self.issuer.issue(user.id)

    def google_auth(self, identity_token: str | None, role: str | None = None) -> tuple[User, str, bool]:
        """Sign in (or sign up) with a Google ID token.

        Returns (user, session token, created). An existing account is only
        signed in when its role matches; it is never modified here.
        """
        if not _present(identity_token):
            raise ValidationError(MISSING_FIELDS)
        role = role or DEFAULT_ROLE
        if role not in ROLES:
            raise ValidationError(INVALID_ROLE)

        claims = self.identity_verifier.verify(identity_token)
        email = claims.get("email")
        name = claims.get("name")
        if not email or not name:
            raise AuthError(INCOMPLETE_GOOGLE_PROFILE)
        if claims.get("email_verified") is not True:
            logger.info("Google sign-in refused: email not verified")
            raise AuthError(EMAIL_NOT_VERIFIED)

        user = self.store.get_by_email(email)
        created = False
        if user is not None:
            if user.role != role:
                logger.info("Google sign-in refused: account id=%s is %s, not %s", user.id, user.role, role)
                raise ConflictError(OTHER_ROLE)
        else:
            user = self._create(
                User(
                    fullname=name,
                    email=email,
                    phone_number="",
                    role=role,
                    hashed_password=hash_password(generate_random_password()),
                    profile=Profile(profile_photo=claims.get("picture") or ""),
                )
            )
            created = True

        return user, self.issuer.issue(user.id), created

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def get_user(self, user_id: int) -> User:
        user = self.store.get_by_id(user_id)
        if user is None:
            raise NotFoundError(USER_NOT_FOUND)
        return user

    def update_profile(
        self,
        user_id: int,
        fullname: str | None = None,
        email: str | None = None,
        phone_number: str | None = None,
        bio: str | None = None,
        skills: str | None = None,
        password: str | None = None,
        resume: UploadedFile | None = None,
    ) -> User:
        """Merge the supplied, non-blank fields into the account and save once.

        Fields left out (or blank) keep their stored value. A new resume is
        uploaded before anything is written, so a failed upload changes nothing.
        """
        if _present(password) and password_too_long(password):
            raise ValidationError(PASSWORD_TOO_LONG)
        user = self.get_user(user_id)

        if _present(fullname):
            user.fullname = fullname.strip()
        if _present(email):
            user.email = email.strip()
        if _present(phone_number):
            user.phone_number = phone_number.strip()
        if _present(bio):
            user.profile.bio = bio
        if _present(skills):
            user.profile.skills = parse_skills(skills)
        if _present(password):
            user.hashed_password = hash_password(password)

        if resume is not None:
            data_uri = to_data_uri(resume)
            try:
                user.profile.resume = self.uploader.upload(data_uri, resource_type="auto")
            except UploadError as exc:
                logger.error("Resume upload failed for user id=%s: %s", user_id, exc.message)
                raise UploadError("Resume upload failed") from exc
            user.profile.resume_original_name = resume.filename

        try:
            saved = self.store.save_user(user)
        except IntegrityError as exc:
            raise ConflictError(EMAIL_TAKEN) from exc
        if not saved:
            raise NotFoundError(USER_NOT_FOUND)
        logger.info("Profile updated: id=%s", user_id)
        return user

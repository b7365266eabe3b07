"""
auth/tokens.py -- Password hashing and the session issuer.

Security design decisions:
  Sessions: python-jose with HS256. A session token carries only userId plus
       iat/exp claims and is signed with Settings.secret_key. Nothing is
       stored server-side; validity is signature + expiry alone, so logout
       only clears the cookie and a copied token stays valid until exp.

  Passwords: bcrypt, used directly. The _DUMMY_HASH constant enables timing
       equalization in the login path so response time does not reveal
       whether an email is registered.

  Cookie: "token", httpOnly, SameSite=strict, Secure in production. max_age
       matches the JWT lifetime so both expire together.

SessionIssuer receives its Settings explicitly instead of reading a module
global, so tests and alternate deployments can run several issuers with
different keys side by side.

Layer rule: no imports from api/ or media/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from core.config import Settings

logger = logging.getLogger("jobportal.auth.tokens")

_ALGORITHM = "HS256"

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


# bcrypt only reads the first 72 bytes; bcrypt 5 raises ValueError beyond that.
MAX_PASSWORD_BYTES = 72


def password_too_long(plain: str) -> bool:
    return len(plain.encode("utf-8")) > MAX_PASSWORD_BYTES


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    Callers reject passwords over MAX_PASSWORD_BYTES first (see
    password_too_long); the API layer also caps the field at 255 chars.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except Exception:
        return False


def generate_random_password() -> str:
    """Random secret for accounts created through Google sign-in (24 hex chars)."""
    return secrets.token_hex(12)


# Computed once at module load so the first failed login is not measurably
# slower than later ones.
_DUMMY_HASH: str = hash_password("jobportal_timing_dummy")


def burn_password_check(plain: str) -> None:
    """Run one bcrypt comparison against a throwaway hash.

    Called on the unknown-email branch of login so it costs the same as the
    wrong-password branch.
    """
    verify_password(plain, _DUMMY_HASH)


# ---------------------------------------------------------------------------
# Session issuer
# ---------------------------------------------------------------------------


class SessionIssuer:
    """Mints, verifies and clears the signed session credential.

    Usage:
        issuer = SessionIssuer(get_settings())
        token = issuer.issue(user.id)
        issuer.set_cookie(response, token)
        ...
        user_id = issuer.verify(request.cookies.get("token"))
        issuer.revoke(response)
    """

    def __init__(self, settings: Settings) -> None:
        self._secret_key = settings.secret_key
        self.cookie_name = settings.cookie_name
        self.expire_seconds = settings.token_expire_seconds
        self._secure = settings.secure_cookies

    def issue(self, user_id: int) -> str:
        """Encode a signed JWT for user_id expiring expire_seconds from now."""
        now = datetime.now(timezone.utc)
        payload = {
            "userId": user_id,
            "iat": now,
            "exp": now + timedelta(seconds=self.expire_seconds),
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def verify(self, token: str | None) -> int | None:
        """Return the user id from a valid token, or None on any failure.

        Returning None (rather than raising) keeps the caller simple: any
        invalid, expired or malformed token is treated as "not signed in".
        """
        if not token:
            return None
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[_ALGORITHM])
        except JWTError:
            return None
        user_id = payload.get("userId")
        if not isinstance(user_id, int):
            return None
        return user_id

    def set_cookie(self, response, token: str) -> None:
        """Write the session token as an httpOnly, SameSite=strict cookie."""
        response.set_cookie(
            self.cookie_name,
            value=token,
            httponly=True,
            samesite="strict",
            secure=self._secure,
            max_age=self.expire_seconds,
        )

    def revoke(self, response) -> None:
        """Overwrite the session cookie with an empty value that expires immediately."""
        response.set_cookie(
            self.cookie_name,
            value="",
            httponly=True,
            samesite="strict",
            secure=self._secure,
            max_age=0,
        )

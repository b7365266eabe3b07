"""
auth/google.py -- Verification of Google Sign-In ID tokens.

The frontend obtains an ID token from Google Identity Services and posts it
to /api/v1/user/google. Before any account is looked up or created, the
token must prove it was issued by Google for this application:

  - RS256 signature valid under one of Google's published keys (JWKS),
    selected by the token header's kid
  - aud == Settings.google_client_id
  - iss is accounts.google.com (with or without https://)
  - email_verified is true (a missing claim counts as unverified)
  - exp not in the past (checked by python-jose)

Google rotates its signing keys. The JWKS document is fetched with requests
and cached in-process for the max-age Google advertises in Cache-Control
(one hour when absent). An unknown kid forces one refetch before failing.

Any failure raises AuthError -- the caller never receives unverified claims.

Layer rule: no imports from api/ or media/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
import re
import time
from typing import Any

import requests
from jose import JWTError, jwt

from core.errors import AuthError

logger = logging.getLogger("jobportal.auth.google")

GOOGLE_CERTS_URL = "https://www.googleapis.com/oauth2/v3/certs"
GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")

_DEFAULT_CERTS_TTL = 60 * 60
_MAX_AGE_RE = re.compile(r"max-age=(\d+)")


class GoogleTokenVerifier:
    """Verifies Google ID tokens and returns their claims.

    Usage:
        verifier = GoogleTokenVerifier(settings.google_client_id, settings.google_certs_url)
        claims = verifier.verify(id_token)   # {"email": ..., "name": ..., "picture": ...}
    """

    def __init__(
        self,
        client_id: str,
        certs_url: str = GOOGLE_CERTS_URL,
        session: requests.Session | None = None,
    ) -> None:
        self.client_id = client_id
        self.certs_url = certs_url
        self._session = session or requests.Session()
        self._keys: list[dict[str, Any]] = []
        self._keys_expire_at = 0.0

    # ------------------------------------------------------------------
    # JWKS
    # ------------------------------------------------------------------

    def _fetch_keys(self) -> list[dict[str, Any]]:
        try:
            resp = self._session.get(self.certs_url, timeout=10)
            resp.raise_for_status()
            keys = resp.json().get("keys", [])
        except (requests.RequestException, ValueError) as e:
            logger.warning("Could not fetch Google signing keys: %s", e)
            raise AuthError("Google token verification failed.") from e

        ttl = _DEFAULT_CERTS_TTL
        match = _MAX_AGE_RE.search(resp.headers.get("Cache-Control", ""))
        if match:
            ttl = int(match.group(1))
        self._keys = keys
        self._keys_expire_at = time.monotonic() + ttl
        return keys

    def _key_for(self, kid: str | None) -> dict[str, Any]:
        keys = self._keys if time.monotonic() < self._keys_expire_at else self._fetch_keys()
        for key in keys:
            if key.get("kid") == kid:
                return key
        # Key rotation: the cached set may predate the token's key.
        for key in self._fetch_keys():
            if key.get("kid") == kid:
                return key
        raise AuthError("Google token verification failed.")

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    def verify(self, id_token: str) -> dict[str, Any]:
        """Return the verified claims of a Google ID token. Raises AuthError."""
        if not self.client_id:
            logger.error("Google sign-in attempted but GOOGLE_CLIENT_ID is not configured")
            raise AuthError("Google sign-in is not configured.")
        try:
            header = jwt.get_unverified_header(id_token)
        except JWTError as e:
            raise AuthError("Google token verification failed.") from e

        key = self._key_for(header.get("kid"))
        try:
            claims = jwt.decode(
                id_token,
                key,
                algorithms=["RS256"],
                audience=self.client_id,
                options={"verify_at_hash": False},
            )
        except JWTError as e:
            logger.info("Rejected Google ID token: %s", e)
            raise AuthError("Google token verification failed.") from e

        if claims.get("iss") not in GOOGLE_ISSUERS:
            logger.info("Rejected Google ID token with issuer %r", claims.get("iss"))
            raise AuthError("Google token verification failed.")
        if claims.get("email_verified") is not True:
            logger.info("Rejected Google ID token for an unverified email")
            raise AuthError("Google email is not verified.")
        return claims

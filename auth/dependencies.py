"""
auth/dependencies.py -- FastAPI Depends() helpers for session extraction.

The session credential is pulled out of the request explicitly and turned
into a user id before any service call, so service operations take a plain
user id and never look at request state themselves.

Token sources, in priority order:
  1. "token" cookie -- set by /login and /google.
  2. Authorization: Bearer <token> header -- non-browser clients.

get_session_token() is the soft variant (returns None when absent).
require_user_id() raises NotAuthenticatedError (HTTP 401) when there is no
valid session.

Layer rule: auth/dependencies.py may import from fastapi because it is part
of the FastAPI dependency injection system. No imports from api/.
"""

from __future__ import annotations

from fastapi import Request

from auth.tokens import SessionIssuer
from auth.verifier import CredentialVerifier
from core.errors import NotAuthenticatedError


def get_session_issuer(request: Request) -> SessionIssuer:
    return request.app.state.session_issuer


def get_verifier(request: Request) -> CredentialVerifier:
    return request.app.state.verifier


def get_session_token(request: Request) -> str | None:
    """Return the raw session token from the cookie or Bearer header, if any."""
    issuer = get_session_issuer(request)
    token: str | None = request.cookies.get(issuer.cookie_name)
    if not token:
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            token = auth_header[7:]
    return token or None


def require_user_id(request: Request) -> int:
    """Require a valid session and return its user id.

    Use as a FastAPI dependency:
        @router.put("/profile/update")
        def route(user_id: int = Depends(require_user_id)): ...
    """
    user_id = get_session_issuer(request).verify(get_session_token(request))
    if user_id is None:
        raise NotAuthenticatedError("User not authenticated")
    return user_id

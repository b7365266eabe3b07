"""
api/routes/v1/user.py -- Account and session REST endpoints.

Routes (mounted under /api/v1/user):
  POST     /register        -- multipart sign-up with optional profile photo; 201
  POST     /login           -- email/password/role login; sets session cookie
  POST     /google          -- Google ID token sign-in/sign-up; sets session cookie
  GET|POST /logout          -- clears the session cookie
  PUT      /profile/update  -- partial profile update, optional resume (requires session)
  GET      /me              -- the signed-in user (requires session)

Every handler is a plain def so FastAPI runs it in the threadpool: bcrypt,
database access and outbound HTTP (media host, Google keys) all block.

Handlers never build error responses themselves. Verifier failures
(core.errors) propagate to the handlers in api/main.py, which always answer
with {"success": false, "message": ...}.

Security:
  /login and /google are rate-limited per client IP (Settings.login_rate_limit).
  Cache-Control: no-store on every response that sets the session cookie.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import GoogleAuthRequest, LoginRequest, MessageResponse, user_envelope
from auth.dependencies import get_session_issuer, get_verifier, require_user_id
from auth.tokens import SessionIssuer
from auth.verifier import CredentialVerifier
from core.config import get_settings
from media.uploader import UploadedFile

# Auth policy:
# - POST     /register, /login, /google:  public
# - GET|POST /logout:                     public -- clearing a cookie needs no prior auth
# - PUT      /profile/update, GET /me:    require_user_id
router = APIRouter()


def _login_rate_limit() -> str:
    return get_settings().login_rate_limit


def _read_upload(file: UploadFile | None) -> UploadedFile | None:
    """Read a multipart file into memory; an empty file field counts as absent."""
    if file is None or not file.filename:
        return None
    return UploadedFile(
        filename=file.filename,
        content_type=file.content_type,
        content=file.file.read(),
    )


def _signed_in_response(issuer: SessionIssuer, token: str, body: dict) -> JSONResponse:
    resp = JSONResponse(status_code=200, content=body)
    issuer.set_cookie(resp, token)
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/register", status_code=201)
def register(
    fullname: Optional[str] = Form(None, max_length=255),
    email: Optional[str] = Form(None, max_length=255),
    phoneNumber: Optional[str] = Form(None, max_length=32),  # noqa: N803 -- form field name used by the frontend
    password: Optional[str] = Form(None, max_length=255),
    role: Optional[str] = Form(None, max_length=30),
    file: Optional[UploadFile] = File(None),
    verifier: CredentialVerifier = Depends(get_verifier),
) -> JSONResponse:
    """Create an account. Does not sign the user in."""
    verifier.register(
        fullname=fullname,
        email=email,
        phone_number=phoneNumber,
        password=password,
        role=role,
        photo=_read_upload(file),
    )
    return JSONResponse(
        status_code=201,
        content=MessageResponse(success=True, message="Account created successfully.").model_dump(),
    )


@limiter.limit(_login_rate_limit)  # must be ABOVE @router; SlowAPIMiddleware enforces it by endpoint name
@router.post("/login")
def login(
    request: Request,
    body: LoginRequest,
    verifier: CredentialVerifier = Depends(get_verifier),
    issuer: SessionIssuer = Depends(get_session_issuer),
) -> JSONResponse:
    """Authenticate with email, password and role; set the session cookie."""
    user, token = verifier.login(body.email, body.password, body.role)
    return _signed_in_response(issuer, token, user_envelope(user, f"Welcome back {user.fullname}"))


@limiter.limit(_login_rate_limit)
@router.post("/google")
def google_auth(
    request: Request,
    body: GoogleAuthRequest,
    verifier: CredentialVerifier = Depends(get_verifier),
    issuer: SessionIssuer = Depends(get_session_issuer),
) -> JSONResponse:
    """Sign in with a Google ID token, creating the account on first use."""
    user, token, _created = verifier.google_auth(body.token, body.role)
    return _signed_in_response(issuer, token, user_envelope(user, f"Welcome {user.fullname}"))


@router.api_route("/logout", methods=["GET", "POST"])
def logout(issuer: SessionIssuer = Depends(get_session_issuer)) -> JSONResponse:
    """Clear the session cookie. A copied token stays valid until it expires."""
    resp = JSONResponse(
        status_code=200,
        content=MessageResponse(success=True, message="Logged out successfully.").model_dump(),
    )
    issuer.revoke(resp)
    return resp


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.put("/profile/update")
def update_profile(
    fullname: Optional[str] = Form(None, max_length=255),
    email: Optional[str] = Form(None, max_length=255),
    phoneNumber: Optional[str] = Form(None, max_length=32),  # noqa: N803
    bio: Optional[str] = Form(None, max_length=2000),
    skills: Optional[str] = Form(None, max_length=1000),
    password: Optional[str] = Form(None, max_length=255),
    file: Optional[UploadFile] = File(None),
    user_id: int = Depends(require_user_id),
    verifier: CredentialVerifier = Depends(get_verifier),
) -> JSONResponse:
    """Apply only the supplied, non-blank fields; optionally replace the resume."""
    user = verifier.update_profile(
        user_id,
        fullname=fullname,
        email=email,
        phone_number=phoneNumber,
        bio=bio,
        skills=skills,
        password=password,
        resume=_read_upload(file),
    )
    return JSONResponse(status_code=200, content=user_envelope(user, "Profile updated successfully"))


@router.get("/me")
def me(
    user_id: int = Depends(require_user_id),
    verifier: CredentialVerifier = Depends(get_verifier),
) -> JSONResponse:
    """Return the signed-in user so the frontend can restore its state on reload."""
    user = verifier.get_user(user_id)
    return JSONResponse(status_code=200, content=user_envelope(user, "Authenticated"))

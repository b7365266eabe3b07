"""
api/main.py -- FastAPI application entry point for JobPortal.

Run with:  uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- credentialed CORS for the frontend origins
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter

Lifespan builds the collaborators once (user store, session issuer, Google
token verifier, media uploader) from an explicit Settings object and wires
them into a CredentialVerifier on app.state. Shutdown closes the store.

Every error leaves through one of the exception handlers below, and all of
them answer with the same {"success": false, "message": ...} envelope.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException

from api.limiter import limiter
from api.models import HealthResponse, MessageResponse
from api.routes.v1.user import router as user_router
from auth.google import GoogleTokenVerifier
from auth.store import UserStore
from auth.tokens import SessionIssuer
from auth.verifier import CredentialVerifier
from core.config import get_settings
from core.errors import JobPortalError, UnknownError, ValidationError
from media.uploader import MediaUploader

VERSION = "1.0.0"

_settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=getattr(logging, _settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("jobportal.api")

# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build shared collaborators on startup and release them on shutdown."""
    settings = get_settings()
    logger.info("JobPortal API starting up (environment=%s)", settings.environment)

    app.state.user_store = UserStore(settings.database_url)
    app.state.session_issuer = SessionIssuer(settings)
    google_verifier = GoogleTokenVerifier(settings.google_client_id, settings.google_certs_url)
    uploader = MediaUploader.from_settings(settings)
    if not settings.google_client_id:
        logger.warning("GOOGLE_CLIENT_ID not set -- Google sign-in will be rejected")
    if not uploader.configured:
        logger.warning("Cloudinary credentials not set -- photo and resume uploads will fail")

    app.state.verifier = CredentialVerifier(
        store=app.state.user_store,
        issuer=app.state.session_issuer,
        identity_verifier=google_verifier,
        uploader=uploader,
    )
    logger.info("Accounts initialized (%d users)", app.state.user_store.count_users())

    yield

    app.state.user_store.close()
    logger.info("JobPortal API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="JobPortal API",
    description="Registration, sign-in and profile management for the JobPortal job board.",
    version=VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Register in the order you want the request to encounter them:
# TrustedHost -> CORS -> SlowAPI.
# ---------------------------------------------------------------------------

app.add_middleware(TrustedHostMiddleware, allowed_hosts=_settings.allowed_hosts)

# allow_credentials is required: the frontend sends the session cookie with
# axios withCredentials, and browsers drop credentialed responses without it.
app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(user_router, prefix="/api/v1/user", tags=["User"])


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=MessageResponse(success=False, message=message).model_dump(),
    )


@app.exception_handler(JobPortalError)
async def jobportal_error_handler(request: Request, exc: JobPortalError) -> JSONResponse:
    """Map a typed service failure to its status code and message."""
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return _failure(exc.status_code, exc.message)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 when a rate limit is exceeded, with Retry-After in seconds."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _failure(429, "Too many requests. Please try again later.")
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies get the same 400 envelope as a missing field."""
    logger.info("Request validation failed on %s: %s", request.url.path, exc.errors())
    return _failure(ValidationError.status_code, "Invalid request.")


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Unknown routes and wrong methods also answer with the failure envelope."""
    return _failure(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected server errors.

    The traceback is logged, never returned; the client receives only a
    generic message.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    error = UnknownError("Server error")
    return _failure(error.status_code, error.message)


# ---------------------------------------------------------------------------
# Health endpoint
#
# No rate limit -- health checks from load balancers must not be throttled.
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness, version and database reachability."""
    db_ok = request.app.state.user_store.ping()
    return HealthResponse(
        status="healthy" if db_ok else "degraded",
        version=VERSION,
        components={"app": "ok", "database": "ok" if db_ok else "error"},
    )

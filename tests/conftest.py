"""
tests/conftest.py -- Shared test fixtures for JobPortal.

This module provides:
  - FakeIdentityVerifier / FakeUploader: stand-ins for Google and Cloudinary
  - store / issuer / verifier: unit-level fixtures over an in-memory store
  - client: TestClient over the real app with a patched lifespan

Design: Named shared-memory SQLite URIs (not plain :memory:) are used for
the HTTP fixtures because TestClient runs route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to
each worker thread. Each client gets its own uniquely named database so
tests never see each other's accounts.

DEBUG must be set before any core/auth import so get_settings() generates a
SECRET_KEY instead of raising. The login rate limit is raised so the suite's
many logins are not throttled.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set env before any auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import User
from auth.store import UserStore
from auth.tokens import SessionIssuer, hash_password
from auth.verifier import CredentialVerifier
from core.config import get_settings
from core.errors import AuthError, UploadError

# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------


class FakeIdentityVerifier:
    """Maps known ID-token strings to claims; anything else fails verification."""

    def __init__(self) -> None:
        self.tokens: dict[str, dict] = {}

    def add(
        self,
        token: str,
        email: str | None,
        name: str | None,
        picture: str = "",
        email_verified: bool = True,
    ) -> None:
        self.tokens[token] = {"email": email, "name": name, "picture": picture, "email_verified": email_verified}

    def verify(self, id_token: str) -> dict:
        if id_token not in self.tokens:
            raise AuthError("Google token verification failed.")
        return self.tokens[id_token]


class FakeUploader:
    """Records uploads and returns predictable URLs; fail=True simulates an outage."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []
        self.fail = False

    def upload(self, data_uri: str, resource_type: str = "image") -> str:
        if self.fail:
            raise UploadError("Upload failed")
        self.calls.append((data_uri, resource_type))
        return f"https://media.example.com/{resource_type}/{len(self.calls)}"


# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def issuer() -> SessionIssuer:
    return SessionIssuer(get_settings())


@pytest.fixture
def identity() -> FakeIdentityVerifier:
    return FakeIdentityVerifier()


@pytest.fixture
def uploader() -> FakeUploader:
    return FakeUploader()


@pytest.fixture
def verifier(store, issuer, identity, uploader) -> CredentialVerifier:
    return CredentialVerifier(store=store, issuer=issuer, identity_verifier=identity, uploader=uploader)


@pytest.fixture
def make_user(store: UserStore):
    """Factory fixture: insert a password account directly through the store."""

    def _make(email: str = "ann@example.com", password: str = "pw1", role: str = "student") -> User:
        uid = store.create_user(
            User(
                fullname="Ann",
                email=email,
                phone_number="555",
                role=role,
                hashed_password=hash_password(password),
            )
        )
        return store.get_by_id(uid)

    return _make


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(verifier: CredentialVerifier):
    """Return a lifespan that wires the given verifier (and its parts) into app.state."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = verifier.store
        app.state.session_issuer = verifier.issuer
        app.state.verifier = verifier
        yield

    return test_lifespan


@pytest.fixture
def http_verifier() -> Generator[CredentialVerifier, None, None]:
    """A verifier over a uniquely named shared-memory store, for use with `client`."""
    db_url = f"sqlite:///file:test_users_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
    s = UserStore(db_url=db_url)
    yield CredentialVerifier(
        store=s,
        issuer=SessionIssuer(get_settings()),
        identity_verifier=FakeIdentityVerifier(),
        uploader=FakeUploader(),
    )
    s.close()


@pytest.fixture
def client(http_verifier: CredentialVerifier) -> Generator[TestClient, None, None]:
    """TestClient over the real app; each test starts with an empty store and no cookies."""
    app.router.lifespan_context = _patch_lifespan(http_verifier)
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c

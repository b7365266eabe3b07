"""Unit tests for auth/google.py -- GoogleTokenVerifier.

Tokens are signed locally with a throwaway RSA key whose public half is
served as a JWKS document by a mocked requests session, so no request ever
reaches Google.
"""

import time
from unittest.mock import MagicMock

import pytest
import rsa
from jose import jwk, jwt

from auth.google import GoogleTokenVerifier
from core.errors import AuthError

CLIENT_ID = "1234.apps.googleusercontent.com"


@pytest.fixture(scope="module")
def signing_key() -> str:
    _pub, priv = rsa.newkeys(2048)
    return priv.save_pkcs1().decode("ascii")


@pytest.fixture(scope="module")
def jwks(signing_key: str) -> dict:
    public = jwk.construct(signing_key, "RS256").public_key().to_dict()
    public["kid"] = "k1"
    return {"keys": [public]}


@pytest.fixture
def session(jwks: dict) -> MagicMock:
    resp = MagicMock()
    resp.raise_for_status.return_value = None
    resp.json.return_value = jwks
    resp.headers = {"Cache-Control": "public, max-age=19000, must-revalidate"}
    s = MagicMock()
    s.get.return_value = resp
    return s


def _id_token(signing_key: str, kid: str = "k1", **overrides) -> str:
    now = int(time.time())
    claims = {
        "iss": "https://accounts.google.com",
        "aud": CLIENT_ID,
        "sub": "10769150350006150715113082367",
        "email": "gina@example.com",
        "email_verified": True,
        "name": "Gina",
        "picture": "https://lh3.googleusercontent.com/a/photo.jpg",
        "iat": now,
        "exp": now + 3600,
    }
    claims.update(overrides)
    return jwt.encode(claims, signing_key, algorithm="RS256", headers={"kid": kid})


def test_valid_token_returns_claims(signing_key, session):
    verifier = GoogleTokenVerifier(CLIENT_ID, session=session)
    claims = verifier.verify(_id_token(signing_key))
    assert claims["email"] == "gina@example.com"
    assert claims["name"] == "Gina"


def test_bare_issuer_accepted(signing_key, session):
    verifier = GoogleTokenVerifier(CLIENT_ID, session=session)
    assert verifier.verify(_id_token(signing_key, iss="accounts.google.com"))["sub"]


def test_keys_are_cached(signing_key, session):
    verifier = GoogleTokenVerifier(CLIENT_ID, session=session)
    verifier.verify(_id_token(signing_key))
    verifier.verify(_id_token(signing_key))
    assert session.get.call_count == 1


def test_wrong_audience_rejected(signing_key, session):
    verifier = GoogleTokenVerifier(CLIENT_ID, session=session)
    with pytest.raises(AuthError):
        verifier.verify(_id_token(signing_key, aud="someone-else.apps.googleusercontent.com"))


def test_wrong_issuer_rejected(signing_key, session):
    verifier = GoogleTokenVerifier(CLIENT_ID, session=session)
    with pytest.raises(AuthError):
        verifier.verify(_id_token(signing_key, iss="https://evil.example.com"))


def test_expired_token_rejected(signing_key, session):
    verifier = GoogleTokenVerifier(CLIENT_ID, session=session)
    past = int(time.time()) - 7200
    with pytest.raises(AuthError):
        verifier.verify(_id_token(signing_key, iat=past, exp=past + 3600))


def test_unknown_kid_refetches_once_then_fails(signing_key, session):
    verifier = GoogleTokenVerifier(CLIENT_ID, session=session)
    with pytest.raises(AuthError):
        verifier.verify(_id_token(signing_key, kid="rotated-away"))
    assert session.get.call_count == 2


def test_token_signed_by_other_key_rejected(session):
    _pub, other_priv = rsa.newkeys(1024)
    forged = _id_token(other_priv.save_pkcs1().decode("ascii"))
    with pytest.raises(AuthError):
        GoogleTokenVerifier(CLIENT_ID, session=session).verify(forged)


def test_garbage_token_rejected(session):
    with pytest.raises(AuthError):
        GoogleTokenVerifier(CLIENT_ID, session=session).verify("not-a-jwt")


def test_unconfigured_client_id_rejects_everything(signing_key, session):
    with pytest.raises(AuthError):
        GoogleTokenVerifier("", session=session).verify(_id_token(signing_key))
    session.get.assert_not_called()


@pytest.mark.parametrize("email_verified", [False, "false", None])
def test_unverified_email_rejected(signing_key, session, email_verified):
    verifier = GoogleTokenVerifier(CLIENT_ID, session=session)
    with pytest.raises(AuthError) as exc_info:
        verifier.verify(_id_token(signing_key, email_verified=email_verified))
    assert exc_info.value.message == "Google email is not verified."


def test_missing_email_verified_claim_rejected(signing_key, session):
    token = _id_token(signing_key)
    claims = jwt.get_unverified_claims(token)
    del claims["email_verified"]
    unverified = jwt.encode(claims, signing_key, algorithm="RS256", headers={"kid": "k1"})
    with pytest.raises(AuthError):
        GoogleTokenVerifier(CLIENT_ID, session=session).verify(unverified)

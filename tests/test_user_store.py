"""Unit tests for auth/store.py -- UserStore.

Covers:
- create_user() round trip including profile fields and timestamps
- UNIQUE(email) raises IntegrityError
- save_user() writes every field in one call and stamps updated_at
- save_user() on an unknown id returns False
- skills order survives the JSON column
"""

import pytest
from sqlalchemy.exc import IntegrityError

from auth.models import Profile, User


def _user(email: str = "a@x.com", **profile) -> User:
    return User(
        fullname="Ann",
        email=email,
        phone_number="555",
        role="student",
        hashed_password="$2b$12$fakehash",
        profile=Profile(**profile),
    )


def test_create_and_get_round_trip(store):
    uid = store.create_user(_user(bio="hi", skills=["Go", "Python"], profile_photo="https://m/p.png"))
    user = store.get_by_id(uid)
    assert user.email == "a@x.com"
    assert user.profile.bio == "hi"
    assert user.profile.skills == ["Go", "Python"]
    assert user.profile.profile_photo == "https://m/p.png"
    assert user.profile.resume is None
    assert user.created_at and user.created_at == user.updated_at
    assert store.get_by_email("a@x.com") == user


def test_unknown_lookups_return_none(store):
    assert store.get_by_email("nobody@x.com") is None
    assert store.get_by_id(12345) is None


def test_duplicate_email_raises_integrity_error(store):
    store.create_user(_user())
    with pytest.raises(IntegrityError):
        store.create_user(_user())
    assert store.count_users() == 1


def test_email_lookup_is_case_sensitive(store):
    store.create_user(_user(email="a@x.com"))
    assert store.get_by_email("A@X.COM") is None


def test_save_user_persists_all_fields(store):
    uid = store.create_user(_user())
    user = store.get_by_id(uid)
    original_updated = user.updated_at

    user.fullname = "Ann B"
    user.profile.skills = ["Rust", "C", "Ada"]
    user.profile.resume = "https://m/cv.pdf"
    user.profile.resume_original_name = "cv.pdf"
    assert store.save_user(user) is True

    reloaded = store.get_by_id(uid)
    assert reloaded.fullname == "Ann B"
    assert reloaded.profile.skills == ["Rust", "C", "Ada"]
    assert reloaded.profile.resume_original_name == "cv.pdf"
    assert reloaded.updated_at == user.updated_at
    assert reloaded.updated_at >= original_updated
    assert reloaded.created_at == user.created_at


def test_save_unknown_user_returns_false(store):
    ghost = _user()
    ghost.id = 999
    assert store.save_user(ghost) is False


def test_ping(store):
    assert store.ping() is True

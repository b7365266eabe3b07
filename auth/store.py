"""
auth/store.py -- SQLAlchemy Core persistence layer for user accounts.

Pattern: Repository + Data Mapper.
UserStore is the repository; _row_to_user is the mapper. The verifier and
route code never touch SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  UNIQUE(email) is enforced in SQL. create_user() and save_user() let
  sqlalchemy.exc.IntegrityError propagate so the caller can report a
  duplicate email -- this is also how the loser of two concurrent
  registrations for one address is detected.

Skills are stored as a JSON array in a TEXT column; order is preserved.

Layer rule: no imports from api/ or media/.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine

from auth.models import Profile, User

_DEFAULT_DB_URL = "sqlite:///jobportal.db"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("fullname", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("phone_number", String(32), nullable=False, server_default=""),
    Column("hashed_password", Text, nullable=False),
    Column("role", String(30), nullable=False),
    Column("bio", Text, nullable=False, server_default=""),
    Column("skills", Text, nullable=False, server_default="[]"),  # JSON array
    Column("profile_photo", Text, nullable=False, server_default=""),
    Column("resume", Text),
    Column("resume_original_name", Text),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers are not blocked during writes.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _user_values(user: User) -> dict:
    """Flatten a User (and its Profile) into column values, minus id and timestamps."""
    return {
        "fullname": user.fullname,
        "email": user.email,
        "phone_number": user.phone_number,
        "hashed_password": user.hashed_password,
        "role": user.role,
        "bio": user.profile.bio,
        "skills": json.dumps(user.profile.skills),
        "profile_photo": user.profile.profile_photo,
        "resume": user.profile.resume,
        "resume_original_name": user.profile.resume_original_name,
    }


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore("sqlite:///jobportal.db")
        uid = store.create_user(User(fullname="Ann", email="a@x.com", ...))
        user = store.get_by_email("a@x.com")
        store.close()
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        """
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    **_user_values(user),
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def save_user(self, user: User) -> bool:
        """Write every mutable field of user back in one UPDATE.

        The whole record goes out in a single statement and commit, so a
        profile update is all-or-nothing from the caller's point of view.
        Stamps updated_at on both the row and the passed object.

        Returns True if a row was updated, False if user.id was not found.
        Raises sqlalchemy.exc.IntegrityError if the new email is taken.
        """
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update().where(_users.c.id == user.id).values(**_user_values(user), updated_at=now)
            )
            conn.commit()
        if result.rowcount > 0:
            user.updated_at = now
            return True
        return False

    def count_users(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(text("SELECT COUNT(*) FROM users")).scalar()
        return result or 0

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by /health."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception:
            return False

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        fullname=row.fullname,
        email=row.email,
        phone_number=row.phone_number or "",
        hashed_password=row.hashed_password,
        role=row.role,
        profile=Profile(
            bio=row.bio or "",
            skills=json.loads(row.skills) if row.skills else [],
            resume=row.resume,
            resume_original_name=row.resume_original_name,
            profile_photo=row.profile_photo or "",
        ),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )

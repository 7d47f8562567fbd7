"""
auth/store.py -- SQLAlchemy Core persistence layer for user accounts.

Pattern: Repository + Data Mapper (same as catalog/store.py).
UserStore is the repository; _row_to_user is the mapper.
Service and dependency code never touches SQL directly.

Each method is one atomic statement against the `users` table. Composite
flows (register then email) are sequenced by auth/service.py, not wrapped
in a transaction here.

Security:
  All queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/, catalog/, cache/, mail/, or uploads/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Integer, MetaData, String, Table, Text, func, select
from sqlalchemy.engine import Engine

from auth.models import User, UserType
from core.db import build_engine

_DEFAULT_DB_URL = "sqlite:///shopfront.db"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(250), nullable=False, unique=True),
    Column("username", String(150), nullable=False),
    Column("hashed_password", Text, nullable=False),
    Column("user_type", String(20), nullable=False, server_default=UserType.NORMAL_USER.value),
    Column("is_account_verified", Boolean, nullable=False, server_default="0"),
    Column("verification_token", String(64)),
    Column("reset_password_token", String(64)),
    Column("profile_image", String(255)),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore()
        user_id = store.create(User(email="a@b.c", username="a", hashed_password=hash_password("secret")))
        user = store.find_by_email("a@b.c")
        store.close()
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        self.engine: Engine = build_engine(db_url)
        _metadata.create_all(self.engine)

    def count(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return result or 0

    def create(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        AuthService checks first, so this only fires on a concurrent duplicate.
        """
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    email=user.email,
                    username=user.username,
                    hashed_password=user.hashed_password,
                    user_type=UserType(user.user_type).value,
                    is_account_verified=user.is_account_verified,
                    verification_token=user.verification_token,
                    reset_password_token=user.reset_password_token,
                    profile_image=user.profile_image,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def find_by_email(self, email: str) -> User | None:
        """Look up a user by exact email (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def find_by_id(self, user_id: int) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(self) -> list[User]:
        """Return all users ordered by id. Admin-only operation."""
        with self.engine.connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.id)).fetchall()
        return [_row_to_user(r) for r in rows]

    def save(self, user: User) -> User:
        """Persist every mutable field of an existing user.

        The caller loads, mutates, and saves the whole record -- the same
        find/modify/save cycle for every state transition. Returns the user
        with updated_at refreshed.
        """
        if user.id is None:
            raise ValueError("save() requires a persisted user; use create() for new records")
        user.updated_at = _now_iso()
        with self.engine.connect() as conn:
            conn.execute(
                _users.update()
                .where(_users.c.id == user.id)
                .values(
                    email=user.email,
                    username=user.username,
                    hashed_password=user.hashed_password,
                    user_type=UserType(user.user_type).value,
                    is_account_verified=user.is_account_verified,
                    verification_token=user.verification_token,
                    reset_password_token=user.reset_password_token,
                    profile_image=user.profile_image,
                    updated_at=user.updated_at,
                )
            )
            conn.commit()
        return user

    def remove(self, user_id: int) -> bool:
        """Permanently delete a user record. Returns True if deleted, False if not found.

        The ownership check (self or admin) is the caller's responsibility.
        """
        with self.engine.connect() as conn:
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        username=row.username,
        hashed_password=row.hashed_password,
        user_type=UserType(row.user_type),
        is_account_verified=bool(row.is_account_verified),
        verification_token=row.verification_token,
        reset_password_token=row.reset_password_token,
        profile_image=row.profile_image,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )

"""
auth/store.py -- SQLAlchemy Core persistence layer for users and refresh tokens.

Pattern: Repository + Data Mapper. AuthStore is the repository;
_row_to_user / _row_to_refresh_token are the mappers. Route and service code
never touches SQL directly.

Refresh-token contract used by auth/refresh.py:
  create_refresh_token(token, user_id, expires_at, created_at=None) -> RefreshToken
  find_refresh_token(token)                        -> RefreshToken | None
  revoke_token(token)                              -> bool
  find_user_by_id(user_id)                         -> User | None

Concurrency:
  Every method opens its own connection and runs a single statement (or a
  single transaction for the purge), so calls on different tokens never
  share state. revoke_token() is one UPDATE guarded by "revoked_at IS NULL";
  find_refresh_token() reads revoked_at in the same row fetch as the rest of
  the record. A lookup racing a revoke sees the row either before or after
  the UPDATE, never half-applied.

Security:
  All queries use bound parameters. No f-strings in SQL.

Timestamps are stored as ISO 8601 UTC strings, UUIDs as their canonical
36-char text form.

Layer rule: no imports from api/ or chirps/. core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Column, ForeignKey, Integer, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Engine

from auth.models import RefreshToken, User
from core.clock import Clock, utc_now

logger = logging.getLogger("chirpy.auth.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(36), primary_key=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Column("is_chirpy_red", Integer, nullable=False, server_default="0"),
)

_refresh_tokens = Table(
    "refresh_tokens",
    _metadata,
    Column("token", String(64), primary_key=True),
    Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Column("expires_at", String(32), nullable=False),
    Column("revoked_at", String(32)),  # NULL while the token is usable
)


# ---------------------------------------------------------------------------
# SQLite connection setup
# ---------------------------------------------------------------------------


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode and foreign-key enforcement.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool. foreign_keys=ON makes the refresh_tokens
    ON DELETE CASCADE effective.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")
    dbapi_conn.execute("PRAGMA foreign_keys=ON")


def _iso(dt: datetime) -> str:
    return dt.isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AuthStore:
    """Repository for User and RefreshToken entities.

    Usage:
        store = AuthStore()
        user = store.create_user("a@example.com", hash_password("secret"))
        store.find_user_by_id(user.id)
        store.close()
    """

    def __init__(self, db_url: str, clock: Clock = utc_now) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_sqlite_pragmas)
        self._clock = clock
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # User queries
    # ------------------------------------------------------------------

    def create_user(self, email: str, hashed_password: str) -> User:
        """Insert a new user and return it.

        Raises sqlalchemy.exc.IntegrityError if the email is already taken.
        """
        now = self._clock()
        user = User(id=uuid4(), email=email, hashed_password=hashed_password, created_at=now, updated_at=now)
        with self.engine.connect() as conn:
            conn.execute(
                _users.insert().values(
                    id=str(user.id),
                    email=email,
                    hashed_password=hashed_password,
                    created_at=_iso(now),
                    updated_at=_iso(now),
                    is_chirpy_red=0,
                )
            )
            conn.commit()
        return user

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def find_user_by_id(self, user_id: UUID) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == str(user_id))).fetchone()
        return _row_to_user(row) if row is not None else None

    def update_user(self, user_id: UUID, email: str, hashed_password: str) -> User | None:
        """Replace a user's email and password hash. Returns None if user_id is unknown.

        Raises sqlalchemy.exc.IntegrityError if the new email belongs to
        someone else.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update()
                .where(_users.c.id == str(user_id))
                .values(email=email, hashed_password=hashed_password, updated_at=_iso(self._clock()))
            )
            conn.commit()
        if result.rowcount == 0:
            return None
        return self.find_user_by_id(user_id)

    def upgrade_to_chirpy_red(self, user_id: UUID) -> bool:
        """Set the premium flag. Returns False if user_id is unknown."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update()
                .where(_users.c.id == str(user_id))
                .values(is_chirpy_red=1, updated_at=_iso(self._clock()))
            )
            conn.commit()
        return result.rowcount > 0

    def delete_all_users(self) -> int:
        """Purge every user and every refresh token. Returns the number of users removed.

        This is the only path that deletes refresh-token rows.
        """
        with self.engine.begin() as conn:
            conn.execute(_refresh_tokens.delete())
            result = conn.execute(_users.delete())
        logger.warning("Purged %d user account(s) and all refresh tokens", result.rowcount)
        return result.rowcount

    # ------------------------------------------------------------------
    # Refresh token queries
    # ------------------------------------------------------------------

    def create_refresh_token(
        self,
        token: str,
        user_id: UUID,
        expires_at: datetime,
        created_at: datetime | None = None,
    ) -> RefreshToken:
        """Persist a new, unrevoked refresh token.

        created_at defaults to the store clock; pass it when expires_at was
        derived from another clock reading.

        Raises sqlalchemy.exc.IntegrityError on a token collision or an
        unknown user_id. Collisions are not retried.
        """
        now = created_at or self._clock()
        record = RefreshToken(
            token=token,
            user_id=user_id,
            created_at=now,
            updated_at=now,
            expires_at=expires_at,
        )
        with self.engine.connect() as conn:
            conn.execute(
                _refresh_tokens.insert().values(
                    token=token,
                    user_id=str(user_id),
                    created_at=_iso(now),
                    updated_at=_iso(now),
                    expires_at=_iso(expires_at),
                    revoked_at=None,
                )
            )
            conn.commit()
        return record

    def find_refresh_token(self, token: str) -> RefreshToken | None:
        """Return the stored record for token, whatever its state. None if absent."""
        with self.engine.connect() as conn:
            row = conn.execute(_refresh_tokens.select().where(_refresh_tokens.c.token == token)).fetchone()
        return _row_to_refresh_token(row) if row is not None else None

    def revoke_token(self, token: str) -> bool:
        """Stamp revoked_at on an unrevoked token.

        Returns True if this call revoked it, False if the token was unknown
        or already revoked. The first revocation time is never overwritten.
        """
        now = _iso(self._clock())
        with self.engine.connect() as conn:
            result = conn.execute(
                _refresh_tokens.update()
                .where((_refresh_tokens.c.token == token) & (_refresh_tokens.c.revoked_at.is_(None)))
                .values(revoked_at=now, updated_at=now)
            )
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=UUID(row.id),
        email=row.email,
        hashed_password=row.hashed_password,
        created_at=datetime.fromisoformat(row.created_at),
        updated_at=datetime.fromisoformat(row.updated_at),
        is_chirpy_red=bool(row.is_chirpy_red),
    )


def _row_to_refresh_token(row) -> RefreshToken:
    return RefreshToken(
        token=row.token,
        user_id=UUID(row.user_id),
        created_at=datetime.fromisoformat(row.created_at),
        updated_at=datetime.fromisoformat(row.updated_at),
        expires_at=datetime.fromisoformat(row.expires_at),
        revoked_at=datetime.fromisoformat(row.revoked_at) if row.revoked_at else None,
    )

"""
chirps/store.py -- SQLAlchemy-backed persistence layer for chirps.

Pattern: Repository + Data Mapper, same as auth/store.py. ChirpStore is the
repository, _row_to_chirp the mapper. Route handlers never touch SQL.

Chirps live in their own database (CHIRPS_DB_URL), so the owner column is a
plain UUID string with no foreign key into the auth database. The reset
route purges both stores.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = ChirpStore("sqlite:///chirps.db")
    chirp = store.create_chirp("hello", user_id)
    store.list_chirps(author_id=user_id, descending=True)
    store.delete_chirp(chirp.id)
    store.close()
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Engine

from chirps.models import Chirp
from core.clock import Clock, utc_now

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_chirps = Table(
    "chirps",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("body", Text, nullable=False),
    Column("user_id", String(36), nullable=False, index=True),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ChirpStore:
    def __init__(self, db_url: str, clock: Clock = utc_now) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        self._clock = clock
        metadata.create_all(self.engine)

    def create_chirp(self, body: str, user_id: UUID) -> Chirp:
        """Insert a chirp owned by user_id and return it."""
        now = self._clock()
        chirp = Chirp(id=uuid4(), body=body, user_id=user_id, created_at=now, updated_at=now)
        with self.engine.connect() as conn:
            conn.execute(
                _chirps.insert().values(
                    id=str(chirp.id),
                    body=body,
                    user_id=str(user_id),
                    created_at=now.isoformat(),
                    updated_at=now.isoformat(),
                )
            )
            conn.commit()
        return chirp

    def get_chirp(self, chirp_id: UUID) -> Chirp | None:
        with self.engine.connect() as conn:
            row = conn.execute(_chirps.select().where(_chirps.c.id == str(chirp_id))).fetchone()
        return _row_to_chirp(row) if row is not None else None

    def list_chirps(self, author_id: UUID | None = None, descending: bool = False) -> list[Chirp]:
        """Return chirps ordered by created_at, optionally filtered to one author."""
        query = _chirps.select()
        if author_id is not None:
            query = query.where(_chirps.c.user_id == str(author_id))
        order = _chirps.c.created_at.desc() if descending else _chirps.c.created_at.asc()
        with self.engine.connect() as conn:
            rows = conn.execute(query.order_by(order, _chirps.c.id)).fetchall()
        return [_row_to_chirp(r) for r in rows]

    def delete_chirp(self, chirp_id: UUID) -> bool:
        """Delete one chirp. Returns False if it did not exist.

        Ownership is the caller's responsibility (auth.guard.authorize).
        """
        with self.engine.connect() as conn:
            result = conn.execute(_chirps.delete().where(_chirps.c.id == str(chirp_id)))
            conn.commit()
        return result.rowcount > 0

    def delete_all_chirps(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(_chirps.delete())
            conn.commit()
        return result.rowcount

    def close(self) -> None:
        self.engine.dispose()


def _row_to_chirp(row) -> Chirp:
    return Chirp(
        id=UUID(row.id),
        body=row.body,
        user_id=UUID(row.user_id),
        created_at=datetime.fromisoformat(row.created_at),
        updated_at=datetime.fromisoformat(row.updated_at),
    )

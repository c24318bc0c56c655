"""
auth/store.py -- SQLAlchemy Core persistence layer for auth entities.

Pattern: Repository + Data Mapper.
AuthStore is the repository; _row_to_user / _row_to_refresh_token are the
mappers. Route and session code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Refresh token contract:
  get_refresh_token() returns the raw row whenever the token string exists,
  regardless of expiry or revocation. Validity is decided by auth/sessions.py,
  not here, so every caller applies the same predicate.

  Every write is a single-row statement. A request aborted mid-flight can never
  leave a half-written refresh token behind.

  Revocation is "set revoked_at if it is NULL". Revoking twice succeeds and the
  first timestamp is kept. Rows are never deleted on revoke.

Timestamps are stored as ISO 8601 UTC strings and mapped back to aware datetimes.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

from sqlalchemy import Column, ForeignKey, Integer, MetaData, String, Table, Text, create_engine, event, select
from sqlalchemy.engine import Engine

from auth.models import RefreshToken, User

REFRESH_TOKEN_TTL = timedelta(days=60)

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(36), primary_key=True),  # UUID string form
    Column("email", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("is_chirpy_red", Integer, nullable=False, server_default="0"),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

_refresh_tokens = Table(
    "refresh_tokens",
    _metadata,
    Column("token", String(64), primary_key=True),
    Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Column("expires_at", String(32), nullable=False),
    Column("revoked_at", String(32)),  # NULL until revoked, then never changed
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat()


def _parse(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AuthStore:
    """Repository for User and RefreshToken entities.

    Usage:
        store = AuthStore("sqlite:///chirpy.db")
        uid = store.create_user(User(email="a@b.c", hashed_password=hash_password("secret")))
        store.create_refresh_token(make_refresh_token(), uid)
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            return conn.execute(select(1)).scalar() == 1

    # ------------------------------------------------------------------
    # User queries
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> UUID:
        """Insert a new user and return its freshly generated UUID.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        """
        user_id = uuid4()
        stamp = _iso(_now())
        with self.engine.connect() as conn:
            conn.execute(
                _users.insert().values(
                    id=str(user_id),
                    email=user.email,
                    hashed_password=user.hashed_password,
                    is_chirpy_red=1 if user.is_chirpy_red else 0,
                    created_at=stamp,
                    updated_at=stamp,
                )
            )
            conn.commit()
        return user_id

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: UUID) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == str(user_id))).fetchone()
        return _row_to_user(row) if row is not None else None

    def update_credentials(self, user_id: UUID, email: str, hashed_password: str) -> User | None:
        """Replace a user's email and password hash. Returns the updated user or None.

        Raises sqlalchemy.exc.IntegrityError if the new email belongs to someone else.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update()
                .where(_users.c.id == str(user_id))
                .values(email=email, hashed_password=hashed_password, updated_at=_iso(_now()))
            )
            conn.commit()
        if result.rowcount == 0:
            return None
        return self.get_by_id(user_id)

    def upgrade_to_chirpy_red(self, user_id: UUID) -> bool:
        """Set the Chirpy Red flag. Returns False if the user does not exist."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update()
                .where(_users.c.id == str(user_id))
                .values(is_chirpy_red=1, updated_at=_iso(_now()))
            )
            conn.commit()
        return result.rowcount > 0

    def delete_users(self) -> int:
        """Delete every user and every refresh token. Dev reset only.

        Refresh tokens go first; SQLite does not enforce ON DELETE CASCADE
        unless the foreign_keys pragma is on.
        """
        with self.engine.connect() as conn:
            conn.execute(_refresh_tokens.delete())
            result = conn.execute(_users.delete())
            conn.commit()
        return result.rowcount

    # ------------------------------------------------------------------
    # Refresh token queries
    # ------------------------------------------------------------------

    def create_refresh_token(
        self,
        token: str,
        user_id: UUID,
        expires_in: timedelta = REFRESH_TOKEN_TTL,
    ) -> RefreshToken:
        """Persist a new refresh token for user_id, expiring expires_in from now."""
        now = _now()
        record = RefreshToken(
            token=token,
            user_id=user_id,
            created_at=now,
            updated_at=now,
            expires_at=now + expires_in,
        )
        with self.engine.connect() as conn:
            conn.execute(
                _refresh_tokens.insert().values(
                    token=record.token,
                    user_id=str(record.user_id),
                    created_at=_iso(now),
                    updated_at=_iso(now),
                    expires_at=_iso(record.expires_at),
                    revoked_at=None,
                )
            )
            conn.commit()
        return record

    def get_refresh_token(self, token: str) -> RefreshToken | None:
        """Return the stored record for token (revoked or expired included), or None."""
        with self.engine.connect() as conn:
            row = conn.execute(_refresh_tokens.select().where(_refresh_tokens.c.token == token)).fetchone()
        return _row_to_refresh_token(row) if row is not None else None

    def revoke_refresh_token(self, token: str) -> bool:
        """Mark token revoked. Returns True if the token exists, False if not.

        The UPDATE only touches rows whose revoked_at is still NULL, so an
        already-revoked token keeps its original timestamp. Zero rows updated is
        then ambiguous; a follow-up read tells "already revoked" from "unknown".
        """
        stamp = _iso(_now())
        with self.engine.connect() as conn:
            result = conn.execute(
                _refresh_tokens.update()
                .where((_refresh_tokens.c.token == token) & (_refresh_tokens.c.revoked_at.is_(None)))
                .values(revoked_at=stamp, updated_at=stamp)
            )
            conn.commit()
            if result.rowcount > 0:
                return True
            exists = conn.execute(
                select(_refresh_tokens.c.token).where(_refresh_tokens.c.token == token)
            ).fetchone()
        return exists is not None

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
        is_chirpy_red=bool(row.is_chirpy_red),
        created_at=_parse(row.created_at),
        updated_at=_parse(row.updated_at),
    )


def _row_to_refresh_token(row) -> RefreshToken:
    return RefreshToken(
        token=row.token,
        user_id=UUID(row.user_id),
        created_at=_parse(row.created_at),
        updated_at=_parse(row.updated_at),
        expires_at=_parse(row.expires_at),
        revoked_at=_parse(row.revoked_at),
    )

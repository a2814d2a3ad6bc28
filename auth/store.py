"""
auth/store.py -- SQLAlchemy Core persistence layer for user records.

Pattern: Repository + Data Mapper.
UserStore is the repository; _row_to_user is the mapper. The service and the
routes never touch SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  hashed_refresh_token NULL vs. "not provided": set_refresh_token_hash() always
  names the column in its UPDATE, so passing None writes SQL NULL. There is no
  generic partial-update method that could drop the field when its value is
  None and leave a signed-out session usable.

DB path: auth/bucketlist_auth.db unless DATABASE_URL is set.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine

from auth.models import User

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'bucketlist_auth.db'}"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(50), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("hashed_refresh_token", Text, nullable=True),  # NULL = signed out
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers are not blocked by a writer.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore()
        user = store.create_user("alice", hash_secret("Secret123!"))
        store.set_refresh_token_hash(user.id, hash_secret(refresh_token))
        store.close()
    """

    def __init__(self, db_url: str = "") -> None:
        db_url = db_url or _DEFAULT_DB_URL
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

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_user(self, username: str, hashed_password: str) -> User:
        """Insert a new user with no active session and return it.

        Raises sqlalchemy.exc.IntegrityError if the username already exists.
        The service catches it as the losing side of a concurrent signup.
        """
        if not hashed_password:
            raise ValueError("hashed_password must not be empty")
        created_at = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    username=username,
                    hashed_password=hashed_password,
                    hashed_refresh_token=None,
                    created_at=created_at,
                )
            )
            conn.commit()
        return User(
            id=result.inserted_primary_key[0],
            username=username,
            hashed_password=hashed_password,
            hashed_refresh_token=None,
            created_at=created_at,
        )

    def set_refresh_token_hash(self, user_id: int, hashed_token: str | None) -> User | None:
        """Replace the stored refresh token hash. None clears it to SQL NULL.

        A single UPDATE, so each write is atomic per row; concurrent writers
        resolve as last-writer-wins. Returns the updated user, or None if
        user_id does not exist.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update().where(_users.c.id == user_id).values(hashed_refresh_token=hashed_token)
            )
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
            conn.commit()
        if result.rowcount == 0 or row is None:
            return None
        return _row_to_user(row)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        hashed_password=row.hashed_password,
        hashed_refresh_token=row.hashed_refresh_token,
        created_at=row.created_at,
    )

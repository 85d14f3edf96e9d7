"""SQLite storage for users, balances, transactions and revoked tokens."""

from __future__ import annotations

import os
import sqlite3
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_PATH = "ewallet.db"

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    email TEXT NOT NULL UNIQUE,
    phone_number TEXT NOT NULL,
    password TEXT NOT NULL,
    pin TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS user_balance (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    id_user INTEGER NOT NULL,
    balance REAL NOT NULL,
    created_at REAL NOT NULL
);
CREATE TABLE IF NOT EXISTS transactions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    transactions_date REAL NOT NULL,
    nominal REAL NOT NULL,
    type TEXT NOT NULL,
    id_user INTEGER NOT NULL,
    id_other_user INTEGER NOT NULL,
    notes TEXT NOT NULL DEFAULT ''
);
CREATE TABLE IF NOT EXISTS blacklist_tokens (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    token TEXT NOT NULL,
    expires_at REAL NOT NULL
);
"""


def to_timestamp(moment: datetime) -> float:
    """Return the POSIX timestamp stored for a moment in time."""
    return moment.timestamp()


def from_timestamp(value: float) -> datetime:
    """Return the UTC moment for a stored POSIX timestamp."""
    return datetime.fromtimestamp(value, timezone.utc)


def utc_now() -> datetime:
    """Return the current moment as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class Database:
    """A single shared SQLite connection guarded by a lock."""

    def __init__(self, path: str | Path = ":memory:") -> None:
        self.path = str(path)
        self._conn = sqlite3.connect(self.path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.RLock()

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Yield the connection; commit on success, roll back on error."""
        with self._lock:
            try:
                yield self._conn
            except BaseException:
                self._conn.rollback()
                raise
            else:
                self._conn.commit()

    def create_schema(self) -> None:
        """Create the tables if they do not exist yet."""
        with self._lock:
            self._conn.executescript(SCHEMA)

    def close(self) -> None:
        """Close the underlying connection."""
        with self._lock:
            self._conn.close()


def database_from_env(environ: Mapping[str, str] | None = None) -> Database:
    """Open the database named by DATABASE_PATH and make sure its schema exists."""
    if environ is None:
        load_dotenv()
        environ = os.environ
    db = Database(environ.get("DATABASE_PATH", DEFAULT_PATH))
    db.create_schema()
    return db
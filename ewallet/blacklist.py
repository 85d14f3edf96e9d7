"""Revoked access tokens."""

from __future__ import annotations

from datetime import datetime

from ewallet.db import Database, to_timestamp, utc_now


def add_to_blacklist(db: Database, token: str, expires_at: datetime) -> None:
    """Revoke a token until the moment it would have expired anyway."""
    with db.connection() as conn:
        conn.execute(
            "INSERT INTO blacklist_tokens (token, expires_at) VALUES (?, ?)",
            (token, to_timestamp(expires_at)),
        )


def is_token_blacklisted(db: Database, token: str, now: datetime | None = None) -> bool:
    """Tell whether a token is revoked and its revocation is still in force."""
    moment = to_timestamp(now or utc_now())
    with db.connection() as conn:
        row = conn.execute(
            "SELECT EXISTS (SELECT 1 FROM blacklist_tokens WHERE token = ? AND expires_at > ?)",
            (token, moment),
        ).fetchone()
    return bool(row[0])


def clean_blacklist(db: Database, now: datetime | None = None) -> int:
    """Drop revocations that have expired and return how many were removed."""
    moment = to_timestamp(now or utc_now())
    with db.connection() as conn:
        cursor = conn.execute("DELETE FROM blacklist_tokens WHERE expires_at <= ?", (moment,))
    return cursor.rowcount
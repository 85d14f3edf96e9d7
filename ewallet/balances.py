"""Account balance snapshots."""

from __future__ import annotations

from ewallet.db import Database, to_timestamp, utc_now


def make_account_balance(db: Database, user_id: int, balance: float) -> None:
    """Record a new balance snapshot for a user."""
    with db.connection() as conn:
        conn.execute(
            "INSERT INTO user_balance (id_user, balance, created_at) VALUES (?, ?, ?)",
            (user_id, float(balance), to_timestamp(utc_now())),
        )


def latest_balance(db: Database, user_id: int) -> float:
    """Return the most recent balance of a user, or 0.0 if there is none."""
    with db.connection() as conn:
        row = conn.execute(
            """
            SELECT balance FROM user_balance WHERE id_user = ?
            ORDER BY created_at DESC, id DESC
            LIMIT 1
            """,
            (user_id,),
        ).fetchone()
    return float(row["balance"]) if row is not None else 0.0
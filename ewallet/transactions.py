"""Top-ups, transfers, transaction histories and weekly totals."""

from __future__ import annotations

import sqlite3
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from ewallet.balances import latest_balance, make_account_balance
from ewallet.db import Database, from_timestamp, to_timestamp, utc_now
from ewallet.users import PAGE_SIZE, PageData, page_offset, paginate

SUMMARY_WINDOW = timedelta(days=7)


class InsufficientBalanceError(ValueError):
    """Raised when a sender cannot cover a transfer."""

    def __init__(self, message: str = "insufficient balance") -> None:
        super().__init__(message)


def _number(value: Any) -> float:
    return float(value) if value not in (None, "") else 0.0


@dataclass
class TopUpRequest:
    """Money added to one's own account."""

    nominal: float = 0.0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> TopUpRequest:
        """Build a request from form or JSON fields."""
        return cls(nominal=_number(data.get("nominal")))


@dataclass
class TransferRequest:
    """Money sent to another user."""

    nominal: float = 0.0
    other_user_id: int = 0
    notes: str = ""

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> TransferRequest:
        """Build a request from form or JSON fields."""
        return cls(
            nominal=_number(data.get("nominal")),
            other_user_id=int(_number(data.get("otherUserId"))),
            notes=str(data.get("notes") or ""),
        )


@dataclass
class Transaction:
    """One entry of a user's transaction history."""

    transactions_date: datetime
    nominal: float
    type: str
    notes: str
    id_other_user: int
    other_user_name: str
    other_user_email: str
    other_user_phone: str

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> Transaction:
        return cls(
            transactions_date=from_timestamp(row["transactions_date"]),
            nominal=float(row["nominal"]),
            type=row["type"],
            notes=row["notes"],
            id_other_user=row["id_other_user"],
            other_user_name=row["other_user_name"],
            other_user_email=row["other_user_email"],
            other_user_phone=row["other_user_phone"],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "transactionDate": self.transactions_date.isoformat(),
            "nominal": self.nominal,
            "type": self.type,
            "notes": self.notes,
            "idOtherUser": self.id_other_user,
            "otherUserName": self.other_user_name,
            "otherUserEmail": self.other_user_email,
            "otherUserPhone": self.other_user_phone,
        }


def _record(db: Database, nominal: float, kind: str, user_id: int, other_user_id: int, notes: str) -> None:
    with db.connection() as conn:
        conn.execute(
            """
            INSERT INTO transactions (transactions_date, nominal, type, id_user, id_other_user, notes)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (to_timestamp(utc_now()), float(nominal), kind, user_id, other_user_id, notes),
        )


def top_up(db: Database, request: TopUpRequest, user_id: int) -> None:
    """Add money to a user's own account."""
    _record(db, request.nominal, "income", user_id, user_id, "top up")
    make_account_balance(db, user_id, latest_balance(db, user_id) + request.nominal)


def transfer(db: Database, request: TransferRequest, user_id: int) -> None:
    """Move money from a user to another one."""
    sender_balance = latest_balance(db, user_id)
    if sender_balance < request.nominal:
        raise InsufficientBalanceError()
    _record(db, request.nominal, "expense", user_id, request.other_user_id, request.notes)
    make_account_balance(db, user_id, sender_balance - request.nominal)
    receiver_balance = latest_balance(db, request.other_user_id)
    make_account_balance(db, request.other_user_id, receiver_balance + request.nominal)


_EXPENSE_COUNT = "SELECT COUNT(*) AS count FROM transactions WHERE type = 'expense' AND id_user = :uid"

_EXPENSE_ROWS = """
SELECT t.transactions_date, t.nominal, t.type, t.notes, t.id_other_user,
       u.name AS other_user_name,
       u.email AS other_user_email,
       u.phone_number AS other_user_phone
FROM transactions t
JOIN users u ON u.id = t.id_other_user
WHERE t.id_user = :uid
ORDER BY t.transactions_date DESC, t.id DESC
LIMIT :limit OFFSET :offset
"""

_INCOME_COUNT = "SELECT COUNT(*) AS count FROM transactions WHERE id_other_user = :uid"

_INCOME_ROWS = """
SELECT t.transactions_date, t.nominal,
       CASE
           WHEN t.type = 'income' THEN 'income'
           WHEN t.type = 'expense' AND t.id_other_user = :uid THEN 'income'
       END AS type,
       t.notes,
       t.id_user AS id_other_user,
       u.name AS other_user_name,
       u.email AS other_user_email,
       u.phone_number AS other_user_phone
FROM transactions t
JOIN users u ON u.id = t.id_user
WHERE t.id_other_user = :uid
ORDER BY t.transactions_date DESC, t.id DESC
LIMIT :limit OFFSET :offset
"""

_ALL_COUNT = "SELECT COUNT(*) AS count FROM transactions WHERE id_user = :uid OR id_other_user = :uid"

_COUNTERPART = """
CASE
    WHEN t.type = 'income' THEN t.id_user
    WHEN t.type = 'expense' AND t.id_user = :uid THEN t.id_other_user
    WHEN t.type = 'expense' AND t.id_other_user = :uid THEN t.id_user
END
"""

_ALL_ROWS = f"""
SELECT t.transactions_date, t.nominal,
       CASE
           WHEN t.type = 'income' THEN 'income'
           WHEN t.type = 'expense' AND t.id_user = :uid THEN 'expense'
           WHEN t.type = 'expense' AND t.id_other_user = :uid THEN 'income'
       END AS type,
       t.notes,
       {_COUNTERPART} AS id_other_user,
       u.name AS other_user_name,
       u.email AS other_user_email,
       u.phone_number AS other_user_phone
FROM transactions t
JOIN users u ON u.id = ({_COUNTERPART})
WHERE t.id_user = :uid OR t.id_other_user = :uid
ORDER BY t.transactions_date DESC, t.id DESC
LIMIT :limit OFFSET :offset
"""


def _page(db: Database, count_sql: str, rows_sql: str, user_id: int, page: int) -> tuple[list[Transaction], PageData]:
    with db.connection() as conn:
        total = conn.execute(count_sql, {"uid": user_id}).fetchone()["count"]
        page_data = paginate(total, page)
        offset = page_offset(page)
        rows = conn.execute(rows_sql, {"uid": user_id, "limit": PAGE_SIZE, "offset": offset}).fetchall()
    return [Transaction.from_row(row) for row in rows], page_data


def expense_history(db: Database, user_id: int, page: int) -> tuple[list[Transaction], PageData]:
    """Return one page of the transactions a user started, newest first."""
    return _page(db, _EXPENSE_COUNT, _EXPENSE_ROWS, user_id, page)


def income_history(db: Database, user_id: int, page: int) -> tuple[list[Transaction], PageData]:
    """Return one page of the money a user received, newest first."""
    return _page(db, _INCOME_COUNT, _INCOME_ROWS, user_id, page)


def history(db: Database, user_id: int, page: int) -> tuple[list[Transaction], PageData]:
    """Return one page of all of a user's transactions, newest first."""
    return _page(db, _ALL_COUNT, _ALL_ROWS, user_id, page)


def _window_sum(db: Database, condition: str, user_id: int, now: datetime | None) -> tuple[float, datetime, datetime]:
    end = now or utc_now()
    start = end - SUMMARY_WINDOW
    with db.connection() as conn:
        row = conn.execute(
            f"""
            SELECT SUM(nominal) AS total FROM transactions
            WHERE transactions_date BETWEEN :start AND :end AND ({condition})
            """,
            {"start": to_timestamp(start), "end": to_timestamp(end), "uid": user_id},
        ).fetchone()
    total = row["total"]
    return (float(total) if total is not None else 0.0), end, start


def total_income(db: Database, user_id: int, now: datetime | None = None) -> tuple[float, datetime, datetime]:
    """Return the money received in the last seven days, the end and the start of that window."""
    return _window_sum(
        db,
        "(type = 'income' AND id_user = :uid) OR (type = 'expense' AND id_other_user = :uid)",
        user_id,
        now,
    )


def total_expense(db: Database, user_id: int, now: datetime | None = None) -> tuple[float, datetime, datetime]:
    """Return the money sent in the last seven days, the end and the start of that window."""
    return _window_sum(db, "type = 'expense' AND id_user = :uid", user_id, now)
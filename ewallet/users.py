"""Users: registration, profile updates, lookups and searching."""

from __future__ import annotations

import sqlite3
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ewallet.balances import make_account_balance
from ewallet.db import Database
from ewallet.responses import UserSummary

PAGE_SIZE = 5


class EmptyUserDataError(ValueError):
    """Raised when a required user field is blank."""

    def __init__(self, message: str = "user data should not be empty") -> None:
        super().__init__(message)


class EmailInUseError(ValueError):
    """Raised when an e-mail address belongs to another user."""

    def __init__(self, message: str = "email already used by another user") -> None:
        super().__init__(message)


class UserNotFoundError(LookupError):
    """Raised when no user matches a lookup."""


@dataclass
class User:
    """A registered wallet user."""

    id: int = 0
    name: str = ""
    email: str = ""
    phone_number: str = ""
    password: str = ""
    pin: str = ""

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> User:
        """Build a user from request fields, missing ones left blank."""
        return cls(
            name=str(data.get("name") or ""),
            email=str(data.get("email") or ""),
            phone_number=str(data.get("phoneNumber") or ""),
            password=str(data.get("password") or ""),
            pin=str(data.get("pin") or ""),
        )

    @property
    def is_complete(self) -> bool:
        return all((self.email, self.name, self.password, self.phone_number, self.pin))


@dataclass
class PageData:
    """Pagination details for a listing."""

    total_data: int
    total_page: int
    current_page: int

    def to_dict(self) -> dict[str, int]:
        return {
            "totalData": self.total_data,
            "totalPage": self.total_page,
            "currentPage": self.current_page,
        }


def paginate(total: int, page: int) -> PageData:
    """Describe the page requested out of total rows, five rows to a page."""
    current = page
    if page == 0 or page * PAGE_SIZE - total < PAGE_SIZE:
        current = 1
    total_page = -(-total // PAGE_SIZE)
    return PageData(total_data=total, total_page=total_page, current_page=current)


def page_offset(page: int) -> int:
    """Return the row offset of a page; pages start at 1."""
    offset = (page - 1) * PAGE_SIZE
    if offset < 0:
        raise ValueError("page must be at least 1")
    return offset


def _is_unique_violation(error: sqlite3.IntegrityError) -> bool:
    return "unique constraint" in str(error).lower()


def _user_from_row(row: sqlite3.Row) -> User:
    return User(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        phone_number=row["phone_number"],
        password=row["password"],
        pin=row["pin"],
    )


def register(db: Database, user: User) -> User:
    """Store a new user with a zero balance and return it with its id."""
    if not user.is_complete:
        raise EmptyUserDataError()
    try:
        with db.connection() as conn:
            conn.execute(
                "INSERT INTO users (name, email, phone_number, password, pin) VALUES (?, ?, ?, ?, ?)",
                (user.name, user.email, user.phone_number, user.password, user.pin),
            )
    except sqlite3.IntegrityError as error:
        if _is_unique_violation(error):
            raise EmailInUseError() from error
        raise
    stored = get_user_by_email(db, user.email)
    make_account_balance(db, stored.id, 0.0)
    return stored


def update_user(db: Database, user: User, user_id: int) -> None:
    """Replace every profile field of the user with the given id."""
    if not user.is_complete:
        raise EmptyUserDataError()
    try:
        with db.connection() as conn:
            conn.execute(
                """
                UPDATE users SET email = ?, name = ?, password = ?, phone_number = ?, pin = ?
                WHERE id = ?
                """,
                (user.email, user.name, user.password, user.phone_number, user.pin, user_id),
            )
    except sqlite3.IntegrityError as error:
        if _is_unique_violation(error):
            raise EmailInUseError() from error
        raise


def get_user_by_email(db: Database, email: str) -> User:
    """Return the user with this e-mail address."""
    with db.connection() as conn:
        row = conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()
    if row is None:
        raise UserNotFoundError(f"no user with email {email!r}")
    return _user_from_row(row)


def get_user(db: Database, user_id: int) -> User:
    """Return the user with this id."""
    with db.connection() as conn:
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
    if row is None:
        raise UserNotFoundError(f"no user with id {user_id}")
    return _user_from_row(row)


def list_users(db: Database, search: str, page: int) -> tuple[list[UserSummary], PageData]:
    """Return one page of users whose name or phone number contains search."""
    pattern = f"%{search}%"
    with db.connection() as conn:
        total = conn.execute(
            "SELECT COUNT(*) AS count FROM users WHERE name LIKE ? OR phone_number LIKE ?",
            (pattern, pattern),
        ).fetchone()["count"]
        page_data = paginate(total, page)
        offset = page_offset(page)
        rows = conn.execute(
            """
            SELECT id, name, email, phone_number FROM users
            WHERE name LIKE ? OR phone_number LIKE ?
            ORDER BY id
            LIMIT ? OFFSET ?
            """,
            (pattern, pattern, PAGE_SIZE, offset),
        ).fetchall()
    users = [
        UserSummary(id=row["id"], name=row["name"], email=row["email"], phone_number=row["phone_number"])
        for row in rows
    ]
    return users, page_data
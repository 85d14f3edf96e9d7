"""Signed access tokens."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

import jwt

from ewallet.db import utc_now
from ewallet.users import User

TOKEN_LIFETIME = timedelta(minutes=15)
ALGORITHM = "HS256"


class InvalidTokenError(ValueError):
    """Raised when a token is malformed, forged or expired."""


def generate_token(user: User, secret: str, now: datetime | None = None) -> str:
    """Return a token naming the user that expires fifteen minutes after now."""
    issued = now or utc_now()
    claims = {
        "userId": user.id,
        "iat": int(issued.timestamp()),
        "exp": int((issued + TOKEN_LIFETIME).timestamp()),
    }
    return jwt.encode(claims, secret, algorithm=ALGORITHM)


def decode_token(token: str, secret: str) -> dict[str, Any]:
    """Verify a token and return its claims."""
    try:
        return jwt.decode(token, secret, algorithms=[ALGORITHM], options={"verify_iat": False})
    except jwt.PyJWTError as error:
        raise InvalidTokenError(str(error)) from error
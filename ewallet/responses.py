"""JSON response envelopes returned by the HTTP handlers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


def _plain(value: Any) -> Any:
    """Turn nested response values into JSON-ready data."""
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    return value


@dataclass
class Response:
    """The envelope every endpoint answers with."""

    success: bool
    message: str
    errors: Any = None
    page_info: Any = None
    result: Any = None

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"success": self.success, "message": self.message}
        for key, value in (("errors", self.errors), ("pageInfo", self.page_info), ("results", self.result)):
            if value is not None:
                body[key] = _plain(value)
        return body


@dataclass
class UserSummary:
    """The public view of a user in listings."""

    id: int
    name: str
    email: str
    phone_number: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phoneNumber": self.phone_number,
        }
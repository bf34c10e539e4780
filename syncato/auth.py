"""Authenticated principal record consumed by the storage layer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple

__all__ = ["AuthResource", "home_segments"]


@dataclass(frozen=True)
class AuthResource:
    """Details of an already authenticated user.

    Only ``username`` and ``auth_id`` matter to storage providers: together
    they select the user's home (``<root>/<auth_id>/<username>``).

    Attributes:
        username: The ID of the user within its auth provider
        auth_id: ID of the authentication provider that authenticated the user
        display_name: User-friendly name
        email: Email address of the user
        extra: Provider-specific attributes
    """

    username: str
    auth_id: str
    display_name: str = ""
    email: str = ""
    extra: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "username": self.username,
            "display_name": self.display_name,
            "email": self.email,
            "auth_id": self.auth_id,
            "extra": self.extra,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuthResource":
        return cls(
            username=data["username"],
            auth_id=data["auth_id"],
            display_name=data.get("display_name", ""),
            email=data.get("email", ""),
            extra=data.get("extra"),
        )


def home_segments(auth_res: AuthResource) -> Tuple[str, str]:
    """Return the (auth_id, username) path segments of a user's home.

    Raises:
        ValueError: If either value is not a single, plain path segment
    """
    for label, value in (("auth_id", auth_res.auth_id), ("username", auth_res.username)):
        if not value or value in (".", "..") or "/" in value or "\\" in value or "\x00" in value:
            raise ValueError(f"Invalid {label} for storage home: {value!r}")
    return auth_res.auth_id, auth_res.username

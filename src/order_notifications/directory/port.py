"""User directory port: Resolves a user id to contact details."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class UserDetails:
    """Contact details of a platform user."""

    id: int
    username: str
    email: str | None
    active: bool = True

    @classmethod
    def from_dict(cls, data: dict) -> "UserDetails":
        return cls(
            id=int(data["id"]),
            username=data.get("username") or "",
            email=data.get("email") or None,
            active=bool(data.get("isActive", data.get("active", True))),
        )


class UserDirectoryError(Exception):
    """The user directory could not be queried."""

    def __init__(self, user_id: int, message: str) -> None:
        super().__init__(message)
        self.user_id = user_id


class UserDirectory(ABC):
    """Abstract interface for user directory clients."""

    @abstractmethod
    def get_user(self, user_id: int) -> UserDetails | None:
        """Return the user, or None when the directory has no such user.

        Raises:
            UserDirectoryError: the directory is unavailable or answered with
                an unexpected response.
        """
        ...

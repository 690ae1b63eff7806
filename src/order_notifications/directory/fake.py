"""Fake user directory: Serves users registered in memory."""

from order_notifications.directory.port import UserDetails, UserDirectory, UserDirectoryError


class FakeUserDirectory(UserDirectory):
    """User directory backed by a dict, for development and tests."""

    def __init__(self, users: list[UserDetails] | None = None):
        self.users: dict[int, UserDetails] = {u.id: u for u in users or []}
        self.available = True
        self.lookups: list[int] = []

    def add_user(self, user_id: int, username: str, email: str | None, active: bool = True) -> UserDetails:
        user = UserDetails(id=user_id, username=username, email=email, active=active)
        self.users[user_id] = user
        return user

    def set_available(self, available: bool) -> None:
        """Simulate the directory going down (False) or coming back (True)."""
        self.available = available

    def get_user(self, user_id: int) -> UserDetails | None:
        self.lookups.append(user_id)
        if not self.available:
            raise UserDirectoryError(user_id, "User directory unavailable")
        return self.users.get(user_id)

    def reset(self):
        self.users.clear()
        self.lookups.clear()
        self.available = True

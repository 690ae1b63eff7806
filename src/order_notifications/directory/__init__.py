"""User directory clients.

``HttpUserDirectory`` talks to the auth service; ``FakeUserDirectory`` keeps
users in memory for development and tests.
"""

from order_notifications.directory.fake import FakeUserDirectory
from order_notifications.directory.http_client import HttpUserDirectory
from order_notifications.directory.port import UserDetails, UserDirectory, UserDirectoryError

__all__ = [
    "FakeUserDirectory",
    "HttpUserDirectory",
    "UserDetails",
    "UserDirectory",
    "UserDirectoryError",
    "lookup_recipient",
]


def lookup_recipient(directory: UserDirectory, user_id: int, logger) -> UserDetails | None:
    """Resolve ``user_id`` to a user with an e-mail address.

    Returns None, after logging a warning, when the directory is unavailable,
    has no such user, or the user has no e-mail address. Never retries.
    """
    try:
        user = directory.get_user(user_id)
    except UserDirectoryError as e:
        logger.warning("User directory lookup failed", user_id=user_id, error=str(e))
        return None

    if user is None or not user.email:
        logger.warning("Could not find user details or email", user_id=user_id)
        return None

    return user

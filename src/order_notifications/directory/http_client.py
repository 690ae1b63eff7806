"""HTTP user directory client for the auth service."""

from typing import Any

import httpx
import structlog
from order_notifications.directory.port import UserDetails, UserDirectory, UserDirectoryError

logger = structlog.get_logger(__name__)


class HttpUserDirectory(UserDirectory):
    """Looks users up through ``GET /api/auth/users/{id}``."""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url,
            headers={"Accept": "application/json"},
            timeout=timeout_seconds,
            transport=transport,
        )

    def get_user(self, user_id: int) -> UserDetails | None:
        try:
            resp = self._client.get(f"/api/auth/users/{user_id}")
        except httpx.HTTPError as e:
            raise UserDirectoryError(user_id, f"User directory unavailable: {e}") from e

        if resp.status_code == 404:
            logger.info("User not found in directory", user_id=user_id)
            return None
        if resp.status_code >= 400:
            raise UserDirectoryError(user_id, f"User directory returned HTTP {resp.status_code}: {resp.text}")

        try:
            data: dict[str, Any] = resp.json()
            return UserDetails.from_dict(data)
        except (ValueError, KeyError, TypeError) as e:
            raise UserDirectoryError(user_id, f"Malformed user directory response: {e}") from e

    def close(self) -> None:
        self._client.close()

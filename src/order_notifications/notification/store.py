"""NotificationStore: The persistence contract the pipeline depends on.

Wraps the Protean repository so it can be used from any thread: every call
pushes the domain context it was constructed with, and all access to the
underlying provider is serialized through a single re-entrant lock.
Updates are load-modify-save under that lock, so a delivery outcome racing a
read-marking call cannot overwrite the other's fields.
"""

import threading
from collections.abc import Callable

from order_notifications.notification.notification import Notification, NotificationStatus
from order_notifications.notification.repository import DEFAULT_PAGE_SIZE
from protean.domain import Domain
from protean.exceptions import ObjectNotFoundError


class NotificationStore:
    """Create/read/update access to Notification records. Owns no business rules."""

    def __init__(self, domain: Domain) -> None:
        self._domain = domain
        self._lock = threading.RLock()

    def _repository(self):
        return self._domain.repository_for(Notification)

    def domain_context(self):
        """Domain context for building aggregates outside a store call, e.g. on a consumer thread."""
        return self._domain.domain_context()

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    def add(self, notification: Notification) -> Notification:
        with self._lock, self._domain.domain_context():
            self._repository().add(notification)
        return notification

    def update(self, notification_id: str, mutate: Callable[[Notification], object]) -> Notification:
        """Load the current record, apply ``mutate`` to it and save it.

        Raises ObjectNotFoundError when the record does not exist.
        """
        with self._lock, self._domain.domain_context():
            repo = self._repository()
            notification = repo.get(notification_id)
            mutate(notification)
            repo.add(notification)
            return notification

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def get(self, notification_id: str) -> Notification | None:
        with self._lock, self._domain.domain_context():
            try:
                return self._repository().get(notification_id)
            except ObjectNotFoundError:
                return None

    def find_by_user(self, user_id: int, limit: int = DEFAULT_PAGE_SIZE) -> list[Notification]:
        with self._lock, self._domain.domain_context():
            return self._repository().find_by_user(user_id, limit=limit)

    def find_by_order(self, order_id: int, user_id: int | None = None, limit: int = DEFAULT_PAGE_SIZE):
        with self._lock, self._domain.domain_context():
            repo = self._repository()
            if user_id is None:
                return repo.find_by_order(order_id, limit=limit)
            return repo.find_by_order_for_user(order_id, user_id, limit=limit)

    def find_latest_for_order(self, order_id: int) -> Notification | None:
        with self._lock, self._domain.domain_context():
            return self._repository().find_latest_for_order(order_id)

    def find_pending(self, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0) -> list[Notification]:
        with self._lock, self._domain.domain_context():
            return self._repository().find_pending(limit=limit, offset=offset)

    def count_for_user(self, user_id: int, status: NotificationStatus | None = None) -> int:
        with self._lock, self._domain.domain_context():
            return self._repository().count_for_user(user_id, status=status)

    def count_by_status(self, status: NotificationStatus) -> int:
        with self._lock, self._domain.domain_context():
            return self._repository().count_by_status(status)

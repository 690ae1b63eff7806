"""Repository for the Notification aggregate."""

from order_notifications.domain import order_notifications
from order_notifications.notification.notification import Notification, NotificationStatus

DEFAULT_PAGE_SIZE = 100


@order_notifications.repository(part_of=Notification)
class NotificationRepository:
    """Query methods on top of the base repository's CRUD operations."""

    def find_by_user(self, user_id: int, limit: int = DEFAULT_PAGE_SIZE) -> list[Notification]:
        """A user's notifications, newest first."""
        return self._dao.query.filter(user_id=user_id).order_by("-created_at").limit(limit).all().items

    def find_by_order(self, order_id: int, limit: int = DEFAULT_PAGE_SIZE) -> list[Notification]:
        """All notifications for an order regardless of owner, newest first."""
        return self._dao.query.filter(order_id=order_id).order_by("-created_at").limit(limit).all().items

    def find_by_order_for_user(
        self, order_id: int, user_id: int, limit: int = DEFAULT_PAGE_SIZE
    ) -> list[Notification]:
        """Notifications for an order that belong to ``user_id``, newest first."""
        return (
            self._dao.query.filter(order_id=order_id, user_id=user_id)
            .order_by("-created_at")
            .limit(limit)
            .all()
            .items
        )

    def find_latest_for_order(self, order_id: int) -> Notification | None:
        return self._dao.query.filter(order_id=order_id).order_by("-created_at").limit(1).all().first

    def find_pending(self, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0) -> list[Notification]:
        """PENDING notifications, oldest first, one page at a time."""
        return (
            self._dao.query.filter(status=NotificationStatus.PENDING.value)
            .order_by("created_at")
            .offset(offset)
            .limit(limit)
            .all()
            .items
        )

    def count_for_user(self, user_id: int, status: NotificationStatus | None = None) -> int:
        criteria = {"user_id": user_id}
        if status is not None:
            criteria["status"] = status.value
        return self._dao.query.filter(**criteria).all().total

    def count_by_status(self, status: NotificationStatus) -> int:
        return self._dao.query.filter(status=status.value).all().total

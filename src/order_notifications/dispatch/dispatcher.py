"""DeliveryDispatcher: Sends notifications on a bounded pool of mail workers.

Each ``submit()`` is exactly one delivery attempt. The worker sends the mail,
classifies any failure, hands the outcome to the outcome handler (the status
tracker) and only then resolves the returned future, so a resolved future
means the notification record already reflects the outcome.

There is no automatic retry. Submissions beyond the pool's capacity are
rejected with BackpressureRejection and the notification stays PENDING.
"""

import threading
from collections.abc import Callable
from concurrent.futures import CancelledError, Future, wait
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

import structlog
from order_notifications.dispatch.pool import BoundedWorkerPool, PoolSaturatedError, PoolShutdownError
from order_notifications.mail import MailAuthenticationError, MailMessage, MailTransport, MailTransportError
from order_notifications.notification.notification import Notification

logger = structlog.get_logger(__name__)


class FailureKind(Enum):
    AUTHENTICATION = "authentication"
    TRANSPORT = "transport"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class DeliveryOutcome:
    """Result of one delivery attempt."""

    notification_id: str
    success: bool
    completed_at: datetime
    failure_kind: FailureKind | None = None
    error: str | None = None


class BackpressureRejection(Exception):
    """The dispatcher cannot take more work; the notification stays PENDING."""

    def __init__(self, notification_id: str, reason: str) -> None:
        super().__init__(f"Delivery of notification {notification_id} rejected: {reason}")
        self.notification_id = notification_id


_FAILURE_LABELS = {
    FailureKind.AUTHENTICATION: "Mail server authentication failed",
    FailureKind.TRANSPORT: "Mail transport failed",
    FailureKind.UNEXPECTED: "Unexpected error while sending email",
}


class DeliveryDispatcher:
    def __init__(
        self,
        transport: MailTransport,
        on_outcome: Callable[[DeliveryOutcome], object],
        pool: BoundedWorkerPool,
        from_address: str,
        from_name: str | None = None,
        drain_timeout: float = 30.0,
    ) -> None:
        self._transport = transport
        self._on_outcome = on_outcome
        self._pool = pool
        self._from_address = from_address
        self._from_name = from_name
        self._drain_timeout = drain_timeout
        self._lock = threading.Lock()
        self._in_flight: dict[Future, str] = {}

    @classmethod
    def from_settings(cls, settings, transport: MailTransport, on_outcome) -> "DeliveryDispatcher":
        pool = BoundedWorkerPool(
            core_size=settings.core_pool_size,
            max_size=settings.max_pool_size,
            queue_capacity=settings.queue_capacity,
            keep_alive=settings.keep_alive_seconds,
            name="mail",
        )
        return cls(
            transport=transport,
            on_outcome=on_outcome,
            pool=pool,
            from_address=settings.mail_from_address,
            from_name=settings.mail_from_name,
            drain_timeout=settings.drain_timeout_seconds,
        )

    @property
    def pool(self) -> BoundedWorkerPool:
        return self._pool

    @property
    def in_flight(self) -> int:
        with self._lock:
            return len(self._in_flight)

    # -------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------
    def submit(self, notification: Notification) -> Future:
        """Schedule delivery of ``notification``.

        Returns a future resolving to a DeliveryOutcome.

        Raises:
            BackpressureRejection: the pool is saturated or shut down.
        """
        notification_id = str(notification.id)
        message = MailMessage(
            from_address=self._from_address,
            from_name=self._from_name,
            to=notification.recipient,
            subject=notification.subject,
            body=notification.message,
        )

        try:
            future = self._pool.submit(self._deliver, notification_id, message)
        except (PoolSaturatedError, PoolShutdownError) as e:
            logger.warning(
                "Notification delivery rejected, left PENDING",
                notification_id=notification_id,
                reason=str(e),
            )
            raise BackpressureRejection(notification_id, str(e)) from e

        with self._lock:
            self._in_flight[future] = notification_id
        future.add_done_callback(self._forget)
        return future

    def deliver(self, notification: Notification, timeout: float | None = None) -> bool:
        """Submit ``notification`` and wait for its outcome.

        Returns True only when the e-mail was sent. A rejected submission, a
        timeout, an abandoned delivery or a failure to record the outcome all
        return False.
        """
        notification_id = str(notification.id)
        try:
            future = self.submit(notification)
        except BackpressureRejection:
            return False

        try:
            outcome = future.result(timeout=timeout)
        except FutureTimeoutError:
            logger.warning("Timed out waiting for delivery", notification_id=notification_id, timeout=timeout)
            return False
        except CancelledError:
            logger.warning("Delivery abandoned at shutdown", notification_id=notification_id)
            return False
        except Exception as e:
            logger.error("Delivery outcome could not be recorded", notification_id=notification_id, error=str(e))
            return False

        return outcome.success

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._in_flight.pop(future, None)

    # -------------------------------------------------------------------
    # Worker side
    # -------------------------------------------------------------------
    def _deliver(self, notification_id: str, message: MailMessage) -> DeliveryOutcome:
        outcome = self._send(notification_id, message)
        try:
            self._on_outcome(outcome)
        except Exception:
            logger.exception(
                "Failed to record delivery outcome",
                notification_id=notification_id,
                success=outcome.success,
            )
            raise
        return outcome

    def _send(self, notification_id: str, message: MailMessage) -> DeliveryOutcome:
        try:
            self._transport.send(message)
        except MailAuthenticationError as e:
            return self._failed(notification_id, message, FailureKind.AUTHENTICATION, e)
        except MailTransportError as e:
            return self._failed(notification_id, message, FailureKind.TRANSPORT, e)
        except Exception as e:
            return self._failed(notification_id, message, FailureKind.UNEXPECTED, e)

        logger.info("Email sent", notification_id=notification_id, to=message.to)
        return DeliveryOutcome(
            notification_id=notification_id,
            success=True,
            completed_at=datetime.now(UTC),
        )

    def _failed(self, notification_id, message, kind: FailureKind, exc: Exception) -> DeliveryOutcome:
        detail = str(exc) or type(exc).__name__
        logger.error(
            "Email delivery failed",
            notification_id=notification_id,
            to=message.to,
            failure_kind=kind.value,
            error=detail,
        )
        return DeliveryOutcome(
            notification_id=notification_id,
            success=False,
            completed_at=datetime.now(UTC),
            failure_kind=kind,
            error=f"{_FAILURE_LABELS[kind]}: {detail}",
        )

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def join(self, timeout: float | None = None) -> bool:
        """Wait for the deliveries submitted so far. Returns False on timeout."""
        with self._lock:
            pending = list(self._in_flight)
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def shutdown(self, timeout: float | None = None) -> list[str]:
        """Drain in-flight deliveries for a bounded time.

        Returns the ids of notifications whose queued delivery was abandoned;
        those records stay PENDING and can be recovered through resend.
        """
        with self._lock:
            ids_by_future = dict(self._in_flight)

        abandoned = self._pool.shutdown(self._drain_timeout if timeout is None else timeout)
        abandoned_ids = [ids_by_future[f] for f in abandoned if f in ids_by_future]

        if abandoned_ids:
            logger.warning(
                "Dispatcher shut down with undelivered notifications left PENDING",
                notification_ids=abandoned_ids,
            )
        else:
            logger.info("Dispatcher shut down cleanly")

        return abandoned_ids

"""Order event consumer.

Reads order events from one or more partitions, turns each into a PENDING
notification and hands it to the delivery dispatcher. Each partition is
consumed by its own thread, strictly in offset order; partitions proceed
independently.

Delivery is at-least-once and there is no idempotency key: a redelivered
event produces a second notification. A message that fails is logged and
its offset committed anyway; one bad message never stalls the partition.
"""

import threading
from collections.abc import Iterable

import structlog
from order_notifications.dispatch.dispatcher import BackpressureRejection, DeliveryDispatcher
from order_notifications.ingestion.order_event import DeserializationError, parse_order_event
from order_notifications.ingestion.source import ConsumedMessage, MessageSource, MessageSourceError
from order_notifications.notification.notification import Notification
from order_notifications.notification.synthesizer import NotificationSynthesizer

logger = structlog.get_logger(__name__)


class OrderEventConsumer:
    def __init__(self, synthesizer: NotificationSynthesizer, dispatcher: DeliveryDispatcher) -> None:
        self._synthesizer = synthesizer
        self._dispatcher = dispatcher

    def handle_message(self, message: ConsumedMessage) -> Notification | None:
        """Process one message. Never raises for per-message failures.

        Returns the notification created for the message, or None when the
        message was skipped.
        """
        with structlog.contextvars.bound_contextvars(
            topic=message.topic,
            partition=message.partition,
            offset=message.offset,
        ):
            try:
                event = parse_order_event(message.payload)
            except DeserializationError as e:
                logger.error("Failed to deserialize order event", error=str(e))
                return None

            logger.info(
                "Received order event",
                order_id=event.order_id,
                user_id=event.user_id,
                event_type=event.event_type,
            )

            notification = None
            try:
                notification = self._synthesizer.synthesize(event)
                if notification is None:
                    return None
                self._dispatcher.submit(notification)
            except BackpressureRejection:
                # Already logged by the dispatcher; the record stays PENDING
                return notification
            except Exception:
                logger.exception("Error processing order event", order_id=event.order_id)
                return None

            return notification

    def consume(self, source: MessageSource, stop: threading.Event, poll_timeout: float = 0.5) -> int:
        """Run the consumption loop for ``source`` until ``stop`` is set.

        Returns the number of messages handled.
        """
        handled = 0
        log = logger.bind(topic=source.topic, partition=source.partition)
        log.info("Partition consumer started")

        while not stop.is_set():
            try:
                message = source.poll(poll_timeout)
            except MessageSourceError as e:
                log.error("Failed to poll order events", error=str(e))
                stop.wait(poll_timeout)
                continue
            if message is None:
                continue
            self.handle_message(message)
            try:
                source.commit(message)
            except MessageSourceError as e:
                log.error("Failed to commit offset", offset=message.offset, error=str(e))
            handled += 1

        log.info("Partition consumer stopped", handled=handled)
        return handled


class PartitionedIngestion:
    """Runs one consumption thread per partition."""

    def __init__(self, consumer: OrderEventConsumer, sources: Iterable[MessageSource], poll_timeout: float = 0.5):
        self._consumer = consumer
        self._sources = list(sources)
        self._poll_timeout = poll_timeout
        self._stop = threading.Event()
        self._threads: dict[threading.Thread, MessageSource] = {}

    @property
    def running(self) -> bool:
        return any(t.is_alive() for t in self._threads)

    def start(self) -> None:
        if self._threads:
            raise RuntimeError("Ingestion already started")

        self._stop.clear()
        for source in self._sources:
            thread = threading.Thread(
                target=self._consumer.consume,
                args=(source, self._stop, self._poll_timeout),
                name=f"consumer-{source.topic}-{source.partition}",
                daemon=True,
            )
            self._threads[thread] = source
            thread.start()

        logger.info("Ingestion started", partitions=len(self._sources))

    def stop(self, timeout: float | None = None) -> None:
        """Signal every partition loop to stop and wait for them to exit.

        Loops still running after ``timeout`` stay tracked, so ``running``
        keeps reporting them and ``start()`` refuses to run a second loop on
        the same source.
        """
        self._stop.set()
        for thread in self._threads:
            thread.join(timeout)

        stuck = {}
        for thread, source in self._threads.items():
            if thread.is_alive():
                stuck[thread] = source
            else:
                source.close()
        self._threads = stuck

        if stuck:
            logger.warning("Ingestion stop timed out", still_running=[t.name for t in stuck])
        else:
            logger.info("Ingestion stopped")

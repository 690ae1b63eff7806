"""NotificationService: Wires the pipeline together.

Every collaborator is constructed here and injected explicitly; nothing in
the pipeline reaches for a global. The Protean domain must be initialized
(``domain.init()``) before ``build()`` is called.
"""

import structlog
from order_notifications.config import NotificationSettings
from order_notifications.directory import HttpUserDirectory, UserDirectory
from order_notifications.dispatch.dispatcher import DeliveryDispatcher
from order_notifications.ingestion.consumer import OrderEventConsumer, PartitionedIngestion
from order_notifications.ingestion.source import MessageSource
from order_notifications.mail import MailTransport, build_transport
from order_notifications.notification.adhoc import GenericMailService
from order_notifications.notification.recovery import ResendService
from order_notifications.notification.store import NotificationStore
from order_notifications.notification.synthesizer import NotificationSynthesizer
from order_notifications.notification.tracker import StatusTracker
from protean.domain import Domain

logger = structlog.get_logger(__name__)


class NotificationService:
    def __init__(
        self,
        settings: NotificationSettings,
        store: NotificationStore,
        directory: UserDirectory,
        transport: MailTransport,
        tracker: StatusTracker,
        dispatcher: DeliveryDispatcher,
        synthesizer: NotificationSynthesizer,
        consumer: OrderEventConsumer,
        recovery: ResendService,
        mailer: GenericMailService,
    ) -> None:
        self.settings = settings
        self.store = store
        self.directory = directory
        self.transport = transport
        self.tracker = tracker
        self.dispatcher = dispatcher
        self.synthesizer = synthesizer
        self.consumer = consumer
        self.recovery = recovery
        self.mailer = mailer
        self._ingestion: PartitionedIngestion | None = None

    @classmethod
    def build(
        cls,
        settings: NotificationSettings,
        domain: Domain,
        directory: UserDirectory | None = None,
        transport: MailTransport | None = None,
    ) -> "NotificationService":
        """Construct the pipeline from ``settings``.

        ``directory`` and ``transport`` default to the HTTP user directory
        and the transport selected by ``build_transport()``.
        """
        if directory is None:
            directory = HttpUserDirectory(
                base_url=settings.user_directory_url,
                timeout_seconds=settings.user_directory_timeout_seconds,
            )
        if transport is None:
            transport = build_transport(settings)

        store = NotificationStore(domain)
        tracker = StatusTracker(store)
        dispatcher = DeliveryDispatcher.from_settings(settings, transport, tracker.record_outcome)
        synthesizer = NotificationSynthesizer(store, directory)
        consumer = OrderEventConsumer(synthesizer, dispatcher)
        recovery = ResendService(store, directory, dispatcher, settings.resend_timeout_seconds)
        mailer = GenericMailService(store, dispatcher, settings.resend_timeout_seconds)

        logger.info(
            "Notification service built",
            transport=type(transport).__name__,
            directory=type(directory).__name__,
            core_pool_size=settings.core_pool_size,
            max_pool_size=settings.max_pool_size,
            queue_capacity=settings.queue_capacity,
        )

        return cls(
            settings=settings,
            store=store,
            directory=directory,
            transport=transport,
            tracker=tracker,
            dispatcher=dispatcher,
            synthesizer=synthesizer,
            consumer=consumer,
            recovery=recovery,
            mailer=mailer,
        )

    # -------------------------------------------------------------------
    # Ingestion
    # -------------------------------------------------------------------
    @property
    def ingestion(self) -> PartitionedIngestion | None:
        return self._ingestion

    def start_ingestion(self, sources: list[MessageSource]) -> PartitionedIngestion:
        if self._ingestion is not None:
            raise RuntimeError("Ingestion already running")
        self._ingestion = PartitionedIngestion(self.consumer, sources)
        self._ingestion.start()
        return self._ingestion

    def stop_ingestion(self, timeout: float | None = None) -> None:
        if self._ingestion is None:
            return
        self._ingestion.stop(timeout)
        if not self._ingestion.running:
            self._ingestion = None

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def shutdown(self, timeout: float | None = None) -> list[str]:
        """Stop ingestion, then drain the dispatcher.

        Returns the ids of notifications left PENDING by the drain.
        """
        self.stop_ingestion(timeout)
        abandoned = self.dispatcher.shutdown(timeout)

        close = getattr(self.directory, "close", None)
        if close is not None:
            close()

        logger.info("Notification service stopped", abandoned=len(abandoned))
        return abandoned

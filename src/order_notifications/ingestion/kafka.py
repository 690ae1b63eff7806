"""Kafka-backed message source.

Each source owns one confluent-kafka consumer in the notification consumer
group. Running several sources in the same group lets the broker spread the
topic's partitions across them; every source still sees its partitions in
offset order. Auto-commit is off: offsets are committed only after a message
has been handled.
"""

from typing import Any

import structlog
from order_notifications.ingestion.source import ConsumedMessage, MessageSource, MessageSourceError

logger = structlog.get_logger(__name__)


class KafkaMessageSource(MessageSource):
    def __init__(
        self,
        topic: str,
        bootstrap_servers: str,
        group_id: str,
        partition: int = 0,
        auto_offset_reset: str = "earliest",
    ) -> None:
        self.topic = topic
        self.partition = partition
        self._bootstrap_servers = bootstrap_servers
        self._group_id = group_id
        self._auto_offset_reset = auto_offset_reset
        self._consumer: Any = None

    def _get_consumer(self) -> Any:
        if self._consumer is None:
            from confluent_kafka import Consumer

            self._consumer = Consumer(
                {
                    "bootstrap.servers": self._bootstrap_servers,
                    "group.id": self._group_id,
                    "auto.offset.reset": self._auto_offset_reset,
                    "enable.auto.commit": False,
                }
            )
            self._consumer.subscribe([self.topic])
            logger.info(
                "Subscribed to order events",
                topic=self.topic,
                group_id=self._group_id,
                consumer=self.partition,
            )
        return self._consumer

    def poll(self, timeout: float) -> ConsumedMessage | None:
        try:
            msg = self._get_consumer().poll(timeout=timeout)
        except Exception as e:
            raise MessageSourceError(f"Failed to poll {self.topic}: {e}") from e

        if msg is None:
            return None
        if msg.error():
            raise MessageSourceError(f"Kafka error on {self.topic}: {msg.error()}")

        headers = {}
        if msg.headers():
            headers = {k: v.decode() if isinstance(v, bytes) else v for k, v in msg.headers()}
        key = msg.key()
        return ConsumedMessage(
            topic=msg.topic(),
            partition=msg.partition(),
            offset=msg.offset(),
            payload=msg.value() or b"",
            key=key.decode() if isinstance(key, bytes) else key,
            headers=headers,
        )

    def commit(self, message: ConsumedMessage) -> None:
        from confluent_kafka import TopicPartition

        tp = TopicPartition(message.topic, message.partition, message.offset + 1)
        self._get_consumer().commit(offsets=[tp], asynchronous=False)

    def close(self) -> None:
        if self._consumer is not None:
            self._consumer.close()
            self._consumer = None


def build_kafka_sources(settings) -> list[KafkaMessageSource]:
    """One source per configured consumer, all in the same consumer group."""
    return [
        KafkaMessageSource(
            topic=settings.order_events_topic,
            bootstrap_servers=settings.kafka_bootstrap_servers,
            group_id=settings.kafka_group_id,
            partition=index,
            auto_offset_reset=settings.kafka_auto_offset_reset,
        )
        for index in range(settings.partitions)
    ]

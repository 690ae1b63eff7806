"""Command-line runner for the order notification service.

Usage:
    order-notifications replay events.jsonl --users users.json
    order-notifications serve --host 0.0.0.0 --port 8083

``replay`` feeds a JSON-lines file of order events through the full pipeline
(partitioned by order id, like the bus does) and drains the dispatcher.
``serve`` runs the HTTP API with uvicorn and consumes the order events topic
from Kafka (``NOTIFICATION_KAFKA_BOOTSTRAP_SERVERS``).
"""

import argparse
import json
import sys
import time
from pathlib import Path

import structlog
from order_notifications.app import create_app
from order_notifications.config import NotificationSettings
from order_notifications.directory import FakeUserDirectory, UserDetails
from order_notifications.domain import order_notifications
from order_notifications.ingestion.kafka import build_kafka_sources
from order_notifications.ingestion.source import InMemoryMessageSource
from order_notifications.notification.notification import NotificationStatus
from order_notifications.service import NotificationService
from order_notifications.utils.logging import configure_logging

logger = structlog.get_logger(__name__)


def _build_service(settings, users_file=None):
    directory = None
    if users_file:
        users = json.loads(Path(users_file).read_text(encoding="utf-8"))
        directory = FakeUserDirectory([UserDetails.from_dict(u) for u in users])

    return NotificationService.build(settings, order_notifications, directory=directory)


def _partition_for(line: str, partitions: int) -> int:
    try:
        order_id = int(json.loads(line).get("orderId"))
    except (ValueError, TypeError, AttributeError):
        return 0
    return order_id % partitions


def replay(events_file, settings: NotificationSettings, users_file=None, timeout=60.0) -> dict:
    """Replay ``events_file`` and return notification counts per status.

    The domain must already be initialized.
    """
    service = _build_service(settings, users_file)

    sources = [
        InMemoryMessageSource(settings.order_events_topic, partition) for partition in range(settings.partitions)
    ]
    last_offsets = {}
    with open(events_file, encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            source = sources[_partition_for(line, settings.partitions)]
            last_offsets[source.partition] = source.publish(line)

    service.start_ingestion(sources)

    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if all(sources[p].committed_offset >= offset for p, offset in last_offsets.items()):
            break
        time.sleep(0.05)
    else:
        logger.warning("Replay timed out before every event was consumed")

    service.dispatcher.join(timeout=max(0.0, deadline - time.monotonic()))
    abandoned = service.shutdown()

    summary = {status.value: service.store.count_by_status(status) for status in NotificationStatus}
    summary["abandoned"] = len(abandoned)
    summary["sent_emails"] = len(getattr(service.transport, "sent_emails", []))

    logger.info("Replay finished", **summary)
    return summary


def serve(settings: NotificationSettings, host: str, port: int, users_file=None) -> None:
    """Run the HTTP API and, unless disabled, consume order events from Kafka."""
    import uvicorn

    service = _build_service(settings, users_file)
    sources = build_kafka_sources(settings) if settings.ingestion_enabled else None
    if sources is None:
        logger.warning("Order event ingestion disabled, only the HTTP API is served")
    uvicorn.run(create_app(service, sources=sources), host=host, port=port)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Order notification service")
    subparsers = parser.add_subparsers(dest="command", required=True)

    replay_parser = subparsers.add_parser("replay", help="Replay a JSON-lines file of order events")
    replay_parser.add_argument("events", help="Path to a JSON-lines file, one order event per line")
    replay_parser.add_argument("--users", help="JSON file with users to serve from an in-memory directory")
    replay_parser.add_argument("--timeout", type=float, default=60.0, help="Seconds to wait for the replay")

    serve_parser = subparsers.add_parser("serve", help="Run the notifications HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8083)
    serve_parser.add_argument("--users", help="JSON file with users to serve from an in-memory directory")

    args = parser.parse_args(argv)

    configure_logging()
    settings = NotificationSettings.from_env()
    order_notifications.init()

    if args.command == "replay":
        summary = replay(args.events, settings, users_file=args.users, timeout=args.timeout)
        print(json.dumps(summary, indent=2))
        return 0 if summary["abandoned"] == 0 else 1

    serve(settings, args.host, args.port, users_file=args.users)
    return 0


if __name__ == "__main__":
    sys.exit(main())

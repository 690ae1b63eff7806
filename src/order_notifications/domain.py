"""Order notifications bounded context: E-mails users about their orders.

Consumes order lifecycle events from the message bus, synthesizes one
Notification per event, delivers it through a bounded pool of mail workers
and tracks the delivery status for audit and manual recovery.
"""

import structlog
from protean.domain import Domain

order_notifications = Domain(name="order_notifications")

logger = structlog.get_logger(__name__)

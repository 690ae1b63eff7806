"""Template registry: Maps order event kinds to e-mail templates.

Each template knows the notification type it produces and how to render a
subject and a plain-text body from the event context.
"""

from order_notifications.ingestion.order_event import OrderEventType
from order_notifications.templates.order_cancellation import OrderCancellationTemplate
from order_notifications.templates.order_confirmation import OrderConfirmationTemplate
from order_notifications.templates.order_status_update import OrderStatusUpdateTemplate

TEMPLATE_REGISTRY: dict[OrderEventType, type] = {
    OrderEventType.ORDER_CREATED: OrderConfirmationTemplate,
    OrderEventType.ORDER_UPDATED: OrderStatusUpdateTemplate,
    OrderEventType.ORDER_CANCELLED: OrderCancellationTemplate,
}


def get_template(event_kind: OrderEventType):
    """Look up a template class by order event kind."""
    template_cls = TEMPLATE_REGISTRY.get(event_kind)
    if template_cls is None:
        raise ValueError(f"No template registered for order event type: {event_kind.value}")
    return template_cls

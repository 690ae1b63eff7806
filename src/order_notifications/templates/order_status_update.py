"""Order status update template: Sent when an order changes state."""

from order_notifications.notification.notification import NotificationType


class OrderStatusUpdateTemplate:
    notification_type = NotificationType.ORDER_STATUS_UPDATE.value

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        username = context.get("username") or "Customer"
        order_status = context.get("order_status") or "UNKNOWN"
        return {
            "subject": f"Order Status Update - Order #{order_id}",
            "body": (
                f"Dear {username},\n\n"
                "We wanted to update you on the status of your order.\n\n"
                "Order Details:\n"
                f"- Order ID: #{order_id}\n"
                f"- New Status: {order_status}\n\n"
                "Thank you for your patience.\n\n"
                "Best regards,\n"
                "Order Management Team\n"
            ),
        }

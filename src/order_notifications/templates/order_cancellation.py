"""Order cancellation template: Sent when an order is cancelled."""

from order_notifications.notification.notification import NotificationType


class OrderCancellationTemplate:
    notification_type = NotificationType.ORDER_CANCELLATION.value

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        username = context.get("username") or "Customer"
        product_name = context.get("product_name") or "N/A"
        quantity = context.get("quantity", 1)
        total_amount = context.get("total_amount", 0)
        return {
            "subject": f"Order Cancellation - Order #{order_id}",
            "body": (
                f"Dear {username},\n\n"
                "We wanted to confirm that your order has been cancelled as requested.\n\n"
                "Order Details:\n"
                f"- Order ID: #{order_id}\n"
                f"- Product: {product_name}\n"
                f"- Quantity: {quantity}\n"
                f"- Amount: ${total_amount:.2f}\n\n"
                "If this cancellation was not requested by you, please contact our customer support immediately.\n\n"
                "Thank you for your understanding.\n\n"
                "Best regards,\n"
                "Order Management Team\n"
            ),
        }

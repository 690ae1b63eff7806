"""Order confirmation template: Sent when an order is created."""

from order_notifications.notification.notification import NotificationType


class OrderConfirmationTemplate:
    notification_type = NotificationType.ORDER_CONFIRMATION.value

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        username = context.get("username") or "Customer"
        product_name = context.get("product_name") or "N/A"
        quantity = context.get("quantity", 1)
        total_amount = context.get("total_amount", 0)
        return {
            "subject": f"Order Confirmation - Order #{order_id}",
            "body": (
                f"Dear {username},\n\n"
                "Thank you for your order! We're excited to confirm that we've received "
                "your order and it's being processed.\n\n"
                "Order Details:\n"
                f"- Order ID: #{order_id}\n"
                f"- Product: {product_name}\n"
                f"- Quantity: {quantity}\n"
                f"- Total Amount: ${total_amount:.2f}\n\n"
                "We'll send you another email when your order has been shipped with tracking information.\n\n"
                "Best regards,\n"
                "Order Management Team\n"
            ),
        }

"""Order processing template."""

from storefront.notifications.types import NotificationType


class OrderProcessingTemplate:
    notification_type = NotificationType.ORDER_PROCESSING.value

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        return {
            "subject": f"Your order is being prepared - Order {order_number}",
            "body": (
                f"Hi {context.get('customer_name') or 'there'},\n\n"
                f"We're preparing order {order_number} for shipment.\n\n"
                f"Order ID: {context.get('order_id', 'N/A')}\n\n"
                f"{context.get('brand_name', 'Storefront')}"
            ),
        }

"""Order delivered template."""

from storefront.notifications.types import NotificationType


class OrderDeliveredTemplate:
    notification_type = NotificationType.ORDER_DELIVERED.value

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        return {
            "subject": f"Your order was delivered - Order {order_number}",
            "body": (
                f"Hi {context.get('customer_name') or 'there'},\n\n"
                f"Order {order_number} has been delivered. We hope you enjoy it!\n\n"
                f"Order ID: {context.get('order_id', 'N/A')}\n\n"
                f"{context.get('brand_name', 'Storefront')}"
            ),
        }

"""Order shipped template."""

from storefront.notifications.types import NotificationType


class OrderShippedTemplate:
    notification_type = NotificationType.ORDER_SHIPPED.value

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        return {
            "subject": f"Your order has shipped - Order {order_number}",
            "body": (
                f"Hi {context.get('customer_name') or 'there'},\n\n"
                f"Order {order_number} is on its way.\n\n"
                f"Order ID: {context.get('order_id', 'N/A')}\n\n"
                f"{context.get('brand_name', 'Storefront')}"
            ),
        }

"""Payment problem template: sent when a payment fails or an order is cancelled."""

from storefront.notifications.types import NotificationType


class PaymentFailedTemplate:
    notification_type = NotificationType.PAYMENT_FAILED.value

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        contact = context.get("contact_url")
        contact_line = f"Reach us at {contact} if you need help.\n\n" if contact else ""
        return {
            "subject": f"Problem with your payment - Order {order_number}",
            "body": (
                f"There was a problem with the payment for order {order_number}, "
                "or the order has been cancelled.\n\n"
                f"Order ID: {context.get('order_id', 'N/A')}\n\n"
                f"{contact_line}"
                f"{context.get('brand_name', 'Storefront')}"
            ),
        }

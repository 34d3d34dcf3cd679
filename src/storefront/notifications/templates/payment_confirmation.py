"""Payment confirmation template: sent when the gateway authorizes a payment."""

from storefront.notifications.types import NotificationType, format_amount


class PaymentConfirmationTemplate:
    notification_type = NotificationType.PAYMENT_CONFIRMATION.value

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        brand = context.get("brand_name", "Storefront")
        return {
            "subject": f"Payment received - Order {order_number}",
            "body": (
                f"Hi {context.get('customer_name') or 'there'},\n\n"
                f"We received the payment for order {order_number}.\n\n"
                f"Order ID: {context.get('order_id', 'N/A')}\n"
                f"Total: {format_amount(context.get('total_amount'))}\n"
                f"Authorization code: {context.get('authorization_code') or 'N/A'}\n\n"
                "We'll let you know when your order ships.\n\n"
                f"Thank you for shopping with {brand}!"
            ),
        }

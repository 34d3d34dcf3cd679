"""Operator notice: a customer paid for an order that is ready to process."""

from storefront.notifications.types import NotificationType, format_amount


class OperatorPaymentNoticeTemplate:
    notification_type = NotificationType.OPERATOR_PAYMENT_NOTICE.value

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        return {
            "subject": f"New paid order - {order_number}",
            "body": (
                f"Order {order_number} has been paid and is ready to be processed.\n\n"
                f"Order ID: {context.get('order_id', 'N/A')}\n"
                f"Customer: {context.get('customer_name') or 'N/A'}\n"
                f"Customer email: {context.get('customer_email') or 'N/A'}\n"
                f"Total: {format_amount(context.get('total_amount'))}\n"
                f"Authorization code: {context.get('authorization_code') or 'N/A'}"
            ),
        }

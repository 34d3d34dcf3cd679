"""Kinds of customer and operator notifications."""

from enum import Enum


class NotificationType(Enum):
    PAYMENT_CONFIRMATION = "PaymentConfirmation"
    PAYMENT_FAILED = "PaymentFailed"
    ORDER_PROCESSING = "OrderProcessing"
    ORDER_SHIPPED = "OrderShipped"
    ORDER_DELIVERED = "OrderDelivered"
    OPERATOR_PAYMENT_NOTICE = "OperatorPaymentNotice"


def format_amount(amount) -> str:
    try:
        return f"${float(amount):,.0f}"
    except (TypeError, ValueError):
        return "$0"

"""Template registry: maps NotificationType to template classes.

Each template renders a subject and a plain-text body from a context dict.
"""

from storefront.notifications.templates.operator_payment_notice import OperatorPaymentNoticeTemplate
from storefront.notifications.templates.order_delivered import OrderDeliveredTemplate
from storefront.notifications.templates.order_processing import OrderProcessingTemplate
from storefront.notifications.templates.order_shipped import OrderShippedTemplate
from storefront.notifications.templates.payment_confirmation import PaymentConfirmationTemplate
from storefront.notifications.templates.payment_failed import PaymentFailedTemplate
from storefront.notifications.types import NotificationType

TEMPLATE_REGISTRY: dict[str, type] = {
    NotificationType.PAYMENT_CONFIRMATION.value: PaymentConfirmationTemplate,
    NotificationType.PAYMENT_FAILED.value: PaymentFailedTemplate,
    NotificationType.ORDER_PROCESSING.value: OrderProcessingTemplate,
    NotificationType.ORDER_SHIPPED.value: OrderShippedTemplate,
    NotificationType.ORDER_DELIVERED.value: OrderDeliveredTemplate,
    NotificationType.OPERATOR_PAYMENT_NOTICE.value: OperatorPaymentNoticeTemplate,
}


def get_template(notification_type: str):
    """Look up a template class by notification type string."""
    template_cls = TEMPLATE_REGISTRY.get(notification_type)
    if template_cls is None:
        raise ValueError(f"No template registered for notification type: {notification_type}")
    return template_cls

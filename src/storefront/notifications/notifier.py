"""Notifier: renders a template and hands it to the email channel.

Customers are looked up by the order's ``user_id``. An order whose owner
is unknown is skipped with a warning. A delivery the channel reports as
failed raises ``NotificationError``; callers decide whether that matters.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.customer.customer import Customer
from storefront.errors import NotificationError
from storefront.notifications.channel.email_port import EmailPort
from storefront.notifications.templates import get_template
from storefront.notifications.types import NotificationType
from storefront.ordering.order import Order, OrderStatus

logger = structlog.get_logger(__name__)

_STATUS_NOTIFICATIONS = {
    OrderStatus.PROCESSING.value: NotificationType.ORDER_PROCESSING,
    OrderStatus.SHIPPED.value: NotificationType.ORDER_SHIPPED,
    OrderStatus.DELIVERED.value: NotificationType.ORDER_DELIVERED,
}


class Notifier:
    def __init__(
        self,
        email: EmailPort,
        operator_email: str | None = None,
        brand_name: str = "Storefront",
        contact_url: str | None = None,
    ) -> None:
        self.email = email
        self.operator_email = operator_email
        self.brand_name = brand_name
        self.contact_url = contact_url

    def _customer(self, order: Order) -> Customer | None:
        try:
            return current_domain.repository_for(Customer).get(str(order.user_id))
        except ObjectNotFoundError:
            return None

    def _context(self, order: Order, customer: Customer | None) -> dict:
        return {
            "order_id": str(order.id),
            "order_number": order.order_number,
            "total_amount": order.total_amount,
            "authorization_code": order.authorization_code,
            "customer_name": customer.name if customer else None,
            "customer_email": customer.email if customer else None,
            "brand_name": self.brand_name,
            "contact_url": self.contact_url,
        }

    def send(self, notification_type: NotificationType, to: str, context: dict) -> dict:
        content = get_template(notification_type.value).render(context)
        result = self.email.send(to=to, subject=content["subject"], body=content["body"])
        if result.get("status") != "sent":
            raise NotificationError(notification_type.value, to, result.get("error"))

        logger.info(
            "Notification sent",
            notification_type=notification_type.value,
            order_number=context.get("order_number"),
            message_id=result.get("message_id"),
        )
        return result

    def _to_customer(self, notification_type: NotificationType, order: Order) -> dict | None:
        customer = self._customer(order)
        if customer is None or not customer.email:
            logger.warning(
                "No customer email for order, skipping notification",
                notification_type=notification_type.value,
                order_id=str(order.id),
                user_id=str(order.user_id),
            )
            return None
        return self.send(notification_type, customer.email, self._context(order, customer))

    # -------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------
    def payment_confirmation(self, order: Order) -> dict | None:
        return self._to_customer(NotificationType.PAYMENT_CONFIRMATION, order)

    def payment_failed(self, order: Order) -> dict | None:
        return self._to_customer(NotificationType.PAYMENT_FAILED, order)

    def status_update(self, order: Order) -> dict | None:
        notification_type = _STATUS_NOTIFICATIONS.get(order.status)
        if notification_type is None:
            return None
        return self._to_customer(notification_type, order)

    def operator_payment_notice(self, order: Order) -> dict | None:
        if not self.operator_email:
            logger.warning("No operator email configured, skipping notice", order_id=str(order.id))
            return None
        context = self._context(order, self._customer(order))
        return self.send(NotificationType.OPERATOR_PAYMENT_NOTICE, self.operator_email, context)

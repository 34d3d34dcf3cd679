"""Order aggregate: header, immutable line items and the shipping address.

State machine (order status x payment status):
    pending/pending   -> confirmed/paid     gateway authorized the payment
    pending/pending   -> cancelled/failed   gateway rejected the payment
    confirmed/*       -> processing -> shipped -> delivered   (admin)
    any but shipped, delivered, cancelled -> cancelled

``total_amount`` is fixed when the order is placed and never recomputed.
"""

import secrets
import string
import time
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from storefront.domain import storefront
from storefront.ordering.events import (
    OrderCancelled,
    OrderPlaced,
    OrderStatusChanged,
    PaymentConfirmed,
    PaymentInitiated,
    PaymentRefunded,
    PaymentRejected,
)

# Upper bound for repository scans backing listings and statistics.
MAX_RESULTS = 10_000

WEBPAY = "webpay"
AUTHORIZED = "AUTHORIZED"

_BASE36 = string.digits + string.ascii_uppercase


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


# Statuses an admin may move an order into
FULFILMENT_STATUSES = {OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED}

# Statuses whose stock is still held by the order
_STOCK_HOLDING_STATUSES = {OrderStatus.PENDING, OrderStatus.PROCESSING}

_FINAL_STATUSES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}


def generate_order_number() -> str:
    """``ORD-<epoch millis>-<5 random base36 characters>``."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(5))
    return f"ORD-{int(time.time() * 1000)}-{suffix}"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class ShippingAddress:
    """Where the order ships. Captured at checkout and never edited."""

    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    zip_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)

    def to_dict(self) -> dict:
        return {
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "country": self.country,
        }


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    """Snapshot of a cart line at the moment the order was placed."""

    product_id = Identifier(required=True)
    product_name = String(max_length=255, default="")
    quantity = Integer(required=True, min_value=1)
    price = Float(required=True, min_value=0.0)
    subtotal = Float(required=True, min_value=0.0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    order_number = String(required=True, max_length=50)
    user_id = Identifier(required=True)
    items = HasMany(OrderItem)
    shipping_address = ValueObject(ShippingAddress)
    total_amount = Float(required=True, min_value=0.0)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_method = String(max_length=50, default=WEBPAY)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    gateway_token = String(max_length=255)
    gateway_status = String(max_length=50)
    authorization_code = String(max_length=50)
    notes = Text()
    cancellation_reason = String(max_length=500)
    paid_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def refunded_payment_needs_gateway_token(self):
        if self.payment_status == PaymentStatus.REFUNDED.value and not self.gateway_token:
            raise ValidationError({"payment_status": ["Only payments made through the gateway can be refunded"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, user_id, shipping_address: ShippingAddress, lines, notes=None):
        """Create a pending order whose items and total come from ``lines``.

        Each line needs ``product_id``, ``product_name``, ``quantity`` and
        ``price``.
        """
        lines = list(lines)
        now = datetime.now(UTC)
        total = sum(line.price * line.quantity for line in lines)

        order = cls(
            order_number=generate_order_number(),
            user_id=str(user_id),
            shipping_address=shipping_address,
            total_amount=total,
            status=OrderStatus.PENDING.value,
            payment_method=WEBPAY,
            payment_status=PaymentStatus.PENDING.value,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        for line in lines:
            order.add_items(
                OrderItem(
                    product_id=str(line.product_id),
                    product_name=line.product_name or "",
                    quantity=line.quantity,
                    price=line.price,
                    subtotal=line.price * line.quantity,
                )
            )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                user_id=str(user_id),
                total_amount=total,
                item_count=len(lines),
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def can_be_cancelled(self) -> bool:
        return OrderStatus(self.status) not in {OrderStatus.SHIPPED, *_FINAL_STATUSES}

    @property
    def holds_stock(self) -> bool:
        return OrderStatus(self.status) in _STOCK_HOLDING_STATUSES

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID.value

    @property
    def awaits_payment(self) -> bool:
        return self.payment_status == PaymentStatus.PENDING.value

    def is_owned_by(self, user_id) -> bool:
        return str(self.user_id) == str(user_id)

    def items_total(self) -> float:
        return sum(item.price * item.quantity for item in self.items)

    def _touch(self):
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def attach_gateway_token(self, token):
        if not self.awaits_payment:
            raise ValidationError({"payment_status": ["A transaction can only be opened for an unpaid order"]})

        self.gateway_token = token
        self._touch()
        self.raise_(
            PaymentInitiated(
                order_id=str(self.id),
                order_number=self.order_number,
                amount=self.total_amount,
            )
        )

    def record_payment_authorized(self, authorization_code=None, gateway_status=AUTHORIZED):
        """Mark the payment as paid.

        A pending order becomes confirmed. An order cancelled while the
        customer was still at the gateway stays cancelled.
        """
        if not self.awaits_payment:
            raise ValidationError({"payment_status": [f"Payment is already {self.payment_status}"]})

        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.PAID.value
        self.gateway_status = gateway_status
        self.authorization_code = authorization_code
        self.paid_at = now
        if self.status == OrderStatus.PENDING.value:
            self.status = OrderStatus.CONFIRMED.value
        self.updated_at = now

        self.raise_(
            PaymentConfirmed(
                order_id=str(self.id),
                order_number=self.order_number,
                amount=self.total_amount,
                authorization_code=authorization_code,
                confirmed_at=now,
            )
        )

    def record_payment_rejected(self, gateway_status=None, reason="Payment was not authorized"):
        if not self.awaits_payment:
            raise ValidationError({"payment_status": [f"Payment is already {self.payment_status}"]})

        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.FAILED.value
        self.gateway_status = gateway_status
        if self.status != OrderStatus.CANCELLED.value:
            self.cancellation_reason = reason
            self.status = OrderStatus.CANCELLED.value
        self.updated_at = now

        self.raise_(
            PaymentRejected(
                order_id=str(self.id),
                order_number=self.order_number,
                gateway_status=gateway_status,
                rejected_at=now,
            )
        )

    def ensure_refundable(self):
        if not self.is_paid:
            raise ValidationError({"payment_status": ["Only paid orders can be refunded"]})
        if not self.gateway_token:
            raise ValidationError({"gateway_token": ["Order has no gateway transaction to refund"]})

    def record_refund(self, amount):
        """Mark the payment refunded. A refunded order ends up cancelled."""
        self.ensure_refundable()

        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.REFUNDED.value
        if self.status != OrderStatus.CANCELLED.value:
            self.cancellation_reason = self.cancellation_reason or "Payment refunded"
            self.status = OrderStatus.CANCELLED.value
        self.updated_at = now

        self.raise_(
            PaymentRefunded(
                order_id=str(self.id),
                order_number=self.order_number,
                amount=amount,
                refunded_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Status transitions
    # -------------------------------------------------------------------
    def ensure_cancellable(self):
        current = OrderStatus(self.status)
        if current == OrderStatus.CANCELLED:
            raise ValidationError({"status": ["Order is already cancelled"]})
        if current in {OrderStatus.SHIPPED, OrderStatus.DELIVERED}:
            raise ValidationError({"status": [f"Cannot cancel an order that has been {current.value}"]})

    def cancel(self, reason=None):
        self.ensure_cancellable()

        current = OrderStatus(self.status)
        now = datetime.now(UTC)
        self.cancellation_reason = reason
        self.status = OrderStatus.CANCELLED.value
        self.updated_at = now

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=current.value,
                reason=reason,
                cancelled_at=now,
            )
        )

    def advance_to(self, target, notes=None):
        """Move the order to processing, shipped or delivered."""
        try:
            target = OrderStatus(target)
        except ValueError:
            raise ValidationError({"status": [f"Unknown order status: {target}"]}) from None

        if target not in FULFILMENT_STATUSES:
            allowed = ", ".join(sorted(s.value for s in FULFILMENT_STATUSES))
            raise ValidationError({"status": [f"Status can only be changed to one of: {allowed}"]})

        current = OrderStatus(self.status)
        if current in _FINAL_STATUSES:
            raise ValidationError({"status": [f"Cannot change the status of a {current.value} order"]})

        now = datetime.now(UTC)
        self.status = target.value
        if notes:
            self.notes = notes
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=current.value,
                new_status=target.value,
                changed_at=now,
            )
        )


@storefront.repository(part_of=Order)
class OrderRepository:
    def find_by_token(self, token) -> Order | None:
        return self._dao.query.filter(gateway_token=token).all().first

    def find_by_order_number(self, order_number) -> Order | None:
        return self._dao.query.filter(order_number=order_number).all().first

    def for_user(self, user_id) -> list[Order]:
        orders = self._dao.query.filter(user_id=str(user_id)).limit(MAX_RESULTS).all().items
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    def all_orders(self) -> list[Order]:
        orders = self._dao.query.limit(MAX_RESULTS).all().items
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

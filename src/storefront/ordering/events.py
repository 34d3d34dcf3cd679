"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """An order was created from a cart."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    total_amount = Float(required=True)
    item_count = Integer(required=True)
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class PaymentInitiated:
    """A gateway transaction was opened for the order."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    order_number = String(required=True)
    amount = Float(required=True)


@storefront.event(part_of="Order")
class PaymentConfirmed:
    """The gateway authorized the payment."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    order_number = String(required=True)
    amount = Float(required=True)
    authorization_code = String()
    confirmed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class PaymentRejected:
    """The gateway did not authorize the payment."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    order_number = String(required=True)
    gateway_status = String()
    rejected_at = DateTime(required=True)


@storefront.event(part_of="Order")
class PaymentRefunded:
    """Money was returned to the customer through the gateway."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    order_number = String(required=True)
    amount = Float(required=True)
    refunded_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    order_number = String(required=True)
    previous_status = String(required=True)
    reason = String()
    cancelled_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderStatusChanged:
    """An admin moved the order along its fulfilment path."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    order_number = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)

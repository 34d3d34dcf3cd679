"""Order aggregate builder: cart snapshot in, persisted pending order out.

Building has no side effects beyond persistence. Reserving stock and
clearing the cart are sequenced by the lifecycle manager.
"""

from collections.abc import Mapping

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.cart.snapshot import CartSnapshot
from storefront.ordering.order import Order, ShippingAddress

logger = structlog.get_logger(__name__)

ADDRESS_FIELDS = ("street", "city", "state", "zip_code", "country")


def validate_shipping_address(address: Mapping | ShippingAddress | None) -> ShippingAddress:
    """Return a ShippingAddress, naming every blank or missing field otherwise."""
    if isinstance(address, ShippingAddress):
        address = address.to_dict()
    if not isinstance(address, Mapping):
        raise ValidationError({"shipping_address": ["Shipping address is required"]})

    values = {}
    errors = {}
    for field_name in ADDRESS_FIELDS:
        value = address.get(field_name)
        if value is None or not str(value).strip():
            errors[field_name] = [f"{field_name} is required"]
        else:
            values[field_name] = str(value).strip()

    if errors:
        raise ValidationError(errors)
    return ShippingAddress(**values)


class OrderAggregateBuilder:
    def build(self, user_id, shipping_address, snapshot: CartSnapshot, notes=None) -> Order:
        address = validate_shipping_address(shipping_address)
        if snapshot.is_empty:
            raise ValidationError({"cart": ["Cart is empty"]})

        order = Order.place(user_id=user_id, shipping_address=address, lines=snapshot.lines, notes=notes)
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Order created",
            order_id=str(order.id),
            order_number=order.order_number,
            user_id=str(user_id),
            total_amount=order.total_amount,
            items=len(order.items),
        )
        return order

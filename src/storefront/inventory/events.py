"""Domain events for Product stock and StockReservation."""

from protean.fields import DateTime, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Product")
class StockWithdrawn:
    """Stock was taken out of a product to hold it for an order."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Integer(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)


@storefront.event(part_of="Product")
class StockReturned:
    """Stock held for an order was put back on the shelf."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Integer(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)


@storefront.event(part_of="StockReservation")
class StockReserved:
    """The stock held for an order was recorded."""

    __version__ = "v1"

    reservation_id = Identifier(required=True)
    order_id = Identifier(required=True)
    line_count = Integer(required=True)
    reserved_at = DateTime(required=True)


@storefront.event(part_of="StockReservation")
class ReservationReleased:
    """Every line of an order's reservation went back to stock."""

    __version__ = "v1"

    reservation_id = Identifier(required=True)
    order_id = Identifier(required=True)
    reason = String(max_length=255)
    released_at = DateTime(required=True)

"""Domain events for the Cart aggregate."""

from protean.fields import Float, Identifier, Integer

from storefront.domain import storefront


@storefront.event(part_of="Cart")
class CartItemAdded:
    """A product was added to the cart, or its quantity increased."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    price = Float(required=True)


@storefront.event(part_of="Cart")
class CartItemUpdated:
    """The quantity of a cart line was set and its price refreshed."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    price = Float(required=True)


@storefront.event(part_of="Cart")
class CartItemRemoved:
    """A product was removed from the cart."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.event(part_of="Cart")
class CartCleared:
    """Every line was removed from the cart."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    items_removed = Integer(required=True)

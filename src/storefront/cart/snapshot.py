"""Cart snapshot reader: a read-only copy of a user's cart for checkout.

Lines carry the price stored on the cart, in insertion order. A user
without a cart gets an empty snapshot rather than an error.
"""

from dataclasses import dataclass, field

from protean.utils.globals import current_domain

from storefront.cart.cart import Cart


@dataclass(frozen=True)
class CartLine:
    product_id: str
    product_name: str
    quantity: int
    price: float

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity


@dataclass(frozen=True)
class CartSnapshot:
    user_id: str
    cart_id: str | None = None
    lines: tuple[CartLine, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def total(self) -> float:
        return sum(line.subtotal for line in self.lines)


class CartSnapshotReader:
    def read(self, user_id) -> CartSnapshot:
        cart = current_domain.repository_for(Cart).for_user(user_id)
        if cart is None:
            return CartSnapshot(user_id=str(user_id))

        return CartSnapshot(
            user_id=str(user_id),
            cart_id=str(cart.id),
            lines=tuple(
                CartLine(
                    product_id=str(item.product_id),
                    product_name=item.product_name or "",
                    quantity=item.quantity,
                    price=item.price,
                )
                for item in cart.ordered_items()
            ),
        )

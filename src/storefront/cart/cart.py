"""Cart aggregate: one per user, lines kept in insertion order.

Each line stores the price captured when it was added or last updated.
That stored price, not the product's live price, is what an order is
built from.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from storefront.cart.events import CartCleared, CartItemAdded, CartItemRemoved, CartItemUpdated
from storefront.domain import storefront


@storefront.entity(part_of="Cart")
class CartItem:
    product_id = Identifier(required=True)
    product_name = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    price = Float(required=True, min_value=0.0)
    added_at = DateTime()

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity


@storefront.aggregate
class Cart:
    user_id = Identifier(required=True)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, user_id):
        now = datetime.now(UTC)
        return cls(user_id=str(user_id), created_at=now, updated_at=now)

    def line_for(self, product_id) -> CartItem | None:
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    def quantity_of(self, product_id) -> int:
        item = self.line_for(product_id)
        return item.quantity if item else 0

    def ordered_items(self) -> list[CartItem]:
        """Lines in the order they were first added."""
        return sorted(self.items, key=lambda i: i.added_at or self.created_at)

    @property
    def total(self) -> float:
        return sum(i.subtotal for i in self.items)

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product_id, quantity, price, product_name=None):
        """Add a product, or merge into its existing line and refresh the price."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        now = datetime.now(UTC)
        existing = self.line_for(product_id)
        if existing:
            existing.quantity += quantity
            existing.price = price
            if product_name:
                existing.product_name = product_name
        else:
            self.add_items(
                CartItem(
                    product_id=str(product_id),
                    product_name=product_name,
                    quantity=quantity,
                    price=price,
                    added_at=now,
                )
            )

        self.updated_at = now
        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                product_id=str(product_id),
                quantity=quantity,
                price=price,
            )
        )

    def update_item_quantity(self, product_id, quantity, price):
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        item = self.line_for(product_id)
        if item is None:
            raise ValidationError({"product_id": ["Product is not in the cart"]})

        previous = item.quantity
        item.quantity = quantity
        item.price = price
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartItemUpdated(
                cart_id=str(self.id),
                product_id=str(product_id),
                previous_quantity=previous,
                new_quantity=quantity,
                price=price,
            )
        )

    def remove_item(self, product_id):
        item = self.line_for(product_id)
        if item is None:
            raise ValidationError({"product_id": ["Product is not in the cart"]})

        self.remove_items(item)
        self.updated_at = datetime.now(UTC)
        self.raise_(CartItemRemoved(cart_id=str(self.id), product_id=str(product_id)))

    def clear(self):
        removed = len(self.items)
        if removed:
            self.remove_items(list(self.items))
        self.updated_at = datetime.now(UTC)
        self.raise_(CartCleared(cart_id=str(self.id), items_removed=removed))


@storefront.repository(part_of=Cart)
class CartRepository:
    def for_user(self, user_id) -> Cart | None:
        return self._dao.query.filter(user_id=str(user_id)).all().first

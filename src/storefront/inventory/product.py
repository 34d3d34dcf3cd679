"""Product aggregate: the inventory-relevant side of a catalogue product.

``stock`` is the single source of truth for availability. It only moves
through ``withdraw_stock`` and ``return_stock``, which the stock ledger
calls while holding the product's lock.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String, Text

from storefront.domain import storefront
from storefront.errors import InsufficientStockError
from storefront.inventory.events import StockReturned, StockWithdrawn


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


@storefront.aggregate
class Product:
    name = String(required=True, max_length=255)
    description = Text()
    price = Float(required=True, min_value=0.0)
    stock = Integer(default=0, min_value=0)
    is_active = Boolean(default=True)

    # Promotions only change the effective price captured in carts.
    is_on_sale = Boolean(default=False)
    discount_percentage = Float(min_value=0.0, max_value=100.0)
    sale_start_date = DateTime()
    sale_end_date = DateTime()

    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def price_must_be_positive(self):
        if self.price is not None and self.price <= 0:
            raise ValidationError({"price": ["Price must be greater than zero"]})

    @classmethod
    def create(cls, name, price, stock=0, is_active=True, description=None, product_id=None, **sale):
        now = datetime.now(UTC)
        kwargs = {"id": product_id} if product_id else {}
        return cls(
            name=name,
            description=description,
            price=price,
            stock=stock,
            is_active=is_active,
            created_at=now,
            updated_at=now,
            **sale,
            **kwargs,
        )

    # -------------------------------------------------------------------
    # Pricing
    # -------------------------------------------------------------------
    def is_on_sale_at(self, now: datetime | None = None) -> bool:
        """A sale applies only with a valid discount inside its date window."""
        if not self.is_on_sale or not self.discount_percentage:
            return False
        if not 0 < self.discount_percentage < 100:
            return False

        start, end = _as_utc(self.sale_start_date), _as_utc(self.sale_end_date)
        if start is None or end is None:
            return False

        now = _as_utc(now) or datetime.now(UTC)
        return start <= now <= end

    def effective_price(self, now: datetime | None = None) -> float:
        if self.is_on_sale_at(now):
            return round(self.price * (1 - self.discount_percentage / 100), 2)
        return self.price

    # -------------------------------------------------------------------
    # Stock movements
    # -------------------------------------------------------------------
    def has_stock_for(self, quantity: int) -> bool:
        return (self.stock or 0) >= quantity

    def withdraw_stock(self, quantity: int, order_id: str) -> None:
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if not self.has_stock_for(quantity):
            raise InsufficientStockError(str(self.id), self.stock or 0, quantity)

        previous = self.stock
        self.stock = previous - quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            StockWithdrawn(
                product_id=str(self.id),
                order_id=str(order_id),
                quantity=quantity,
                previous_stock=previous,
                new_stock=self.stock,
            )
        )

    def return_stock(self, quantity: int, order_id: str) -> None:
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        previous = self.stock or 0
        self.stock = previous + quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            StockReturned(
                product_id=str(self.id),
                order_id=str(order_id),
                quantity=quantity,
                previous_stock=previous,
                new_stock=self.stock,
            )
        )

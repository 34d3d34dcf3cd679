"""StockReservation aggregate: what an order took out of stock.

One reservation per order. Lines are recorded as each product is
decremented, so a reservation that stopped halfway lists exactly the
quantities that must go back. Releasing flips the status once; a second
release finds nothing to do.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, HasMany, Identifier, Integer, String

from storefront.domain import storefront
from storefront.inventory.events import ReservationReleased, StockReserved


class ReservationStatus(Enum):
    ACTIVE = "Active"
    RELEASED = "Released"


@storefront.entity(part_of="StockReservation")
class ReservedLine:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@storefront.aggregate
class StockReservation:
    order_id = Identifier(required=True)
    status = String(choices=ReservationStatus, default=ReservationStatus.ACTIVE.value)
    lines = HasMany(ReservedLine)
    complete = Boolean(default=False)
    release_reason = String(max_length=255)
    reserved_at = DateTime()
    released_at = DateTime()

    @classmethod
    def open(cls, order_id):
        return cls(
            order_id=str(order_id),
            status=ReservationStatus.ACTIVE.value,
            reserved_at=datetime.now(UTC),
        )

    @property
    def is_active(self) -> bool:
        return self.status == ReservationStatus.ACTIVE.value

    def record_line(self, product_id, quantity):
        if not self.is_active:
            raise ValidationError({"reservation": ["Cannot add lines to a released reservation"]})
        self.add_lines(ReservedLine(product_id=str(product_id), quantity=quantity))

    def quantities(self) -> dict[str, int]:
        totals: dict[str, int] = {}
        for line in self.lines:
            totals[str(line.product_id)] = totals.get(str(line.product_id), 0) + line.quantity
        return totals

    def mark_reserved(self):
        self.complete = True
        self.raise_(
            StockReserved(
                reservation_id=str(self.id),
                order_id=str(self.order_id),
                line_count=len(self.lines),
                reserved_at=self.reserved_at,
            )
        )

    def release(self, reason=None):
        if not self.is_active:
            raise ValidationError({"reservation": ["Reservation is already released"]})

        now = datetime.now(UTC)
        self.released_at = now
        self.release_reason = reason
        self.status = ReservationStatus.RELEASED.value

        self.raise_(
            ReservationReleased(
                reservation_id=str(self.id),
                order_id=str(self.order_id),
                reason=reason,
                released_at=now,
            )
        )


@storefront.repository(part_of=StockReservation)
class StockReservationRepository:
    def for_order(self, order_id) -> StockReservation | None:
        return self._dao.query.filter(order_id=str(order_id)).all().first

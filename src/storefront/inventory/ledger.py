"""Stock ledger: availability checks, reservation and release of stock.

``validate_availability`` is advisory. It produces the message a customer
sees before anything is written. ``reserve`` is authoritative: it re-reads
every product while holding that product's lock, because stock may have
moved since the advisory check.

What an order took out of stock is recorded on its ``StockReservation``,
so ``release`` puts back exactly those lines and only once.
"""

import threading
import zlib
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from storefront.errors import InsufficientStockError
from storefront.inventory.product import Product
from storefront.inventory.reservation import StockReservation
from storefront.ordering.order import Order

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class AvailabilityCheck:
    ok: bool
    error: str | None = None
    product_id: str | None = None
    available: int | None = None
    requested: int | None = None

    def raise_if_failed(self) -> None:
        if self.ok:
            return
        if self.available is not None and self.requested is not None:
            raise InsufficientStockError(self.product_id, self.available, self.requested)
        raise ValidationError({"items": [self.error]})


class ProductLocks:
    """A fixed pool of locks, striped by product id.

    Two products may share a stripe. Callers hold one stripe at a time.
    """

    def __init__(self, stripes: int = 64) -> None:
        if stripes < 1:
            raise ValueError("stripes must be at least 1")
        self._locks = tuple(threading.Lock() for _ in range(stripes))

    def __len__(self) -> int:
        return len(self._locks)

    def for_product(self, product_id: str) -> threading.Lock:
        return self._locks[zlib.crc32(str(product_id).encode()) % len(self._locks)]


_shared_locks = ProductLocks()


def _field(item: Any, *names: str) -> Any:
    for name in names:
        value = item.get(name) if isinstance(item, Mapping) else getattr(item, name, None)
        if value is not None:
            return value
    return None


class StockLedger:
    def __init__(self, locks: ProductLocks | None = None) -> None:
        self._locks = locks or _shared_locks

    # -------------------------------------------------------------------
    # Advisory check
    # -------------------------------------------------------------------
    def validate_availability(self, items: Iterable[Any]) -> AvailabilityCheck:
        """Check every item against current stock without writing anything.

        Stops at the first problem. Items may be mappings (``product_id`` or
        ``productId``) or objects with ``product_id`` and ``quantity``.
        """
        products = current_domain.repository_for(Product)

        for item in items:
            product_id = _field(item, "product_id", "productId")
            quantity = _field(item, "quantity")
            if not product_id or not quantity:
                return AvailabilityCheck(ok=False, error="Each item needs a product id and a quantity")

            try:
                product = products.get(str(product_id))
            except ObjectNotFoundError:
                return AvailabilityCheck(
                    ok=False,
                    error=f"Product {product_id} was not found",
                    product_id=str(product_id),
                )

            if not product.has_stock_for(quantity):
                return AvailabilityCheck(
                    ok=False,
                    error=(
                        f"Insufficient stock for {product.name} ({product_id}): "
                        f"available {product.stock}, requested {quantity}"
                    ),
                    product_id=str(product_id),
                    available=product.stock,
                    requested=quantity,
                )

        return AvailabilityCheck(ok=True)

    # -------------------------------------------------------------------
    # Reservation
    # -------------------------------------------------------------------
    def reserve(self, order_id: str) -> StockReservation:
        """Take the order's line items out of stock.

        Lines decremented before a shortage stay decremented and remain on
        the reservation, which is stored even when this call raises. Calling
        again on such a reservation takes only the lines it is missing.
        """
        order = current_domain.repository_for(Order).get(order_id)
        reservations = current_domain.repository_for(StockReservation)

        reservation = reservations.for_order(order.id)
        if reservation is not None:
            if not reservation.is_active:
                raise ValidationError({"reservation": ["Stock for this order has already been released"]})
            if reservation.complete:
                logger.info("Stock already reserved for order", order_id=str(order.id))
                return reservation
            logger.info(
                "Resuming partial stock reservation",
                order_id=str(order.id),
                taken=reservation.quantities(),
            )
        else:
            reservation = StockReservation.open(order.id)

        taken = reservation.quantities()
        products = current_domain.repository_for(Product)

        try:
            for item in order.items:
                if not item.product_id or not item.quantity:
                    logger.warning(
                        "Skipping order item without product or quantity",
                        order_id=str(order.id),
                        item_id=str(item.id),
                    )
                    continue

                already = taken.get(str(item.product_id), 0)
                if already >= item.quantity:
                    taken[str(item.product_id)] = already - item.quantity
                    continue

                with self._locks.for_product(item.product_id):
                    try:
                        product = products.get(str(item.product_id))
                    except ObjectNotFoundError:
                        logger.warning(
                            "Skipping reservation for missing product",
                            order_id=str(order.id),
                            product_id=str(item.product_id),
                        )
                        continue

                    product.withdraw_stock(item.quantity, order.id)
                    products.add(product)

                reservation.record_line(item.product_id, item.quantity)

            reservation.mark_reserved()
        finally:
            reservations.add(reservation)

        logger.info(
            "Stock reserved",
            order_id=str(order.id),
            lines=len(reservation.lines),
        )
        return reservation

    # -------------------------------------------------------------------
    # Release
    # -------------------------------------------------------------------
    def release(self, order_id: str, reason: str | None = None) -> StockReservation | None:
        """Put the order's reserved lines back into stock.

        Never raises for products that have disappeared. Releasing twice, or
        releasing an order that never reserved anything, only logs.
        """
        reservations = current_domain.repository_for(StockReservation)
        reservation = reservations.for_order(order_id)

        if reservation is None:
            logger.warning("No stock reservation to release", order_id=str(order_id))
            return None
        if not reservation.is_active:
            logger.info("Stock reservation already released", order_id=str(order_id))
            return reservation

        products = current_domain.repository_for(Product)
        for line in reservation.lines:
            with self._locks.for_product(line.product_id):
                try:
                    product = products.get(str(line.product_id))
                except ObjectNotFoundError:
                    logger.warning(
                        "Skipping release for missing product",
                        order_id=str(order_id),
                        product_id=str(line.product_id),
                    )
                    continue

                product.return_stock(line.quantity, order_id)
                products.add(product)

        reservation.release(reason)
        reservations.add(reservation)

        logger.info(
            "Stock released",
            order_id=str(order_id),
            lines=len(reservation.lines),
            reason=reason,
        )
        return reservation

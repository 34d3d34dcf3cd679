"""Application tests for the stock ledger: availability, reserve and release."""

import threading

import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from storefront.cart.snapshot import CartLine
from storefront.errors import InsufficientStockError
from storefront.inventory.ledger import ProductLocks, StockLedger
from storefront.inventory.reservation import StockReservation
from storefront.ordering.order import Order, ShippingAddress


def _persisted_order(*lines):
    order = Order.place(
        user_id="user-1",
        shipping_address=ShippingAddress(
            street="Av. Providencia 1234", city="Santiago", state="RM", zip_code="7500000", country="Chile"
        ),
        lines=[CartLine(product_id=pid, product_name=f"Product {pid}", quantity=qty, price=1000.0) for pid, qty in lines],
    )
    current_domain.repository_for(Order).add(order)
    return order


@pytest.fixture
def ledger():
    return StockLedger()


class TestValidateAvailability:
    def test_enough_stock(self, ledger, make_product):
        make_product("9", stock=10)
        check = ledger.validate_availability([{"product_id": "9", "quantity": 2}])
        assert check.ok
        check.raise_if_failed()

    def test_accepts_camel_case_ids(self, ledger, make_product):
        make_product("9", stock=10)
        assert ledger.validate_availability([{"productId": "9", "quantity": 2}]).ok

    def test_accepts_cart_lines(self, ledger, make_product):
        make_product("9", stock=10)
        line = CartLine(product_id="9", product_name="Mug", quantity=2, price=1000.0)
        assert ledger.validate_availability([line]).ok

    def test_shortage_names_product_and_quantities(self, ledger, make_product, stock_of):
        make_product("9", stock=1)
        check = ledger.validate_availability([{"product_id": "9", "quantity": 2}])

        assert not check.ok
        assert check.product_id == "9"
        assert check.available == 1
        assert check.requested == 2
        assert "9" in check.error
        assert stock_of("9") == 1

    def test_shortage_raises_insufficient_stock(self, ledger, make_product):
        make_product("9", stock=1)
        check = ledger.validate_availability([{"product_id": "9", "quantity": 2}])
        with pytest.raises(InsufficientStockError) as exc:
            check.raise_if_failed()
        assert exc.value.available == 1

    def test_missing_product(self, ledger):
        check = ledger.validate_availability([{"product_id": "404", "quantity": 1}])
        assert not check.ok
        assert check.product_id == "404"
        assert "404" in check.error

    def test_missing_product_raises_validation_error(self, ledger):
        check = ledger.validate_availability([{"product_id": "404", "quantity": 1}])
        with pytest.raises(ValidationError) as exc:
            check.raise_if_failed()
        assert not isinstance(exc.value, InsufficientStockError)

    def test_malformed_item(self, ledger):
        check = ledger.validate_availability([{"product_id": "9"}])
        assert not check.ok
        assert check.product_id is None

    def test_stops_at_first_problem(self, ledger, make_product):
        make_product("9", stock=1)
        make_product("10", stock=0)
        check = ledger.validate_availability(
            [{"product_id": "9", "quantity": 5}, {"product_id": "10", "quantity": 5}]
        )
        assert check.product_id == "9"

    def test_empty_items_are_available(self, ledger):
        assert ledger.validate_availability([]).ok


class TestReserve:
    def test_reserve_decrements_stock(self, ledger, make_product, stock_of):
        make_product("9", stock=10)
        order = _persisted_order(("9", 2))

        reservation = ledger.reserve(order.id)

        assert stock_of("9") == 8
        assert reservation.is_active
        assert reservation.quantities() == {"9": 2}

    def test_reserve_is_persisted(self, ledger, make_product):
        make_product("9", stock=10)
        order = _persisted_order(("9", 2))
        ledger.reserve(order.id)

        stored = current_domain.repository_for(StockReservation).for_order(order.id)
        assert stored is not None
        assert stored.quantities() == {"9": 2}

    def test_reserve_twice_does_not_double_count(self, ledger, make_product, stock_of):
        make_product("9", stock=10)
        order = _persisted_order(("9", 2))

        ledger.reserve(order.id)
        ledger.reserve(order.id)

        assert stock_of("9") == 8

    def test_reserve_skips_missing_products(self, ledger, make_product, stock_of):
        make_product("9", stock=10)
        order = _persisted_order(("9", 2), ("404", 1))

        reservation = ledger.reserve(order.id)

        assert stock_of("9") == 8
        assert reservation.quantities() == {"9": 2}

    def test_shortage_keeps_earlier_lines_on_reservation(self, ledger, make_product, stock_of):
        make_product("9", stock=10)
        make_product("10", stock=1)
        order = _persisted_order(("9", 2), ("10", 3))

        with pytest.raises(InsufficientStockError) as exc:
            ledger.reserve(order.id)

        assert exc.value.product_id == "10"
        assert stock_of("9") == 8
        assert stock_of("10") == 1
        stored = current_domain.repository_for(StockReservation).for_order(order.id)
        assert stored.quantities() == {"9": 2}

    def test_reserve_after_release_is_rejected(self, ledger, make_product):
        make_product("9", stock=10)
        order = _persisted_order(("9", 2))
        ledger.reserve(order.id)
        ledger.release(order.id)

        with pytest.raises(ValidationError):
            ledger.reserve(order.id)

    def test_concurrent_reservations_never_oversell(self, make_product, stock_of):
        make_product("9", stock=3)
        orders = [_persisted_order(("9", 1)) for _ in range(5)]
        ledger = StockLedger()
        failures = []

        from storefront.domain import storefront

        def _reserve(order_id):
            with storefront.domain_context():
                try:
                    ledger.reserve(order_id)
                except InsufficientStockError:
                    failures.append(order_id)

        threads = [threading.Thread(target=_reserve, args=(o.id,)) for o in orders]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert stock_of("9") == 0
        assert len(failures) == 2


class TestRelease:
    def test_release_restores_stock(self, ledger, make_product, stock_of):
        make_product("9", stock=10)
        order = _persisted_order(("9", 2))
        ledger.reserve(order.id)

        reservation = ledger.release(order.id, reason="order cancelled")

        assert stock_of("9") == 10
        assert not reservation.is_active
        assert reservation.release_reason == "order cancelled"

    def test_release_twice_restores_once(self, ledger, make_product, stock_of):
        make_product("9", stock=10)
        order = _persisted_order(("9", 2))
        ledger.reserve(order.id)

        ledger.release(order.id)
        ledger.release(order.id)

        assert stock_of("9") == 10

    def test_release_without_reservation(self, ledger):
        assert ledger.release("unknown-order") is None

    def test_release_skips_deleted_products(self, ledger, make_product, stock_of):
        make_product("9", stock=10)
        make_product("10", stock=5)
        order = _persisted_order(("9", 2), ("10", 1))
        ledger.reserve(order.id)

        from storefront.inventory.product import Product

        products = current_domain.repository_for(Product)
        products._dao.delete(products.get("10"))

        reservation = ledger.release(order.id)

        assert stock_of("9") == 10
        assert not reservation.is_active

    def test_release_after_partial_reservation(self, ledger, make_product, stock_of):
        make_product("9", stock=10)
        make_product("10", stock=1)
        order = _persisted_order(("9", 2), ("10", 3))
        with pytest.raises(InsufficientStockError):
            ledger.reserve(order.id)

        ledger.release(order.id)

        assert stock_of("9") == 10
        assert stock_of("10") == 1


class TestResumePartialReservation:
    def test_retry_takes_only_missing_lines(self, ledger, make_product, stock_of):
        make_product("9", stock=10)
        make_product("10", stock=1)
        order = _persisted_order(("9", 2), ("10", 3))
        with pytest.raises(InsufficientStockError):
            ledger.reserve(order.id)

        from storefront.inventory.product import Product

        products = current_domain.repository_for(Product)
        restocked = products.get("10")
        restocked.stock = 5
        products.add(restocked)

        reservation = ledger.reserve(order.id)

        assert reservation.complete
        assert reservation.quantities() == {"9": 2, "10": 3}
        assert stock_of("9") == 8
        assert stock_of("10") == 2

    def test_partial_reservation_is_not_complete(self, ledger, make_product):
        make_product("9", stock=10)
        make_product("10", stock=1)
        order = _persisted_order(("9", 2), ("10", 3))
        with pytest.raises(InsufficientStockError):
            ledger.reserve(order.id)

        stored = current_domain.repository_for(StockReservation).for_order(order.id)
        assert stored.is_active
        assert not stored.complete

    def test_retry_still_short_keeps_single_count(self, ledger, make_product, stock_of):
        make_product("9", stock=10)
        make_product("10", stock=1)
        order = _persisted_order(("9", 2), ("10", 3))
        for _ in range(2):
            with pytest.raises(InsufficientStockError):
                ledger.reserve(order.id)

        assert stock_of("9") == 8
        stored = current_domain.repository_for(StockReservation).for_order(order.id)
        assert stored.quantities() == {"9": 2}


class TestProductLocks:
    def test_pool_size_is_fixed(self):
        locks = ProductLocks(stripes=4)
        for product_id in range(100):
            locks.for_product(str(product_id))
        assert len(locks) == 4

    def test_same_product_gets_same_lock(self):
        locks = ProductLocks(stripes=8)
        assert locks.for_product("9") is locks.for_product("9")

    def test_needs_at_least_one_stripe(self):
        with pytest.raises(ValueError):
            ProductLocks(stripes=0)

    def test_single_stripe_still_reserves(self, make_product, stock_of):
        make_product("9", stock=10)
        make_product("10", stock=10)
        order = _persisted_order(("9", 2), ("10", 1))

        StockLedger(locks=ProductLocks(stripes=1)).reserve(order.id)

        assert stock_of("9") == 8
        assert stock_of("10") == 9

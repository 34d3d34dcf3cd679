"""Tests for listing helpers: pagination, periods, statistics and search."""

from datetime import UTC, datetime, timedelta

import pytest

from storefront.cart.snapshot import CartLine
from storefront.ordering.order import Order, ShippingAddress
from storefront.ordering.queries import matches_search, order_stats, page_params, paginate, period_bounds

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _order(total=1000.0, status="pending", payment_status="pending", age_days=1):
    order = Order.place(
        user_id="user-1",
        shipping_address=ShippingAddress(street="S 1", city="C", state="ST", zip_code="000", country="CL"),
        lines=[CartLine(product_id="9", product_name="Mug", quantity=1, price=total)],
    )
    order.status = status
    order.payment_status = payment_status
    order.created_at = NOW - timedelta(days=age_days)
    return order


class TestPageParams:
    def test_defaults(self):
        assert page_params() == (1, 10)

    @pytest.mark.parametrize(
        "page,limit,expected",
        [
            (0, 10, (1, 10)),
            (-3, 5, (1, 5)),
            (2, 500, (2, 100)),
            ("abc", "xyz", (1, 10)),
            ("3", "20", (3, 20)),
        ],
    )
    def test_clamping(self, page, limit, expected):
        assert page_params(page, limit) == expected


class TestPaginate:
    def test_slices_and_counts(self):
        page = paginate(list(range(25)), page=2, limit=10)
        assert page.items == list(range(10, 20))
        assert page.total_pages == 3
        assert page.total_items == 25
        assert page.has_next_page
        assert page.has_previous_page

    def test_last_page(self):
        page = paginate(list(range(25)), page=3, limit=10)
        assert page.items == list(range(20, 25))
        assert not page.has_next_page

    def test_empty(self):
        page = paginate([], page=1, limit=10)
        assert page.items == []
        assert page.total_pages == 0
        assert not page.has_next_page
        assert not page.has_previous_page


class TestPeriods:
    def test_known_period(self):
        name, start, end = period_bounds("7d", NOW)
        assert name == "7d"
        assert start == NOW - timedelta(days=7)
        assert end == NOW

    def test_all_has_no_start(self):
        assert period_bounds("all", NOW)[1] is None

    def test_unknown_period_falls_back_to_30_days(self):
        name, start, _ = period_bounds("forever", NOW)
        assert name == "30d"
        assert start == NOW - timedelta(days=30)


class TestOrderStats:
    def test_revenue_counts_paid_orders_only(self):
        orders = [
            _order(3000.0, "confirmed", "paid"),
            _order(1000.0, "confirmed", "paid"),
            _order(5000.0, "cancelled", "failed"),
            _order(2000.0),
        ]
        stats = order_stats(orders, "30d", NOW)

        assert stats.total_orders == 4
        assert stats.total_revenue == 4000.0
        assert stats.average_order_value == 1000.0
        assert stats.conversion_rate == 50.0
        assert stats.orders_by_status["confirmed"] == 2
        assert stats.orders_by_status["shipped"] == 0
        assert stats.orders_by_payment_status["refunded"] == 0

    def test_orders_outside_period_are_excluded(self):
        orders = [_order(1000.0, "confirmed", "paid", age_days=1), _order(1000.0, "confirmed", "paid", age_days=40)]
        assert order_stats(orders, "30d", NOW).total_orders == 1
        assert order_stats(orders, "all", NOW).total_orders == 2

    def test_no_orders(self):
        stats = order_stats([], "7d", NOW)
        assert stats.total_orders == 0
        assert stats.average_order_value == 0.0
        assert stats.conversion_rate == 0.0


class TestMatchesSearch:
    def test_matches_order_number(self):
        order = _order()
        assert matches_search(order, order.order_number[:8].lower())

    def test_matches_customer_email(self):
        assert matches_search(_order(), "ANA@", customer_email="ana@shop.test")

    def test_no_match(self):
        assert not matches_search(_order(), "zzz", customer_email="ana@shop.test", customer_name="Ana")

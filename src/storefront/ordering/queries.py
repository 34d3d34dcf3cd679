"""Read-side helpers for order listings: pagination, periods and statistics."""

import math
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from storefront.ordering.order import Order, OrderStatus, PaymentStatus

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

DEFAULT_PERIOD = "30d"
PERIODS = {
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "90d": timedelta(days=90),
    "1y": timedelta(days=365),
    "all": None,
}


def _to_int(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def page_params(page=None, limit=None) -> tuple[int, int]:
    """Clamp page to >= 1 and limit to 1..100; junk falls back to defaults."""
    page = max(1, _to_int(page, 1) or 1)
    limit = max(1, min(MAX_PAGE_SIZE, _to_int(limit, DEFAULT_PAGE_SIZE) or DEFAULT_PAGE_SIZE))
    return page, limit


@dataclass(frozen=True)
class Page:
    items: list[Any]
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int

    @property
    def has_next_page(self) -> bool:
        return self.current_page < self.total_pages

    @property
    def has_previous_page(self) -> bool:
        return self.current_page > 1


def paginate(items: Sequence, page=None, limit=None) -> Page:
    page, limit = page_params(page, limit)
    offset = (page - 1) * limit
    return Page(
        items=list(items[offset : offset + limit]),
        current_page=page,
        total_pages=math.ceil(len(items) / limit),
        total_items=len(items),
        items_per_page=limit,
    )


def period_bounds(period: str | None, now: datetime | None = None) -> tuple[str, datetime | None, datetime]:
    """Resolve a period name to ``(name, start, end)``; unknown names mean 30d."""
    now = now or datetime.now(UTC)
    if period not in PERIODS:
        period = DEFAULT_PERIOD
    span = PERIODS[period]
    return period, (now - span) if span else None, now


def _created(order: Order) -> datetime:
    created = order.created_at
    if created is not None and created.tzinfo is None:
        created = created.replace(tzinfo=UTC)
    return created


def within(orders: Sequence[Order], start: datetime | None, end: datetime) -> list[Order]:
    return [o for o in orders if _created(o) and (start is None or _created(o) >= start) and _created(o) <= end]


@dataclass(frozen=True)
class OrderStats:
    period: str
    start: datetime | None
    end: datetime
    total_orders: int
    total_revenue: float
    average_order_value: float
    conversion_rate: float
    orders_by_status: dict[str, int] = field(default_factory=dict)
    orders_by_payment_status: dict[str, int] = field(default_factory=dict)


def order_stats(orders: Sequence[Order], period: str | None = None, now: datetime | None = None) -> OrderStats:
    """Revenue counts paid orders only. Average and conversion are over all orders."""
    period, start, end = period_bounds(period, now)
    orders = within(orders, start, end)

    paid = [o for o in orders if o.payment_status == PaymentStatus.PAID.value]
    total = len(orders)
    revenue = sum(o.total_amount for o in paid)

    by_status = {s.value: 0 for s in OrderStatus}
    by_status.update(Counter(o.status for o in orders))
    by_payment = {s.value: 0 for s in PaymentStatus}
    by_payment.update(Counter(o.payment_status for o in orders))

    return OrderStats(
        period=period,
        start=start,
        end=end,
        total_orders=total,
        total_revenue=revenue,
        average_order_value=round(revenue / total, 2) if total else 0.0,
        conversion_rate=round(len(paid) / total * 100, 2) if total else 0.0,
        orders_by_status=by_status,
        orders_by_payment_status=by_payment,
    )


def matches_search(order: Order, term: str, customer_email: str | None = None, customer_name: str | None = None) -> bool:
    """Case-insensitive match on order number, ids and the customer's email or name."""
    term = term.strip().lower()
    haystack = (order.order_number, str(order.id), str(order.user_id), customer_email, customer_name)
    return any(term in value.lower() for value in haystack if value)

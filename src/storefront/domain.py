"""Storefront domain: carts, orders, stock and payments.

A single Protean domain hosts every aggregate of the checkout coordinator.
Sub-packages register their elements against it and are discovered when the
domain is initialised.
"""

import structlog
from protean.domain import Domain

storefront = Domain(name="storefront")

logger = structlog.get_logger(__name__)

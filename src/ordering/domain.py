"""Ordering bounded context — Shopping Cart, Promotions, Orders, and Checkout.

Owns the customer's cart (local cache reconciled with a persisted cart),
promotion evaluation, tax, and the checkout submission flow that turns a
cart into a priced, fulfillment-assigned, paid order.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)

"""Storefront bounded context: perfume catalogue variants, cart, checkout and orders.

Holds the shopping cart (persisted to browser-local state), the checkout
flow that assembles an immutable order snapshot, and the per-user order
history that reconciles a lightweight index with canonical orders.
"""

import structlog
from protean.domain import Domain

storefront = Domain(name="storefront")

logger = structlog.get_logger(__name__)

"""Commerce bounded context: Shopping Cart, Orders, Coupons and Reviews.

Holds the server-side cart mirror (CQRS), the order lifecycle (event-sourced),
coupon quoting/redemption, and reviews of delivered orders.
"""

import structlog
from protean.domain import Domain

commerce = Domain(name="commerce")

logger = structlog.get_logger(__name__)

"""Commerce domain API package."""

from commerce.api.errors import register_exception_handlers
from commerce.api.routes import cart_router, coupon_router, order_router, review_router

__all__ = ["cart_router", "order_router", "coupon_router", "review_router", "register_exception_handlers"]

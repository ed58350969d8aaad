"""Explicit storefront session context.

A session owns the HTTP client, the cart store, the checkout orchestrator and,
once a customer has signed in, the order tracker. It starts with an empty cart
and no customer.

    async with StorefrontSession() as session:
        await session.sign_in("cust-001")
        await session.cart.add_item(product, quantity=2, size="M")
        receipt = await session.checkout.submit(address, "cod")
"""

import httpx

from storefront.api.client import ShopApiClient
from storefront.cart import CartStore
from storefront.checkout import CheckoutOrchestrator
from storefront.config import ApiSettings
from storefront.errors import ValidationError
from storefront.orders import OrderTracker
from storefront.utils.logging import get_logger, quiet_http_loggers

logger = get_logger(__name__)


class StorefrontSession:
    def __init__(self, settings: ApiSettings | None = None, transport: httpx.AsyncBaseTransport | None = None):
        quiet_http_loggers()
        self.api = ShopApiClient(settings, transport=transport)
        self.customer_id = None
        self.cart = CartStore(self.api)
        self.checkout = CheckoutOrchestrator(self.api, self.cart)
        self._orders: OrderTracker | None = None

    @property
    def orders(self) -> OrderTracker:
        if self._orders is None:
            raise ValidationError({"customer": ["Sign in to view orders"]})
        return self._orders

    @property
    def signed_in(self) -> bool:
        return self.customer_id is not None

    async def sign_in(self, customer_id) -> None:
        """Attach the session to ``customer_id`` and open their server cart."""
        self.customer_id = str(customer_id)
        self.cart.reset()
        self.checkout = CheckoutOrchestrator(self.api, self.cart)
        self._orders = OrderTracker(self.api, self.customer_id)
        await self.cart.open(self.customer_id)
        logger.info("session_signed_in", customer_id=self.customer_id, cart_id=self.cart.cart_id)

    def sign_out(self) -> None:
        """Drop every piece of customer-bound local state."""
        logger.info("session_signed_out", customer_id=self.customer_id)
        self.customer_id = None
        self.cart.reset()
        self.checkout = CheckoutOrchestrator(self.api, self.cart)
        self._orders = None

    async def aclose(self) -> None:
        await self.api.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

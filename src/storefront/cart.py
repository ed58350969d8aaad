"""Client-side cart store.

The store never changes its items optimistically. Every mutation is sent to
the server and the returned cart snapshot replaces local state. Two guards
keep concurrent mutations consistent:

* mutations on the same line (product, size, color) are serialised with one
  ``asyncio.Lock`` per line key;
* a snapshot whose ``revision`` is older than the last applied one is dropped,
  so a slow response can never overwrite newer state.

When a mutation fails the store re-fetches the server cart. If that fails as
well the store is marked ``stale`` and the next operation tries to
resynchronise before doing anything else.
"""

import asyncio
from dataclasses import dataclass
from decimal import Decimal

from shared.pricing import ZERO, PricingBreakdown, ShippingMethod, price_lines
from storefront.api.client import ShopApiClient
from storefront.api.schemas import CartLine, CartSnapshot, CouponQuote
from storefront.errors import (
    NetworkError,
    NotFoundError,
    QuantityError,
    ResponseSchemaError,
    ServerError,
    StaleDataError,
)
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

_RESYNC_ON = (NetworkError, ServerError, ResponseSchemaError)


@dataclass(frozen=True)
class Product:
    """The catalogue facts the cart needs about a product."""

    id: str
    price: Decimal
    title: str | None = None


def _normalize_variant(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class CartStore:
    def __init__(self, api: ShopApiClient, cart_id: str | None = None):
        self._api = api
        self._cart_id = cart_id
        self._snapshot: CartSnapshot | None = None
        self._locks: dict[tuple, asyncio.Lock] = {}
        self._shipping_method = ShippingMethod.STANDARD
        self._coupon: CouponQuote | None = None
        self.stale = False

    # -------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------
    @property
    def cart_id(self):
        return self._cart_id

    @property
    def customer_id(self):
        return self._snapshot.customer_id if self._snapshot else None

    @property
    def items(self) -> list[CartLine]:
        return list(self._snapshot.items) if self._snapshot else []

    @property
    def revision(self) -> int:
        return self._snapshot.revision if self._snapshot else 0

    @property
    def total_items(self) -> int:
        return sum(line.quantity for line in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def shipping_method(self) -> ShippingMethod:
        return self._shipping_method

    @shipping_method.setter
    def shipping_method(self, value):
        self._shipping_method = ShippingMethod(value)

    @property
    def coupon_code(self):
        return self._coupon.code if self._coupon else None

    def get_totals(self, discount=None) -> PricingBreakdown:
        """Price the current items with the selected shipping method.

        Without an explicit ``discount`` the last coupon quote is used.
        """
        if discount is None:
            discount = self._coupon.discount if self._coupon else ZERO
        return price_lines(self.items, self._shipping_method, discount)

    def _line(self, item_id) -> CartLine:
        line = self._snapshot.find(item_id) if self._snapshot else None
        if line is None:
            raise NotFoundError(f"Cart item {item_id} not found")
        return line

    def _lock_for(self, key) -> asyncio.Lock:
        return self._locks.setdefault(key, asyncio.Lock())

    def _apply(self, snapshot: CartSnapshot) -> bool:
        current = self._snapshot
        if current is not None and current.id == snapshot.id and snapshot.revision < current.revision:
            logger.debug(
                "cart_snapshot_discarded",
                cart_id=snapshot.id,
                revision=snapshot.revision,
                applied_revision=current.revision,
            )
            return False

        self._snapshot = snapshot
        self._cart_id = snapshot.id
        self.stale = False
        return True

    # -------------------------------------------------------------------
    # Synchronisation
    # -------------------------------------------------------------------
    async def open(self, customer_id=None) -> CartSnapshot:
        """Open (or create) the server cart for ``customer_id``."""
        snapshot = await self._api.open_cart(customer_id)
        self._apply(snapshot)
        logger.debug("cart_opened", cart_id=snapshot.id, customer_id=customer_id)
        return snapshot

    async def refresh(self) -> CartSnapshot | None:
        """Replace local state with the server's authoritative cart."""
        if self._cart_id is None:
            return None
        snapshot = await self._api.get_cart(self._cart_id)
        self._apply(snapshot)
        return self._snapshot

    async def ensure_fresh(self) -> None:
        """Resynchronise a stale cart, raising ``StaleDataError`` when that fails."""
        if not self.stale:
            return
        try:
            await self.refresh()
        except _RESYNC_ON as exc:
            raise StaleDataError(f"Cart {self._cart_id} could not be resynchronised") from exc

    async def _ensure_ready(self) -> str:
        if self._cart_id is None:
            await self.open()
        await self.ensure_fresh()
        return self._cart_id

    async def _resync(self, cause):
        try:
            await self.refresh()
        except _RESYNC_ON as exc:
            self.stale = True
            logger.warning("cart_stale", cart_id=self._cart_id, cause=str(cause), error=str(exc))

    async def _mutate(self, operation, *args, **kwargs) -> CartSnapshot:
        try:
            snapshot = await operation(*args, **kwargs)
        except _RESYNC_ON as exc:
            await self._resync(exc)
            raise
        self._apply(snapshot)
        return self._snapshot

    def reset(self) -> None:
        """Forget the cart entirely (used on sign-out)."""
        self._cart_id = None
        self._snapshot = None
        self._locks.clear()
        self._shipping_method = ShippingMethod.STANDARD
        self._coupon = None
        self.stale = False

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    async def add_item(self, product: Product, quantity=1, size=None, color=None) -> CartSnapshot:
        if quantity is None or quantity < 1:
            raise QuantityError(quantity)

        size = _normalize_variant(size)
        color = _normalize_variant(color)
        unit_price = product.price  # captured now, never re-fetched

        async with self._lock_for((str(product.id), size, color)):
            cart_id = await self._ensure_ready()
            return await self._mutate(
                self._api.add_cart_item,
                cart_id,
                product.id,
                unit_price,
                quantity=quantity,
                size=size,
                color=color,
                title=product.title,
            )

    async def update_quantity(self, item_id, new_quantity) -> CartSnapshot:
        if new_quantity <= 0:
            return await self.remove_item(item_id)

        line = self._line(item_id)
        async with self._lock_for(line.line_key):
            cart_id = await self._ensure_ready()
            return await self._mutate(self._api.update_cart_item, cart_id, item_id, new_quantity)

    async def remove_item(self, item_id) -> CartSnapshot:
        line = self._line(item_id)
        async with self._lock_for(line.line_key):
            cart_id = await self._ensure_ready()
            return await self._mutate(self._api.remove_cart_item, cart_id, item_id)

    async def clear(self) -> CartSnapshot | None:
        if self._cart_id is None:
            return None
        cart_id = await self._ensure_ready()
        return await self._mutate(self._api.clear_cart, cart_id)

    # -------------------------------------------------------------------
    # Coupons
    # -------------------------------------------------------------------
    async def apply_coupon(self, code) -> CouponQuote:
        """Quote ``code`` against the current subtotal and keep it selected."""
        quote = await self._api.validate_coupon(code, self.get_totals(ZERO).subtotal)
        self._coupon = quote
        logger.debug("coupon_applied", cart_id=self._cart_id, code=quote.code, discount=str(quote.discount))
        return quote

    async def requote_coupon(self) -> Decimal:
        """Re-quote the selected coupon against the current subtotal."""
        if self._coupon is None:
            return ZERO
        quote = await self.apply_coupon(self._coupon.code)
        return quote.discount

    def remove_coupon(self) -> None:
        self._coupon = None

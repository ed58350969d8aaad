"""Checkout orchestrator: turns the cart into a placed order.

    IDLE → VALIDATING → SUBMITTING → SUCCEEDED | FAILED

A cart left stale by a failed resync is refreshed first. If that fails the
checkout fails with ``StaleDataError`` and no order is sent. Local validation
happens before the order request, so an empty cart or an incomplete address
never reaches the server. The shipping method and the coupon are read again
at submission time, and the totals sent to the server are computed by the same
pricing rules the server uses to verify them.

After a successful submission the cart is cleared on a best-effort basis: the
order is already committed, so a failing clear is logged and not raised. A
failed submission leaves the cart untouched so the user can retry.
"""

from dataclasses import asdict, dataclass
from enum import Enum

from shared.pricing import ZERO
from storefront.api.client import ShopApiClient
from storefront.api.schemas import OrderAddress, OrderLineRequest, OrderRecord, OrderRequest
from storefront.cart import CartStore
from storefront.errors import CheckoutInProgressError, ServerError, StorefrontError, ValidationError
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CheckoutState(Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class PaymentMethod(Enum):
    CARD = "card"
    COD = "cod"


@dataclass(frozen=True)
class ShippingAddress:
    full_name: str
    phone: str
    street: str
    ward: str | None = None
    district: str | None = None
    city: str | None = None
    postal_code: str | None = None
    country: str | None = None


_REQUIRED_ADDRESS_FIELDS = ("full_name", "phone", "street")
_BUSY_STATES = {CheckoutState.VALIDATING, CheckoutState.SUBMITTING}


class CheckoutOrchestrator:
    def __init__(self, api: ShopApiClient, cart: CartStore):
        self._api = api
        self._cart = cart
        self.state = CheckoutState.IDLE
        self.receipt: OrderRecord | None = None
        self.error: Exception | None = None

    def _validate(self, address, payment_method) -> PaymentMethod:
        errors = {}

        if self._cart.is_empty:
            errors["cart"] = ["Cart is empty"]
        if not self._cart.customer_id:
            errors["customer"] = ["Sign in to place an order"]

        if address is None:
            errors["shipping_address"] = ["Shipping address is required"]
        else:
            for field in _REQUIRED_ADDRESS_FIELDS:
                if not (getattr(address, field, None) or "").strip():
                    errors.setdefault("shipping_address", []).append(f"{field} is required")

        method = None
        try:
            method = PaymentMethod(payment_method)
        except ValueError:
            errors["payment_method"] = [f"Unsupported payment method: {payment_method}"]

        if errors:
            raise ValidationError(errors)
        return method

    async def _quote_discount(self):
        try:
            return await self._cart.requote_coupon()
        except ServerError as exc:
            if not 400 <= exc.status_code < 500:
                raise
            raise ValidationError({"coupon_code": [exc.message]}) from exc

    def _build_request(self, address, payment_method, discount, notes) -> OrderRequest:
        totals = self._cart.get_totals(discount)
        return OrderRequest(
            customer_id=self._cart.customer_id,
            items=[
                OrderLineRequest(
                    product_id=line.product_id,
                    quantity=line.quantity,
                    price=float(line.unit_price),
                    size=line.size,
                    color=line.color,
                    title=line.title,
                )
                for line in self._cart.items
            ],
            shipping_address=OrderAddress(**asdict(address)),
            payment_method=payment_method.value,
            shipping_method=self._cart.shipping_method.value,
            coupon_code=self._cart.coupon_code,
            notes=notes,
            subtotal=float(totals.subtotal),
            shipping_fee=float(totals.shipping_fee),
            tax=float(totals.tax),
            discount=float(totals.discount),
            total_amount=float(totals.total),
        )

    def _fail(self, exc):
        self.state = CheckoutState.FAILED
        self.error = exc
        logger.info("checkout_failed", cart_id=self._cart.cart_id, error=str(exc))

    async def submit(self, address: ShippingAddress, payment_method, notes=None) -> OrderRecord:
        """Validate, place the order and clear the cart.

        Raises ``ValidationError`` before any request when the input is
        incomplete, ``StaleDataError`` when a stale cart cannot be refreshed,
        ``NetworkError``/``ServerError`` when the server does not accept the
        order, and ``CheckoutInProgressError`` when called again while a
        submission is running.
        """
        if self.state in _BUSY_STATES:
            raise CheckoutInProgressError("Checkout is already being submitted")

        self.state = CheckoutState.VALIDATING
        self.receipt = None
        self.error = None

        try:
            await self._cart.ensure_fresh()
            method = self._validate(address, payment_method)
            discount = await self._quote_discount() if self._cart.coupon_code else ZERO

            self.state = CheckoutState.SUBMITTING
            request = self._build_request(address, method, discount, notes)
            receipt = await self._api.place_order(request)
        except Exception as exc:
            self._fail(exc)
            raise

        self.state = CheckoutState.SUCCEEDED
        self.receipt = receipt
        logger.info(
            "checkout_succeeded",
            cart_id=self._cart.cart_id,
            order_id=receipt.id,
            order_number=receipt.order_number,
        )

        try:
            await self._cart.clear()
        except StorefrontError as exc:
            logger.warning("cart_clear_failed", cart_id=self._cart.cart_id, order_number=receipt.order_number, error=str(exc))
        self._cart.remove_coupon()

        return receipt

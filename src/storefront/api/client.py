"""Async HTTP client for the SportShop API.

Transport failures surface as ``NetworkError``, non-2xx answers as
``ServerError`` (carrying the server's message and field errors) and bodies
that do not match the expected schema as ``ResponseSchemaError``. Nothing is
retried automatically.
"""

from decimal import Decimal

import httpx
from pydantic import ValidationError as PydanticValidationError

from storefront.api.schemas import (
    CartSnapshot,
    CouponQuote,
    CreatedResource,
    Envelope,
    OrderRecord,
    OrderRequest,
)
from storefront.config import ApiSettings
from storefront.errors import NetworkError, ResponseSchemaError, ServerError
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def _money(value) -> float:
    """Decimals travel as JSON numbers."""
    return float(value) if isinstance(value, Decimal) else value


class ShopApiClient:
    def __init__(self, settings: ApiSettings | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings or ApiSettings.from_env()
        self._client = httpx.AsyncClient(
            base_url=self.settings.base_url,
            timeout=httpx.Timeout(self.settings.timeout),
            transport=transport,
            headers={"Accept": "application/json", "Content-Type": "application/json"},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    # -------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------
    async def _request(self, method, path, payload=None):
        try:
            response = await self._client.request(method, path, json=payload)
        except httpx.TimeoutException as exc:
            logger.warning("api_timeout", method=method, path=path)
            raise NetworkError(f"{method} {path} timed out") from exc
        except httpx.TransportError as exc:
            logger.warning("api_unreachable", method=method, path=path, error=str(exc))
            raise NetworkError(f"{method} {path} failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_error:
            message = response.reason_phrase
            errors = {}
            if isinstance(body, dict):
                message = body.get("message") or message
                errors = body.get("errors") or {}
            logger.info("api_error", method=method, path=path, status=response.status_code, message=message)
            raise ServerError(response.status_code, message, errors)

        try:
            envelope = Envelope.model_validate(body)
        except PydanticValidationError as exc:
            raise ResponseSchemaError(f"{method} {path} returned an unexpected body") from exc
        if not envelope.success:
            raise ServerError(response.status_code, envelope.message or "Request was not successful")
        return envelope.data

    async def _fetch(self, model, method, path, payload=None):
        data = await self._request(method, path, payload)
        try:
            return model.model_validate(data)
        except PydanticValidationError as exc:
            raise ResponseSchemaError(f"{method} {path} returned a malformed {model.__name__}: {exc}") from exc

    # -------------------------------------------------------------------
    # Carts
    # -------------------------------------------------------------------
    async def open_cart(self, customer_id=None) -> CartSnapshot:
        return await self._fetch(CartSnapshot, "POST", "/carts", {"customerId": customer_id})

    async def get_cart(self, cart_id) -> CartSnapshot:
        return await self._fetch(CartSnapshot, "GET", f"/carts/{cart_id}")

    async def add_cart_item(
        self, cart_id, product_id, unit_price, quantity=1, size=None, color=None, title=None
    ) -> CartSnapshot:
        payload = {
            "productId": str(product_id),
            "unitPrice": _money(unit_price),
            "quantity": quantity,
            "size": size,
            "color": color,
            "title": title,
        }
        return await self._fetch(CartSnapshot, "POST", f"/carts/{cart_id}/items", payload)

    async def update_cart_item(self, cart_id, item_id, quantity) -> CartSnapshot:
        return await self._fetch(CartSnapshot, "PUT", f"/carts/{cart_id}/items/{item_id}", {"quantity": quantity})

    async def remove_cart_item(self, cart_id, item_id) -> CartSnapshot:
        return await self._fetch(CartSnapshot, "DELETE", f"/carts/{cart_id}/items/{item_id}")

    async def clear_cart(self, cart_id) -> CartSnapshot:
        return await self._fetch(CartSnapshot, "DELETE", f"/carts/{cart_id}/items")

    # -------------------------------------------------------------------
    # Orders
    # -------------------------------------------------------------------
    async def place_order(self, request: OrderRequest) -> OrderRecord:
        payload = request.model_dump(by_alias=True, mode="json")
        return await self._fetch(OrderRecord, "POST", "/orders", payload)

    async def get_order(self, order_id) -> OrderRecord:
        return await self._fetch(OrderRecord, "GET", f"/orders/{order_id}")

    async def cancel_order(self, order_id, customer_id, reason=None) -> OrderRecord:
        payload = {"customerId": str(customer_id), "reason": reason}
        return await self._fetch(OrderRecord, "PUT", f"/orders/{order_id}/cancel", payload)

    # -------------------------------------------------------------------
    # Coupons and reviews
    # -------------------------------------------------------------------
    async def validate_coupon(self, code, order_amount) -> CouponQuote:
        payload = {"code": code, "orderAmount": _money(order_amount)}
        return await self._fetch(CouponQuote, "POST", "/coupons/validate", payload)

    async def submit_review(self, order_id, product_id, customer_id, rating, comment=None) -> str:
        payload = {
            "orderId": str(order_id),
            "productId": str(product_id),
            "customerId": str(customer_id),
            "rating": rating,
            "comment": comment,
        }
        created = await self._fetch(CreatedResource, "POST", "/reviews", payload)
        return created.id

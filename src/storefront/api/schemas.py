"""Response and request models for the SportShop API, as seen by the client.

Responses are validated at the boundary. A 2xx body that does not match these
models is a ``ResponseSchemaError``; business logic never has to guess at
missing fields.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class Envelope(ApiModel):
    success: bool
    message: str = ""
    data: Any = None


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class CartLine(ApiModel):
    id: str
    product_id: str
    title: str | None = None
    size: str | None = None
    color: str | None = None
    unit_price: Decimal
    quantity: int = Field(ge=1)
    line_total: Decimal

    @property
    def line_key(self):
        return (self.product_id, self.size, self.color)


class CartSnapshot(ApiModel):
    id: str
    customer_id: str | None = None
    revision: int = Field(ge=0)
    items: list[CartLine]
    total_items: int = Field(ge=0)
    subtotal: Decimal

    def find(self, item_id):
        return next((line for line in self.items if line.id == str(item_id)), None)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderAddress(ApiModel):
    full_name: str
    phone: str
    street: str
    ward: str | None = None
    district: str | None = None
    city: str | None = None
    postal_code: str | None = None
    country: str | None = None


class OrderLineRequest(ApiModel):
    product_id: str
    quantity: int
    price: float
    size: str | None = None
    color: str | None = None
    title: str | None = None


class OrderRequest(ApiModel):
    """Body of ``POST /orders``."""

    customer_id: str
    items: list[OrderLineRequest]
    shipping_address: OrderAddress
    payment_method: str
    shipping_method: str
    coupon_code: str | None = None
    notes: str | None = None
    subtotal: float
    shipping_fee: float
    tax: float
    discount: float
    total_amount: float


class OrderLine(ApiModel):
    id: str
    product_id: str
    title: str | None = None
    size: str | None = None
    color: str | None = None
    quantity: int
    unit_price: Decimal


class OrderRecord(ApiModel):
    id: str
    order_number: str
    customer_id: str
    status: str
    payment_status: str
    payment_method: str
    shipping_method: str
    items: list[OrderLine]
    shipping_address: OrderAddress
    subtotal: Decimal
    shipping_fee: Decimal
    tax: Decimal
    discount: Decimal
    total_amount: Decimal
    coupon_code: str | None = None
    tracking_number: str | None = None
    notes: str | None = None
    cancel_reason: str | None = None
    cancelled_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# Coupons and reviews
# ---------------------------------------------------------------------------
class CouponQuote(ApiModel):
    code: str
    discount_type: str
    discount_value: Decimal
    discount: Decimal
    final_amount: Decimal


class CreatedResource(ApiModel):
    id: str

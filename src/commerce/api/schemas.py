"""Pydantic request/response schemas for the Commerce API.

These are external contracts (anti-corruption layer), separate from the
internal Protean commands. Field names are snake_case in Python and camelCase
on the wire.
"""

import json
from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from shared.pricing import calculate_subtotal, line_total

DataT = TypeVar("DataT")


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Envelope(ApiModel, Generic[DataT]):
    """Every successful response is wrapped in this envelope."""

    success: bool = True
    message: str = ""
    data: DataT | None = None


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(ApiModel):
    full_name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    street: str = Field(min_length=1)
    ward: str | None = None
    district: str | None = None
    city: str | None = None
    postal_code: str | None = None
    country: str | None = None


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class CreateCartRequest(ApiModel):
    customer_id: str | None = None


class AddCartItemRequest(ApiModel):
    product_id: str
    title: str | None = None
    size: str | None = None
    color: str | None = None
    unit_price: float = Field(ge=0)
    quantity: int = Field(ge=1, default=1)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "productId": "prod-001",
                    "title": "Running Shoe",
                    "size": "42",
                    "color": "black",
                    "unitPrice": 59.99,
                    "quantity": 1,
                }
            ]
        },
    )


class UpdateCartItemRequest(ApiModel):
    quantity: int  # Zero or less removes the item


class CartItemSchema(ApiModel):
    id: str
    product_id: str
    title: str | None = None
    size: str | None = None
    color: str | None = None
    unit_price: float
    quantity: int
    line_total: float


class CartSchema(ApiModel):
    id: str
    customer_id: str | None = None
    revision: int
    items: list[CartItemSchema]
    total_items: int
    subtotal: float

    @classmethod
    def from_cart(cls, cart):
        return cls(
            id=str(cart.id),
            customer_id=str(cart.customer_id) if cart.customer_id else None,
            revision=cart.revision or 0,
            items=[
                CartItemSchema(
                    id=str(item.id),
                    product_id=str(item.product_id),
                    title=item.title,
                    size=item.size,
                    color=item.color,
                    unit_price=item.unit_price,
                    quantity=item.quantity,
                    line_total=float(line_total(item.unit_price, item.quantity)),
                )
                for item in cart.items
            ],
            total_items=cart.total_items,
            subtotal=float(calculate_subtotal(cart.items)),
        )


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderLineRequest(ApiModel):
    product_id: str
    quantity: int = Field(ge=1)
    price: float = Field(ge=0)
    size: str | None = None
    color: str | None = None
    title: str | None = None


class PlaceOrderRequest(ApiModel):
    customer_id: str
    items: list[OrderLineRequest]
    shipping_address: AddressSchema
    payment_method: str
    shipping_method: str = "standard"
    coupon_code: str | None = None
    notes: str | None = None
    subtotal: float
    shipping_fee: float
    tax: float
    discount: float = 0.0
    total_amount: float

    def items_json(self):
        return json.dumps(
            [
                {
                    "product_id": line.product_id,
                    "quantity": line.quantity,
                    "unit_price": line.price,
                    "size": line.size,
                    "color": line.color,
                    "title": line.title,
                }
                for line in self.items
            ]
        )


class CancelOrderRequest(ApiModel):
    customer_id: str
    reason: str | None = None


class UpdateOrderStatusRequest(ApiModel):
    status: str
    tracking_number: str | None = None
    notes: str | None = None


class UpdatePaymentStatusRequest(ApiModel):
    payment_status: str


class OrderItemSchema(ApiModel):
    id: str
    product_id: str
    title: str | None = None
    size: str | None = None
    color: str | None = None
    quantity: int
    unit_price: float


class OrderSchema(ApiModel):
    id: str
    order_number: str
    customer_id: str
    status: str
    payment_status: str
    payment_method: str
    shipping_method: str
    items: list[OrderItemSchema]
    shipping_address: AddressSchema
    subtotal: float
    shipping_fee: float
    tax: float
    discount: float
    total_amount: float
    coupon_code: str | None = None
    tracking_number: str | None = None
    notes: str | None = None
    cancel_reason: str | None = None
    cancelled_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_order(cls, order):
        address = order.shipping_address
        return cls(
            id=str(order.id),
            order_number=order.order_number,
            customer_id=str(order.customer_id),
            status=order.status,
            payment_status=order.payment_status,
            payment_method=order.payment_method,
            shipping_method=order.shipping_method,
            items=[
                OrderItemSchema(
                    id=str(item.id),
                    product_id=str(item.product_id),
                    title=item.title,
                    size=item.size,
                    color=item.color,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                )
                for item in order.items
            ],
            shipping_address=AddressSchema(
                full_name=address.full_name,
                phone=address.phone,
                street=address.street,
                ward=address.ward,
                district=address.district,
                city=address.city,
                postal_code=address.postal_code,
                country=address.country,
            ),
            subtotal=order.pricing.subtotal,
            shipping_fee=order.pricing.shipping_fee,
            tax=order.pricing.tax,
            discount=order.pricing.discount,
            total_amount=order.pricing.total,
            coupon_code=order.coupon_code,
            tracking_number=order.tracking_number,
            notes=order.notes,
            cancel_reason=order.cancel_reason,
            cancelled_by=order.cancelled_by,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


# ---------------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------------
class CreateCouponRequest(ApiModel):
    code: str = Field(min_length=1)
    description: str | None = None
    discount_type: str
    discount_value: float = Field(ge=0)
    min_purchase: float | None = Field(default=None, ge=0)
    max_discount: float | None = Field(default=None, ge=0)
    usage_limit: int | None = Field(default=None, ge=0)
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    is_active: bool = True


class ValidateCouponRequest(ApiModel):
    code: str
    order_amount: float = Field(ge=0)


class CouponIdSchema(ApiModel):
    id: str


class CouponQuoteSchema(ApiModel):
    code: str
    discount_type: str
    discount_value: float
    discount: float
    final_amount: float


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------
class SubmitReviewRequest(ApiModel):
    order_id: str
    product_id: str
    customer_id: str
    rating: int
    comment: str | None = None


class ReviewIdSchema(ApiModel):
    id: str

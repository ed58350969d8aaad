"""FastAPI routes for the Commerce domain: carts, orders, coupons and reviews."""

import json

from fastapi import APIRouter
from protean.utils.globals import current_domain

from commerce.api.schemas import (
    AddCartItemRequest,
    CancelOrderRequest,
    CartSchema,
    CouponIdSchema,
    CouponQuoteSchema,
    CreateCartRequest,
    CreateCouponRequest,
    Envelope,
    OrderSchema,
    PlaceOrderRequest,
    ReviewIdSchema,
    SubmitReviewRequest,
    UpdateCartItemRequest,
    UpdateOrderStatusRequest,
    UpdatePaymentStatusRequest,
    ValidateCouponRequest,
)
from commerce.cart.cart import ShoppingCart
from commerce.cart.items import AddToCart, RemoveFromCart, UpdateCartQuantity
from commerce.cart.management import ClearCart, CreateCart
from commerce.coupon.management import CreateCoupon, DeactivateCoupon, quote_coupon
from commerce.order.cancellation import CancelOrder
from commerce.order.order import Order
from commerce.order.placement import PlaceOrder
from commerce.order.status import UpdateOrderStatus, UpdatePaymentStatus
from commerce.review.submission import SubmitReview
from shared.pricing import to_money


def _cart_envelope(cart_id, message=""):
    cart = current_domain.repository_for(ShoppingCart).get(cart_id)
    return Envelope[CartSchema](message=message, data=CartSchema.from_cart(cart))


def _order_envelope(order_id, message=""):
    order = current_domain.repository_for(Order).get(order_id)
    return Envelope[OrderSchema](message=message, data=OrderSchema.from_order(order))


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


@cart_router.post("", status_code=201, response_model=Envelope[CartSchema])
async def open_cart(body: CreateCartRequest) -> Envelope[CartSchema]:
    cart_id = current_domain.process(CreateCart(customer_id=body.customer_id), asynchronous=False)
    return _cart_envelope(cart_id, "Cart ready")


@cart_router.get("/{cart_id}", response_model=Envelope[CartSchema])
async def get_cart(cart_id: str) -> Envelope[CartSchema]:
    return _cart_envelope(cart_id, "Cart retrieved")


@cart_router.post("/{cart_id}/items", response_model=Envelope[CartSchema])
async def add_cart_item(cart_id: str, body: AddCartItemRequest) -> Envelope[CartSchema]:
    command = AddToCart(
        cart_id=cart_id,
        product_id=body.product_id,
        title=body.title,
        size=body.size,
        color=body.color,
        unit_price=body.unit_price,
        quantity=body.quantity,
    )
    current_domain.process(command, asynchronous=False)
    return _cart_envelope(cart_id, "Item added to cart")


@cart_router.put("/{cart_id}/items/{item_id}", response_model=Envelope[CartSchema])
async def update_cart_item(cart_id: str, item_id: str, body: UpdateCartItemRequest) -> Envelope[CartSchema]:
    command = UpdateCartQuantity(
        cart_id=cart_id,
        item_id=item_id,
        new_quantity=body.quantity,
    )
    current_domain.process(command, asynchronous=False)
    return _cart_envelope(cart_id, "Cart updated")


@cart_router.delete("/{cart_id}/items/{item_id}", response_model=Envelope[CartSchema])
async def remove_cart_item(cart_id: str, item_id: str) -> Envelope[CartSchema]:
    current_domain.process(RemoveFromCart(cart_id=cart_id, item_id=item_id), asynchronous=False)
    return _cart_envelope(cart_id, "Item removed from cart")


@cart_router.delete("/{cart_id}/items", response_model=Envelope[CartSchema])
async def clear_cart(cart_id: str) -> Envelope[CartSchema]:
    current_domain.process(ClearCart(cart_id=cart_id), asynchronous=False)
    return _cart_envelope(cart_id, "Cart cleared")


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=Envelope[OrderSchema])
async def place_order(body: PlaceOrderRequest) -> Envelope[OrderSchema]:
    command = PlaceOrder(
        customer_id=body.customer_id,
        items=body.items_json(),
        shipping_address=json.dumps(body.shipping_address.model_dump()),
        payment_method=body.payment_method,
        shipping_method=body.shipping_method,
        coupon_code=body.coupon_code,
        notes=body.notes,
        subtotal=body.subtotal,
        shipping_fee=body.shipping_fee,
        tax=body.tax,
        discount=body.discount,
        total=body.total_amount,
    )
    order_id = current_domain.process(command, asynchronous=False)
    return _order_envelope(order_id, "Order placed")


@order_router.get("/{order_id}", response_model=Envelope[OrderSchema])
async def get_order(order_id: str) -> Envelope[OrderSchema]:
    return _order_envelope(order_id, "Order retrieved")


@order_router.put("/{order_id}/cancel", response_model=Envelope[OrderSchema])
async def cancel_order(order_id: str, body: CancelOrderRequest) -> Envelope[OrderSchema]:
    command = CancelOrder(
        order_id=order_id,
        customer_id=body.customer_id,
        reason=body.reason,
    )
    current_domain.process(command, asynchronous=False)
    return _order_envelope(order_id, "Order cancelled")


@order_router.put("/{order_id}/status", response_model=Envelope[OrderSchema])
async def update_order_status(order_id: str, body: UpdateOrderStatusRequest) -> Envelope[OrderSchema]:
    command = UpdateOrderStatus(
        order_id=order_id,
        status=body.status,
        tracking_number=body.tracking_number,
        notes=body.notes,
    )
    current_domain.process(command, asynchronous=False)
    return _order_envelope(order_id, "Order status updated")


@order_router.put("/{order_id}/payment-status", response_model=Envelope[OrderSchema])
async def update_payment_status(order_id: str, body: UpdatePaymentStatusRequest) -> Envelope[OrderSchema]:
    command = UpdatePaymentStatus(order_id=order_id, payment_status=body.payment_status)
    current_domain.process(command, asynchronous=False)
    return _order_envelope(order_id, "Payment status updated")


# ---------------------------------------------------------------------------
# Coupon Router
# ---------------------------------------------------------------------------
coupon_router = APIRouter(prefix="/coupons", tags=["coupons"])


@coupon_router.post("", status_code=201, response_model=Envelope[CouponIdSchema])
async def create_coupon(body: CreateCouponRequest) -> Envelope[CouponIdSchema]:
    command = CreateCoupon(
        code=body.code,
        description=body.description,
        discount_type=body.discount_type,
        discount_value=body.discount_value,
        min_purchase=body.min_purchase,
        max_discount=body.max_discount,
        usage_limit=body.usage_limit,
        starts_at=body.starts_at,
        ends_at=body.ends_at,
        is_active=body.is_active,
    )
    coupon_id = current_domain.process(command, asynchronous=False)
    return Envelope[CouponIdSchema](message="Coupon created", data=CouponIdSchema(id=coupon_id))


@coupon_router.post("/validate", response_model=Envelope[CouponQuoteSchema])
async def validate_coupon(body: ValidateCouponRequest) -> Envelope[CouponQuoteSchema]:
    coupon, discount = quote_coupon(body.code, body.order_amount)
    quote = CouponQuoteSchema(
        code=coupon.code,
        discount_type=coupon.discount_type,
        discount_value=coupon.discount_value,
        discount=float(discount),
        final_amount=float(to_money(body.order_amount) - discount),
    )
    return Envelope[CouponQuoteSchema](message="Coupon is valid", data=quote)


@coupon_router.put("/{coupon_id}/deactivate", response_model=Envelope[CouponIdSchema])
async def deactivate_coupon(coupon_id: str) -> Envelope[CouponIdSchema]:
    current_domain.process(DeactivateCoupon(coupon_id=coupon_id), asynchronous=False)
    return Envelope[CouponIdSchema](message="Coupon deactivated", data=CouponIdSchema(id=coupon_id))


# ---------------------------------------------------------------------------
# Review Router
# ---------------------------------------------------------------------------
review_router = APIRouter(prefix="/reviews", tags=["reviews"])


@review_router.post("", status_code=201, response_model=Envelope[ReviewIdSchema])
async def submit_review(body: SubmitReviewRequest) -> Envelope[ReviewIdSchema]:
    command = SubmitReview(
        order_id=body.order_id,
        product_id=body.product_id,
        customer_id=body.customer_id,
        rating=body.rating,
        comment=body.comment,
    )
    review_id = current_domain.process(command, asynchronous=False)
    return Envelope[ReviewIdSchema](message="Review submitted", data=ReviewIdSchema(id=review_id))

"""Order placement: command and handler.

The server is authoritative for pricing: the breakdown is recomputed from the
submitted items, shipping method and coupon with the shared pricing rules, and
an order whose submitted totals disagree is rejected. The submitted lines must
also be exactly the lines of the customer's cart, whose unit prices were
captured when the items were added.
"""

import json
from dataclasses import dataclass

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from commerce.cart.cart import ShoppingCart, normalize_variant
from commerce.coupon.coupon import Coupon
from commerce.coupon.management import quote_coupon
from commerce.domain import commerce
from commerce.order.order import Order, PaymentMethod
from commerce.utils.logging import get_logger
from shared.pricing import ZERO, PricingBreakdown, ShippingMethod, as_decimal, price_lines, to_money

logger = get_logger(__name__)

_ADDRESS_FIELDS = ("full_name", "phone", "street", "ward", "district", "city", "postal_code", "country")


@commerce.command(part_of="Order")
class PlaceOrder:
    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of {product_id, quantity, unit_price, size?, color?, title?}
    shipping_address = Text(required=True)  # JSON: address dict
    payment_method = String(required=True, max_length=10)
    shipping_method = String(max_length=10, default="standard")
    coupon_code = String(max_length=50)
    notes = String(max_length=1000)
    subtotal = Float(required=True)
    shipping_fee = Float(required=True)
    tax = Float(required=True)
    discount = Float(default=0.0)
    total = Float(required=True)


@dataclass(frozen=True)
class SubmittedLine:
    product_id: str
    quantity: int
    unit_price: float
    size: str | None = None
    color: str | None = None
    title: str | None = None

    @classmethod
    def from_dict(cls, data):
        try:
            line = cls(
                product_id=str(data["product_id"]),
                quantity=int(data["quantity"]),
                unit_price=float(data["unit_price"]),
                size=data.get("size") or None,
                color=data.get("color") or None,
                title=data.get("title"),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ValidationError({"items": [f"Malformed order item: {data}"]}) from exc

        if line.quantity < 1:
            raise ValidationError({"items": ["Item quantity must be at least 1"]})
        if line.unit_price < 0:
            raise ValidationError({"items": ["Item price cannot be negative"]})
        return line

    @property
    def line_key(self):
        return (self.product_id, normalize_variant(self.size), normalize_variant(self.color))

    def as_item_data(self):
        return {
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "size": self.size,
            "color": self.color,
            "title": self.title,
        }


def assert_lines_match_cart(customer_id, lines):
    """Reject lines that differ from the customer's server cart.

    Unit prices are captured by the cart when an item is added, so the order
    must carry exactly the cart's lines, prices and quantities.
    """
    repo = current_domain.repository_for(ShoppingCart)
    found = repo._dao.query.filter(customer_id=str(customer_id)).all().items
    if not found:
        raise ValidationError({"cart": ["No cart found for this customer"]})
    cart = repo.get(found[0].id)

    in_cart = {item.line_key: item for item in cart.items}
    submitted = {}
    for line in lines:
        if line.line_key in submitted:
            raise ValidationError({"items": [f"Product {line.product_id} is listed more than once"]})
        submitted[line.line_key] = line

    problems = []
    for key, line in submitted.items():
        item = in_cart.get(key)
        if item is None:
            problems.append(f"Product {line.product_id} is not in the cart")
        elif as_decimal(item.unit_price) != as_decimal(line.unit_price):
            problems.append(f"Price of {line.product_id} does not match the cart")
        elif item.quantity != line.quantity:
            problems.append(f"Quantity of {line.product_id} does not match the cart")
    if set(in_cart) - set(submitted):
        problems.append("Order does not include every cart item")

    if problems:
        logger.warning("order_cart_mismatch", customer_id=str(customer_id), cart_id=str(cart.id), problems=problems)
        raise ValidationError({"items": problems})


@commerce.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        items_data = json.loads(command.items) if isinstance(command.items, str) else command.items
        shipping_address = (
            json.loads(command.shipping_address)
            if isinstance(command.shipping_address, str)
            else command.shipping_address
        )
        lines = [SubmittedLine.from_dict(item) for item in items_data or []]
        if not lines:
            raise ValidationError({"items": ["Order must contain at least one item"]})

        try:
            shipping_method = ShippingMethod(command.shipping_method or ShippingMethod.STANDARD.value)
        except ValueError as exc:
            raise ValidationError({"shipping_method": [f"Unknown shipping method: {command.shipping_method}"]}) from exc
        try:
            payment_method = PaymentMethod(command.payment_method)
        except ValueError as exc:
            raise ValidationError({"payment_method": [f"Unknown payment method: {command.payment_method}"]}) from exc
        if not isinstance(shipping_address, dict):
            raise ValidationError({"shipping_address": ["Shipping address is required"]})

        assert_lines_match_cart(command.customer_id, lines)

        coupon = None
        discount = ZERO
        if command.coupon_code:
            undiscounted = price_lines(lines, shipping_method)
            coupon, discount = quote_coupon(command.coupon_code, undiscounted.subtotal)

        computed = price_lines(lines, shipping_method, discount)
        submitted = PricingBreakdown(
            subtotal=to_money(command.subtotal),
            shipping_fee=to_money(command.shipping_fee),
            tax=to_money(command.tax),
            discount=to_money(command.discount),
            total=to_money(command.total),
        )
        mismatched = computed.differences(submitted)
        if mismatched:
            logger.warning(
                "order_pricing_mismatch",
                customer_id=str(command.customer_id),
                fields=mismatched,
                submitted_total=str(submitted.total),
                computed_total=str(computed.total),
            )
            raise ValidationError({"pricing": [f"Submitted totals do not match: {', '.join(mismatched)}"]})

        order = Order.create(
            customer_id=command.customer_id,
            items_data=[line.as_item_data() for line in lines],
            shipping_address={key: shipping_address.get(key) for key in _ADDRESS_FIELDS if shipping_address.get(key)},
            pricing=computed,
            payment_method=payment_method.value,
            shipping_method=shipping_method.value,
            coupon_code=coupon.code if coupon else None,
            notes=command.notes,
        )
        current_domain.repository_for(Order).add(order)

        if coupon:
            coupon.redeem(order_id=str(order.id))
            current_domain.repository_for(Coupon).add(coupon)

        logger.info(
            "order_placed",
            order_id=str(order.id),
            order_number=order.order_number,
            customer_id=str(command.customer_id),
            total=str(computed.total),
        )
        return str(order.id)

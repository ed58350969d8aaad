"""Pricing calculator: the single source of the cart/checkout fee rules.

Both the storefront (to display totals and build the order payload) and the
commerce domain (to verify submitted totals at order placement) price a list
of line items through this module, so the shipping and tax rules live in
exactly one place.

Rules:
    subtotal     = sum(unit_price * quantity)
    shipping_fee = STANDARD: 0 if subtotal > 50 else 5
                   EXPRESS:  15 regardless of subtotal
    tax          = round(subtotal * 0.10, 2)
    total        = subtotal + shipping_fee + tax - discount   (never clamped)

All arithmetic is done in Decimal and quantized to cents with half-up rounding.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Protocol


class ShippingMethod(Enum):
    STANDARD = "standard"
    EXPRESS = "express"


CENT = Decimal("0.01")
ZERO = Decimal("0.00")

FREE_SHIPPING_THRESHOLD = Decimal("50")
STANDARD_SHIPPING_FEE = Decimal("5")
EXPRESS_SHIPPING_FEE = Decimal("15")
TAX_RATE = Decimal("0.10")


class PricedLine(Protocol):
    """Anything with a captured unit price and a quantity can be priced."""

    unit_price: object
    quantity: int


def as_decimal(value) -> Decimal:
    """Exact Decimal for an int, float, str or Decimal, without rounding."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_money(value) -> Decimal:
    """Convert an int, float, str or Decimal to a cent-precision Decimal.

    Floats go through ``str`` first so that ``0.1`` becomes ``Decimal("0.10")``
    instead of its binary expansion.
    """
    return as_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PricingBreakdown:
    """Derived totals for a set of line items. Never stored on its own."""

    subtotal: Decimal
    shipping_fee: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal

    def as_floats(self) -> dict[str, float]:
        """Wire/storage friendly representation (JSON has no decimal type)."""
        return {
            "subtotal": float(self.subtotal),
            "shipping_fee": float(self.shipping_fee),
            "tax": float(self.tax),
            "discount": float(self.discount),
            "total": float(self.total),
        }

    def differences(self, other: PricingBreakdown) -> list[str]:
        """Names of the components that differ from ``other``."""
        return [
            name
            for name in ("subtotal", "shipping_fee", "tax", "discount", "total")
            if getattr(self, name) != getattr(other, name)
        ]


def line_total(unit_price, quantity) -> Decimal:
    return to_money(as_decimal(unit_price) * int(quantity))


def calculate_subtotal(lines: Iterable[PricedLine]) -> Decimal:
    """Exact sum of the line amounts, rounded to cents once at the end."""
    subtotal = sum(
        (as_decimal(line.unit_price) * int(line.quantity) for line in lines),
        ZERO,
    )
    return to_money(subtotal)


def calculate_shipping_fee(subtotal, method: ShippingMethod | str = ShippingMethod.STANDARD) -> Decimal:
    method = ShippingMethod(method)
    if method == ShippingMethod.EXPRESS:
        return to_money(EXPRESS_SHIPPING_FEE)
    if to_money(subtotal) > FREE_SHIPPING_THRESHOLD:
        return ZERO
    return to_money(STANDARD_SHIPPING_FEE)


def calculate_tax(subtotal) -> Decimal:
    return to_money(to_money(subtotal) * TAX_RATE)


def price_lines(
    lines: Iterable[PricedLine],
    shipping_method: ShippingMethod | str = ShippingMethod.STANDARD,
    discount=ZERO,
) -> PricingBreakdown:
    """Compute the full breakdown for ``lines``.

    ``discount`` is supplied by the caller (e.g. a coupon quote) and is simply
    subtracted; a discount larger than the rest of the order yields a negative
    total.
    """
    subtotal = calculate_subtotal(lines)
    shipping_fee = calculate_shipping_fee(subtotal, shipping_method)
    tax = calculate_tax(subtotal)
    discount = to_money(discount)
    return PricingBreakdown(
        subtotal=subtotal,
        shipping_fee=shipping_fee,
        tax=tax,
        discount=discount,
        total=to_money(subtotal + shipping_fee + tax - discount),
    )

"""Tests for the shared pricing calculator."""

from dataclasses import dataclass
from decimal import Decimal

import pytest
from shared.pricing import (
    PricingBreakdown,
    ShippingMethod,
    calculate_shipping_fee,
    calculate_subtotal,
    calculate_tax,
    line_total,
    price_lines,
    to_money,
)


@dataclass
class Line:
    unit_price: object
    quantity: int


class TestSubtotal:
    def test_sum_of_price_times_quantity(self):
        assert calculate_subtotal([Line(10, 2), Line("4.50", 3)]) == Decimal("33.50")

    def test_float_prices_are_exact_to_the_cent(self):
        assert calculate_subtotal([Line(0.1, 3)]) == Decimal("0.30")

    def test_empty_cart_is_zero(self):
        assert calculate_subtotal([]) == Decimal("0.00")

    def test_sub_cent_prices_are_multiplied_before_rounding(self):
        assert calculate_subtotal([Line(Decimal("0.005"), 100)]) == Decimal("0.50")
        assert calculate_subtotal([Line(0.333, 3), Line(0.001, 1)]) == Decimal("1.00")


class TestLineTotal:
    def test_rounds_once_after_multiplying(self):
        assert line_total(Decimal("0.005"), 100) == Decimal("0.50")
        assert line_total(19.99, 2) == Decimal("39.98")


class TestShippingFee:
    @pytest.mark.parametrize(
        "subtotal, expected",
        [("0", "5.00"), ("49.99", "5.00"), ("50", "5.00"), ("50.01", "0.00"), ("120", "0.00")],
    )
    def test_standard_is_free_only_above_threshold(self, subtotal, expected):
        assert calculate_shipping_fee(Decimal(subtotal), ShippingMethod.STANDARD) == Decimal(expected)

    @pytest.mark.parametrize("subtotal", ["0", "30", "50.01", "500"])
    def test_express_is_always_fifteen(self, subtotal):
        assert calculate_shipping_fee(Decimal(subtotal), ShippingMethod.EXPRESS) == Decimal("15.00")

    def test_accepts_wire_value(self):
        assert calculate_shipping_fee(Decimal("10"), "express") == Decimal("15.00")

    def test_unknown_method_is_rejected(self):
        with pytest.raises(ValueError):
            calculate_shipping_fee(Decimal("10"), "overnight")


class TestTax:
    def test_ten_percent(self):
        assert calculate_tax(Decimal("30")) == Decimal("3.00")

    def test_rounds_half_up(self):
        assert calculate_tax(Decimal("0.15")) == Decimal("0.02")
        assert calculate_tax(Decimal("0.05")) == Decimal("0.01")
        assert calculate_tax(Decimal("0.04")) == Decimal("0.00")


class TestPriceLines:
    def test_below_free_shipping_threshold(self):
        breakdown = price_lines([Line(30, 1)], ShippingMethod.STANDARD)
        assert breakdown == PricingBreakdown(
            subtotal=Decimal("30.00"),
            shipping_fee=Decimal("5.00"),
            tax=Decimal("3.00"),
            discount=Decimal("0.00"),
            total=Decimal("38.00"),
        )

    def test_above_free_shipping_threshold(self):
        breakdown = price_lines([Line(60, 1)], ShippingMethod.STANDARD)
        assert breakdown.subtotal == Decimal("60.00")
        assert breakdown.shipping_fee == Decimal("0.00")
        assert breakdown.tax == Decimal("6.00")
        assert breakdown.total == Decimal("66.00")

    def test_express_on_empty_cart(self):
        breakdown = price_lines([], ShippingMethod.EXPRESS)
        assert breakdown.total == Decimal("15.00")

    def test_discount_is_subtracted(self):
        breakdown = price_lines([Line(60, 1)], discount=Decimal("10"))
        assert breakdown.discount == Decimal("10.00")
        assert breakdown.total == Decimal("56.00")

    def test_total_is_not_clamped(self):
        breakdown = price_lines([Line(30, 1)], discount=100)
        assert breakdown.total == Decimal("-62.00")

    def test_as_floats(self):
        floats = price_lines([Line(30, 1)]).as_floats()
        assert floats == {"subtotal": 30.0, "shipping_fee": 5.0, "tax": 3.0, "discount": 0.0, "total": 38.0}

    def test_differences_names_mismatched_components(self):
        computed = price_lines([Line(30, 1)])
        submitted = PricingBreakdown(
            subtotal=to_money(30),
            shipping_fee=to_money(0),
            tax=to_money(3),
            discount=to_money(0),
            total=to_money(33),
        )
        assert computed.differences(submitted) == ["shipping_fee", "total"]
        assert computed.differences(computed) == []

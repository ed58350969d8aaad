"""Coupon aggregate: the source of the ``discount`` term in order pricing.

A coupon is either a percentage of the order subtotal (optionally capped by
``max_discount``) or a fixed amount. It applies only while it is active,
inside its validity window, under its usage limit and when the subtotal meets
``min_purchase``.
"""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String

from commerce.coupon.events import CouponCreated, CouponDeactivated, CouponRedeemed
from commerce.domain import commerce
from shared.pricing import to_money


class DiscountType(Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"


def normalize_code(code):
    return (code or "").strip().upper()


def _as_utc(value):
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


@commerce.aggregate
class Coupon:
    code = String(required=True, max_length=50)
    description = String(max_length=255)
    discount_type = String(required=True, choices=DiscountType)
    discount_value = Float(required=True, min_value=0.0)
    min_purchase = Float(min_value=0.0)
    max_discount = Float(min_value=0.0)
    usage_limit = Integer(min_value=0)
    used_count = Integer(default=0, min_value=0)
    starts_at = DateTime()
    ends_at = DateTime()
    is_active = Boolean(default=True)
    created_at = DateTime()

    @classmethod
    def create(
        cls,
        code,
        discount_type,
        discount_value,
        description=None,
        min_purchase=None,
        max_discount=None,
        usage_limit=None,
        starts_at=None,
        ends_at=None,
        is_active=True,
    ):
        if starts_at and ends_at and _as_utc(ends_at) < _as_utc(starts_at):
            raise ValidationError({"ends_at": ["Coupon cannot end before it starts"]})
        if discount_type not in {t.value for t in DiscountType}:
            raise ValidationError({"discount_type": [f"Unknown discount type: {discount_type}"]})
        if discount_type == DiscountType.PERCENTAGE.value and discount_value > 100:
            raise ValidationError({"discount_value": ["Percentage discount cannot exceed 100"]})

        coupon = cls(
            code=normalize_code(code),
            description=description,
            discount_type=discount_type,
            discount_value=discount_value,
            min_purchase=min_purchase,
            max_discount=max_discount,
            usage_limit=usage_limit,
            used_count=0,
            starts_at=starts_at,
            ends_at=ends_at,
            is_active=is_active,
            created_at=datetime.now(UTC),
        )
        coupon.raise_(
            CouponCreated(
                coupon_id=str(coupon.id),
                code=coupon.code,
                discount_type=coupon.discount_type,
                discount_value=coupon.discount_value,
            )
        )
        return coupon

    def assert_applicable(self, subtotal, as_of=None):
        """Raise ValidationError when the coupon cannot be used for ``subtotal``."""
        as_of = as_of or datetime.now(UTC)

        if not self.is_active:
            raise ValidationError({"coupon_code": ["Coupon is inactive"]})
        if (self.starts_at and as_of < _as_utc(self.starts_at)) or (self.ends_at and as_of > _as_utc(self.ends_at)):
            raise ValidationError({"coupon_code": ["Coupon is expired or not yet active"]})
        if self.usage_limit is not None and self.used_count >= self.usage_limit:
            raise ValidationError({"coupon_code": ["Coupon usage limit reached"]})
        if self.min_purchase and to_money(subtotal) < to_money(self.min_purchase):
            raise ValidationError({"coupon_code": [f"Minimum purchase amount is {to_money(self.min_purchase)}"]})

    def discount_for(self, subtotal, as_of=None) -> Decimal:
        """Quote the discount this coupon grants on ``subtotal``."""
        self.assert_applicable(subtotal, as_of)

        if DiscountType(self.discount_type) == DiscountType.PERCENTAGE:
            discount = to_money(to_money(subtotal) * Decimal(str(self.discount_value)) / 100)
            if self.max_discount and discount > to_money(self.max_discount):
                discount = to_money(self.max_discount)
            return discount
        return to_money(self.discount_value)

    def redeem(self, order_id=None):
        if self.usage_limit is not None and self.used_count >= self.usage_limit:
            raise ValidationError({"coupon_code": ["Coupon usage limit reached"]})

        self.used_count = (self.used_count or 0) + 1
        self.raise_(
            CouponRedeemed(
                coupon_id=str(self.id),
                code=self.code,
                order_id=order_id,
                used_count=self.used_count,
                redeemed_at=datetime.now(UTC),
            )
        )

    def deactivate(self):
        if not self.is_active:
            raise ValidationError({"is_active": ["Coupon is already inactive"]})
        self.is_active = False
        self.raise_(CouponDeactivated(coupon_id=str(self.id), code=self.code))

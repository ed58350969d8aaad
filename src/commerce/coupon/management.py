"""Coupon management: commands, handler and discount quoting."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from commerce.coupon.coupon import Coupon, normalize_code
from commerce.domain import commerce
from commerce.utils.logging import get_logger

logger = get_logger(__name__)


@commerce.command(part_of="Coupon")
class CreateCoupon:
    code = String(required=True, max_length=50)
    description = String(max_length=255)
    discount_type = String(required=True, max_length=20)
    discount_value = Float(required=True, min_value=0.0)
    min_purchase = Float(min_value=0.0)
    max_discount = Float(min_value=0.0)
    usage_limit = Integer(min_value=0)
    starts_at = DateTime()
    ends_at = DateTime()
    is_active = Boolean(default=True)


@commerce.command(part_of="Coupon")
class DeactivateCoupon:
    coupon_id = Identifier(required=True)


def find_coupon(code):
    """Look a coupon up by its (case-insensitive) code."""
    code = normalize_code(code)
    if not code:
        raise ValidationError({"coupon_code": ["Coupon code is required"]})

    repo = current_domain.repository_for(Coupon)
    found = repo._dao.query.filter(code=code).all().items
    if not found:
        raise ValidationError({"coupon_code": ["Invalid coupon code"]})
    return found[0]


def quote_coupon(code, subtotal):
    """Return ``(coupon, discount)`` for ``code`` applied to ``subtotal``."""
    coupon = find_coupon(code)
    return coupon, coupon.discount_for(subtotal)


@commerce.command_handler(part_of=Coupon)
class ManageCouponHandler:
    @handle(CreateCoupon)
    def create_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        code = normalize_code(command.code)
        if repo._dao.query.filter(code=code).all().items:
            raise ValidationError({"code": ["Coupon code already exists"]})

        coupon = Coupon.create(
            code=code,
            description=command.description,
            discount_type=command.discount_type,
            discount_value=command.discount_value,
            min_purchase=command.min_purchase,
            max_discount=command.max_discount,
            usage_limit=command.usage_limit,
            starts_at=command.starts_at,
            ends_at=command.ends_at,
            is_active=command.is_active,
        )
        repo.add(coupon)
        logger.info("coupon_created", coupon_id=str(coupon.id), code=coupon.code)
        return str(coupon.id)

    @handle(DeactivateCoupon)
    def deactivate_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        coupon = repo.get(command.coupon_id)
        coupon.deactivate()
        repo.add(coupon)

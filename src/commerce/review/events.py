"""Domain events for the Review aggregate."""

from protean.fields import DateTime, Identifier, Integer

from commerce.domain import commerce


@commerce.event(part_of="Review")
class ReviewSubmitted:
    """A customer reviewed a product from a delivered order."""

    __version__ = 1

    review_id = Identifier(required=True)
    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    rating = Integer(required=True)
    submitted_at = DateTime(required=True)

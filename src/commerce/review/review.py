"""Review aggregate (CQRS): a customer's rating of a product they received.

Reviews are write-once. Whether a customer may review a product depends on the
order it came from, so that check lives in the submission handler.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, Identifier, Integer, Text

from commerce.domain import commerce
from commerce.review.events import ReviewSubmitted


@commerce.aggregate
class Review:
    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    rating = Integer(required=True, min_value=1, max_value=5)
    comment = Text()
    created_at = DateTime()

    @classmethod
    def submit(cls, order_id, product_id, customer_id, rating, comment=None):
        now = datetime.now(UTC)
        review = cls(
            order_id=order_id,
            product_id=product_id,
            customer_id=customer_id,
            rating=rating,
            comment=comment,
            created_at=now,
        )
        review.raise_(
            ReviewSubmitted(
                review_id=str(review.id),
                order_id=str(order_id),
                product_id=str(product_id),
                customer_id=str(customer_id),
                rating=rating,
                submitted_at=now,
            )
        )
        return review

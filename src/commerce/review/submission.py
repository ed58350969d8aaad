"""SubmitReview: review a product from a delivered order.

Only the customer who placed the order may review it, only once it has been
delivered, only for products that were in it, and only once per product.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, Text
from protean.utils.globals import current_domain

from commerce.domain import commerce
from commerce.order.order import Order, OrderStatus
from commerce.review.review import Review


@commerce.command(part_of="Review")
class SubmitReview:
    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    rating = Integer(required=True)
    comment = Text()


@commerce.command_handler(part_of=Review)
class SubmitReviewHandler:
    @handle(SubmitReview)
    def submit_review(self, command):
        order = current_domain.repository_for(Order).get(command.order_id)

        if str(order.customer_id) != str(command.customer_id):
            raise ValidationError({"order_id": ["Order does not belong to this customer"]})
        if order.status != OrderStatus.DELIVERED.value:
            raise ValidationError({"order_id": ["Only delivered orders can be reviewed"]})
        if not order.contains_product(command.product_id):
            raise ValidationError({"product_id": ["Product is not part of this order"]})

        repo = current_domain.repository_for(Review)
        existing = repo._dao.query.filter(
            order_id=str(command.order_id),
            product_id=str(command.product_id),
            customer_id=str(command.customer_id),
        ).all()
        if existing.items:
            raise ValidationError({"review": ["You have already reviewed this product"]})

        review = Review.submit(
            order_id=command.order_id,
            product_id=command.product_id,
            customer_id=command.customer_id,
            rating=command.rating,
            comment=command.comment,
        )
        repo.add(review)
        return str(review.id)

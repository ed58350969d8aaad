"""Cart management: commands and handler.

Handles cart creation and clearing. A customer owns at most one cart, so
creating a cart for a customer who already has one returns the existing cart.
"""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from commerce.cart.cart import ShoppingCart
from commerce.domain import commerce
from commerce.utils.logging import get_logger

logger = get_logger(__name__)


@commerce.command(part_of="ShoppingCart")
class CreateCart:
    """Create a shopping cart for a registered customer or a guest."""

    customer_id = Identifier()  # Optional for guest carts


@commerce.command(part_of="ShoppingCart")
class ClearCart:
    """Remove every item from a cart."""

    cart_id = Identifier(required=True)


@commerce.command_handler(part_of=ShoppingCart)
class ManageCartHandler:
    @handle(CreateCart)
    def create_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)

        if command.customer_id:
            existing = repo._dao.query.filter(customer_id=str(command.customer_id)).all().items
            if existing:
                logger.debug(
                    "cart_reused",
                    cart_id=str(existing[0].id),
                    customer_id=str(command.customer_id),
                )
                return str(existing[0].id)

        cart = ShoppingCart.create(customer_id=command.customer_id)
        repo.add(cart)
        logger.info("cart_created", cart_id=str(cart.id), customer_id=command.customer_id)
        return str(cart.id)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        cart.clear()
        repo.add(cart)

"""Domain events for the ShoppingCart aggregate."""

from protean.fields import Float, Identifier, Integer, String

from commerce.domain import commerce


@commerce.event(part_of="ShoppingCart")
class CartItemAdded:
    """A product was added to the shopping cart (or merged into an existing line)."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)
    size = String()
    color = String()
    quantity = Integer(required=True)
    unit_price = Float(required=True)
    merged = String(default="False")  # "True"/"False"
    revision = Integer(required=True)


@commerce.event(part_of="ShoppingCart")
class CartQuantityUpdated:
    """The quantity of a cart item was changed."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    revision = Integer(required=True)


@commerce.event(part_of="ShoppingCart")
class CartItemRemoved:
    """An item was removed from the shopping cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    revision = Integer(required=True)


@commerce.event(part_of="ShoppingCart")
class CartCleared:
    """Every item was removed from the shopping cart, typically after checkout."""

    __version__ = 1

    cart_id = Identifier(required=True)
    items_removed = Integer(required=True)
    revision = Integer(required=True)

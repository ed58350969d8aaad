"""Shopping Cart aggregate (CQRS): the server-side mirror of a customer's cart.

The cart holds line items keyed by their own item id. A line is identified for
merging purposes by (product, size, color): adding the same product with the
same variant attributes increases the quantity of the existing line, while a
different size or color creates a new line. The unit price is captured when a
line is first added and never changes afterwards.

Every mutation bumps ``revision``. Clients use it to discard cart snapshots
that arrive out of order.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from commerce.cart.events import CartCleared, CartItemAdded, CartItemRemoved, CartQuantityUpdated
from commerce.domain import commerce


def normalize_variant(value):
    """Blank variant attributes are the same as absent ones."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


@commerce.entity(part_of="ShoppingCart")
class CartItem:
    product_id = Identifier(required=True)
    title = String(max_length=255)
    size = String(max_length=20)
    color = String(max_length=50)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()

    @property
    def line_key(self):
        return (str(self.product_id), self.size, self.color)


@commerce.aggregate
class ShoppingCart:
    customer_id = Identifier()  # Nullable for guest carts
    items = HasMany(CartItem)
    revision = Integer(default=0)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def variant_lines_must_be_unique(self):
        keys = [item.line_key for item in self.items]
        if len(keys) != len(set(keys)):
            raise ValidationError({"items": ["A product variant can only appear once in the cart"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, customer_id=None):
        now = datetime.now(UTC)
        return cls(
            customer_id=customer_id,
            revision=0,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _find_item(self, item_id):
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})
        return item

    def _touch(self):
        self.revision = (self.revision or 0) + 1
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product_id, quantity, unit_price, size=None, color=None, title=None):
        """Add an item to the cart, or increase the quantity of the matching line."""
        if quantity is None or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        size = normalize_variant(size)
        color = normalize_variant(color)
        key = (str(product_id), size, color)

        existing = next((i for i in self.items if i.line_key == key), None)

        if existing:
            existing.quantity += quantity
            item = existing
        else:
            item = CartItem(
                product_id=product_id,
                title=title,
                size=size,
                color=color,
                unit_price=unit_price,
                quantity=quantity,
                added_at=datetime.now(UTC),
            )
            self.add_items(item)

        self._touch()

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=str(item.id),
                product_id=str(product_id),
                size=size,
                color=color,
                quantity=quantity,
                unit_price=item.unit_price,
                merged=str(existing is not None),
                revision=self.revision,
            )
        )
        return item

    def update_item_quantity(self, item_id, new_quantity):
        """Set the quantity of a line. Zero or less removes the line."""
        if new_quantity <= 0:
            self.remove_item(item_id)
            return

        item = self._find_item(item_id)
        previous_quantity = item.quantity
        item.quantity = new_quantity
        self._touch()

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                item_id=str(item_id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
                revision=self.revision,
            )
        )

    def remove_item(self, item_id):
        """Remove an item from the cart."""
        item = self._find_item(item_id)
        self.remove_items(item)
        self._touch()

        self.raise_(
            CartItemRemoved(
                cart_id=str(self.id),
                item_id=str(item_id),
                revision=self.revision,
            )
        )

    def clear(self):
        """Remove every item from the cart."""
        removed = list(self.items)
        for item in removed:
            self.remove_items(item)
        self._touch()

        self.raise_(
            CartCleared(
                cart_id=str(self.id),
                items_removed=len(removed),
                revision=self.revision,
            )
        )

    # -------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------
    @property
    def total_items(self):
        return sum(item.quantity for item in self.items)

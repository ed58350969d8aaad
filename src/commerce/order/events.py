"""Domain events for the Order aggregate.

All events are versioned, immutable facts. The Order is event sourced, so
these events are also the only way its state is rebuilt (via @apply).
"""

from protean.fields import DateTime, Float, Identifier, String, Text

from commerce.domain import commerce


@commerce.event(part_of="Order")
class OrderPlaced:
    """A customer placed an order from the contents of their cart."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of item dicts
    shipping_address = Text(required=True)  # JSON: address dict
    subtotal = Float(required=True)
    shipping_fee = Float(required=True)
    tax = Float(required=True)
    discount = Float(default=0.0)
    total = Float(required=True)
    payment_method = String(required=True)
    shipping_method = String(required=True)
    coupon_code = String()
    notes = String()
    placed_at = DateTime(required=True)


@commerce.event(part_of="Order")
class OrderConfirmed:
    """The shop accepted the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    notes = String()
    confirmed_at = DateTime(required=True)


@commerce.event(part_of="Order")
class OrderProcessing:
    """The order is being picked and packed."""

    __version__ = 1

    order_id = Identifier(required=True)
    notes = String()
    started_at = DateTime(required=True)


@commerce.event(part_of="Order")
class OrderShipped:
    """The order left the warehouse."""

    __version__ = 1

    order_id = Identifier(required=True)
    tracking_number = String()
    notes = String()
    shipped_at = DateTime(required=True)


@commerce.event(part_of="Order")
class OrderDelivered:
    """The order reached the customer. Items become reviewable."""

    __version__ = 1

    order_id = Identifier(required=True)
    notes = String()
    delivered_at = DateTime(required=True)


@commerce.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled before it was confirmed."""

    __version__ = 1

    order_id = Identifier(required=True)
    reason = String()
    cancelled_by = String(required=True)
    cancelled_at = DateTime(required=True)


@commerce.event(part_of="Order")
class PaymentStatusChanged:
    """An administrator recorded a change in the order's payment status."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)

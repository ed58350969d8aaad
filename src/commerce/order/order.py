"""Order aggregate (Event Sourced): the record of a placed order.

Line items and the pricing breakdown are frozen when the order is placed. After
that only the status, the payment status, the tracking number, notes and the
cancellation details change, and each change is captured as a domain event.

State Machine:
    PENDING → CONFIRMED | PROCESSING | CANCELLED
    CONFIRMED → PROCESSING | SHIPPED
    PROCESSING → SHIPPED
    SHIPPED → DELIVERED
    DELIVERED and CANCELLED are terminal.

Payment status:
    PENDING → PAID | FAILED
    FAILED → PAID
    PAID → REFUNDED
"""

import json
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean import apply
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    ValueObject,
)

from commerce.domain import commerce
from commerce.order.events import (
    OrderCancelled,
    OrderConfirmed,
    OrderDelivered,
    OrderPlaced,
    OrderProcessing,
    OrderShipped,
    PaymentStatusChanged,
)
from shared.pricing import ShippingMethod


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class PaymentStatus(Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class PaymentMethod(Enum):
    CARD = "card"
    COD = "cod"


class CancellationActor(Enum):
    CUSTOMER = "Customer"
    ADMIN = "Admin"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.SHIPPED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

_VALID_PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.PAID, PaymentStatus.FAILED},
    PaymentStatus.FAILED: {PaymentStatus.PAID},
    PaymentStatus.PAID: {PaymentStatus.REFUNDED},
    PaymentStatus.REFUNDED: set(),
}

# States from which cancellation is allowed
_CANCELLABLE_STATES = {OrderStatus.PENDING}


def generate_order_number(now=None):
    """``ORD`` + placement date + six uppercase hex characters."""
    now = now or datetime.now(UTC)
    return f"ORD{now:%Y%m%d}{uuid4().hex[:6].upper()}"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@commerce.value_object(part_of="Order")
class ShippingAddress:
    """Where the order is delivered, captured at checkout time."""

    full_name = String(required=True, max_length=150)
    phone = String(required=True, max_length=30)
    street = String(required=True, max_length=255)
    ward = String(max_length=100)
    district = String(max_length=100)
    city = String(max_length=100)
    postal_code = String(max_length=20)
    country = String(max_length=100)


@commerce.value_object(part_of="Order")
class OrderPricing:
    """Pricing breakdown frozen at placement. Never recalculated afterwards."""

    subtotal = Float(default=0.0)
    shipping_fee = Float(default=0.0)
    tax = Float(default=0.0)
    discount = Float(default=0.0)
    total = Float(default=0.0)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@commerce.entity(part_of="Order")
class OrderItem:
    product_id = Identifier(required=True)
    title = String(max_length=255)
    size = String(max_length=20)
    color = String(max_length=50)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)


# ---------------------------------------------------------------------------
# Aggregate Root (Event Sourced)
# ---------------------------------------------------------------------------
@commerce.aggregate(is_event_sourced=True)
class Order:
    order_number = String(max_length=20)
    customer_id = Identifier(required=True)
    status = String(
        choices=OrderStatus,
        default=OrderStatus.PENDING.value,
    )
    payment_status = String(
        choices=PaymentStatus,
        default=PaymentStatus.PENDING.value,
    )
    payment_method = String(choices=PaymentMethod)
    shipping_method = String(choices=ShippingMethod, default=ShippingMethod.STANDARD.value)
    items = HasMany(OrderItem)
    shipping_address = ValueObject(ShippingAddress)
    pricing = ValueObject(OrderPricing)
    coupon_code = String(max_length=50)
    tracking_number = String(max_length=255)
    notes = String(max_length=1000)
    cancel_reason = String(max_length=500)
    cancelled_by = String(max_length=50)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        customer_id,
        items_data,
        shipping_address,
        pricing,
        payment_method,
        shipping_method=ShippingMethod.STANDARD.value,
        coupon_code=None,
        notes=None,
    ):
        """Place a new order.

        All state is established by the OrderPlaced event's @apply handler.

        Args:
            customer_id: The customer placing the order.
            items_data: List of dicts with product_id, quantity, unit_price
                        and optional title, size, color.
            shipping_address: Dict with full_name, phone, street and the
                              optional ward, district, city, postal_code, country.
            pricing: A ``shared.pricing.PricingBreakdown`` computed by the server.
            payment_method: ``card`` or ``cod``.
            shipping_method: ``standard`` or ``express``.
        """
        if not items_data:
            raise ValidationError({"items": ["Order must contain at least one item"]})

        try:
            payment_method = PaymentMethod(payment_method).value
        except ValueError as exc:
            raise ValidationError({"payment_method": [f"Unknown payment method: {payment_method}"]}) from exc
        try:
            shipping_method = ShippingMethod(shipping_method).value
        except ValueError as exc:
            raise ValidationError({"shipping_method": [f"Unknown shipping method: {shipping_method}"]}) from exc

        # Validate the address before it is frozen into the event
        ShippingAddress(**shipping_address)

        now = datetime.now(UTC)

        # Pre-generate item IDs for deterministic replay
        items_with_ids = [{**item, "id": str(uuid4())} for item in items_data]
        amounts = pricing.as_floats()

        order = cls._create_new()
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=generate_order_number(now),
                customer_id=str(customer_id),
                items=json.dumps(items_with_ids),
                shipping_address=json.dumps(shipping_address),
                subtotal=amounts["subtotal"],
                shipping_fee=amounts["shipping_fee"],
                tax=amounts["tax"],
                discount=amounts["discount"],
                total=amounts["total"],
                payment_method=payment_method,
                shipping_method=shipping_method,
                coupon_code=coupon_code,
                notes=notes,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # State transition helpers
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate that the current state allows transition to target."""
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    @property
    def can_be_cancelled(self):
        return OrderStatus(self.status) in _CANCELLABLE_STATES

    def contains_product(self, product_id):
        return any(str(item.product_id) == str(product_id) for item in self.items)

    # -------------------------------------------------------------------
    # Order lifecycle transitions
    # -------------------------------------------------------------------
    def confirm(self, notes=None):
        self._assert_can_transition(OrderStatus.CONFIRMED)
        self.raise_(
            OrderConfirmed(
                order_id=str(self.id),
                notes=notes,
                confirmed_at=datetime.now(UTC),
            )
        )

    def mark_processing(self, notes=None):
        self._assert_can_transition(OrderStatus.PROCESSING)
        self.raise_(
            OrderProcessing(
                order_id=str(self.id),
                notes=notes,
                started_at=datetime.now(UTC),
            )
        )

    def ship(self, tracking_number=None, notes=None):
        self._assert_can_transition(OrderStatus.SHIPPED)
        self.raise_(
            OrderShipped(
                order_id=str(self.id),
                tracking_number=tracking_number,
                notes=notes,
                shipped_at=datetime.now(UTC),
            )
        )

    def deliver(self, notes=None):
        self._assert_can_transition(OrderStatus.DELIVERED)
        self.raise_(
            OrderDelivered(
                order_id=str(self.id),
                notes=notes,
                delivered_at=datetime.now(UTC),
            )
        )

    def cancel(self, reason, cancelled_by):
        """Cancel the order. Only a PENDING order can be cancelled."""
        current = OrderStatus(self.status)
        if current not in _CANCELLABLE_STATES:
            raise ValidationError(
                {"status": [f"Cannot cancel order in {current.value} state. Only pending orders can be cancelled"]}
            )

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                reason=reason,
                cancelled_by=CancellationActor(cancelled_by).value,
                cancelled_at=datetime.now(UTC),
            )
        )

    def change_status(self, target, tracking_number=None, notes=None, reason=None):
        """Move the order to ``target`` through the matching transition."""
        try:
            target = OrderStatus(target)
        except ValueError as exc:
            raise ValidationError({"status": [f"Unknown order status: {target}"]}) from exc

        if target == OrderStatus.CONFIRMED:
            self.confirm(notes=notes)
        elif target == OrderStatus.PROCESSING:
            self.mark_processing(notes=notes)
        elif target == OrderStatus.SHIPPED:
            self.ship(tracking_number=tracking_number, notes=notes)
        elif target == OrderStatus.DELIVERED:
            self.deliver(notes=notes)
        elif target == OrderStatus.CANCELLED:
            self.cancel(reason=reason or notes, cancelled_by=CancellationActor.ADMIN.value)
        else:
            self._assert_can_transition(target)

    def update_payment_status(self, new_status):
        try:
            target = PaymentStatus(new_status)
        except ValueError as exc:
            raise ValidationError({"payment_status": [f"Unknown payment status: {new_status}"]}) from exc

        current = PaymentStatus(self.payment_status)
        if target not in _VALID_PAYMENT_TRANSITIONS.get(current, set()):
            raise ValidationError(
                {"payment_status": [f"Cannot change payment status from {current.value} to {target.value}"]}
            )

        self.raise_(
            PaymentStatusChanged(
                order_id=str(self.id),
                previous_status=current.value,
                new_status=target.value,
                changed_at=datetime.now(UTC),
            )
        )

    # -------------------------------------------------------------------
    # @apply methods: rebuild state during event replay
    # -------------------------------------------------------------------
    @apply
    def _on_order_placed(self, event: OrderPlaced):
        self.id = event.order_id
        self.order_number = event.order_number
        self.customer_id = event.customer_id
        self.status = OrderStatus.PENDING.value
        self.payment_status = PaymentStatus.PENDING.value
        self.payment_method = event.payment_method
        self.shipping_method = event.shipping_method
        self.coupon_code = event.coupon_code
        self.notes = event.notes
        self.created_at = event.placed_at
        self.updated_at = event.placed_at

        items_data = json.loads(event.items) if isinstance(event.items, str) else []
        self.items = [OrderItem(**item_data) for item_data in items_data]

        ship_data = json.loads(event.shipping_address) if isinstance(event.shipping_address, str) else {}
        if ship_data:
            self.shipping_address = ShippingAddress(**ship_data)

        self.pricing = OrderPricing(
            subtotal=event.subtotal,
            shipping_fee=event.shipping_fee,
            tax=event.tax,
            discount=event.discount or 0.0,
            total=event.total,
        )

    @apply
    def _on_order_confirmed(self, event: OrderConfirmed):
        self.status = OrderStatus.CONFIRMED.value
        if event.notes:
            self.notes = event.notes
        self.updated_at = event.confirmed_at

    @apply
    def _on_order_processing(self, event: OrderProcessing):
        self.status = OrderStatus.PROCESSING.value
        if event.notes:
            self.notes = event.notes
        self.updated_at = event.started_at

    @apply
    def _on_order_shipped(self, event: OrderShipped):
        self.status = OrderStatus.SHIPPED.value
        if event.tracking_number:
            self.tracking_number = event.tracking_number
        if event.notes:
            self.notes = event.notes
        self.updated_at = event.shipped_at

    @apply
    def _on_order_delivered(self, event: OrderDelivered):
        self.status = OrderStatus.DELIVERED.value
        if event.notes:
            self.notes = event.notes
        self.updated_at = event.delivered_at

    @apply
    def _on_order_cancelled(self, event: OrderCancelled):
        self.status = OrderStatus.CANCELLED.value
        self.cancel_reason = event.reason
        self.cancelled_by = event.cancelled_by
        self.updated_at = event.cancelled_at

    @apply
    def _on_payment_status_changed(self, event: PaymentStatusChanged):
        self.payment_status = event.new_status
        self.updated_at = event.changed_at

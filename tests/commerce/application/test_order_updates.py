"""Application tests for cancellation and administrative order updates."""

import json

import pytest
from commerce.cart.items import AddToCart
from commerce.cart.management import CreateCart
from commerce.order.cancellation import CancelOrder
from commerce.order.order import Order, OrderStatus, PaymentStatus
from commerce.order.placement import PlaceOrder
from commerce.order.status import UpdateOrderStatus, UpdatePaymentStatus
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError


def _place_order(customer_id="cust-001"):
    cart_id = current_domain.process(CreateCart(customer_id=customer_id), asynchronous=False)
    current_domain.process(
        AddToCart(cart_id=cart_id, product_id="prod-001", quantity=1, unit_price=30.0), asynchronous=False
    )
    command = PlaceOrder(
        customer_id=customer_id,
        items=json.dumps([{"product_id": "prod-001", "quantity": 1, "unit_price": 30.0}]),
        shipping_address=json.dumps({"full_name": "Jane Runner", "phone": "0900", "street": "1 Track Lane"}),
        payment_method="card",
        subtotal=30.0,
        shipping_fee=5.0,
        tax=3.0,
        total=38.0,
    )
    return current_domain.process(command, asynchronous=False)


def _load(order_id):
    return current_domain.repository_for(Order).get(order_id)


def _set_status(order_id, status, **kwargs):
    current_domain.process(UpdateOrderStatus(order_id=order_id, status=status, **kwargs), asynchronous=False)


class TestCancelOrder:
    def test_owner_cancels_pending_order(self):
        order_id = _place_order()
        current_domain.process(
            CancelOrder(order_id=order_id, customer_id="cust-001", reason="Ordered twice"),
            asynchronous=False,
        )
        order = _load(order_id)
        assert order.status == OrderStatus.CANCELLED.value
        assert order.cancelled_by == "Customer"
        assert order.cancel_reason == "Ordered twice"

    def test_other_customer_cannot_cancel(self):
        order_id = _place_order()
        with pytest.raises(ValidationError):
            current_domain.process(CancelOrder(order_id=order_id, customer_id="cust-999"), asynchronous=False)
        assert _load(order_id).status == OrderStatus.PENDING.value

    def test_confirmed_order_cannot_be_cancelled(self):
        order_id = _place_order()
        _set_status(order_id, "CONFIRMED")
        with pytest.raises(ValidationError):
            current_domain.process(CancelOrder(order_id=order_id, customer_id="cust-001"), asynchronous=False)

    def test_unknown_order(self):
        with pytest.raises(ObjectNotFoundError):
            current_domain.process(CancelOrder(order_id="missing", customer_id="cust-001"), asynchronous=False)


class TestUpdateOrderStatus:
    def test_full_fulfilment_path(self):
        order_id = _place_order()
        _set_status(order_id, "CONFIRMED")
        _set_status(order_id, "PROCESSING")
        _set_status(order_id, "SHIPPED", tracking_number="TRK-42")
        _set_status(order_id, "DELIVERED", notes="Left with neighbour")

        order = _load(order_id)
        assert order.status == OrderStatus.DELIVERED.value
        assert order.tracking_number == "TRK-42"
        assert order.notes == "Left with neighbour"

    def test_invalid_transition(self):
        order_id = _place_order()
        with pytest.raises(ValidationError):
            _set_status(order_id, "DELIVERED")

    def test_state_survives_replay(self):
        order_id = _place_order()
        _set_status(order_id, "PROCESSING")
        assert _load(order_id).status == OrderStatus.PROCESSING.value


class TestUpdatePaymentStatus:
    def test_mark_paid_then_refunded(self):
        order_id = _place_order()
        current_domain.process(UpdatePaymentStatus(order_id=order_id, payment_status="PAID"), asynchronous=False)
        current_domain.process(UpdatePaymentStatus(order_id=order_id, payment_status="REFUNDED"), asynchronous=False)
        assert _load(order_id).payment_status == PaymentStatus.REFUNDED.value

    def test_refund_requires_payment(self):
        order_id = _place_order()
        with pytest.raises(ValidationError):
            current_domain.process(
                UpdatePaymentStatus(order_id=order_id, payment_status="REFUNDED"),
                asynchronous=False,
            )

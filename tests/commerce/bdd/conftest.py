"""Shared BDD fixtures and step definitions for the Commerce domain."""

import json

import pytest
from commerce.cart.cart import ShoppingCart
from commerce.order.cancellation import CancelOrder
from commerce.order.order import Order
from commerce.order.placement import PlaceOrder
from commerce.order.status import UpdateOrderStatus
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then, when

ADDRESS = {"full_name": "Jane Runner", "phone": "0900000000", "street": "1 Track Lane"}


@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


@pytest.fixture()
def context():
    return {}


@pytest.fixture()
def place():
    """Place an order for the items in a cart with the given totals."""
    return _place


def _place(cart, method, totals):
    current_domain.repository_for(ShoppingCart).add(cart)
    command = PlaceOrder(
        customer_id=str(cart.customer_id),
        items=json.dumps(
            [
                {
                    "product_id": str(item.product_id),
                    "quantity": item.quantity,
                    "unit_price": item.unit_price,
                    "size": item.size,
                    "color": item.color,
                }
                for item in cart.items
            ]
        ),
        shipping_address=json.dumps(ADDRESS),
        payment_method="cod",
        shipping_method=method,
        **totals,
    )
    return current_domain.process(command, asynchronous=False)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a cart for customer "{customer_id}"'), target_fixture="cart")
def cart_for_customer(customer_id):
    return ShoppingCart.create(customer_id=customer_id)


@given(parsers.cfparse('the cart holds {quantity:d} of product "{product_id}" at {price:g}'))
def cart_holds(cart, quantity, product_id, price):
    cart.add_item(product_id, quantity, price)


@given(parsers.cfparse('a placed order for customer "{customer_id}"'), target_fixture="order_id")
def placed_order(customer_id):
    cart = ShoppingCart.create(customer_id=customer_id)
    cart.add_item("prod-001", 1, 30.0)
    return _place(cart, "standard", {"subtotal": 30.0, "shipping_fee": 5.0, "tax": 3.0, "total": 38.0})


@given(parsers.cfparse('the order is moved to "{status}"'))
def order_moved_to(order_id, status):
    current_domain.process(UpdateOrderStatus(order_id=order_id, status=status), asynchronous=False)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the order is moved to "{status}"'))
def when_order_moved_to(order_id, status, error):
    try:
        current_domain.process(UpdateOrderStatus(order_id=order_id, status=status), asynchronous=False)
    except ValidationError as exc:
        error["exc"] = exc


@when("the customer cancels the order")
def customer_cancels(order_id, error):
    try:
        current_domain.process(CancelOrder(order_id=order_id, customer_id="cust-001"), asynchronous=False)
    except ValidationError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(order_id, status):
    assert current_domain.repository_for(Order).get(order_id).status == status


@then(parsers.cfparse('the order is rejected because of "{field}"'))
def order_rejected(error, field):
    assert error["exc"] is not None
    assert field in error["exc"].messages

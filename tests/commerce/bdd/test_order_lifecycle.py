"""BDD tests for order status transitions and cancellation."""

from pytest_bdd import scenarios

scenarios("features/order_lifecycle.feature")

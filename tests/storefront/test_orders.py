"""Tests for the client-side order tracker."""

from decimal import Decimal

import pytest
from commerce.order.status import UpdateOrderStatus
from protean import current_domain
from storefront.cart import Product
from storefront.errors import ServerError, ValidationError
from storefront.orders import OrderStatus

SHOE = Product(id="prod-001", price=Decimal("30.00"), title="Running Shoe")


@pytest.fixture()
async def receipt(signed_in, address):
    await signed_in.cart.add_item(SHOE)
    return await signed_in.checkout.submit(address, "cod")


def _advance(order_id, *statuses):
    for status in statuses:
        current_domain.process(UpdateOrderStatus(order_id=order_id, status=status), asynchronous=False)


class TestOrderView:
    async def test_pending_order_can_be_cancelled(self, signed_in, receipt):
        view = await signed_in.orders.fetch(receipt.id)

        assert view.status == OrderStatus.PENDING
        assert view.can_cancel
        assert not view.can_review("prod-001")
        assert signed_in.orders.get(receipt.id) is view

    async def test_delivered_order_can_be_reviewed(self, signed_in, receipt):
        _advance(receipt.id, "CONFIRMED", "SHIPPED", "DELIVERED")

        view = await signed_in.orders.fetch(receipt.id)

        assert view.status == OrderStatus.DELIVERED
        assert not view.can_cancel
        assert view.can_review(view.record.items[0])
        assert not view.can_review("prod-999")

    async def test_unfetched_order_has_no_view(self, signed_in):
        assert signed_in.orders.get("unknown") is None


class TestCancellation:
    async def test_cancel_refetches_order(self, signed_in, receipt):
        view = await signed_in.orders.cancel(receipt.id, reason="Changed my mind")

        assert view.status == OrderStatus.CANCELLED
        assert view.record.cancel_reason == "Changed my mind"
        assert view.record.cancelled_by == "Customer"
        assert not view.can_cancel

    async def test_cancel_confirmed_order_is_rejected(self, signed_in, receipt):
        _advance(receipt.id, "CONFIRMED")

        with pytest.raises(ServerError) as exc:
            await signed_in.orders.cancel(receipt.id)

        assert exc.value.status_code == 400
        assert "status" in exc.value.errors


class TestReviews:
    async def test_rating_out_of_range_rejected_without_request(self, signed_in, receipt, transport):
        sent = len(transport.requests)

        with pytest.raises(ValidationError):
            await signed_in.orders.submit_review(receipt.id, "prod-001", rating=6)

        assert len(transport.requests) == sent

    async def test_review_delivered_item(self, signed_in, receipt, transport):
        _advance(receipt.id, "PROCESSING", "SHIPPED", "DELIVERED")

        review_id = await signed_in.orders.submit_review(receipt.id, "prod-001", rating=5, comment="Great grip")

        assert review_id
        assert transport.requests[-1] == ("GET", f"/orders/{receipt.id}")

    async def test_review_before_delivery_rejected(self, signed_in, receipt):
        with pytest.raises(ServerError) as exc:
            await signed_in.orders.submit_review(receipt.id, "prod-001", rating=4)

        assert exc.value.status_code == 400

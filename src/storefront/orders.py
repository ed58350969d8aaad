"""Client-side view of the order lifecycle.

The client never infers the next status on its own: after every mutation the
order is fetched again and the server's answer becomes the new view.
"""

from dataclasses import dataclass
from enum import Enum

from storefront.api.client import ShopApiClient
from storefront.api.schemas import OrderLine, OrderRecord
from storefront.errors import ValidationError
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class OrderStatus(Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class OrderView:
    record: OrderRecord

    @property
    def status(self) -> OrderStatus:
        return OrderStatus(self.record.status)

    @property
    def can_cancel(self) -> bool:
        return self.status == OrderStatus.PENDING

    def can_review(self, item: OrderLine | str) -> bool:
        product_id = item.product_id if isinstance(item, OrderLine) else str(item)
        in_order = any(line.product_id == product_id for line in self.record.items)
        return in_order and self.status == OrderStatus.DELIVERED


class OrderTracker:
    def __init__(self, api: ShopApiClient, customer_id: str):
        self._api = api
        self.customer_id = customer_id
        self._views: dict[str, OrderView] = {}

    def get(self, order_id) -> OrderView | None:
        """Last fetched view of ``order_id``, if any."""
        return self._views.get(str(order_id))

    async def fetch(self, order_id) -> OrderView:
        view = OrderView(await self._api.get_order(order_id))
        self._views[view.record.id] = view
        return view

    async def cancel(self, order_id, reason=None) -> OrderView:
        await self._api.cancel_order(order_id, self.customer_id, reason)
        logger.info("order_cancel_requested", order_id=str(order_id), customer_id=self.customer_id)
        return await self.fetch(order_id)

    async def submit_review(self, order_id, item: OrderLine | str, rating: int, comment=None) -> str:
        if not 1 <= rating <= 5:
            raise ValidationError({"rating": ["Rating must be between 1 and 5"]})

        product_id = item.product_id if isinstance(item, OrderLine) else str(item)
        review_id = await self._api.submit_review(order_id, product_id, self.customer_id, rating, comment)
        await self.fetch(order_id)
        return review_id

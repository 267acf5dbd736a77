"""Order tracking and cancellation."""

import logging
from typing import Optional

from .exceptions import FoodHubError, UnauthenticatedError
from .graphql_client import FoodHubClient
from .models import Order
from .notifications import Notifier

logger = logging.getLogger(__name__)


class OrderTracker:
    """Read and cancel the current user's orders."""

    def __init__(self, client: FoodHubClient, notifier: Notifier) -> None:
        self.client = client
        self.notifier = notifier

    async def get_order(self, order_id: str) -> Optional[Order]:
        try:
            order = await self.client.get_order(order_id)
        except FoodHubError as e:
            self._report(e)
            return None

        if order is None:
            self.notifier.error(f"Order {order_id} not found")
        return order

    async def list_orders(
        self,
        include_history: bool = True,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list[Order]:
        """
        Get the user's orders.

        Args:
            include_history: If False, only orders still in progress are returned
            limit: Page size
            offset: Page offset

        Returns:
            List of orders
        """
        try:
            orders = await self.client.get_user_orders(limit=limit, offset=offset)
        except FoodHubError as e:
            self._report(e)
            return []

        if not include_history:
            orders = [o for o in orders if o.is_active]
        return orders

    async def cancel(self, order_id: str) -> Optional[Order]:
        """Cancel an order that is still pending or confirmed."""
        order = await self.get_order(order_id)
        if order is None:
            return None

        if not order.can_cancel:
            self.notifier.error(f"Order {order_id} cannot be cancelled ({order.status.value})")
            return None

        try:
            cancelled = await self.client.cancel_order(order_id)
        except FoodHubError as e:
            self._report(e)
            return None

        self.notifier.success("Order cancelled")
        return cancelled

    def _report(self, error: FoodHubError) -> None:
        if isinstance(error, UnauthenticatedError):
            self.notifier.error("Please login to view your orders")
        else:
            self.notifier.error(error.message)

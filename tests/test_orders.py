"""Tests for OrderTracker - mocked GraphQL transport."""

import httpx
import pytest
import respx

from foodhub_server.graphql_client import FoodHubClient
from foodhub_server.models import OrderStatus
from foodhub_server.orders import OrderTracker
from tests.factories import GRAPHQL_URL


def order(order_id: str, status: str) -> dict:
    return {
        "id": order_id,
        "userId": "user-1",
        "restaurantId": "r1",
        "totalAmount": "12.50",
        "status": status,
    }


@pytest.fixture
def tracker(auth_manager, notifier) -> OrderTracker:
    return OrderTracker(FoodHubClient(auth_manager, url=GRAPHQL_URL), notifier)


class TestOrderTracker:
    """Tests for listing and cancelling orders."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_list_without_history_keeps_active_orders(self, tracker):
        respx.post(GRAPHQL_URL).mock(
            return_value=httpx.Response(
                200,
                json={
                    "data": {
                        "getUserOrders": [
                            order("o1", "PENDING"),
                            order("o2", "COMPLETED"),
                            order("o3", "READY"),
                            order("o4", "CANCELLED"),
                        ]
                    }
                },
            )
        )

        everything = await tracker.list_orders()
        active = await tracker.list_orders(include_history=False)

        assert [o.id for o in everything] == ["o1", "o2", "o3", "o4"]
        assert [o.id for o in active] == ["o1", "o3"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_cancel_pending_order(self, tracker, notifier):
        route = respx.post(GRAPHQL_URL).mock(
            side_effect=[
                httpx.Response(200, json={"data": {"getOrderById": order("o1", "PENDING")}}),
                httpx.Response(200, json={"data": {"cancelOrder": order("o1", "CANCELLED")}}),
            ]
        )

        cancelled = await tracker.cancel("o1")

        assert cancelled.status == OrderStatus.CANCELLED
        assert route.call_count == 2
        assert [n.message for n in notifier.peek()] == ["Order cancelled"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_cannot_cancel_order_being_prepared(self, tracker, notifier):
        route = respx.post(GRAPHQL_URL).mock(
            return_value=httpx.Response(
                200, json={"data": {"getOrderById": order("o1", "PREPARING")}}
            )
        )

        assert await tracker.cancel("o1") is None
        assert route.call_count == 1
        assert [n.message for n in notifier.peek()] == ["Order o1 cannot be cancelled (PREPARING)"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_missing_order(self, tracker, notifier):
        respx.post(GRAPHQL_URL).mock(
            return_value=httpx.Response(200, json={"data": {"getOrderById": None}})
        )

        assert await tracker.get_order("o9") is None
        assert [n.message for n in notifier.peek()] == ["Order o9 not found"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_rejected_session(self, tracker, notifier):
        respx.post(GRAPHQL_URL).mock(
            return_value=httpx.Response(
                200,
                json={
                    "data": None,
                    "errors": [{"message": "Not authenticated", "extensions": {"code": "UNAUTHENTICATED"}}],
                },
            )
        )

        assert await tracker.list_orders() == []
        assert [n.message for n in notifier.peek()] == ["Please login to view your orders"]

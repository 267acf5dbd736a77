"""Tests for the FastAPI HTTP surface."""

import json

import httpx
import pytest
import respx
from fastapi.testclient import TestClient

from foodhub_server import http_server
from tests.factories import GRAPHQL_URL, build_app, cart_payload


@pytest.fixture
def router() -> respx.Router:
    return respx.Router(assert_all_mocked=True)


@pytest.fixture
def make_client(router, session_file, monkeypatch):
    """TestClient whose lifespan builds an application on the mocked router."""

    def factory(token="test-token") -> TestClient:
        monkeypatch.setattr(
            http_server, "FoodHubApp", lambda settings: build_app(router, session_file, token)
        )
        return TestClient(http_server.app)

    return factory


def mock_operation(router, operation: str, data: dict):
    return router.post(GRAPHQL_URL, json__operationName=operation).respond(json={"data": data})


class TestHealthAndAuth:
    """Tests for informational and auth endpoints."""

    def test_health(self, make_client):
        with make_client() as client:
            response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["authenticated"] is True

    def test_auth_status_anonymous(self, make_client):
        with make_client(token=None) as client:
            assert client.get("/auth/status").json() == {"authenticated": False, "email": None}

    def test_login(self, make_client, router):
        mock_operation(
            router,
            "LoginUser",
            {"loginUser": {"token": "fresh", "user": {"id": "u1", "email": "ada@example.com"}}},
        )

        with make_client(token=None) as client:
            response = client.post(
                "/auth/login", json={"email": "ada@example.com", "password": "secret"}
            )
            status = client.get("/auth/status").json()

        assert response.json() == {"success": True, "message": "Successfully logged in as ada@example.com"}
        assert status == {"authenticated": True, "email": "ada@example.com"}

    def test_cart_requires_session(self, make_client):
        with make_client(token=None) as client:
            response = client.get("/carts/r1")

        assert response.status_code == 401


class TestCartEndpoints:
    """Tests for the cart endpoints."""

    def test_get_cart_then_count(self, make_client, router):
        mock_operation(router, "GetCart", {"getCart": cart_payload()})

        with make_client() as client:
            cart = client.get("/carts/r1").json()
            count = client.get("/carts/r1/count").json()

        assert cart["cart"]["total_amount"] == "20.00"
        assert cart["notices"] == []
        assert count == {"restaurant_id": "r1", "count": 2}

    def test_count_without_cart_is_zero(self, make_client, router):
        with make_client() as client:
            assert client.get("/carts/R2/count").json()["count"] == 0

        assert not router.calls

    def test_update_quantity(self, make_client, router):
        mock_operation(router, "GetCart", {"getCart": cart_payload()})
        mock_operation(
            router,
            "UpdateCartItem",
            {"updateCartItem": cart_payload(items=(("m1", "Margherita", "10.00", 3),))},
        )

        with make_client() as client:
            client.get("/carts/r1")
            response = client.post("/carts/r1/update", json={"menu_item_id": "m1", "quantity": 3})

        body = response.json()
        assert body["success"] is True
        assert body["cart"]["total_amount"] == "30.00"
        assert body["notices"] == [{"level": "success", "message": "Cart updated"}]

    def test_update_of_unknown_item_refreshes(self, make_client, router):
        mock_operation(router, "GetCart", {"getCart": cart_payload()})

        with make_client() as client:
            client.get("/carts/r1")
            body = client.post(
                "/carts/r1/update", json={"menu_item_id": "m404", "quantity": 2}
            ).json()

        assert body["success"] is False
        assert body["notices"] == [
            {"level": "warning", "message": "Item no longer in cart. Refreshing..."}
        ]

    def test_clear(self, make_client, router):
        mock_operation(router, "GetCart", {"getCart": cart_payload()})
        mock_operation(router, "ClearCart", {"clearCart": True})

        with make_client() as client:
            client.get("/carts/r1")
            body = client.post("/carts/r1/clear").json()
            count = client.get("/carts/r1/count").json()["count"]

        assert body["success"] is True
        assert count == 0


class TestCheckoutAndOrders:
    """Tests for checkout and order endpoints."""

    def test_checkout_requires_address(self, make_client):
        with make_client() as client:
            response = client.post("/checkout", json={"restaurant_id": "r1", "delivery_address": " "})

        assert response.status_code == 400
        assert "Delivery address is required" in response.json()["detail"]

    def test_unknown_order_is_404(self, make_client, router):
        mock_operation(router, "GetOrderById", {"getOrderById": None})

        with make_client() as client:
            response = client.get("/orders/o9")

        assert response.status_code == 404
        assert response.json()["detail"] == "Order o9 not found"


class TestRestaurantEndpoints:
    """Tests for restaurant details, reviews and favorites endpoints."""

    def test_restaurant_details(self, make_client, router):
        mock_operation(
            router,
            "GetRestaurantById",
            {"getRestaurantById": {"id": "r1", "name": "Pizza Place", "openingHours": []}},
        )

        with make_client(token=None) as client:
            body = client.get("/restaurants/r1").json()

        assert body["restaurant"]["name"] == "Pizza Place"
        assert body["notices"] == []

    def test_unknown_restaurant_is_404(self, make_client, router):
        mock_operation(router, "GetRestaurantById", {"getRestaurantById": None})

        with make_client() as client:
            response = client.get("/restaurants/r404")

        assert response.status_code == 404
        assert response.json()["detail"] == "Restaurant r404 not found"

    def test_reviews_with_limit(self, make_client, router):
        route = mock_operation(router, "GetReviewsByRestaurant", {"getReviewsByRestaurant": []})

        with make_client() as client:
            body = client.get("/restaurants/r1/reviews", params={"limit": 3}).json()

        assert body == {"count": 0, "reviews": [], "notices": []}
        assert json.loads(route.calls.last.request.content)["variables"]["limit"] == 3

    def test_add_review(self, make_client, router):
        mock_operation(
            router,
            "AddReview",
            {"addReview": {"id": "rev-1", "userId": "user-1", "restaurantId": "r1", "rating": 4}},
        )

        with make_client() as client:
            body = client.post("/restaurants/r1/reviews", json={"rating": 4, "comment": "Good"}).json()

        assert body["success"] is True
        assert body["review"]["rating"] == 4
        assert body["notices"] == [{"level": "success", "message": "Review added!"}]

    def test_add_review_rating_out_of_range(self, make_client, router):
        with make_client() as client:
            response = client.post("/restaurants/r1/reviews", json={"rating": 0})

        assert response.status_code == 400
        assert not router.calls

    def test_add_review_requires_session(self, make_client):
        with make_client(token=None) as client:
            response = client.post("/restaurants/r1/reviews", json={"rating": 4})

        assert response.status_code == 401

    def test_add_and_remove_favorite(self, make_client, router):
        mock_operation(
            router,
            "AddFavoriteRestaurant",
            {
                "addFavoriteRestaurant": {
                    "id": "user-1",
                    "favoriteRestaurants": [{"id": "r1", "name": "Pizza Place"}],
                }
            },
        )
        mock_operation(
            router,
            "RemoveFavoriteRestaurant",
            {"removeFavoriteRestaurant": {"id": "user-1", "favoriteRestaurants": []}},
        )

        with make_client() as client:
            added = client.post("/favorites/r1").json()
            removed = client.delete("/favorites/r1").json()

        assert [r["id"] for r in added["restaurants"]] == ["r1"]
        assert added["notices"] == [{"level": "success", "message": "Added to favorites!"}]
        assert removed == {
            "success": True,
            "restaurants": [],
            "notices": [{"level": "success", "message": "Removed from favorites"}],
        }

    def test_list_favorites(self, make_client, router):
        mock_operation(
            router, "GetUserFavorites", {"getUserFavorites": [{"id": "r2", "name": "Sushi Bar"}]}
        )

        with make_client() as client:
            body = client.get("/favorites").json()

        assert body["count"] == 1
        assert body["restaurants"][0]["name"] == "Sushi Bar"


class TestNoticeScopes:
    """Each request only reports the notices it produced."""

    def test_failed_request_notices_do_not_leak(self, make_client, router):
        router.post(GRAPHQL_URL, json__operationName="ClearCart").mock(
            side_effect=[
                httpx.Response(500, text="Internal Server Error"),
                httpx.Response(200, json={"data": {"clearCart": True}}),
            ]
        )

        with make_client() as client:
            failed = client.post("/carts/r1/clear").json()
            cleared = client.post("/carts/r1/clear").json()
            shared = http_server.application.notifier.peek()

        assert failed["notices"] == [{"level": "error", "message": "FoodHub API error: 500"}]
        assert cleared["notices"] == [{"level": "success", "message": "Cart cleared"}]
        assert shared == []

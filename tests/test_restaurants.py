"""Tests for RestaurantDirectory - mocked GraphQL transport."""

import httpx
import pytest
import respx

from foodhub_server.graphql_client import FoodHubClient
from foodhub_server.models import CreateReviewInput
from foodhub_server.restaurants import (
    FAVORITE_LOGIN_REQUIRED_MESSAGE,
    REVIEW_LOGIN_REQUIRED_MESSAGE,
    RestaurantDirectory,
)
from tests.factories import GRAPHQL_URL


def data(payload: dict) -> httpx.Response:
    return httpx.Response(200, json={"data": payload})


@pytest.fixture
def directory(auth_manager, notifier) -> RestaurantDirectory:
    return RestaurantDirectory(FoodHubClient(auth_manager, url=GRAPHQL_URL), notifier, auth_manager)


@pytest.fixture
def anonymous_directory(anonymous_auth_manager, notifier) -> RestaurantDirectory:
    return RestaurantDirectory(
        FoodHubClient(anonymous_auth_manager, url=GRAPHQL_URL), notifier, anonymous_auth_manager
    )


class TestRestaurantDirectory:
    """Tests for restaurant details, reviews and favorites with their notices."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_missing_restaurant(self, directory, notifier):
        respx.post(GRAPHQL_URL).mock(return_value=data({"getRestaurantById": None}))

        assert await directory.get_restaurant("r404") is None
        assert [n.message for n in notifier.peek()] == ["Restaurant r404 not found"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_reviews_failure_is_reported(self, directory, notifier):
        respx.post(GRAPHQL_URL).mock(side_effect=httpx.ConnectError("Connection refused"))

        assert await directory.get_reviews("r1") == []
        assert [n.message for n in notifier.peek()] == ["Network error. Please check your connection."]

    @pytest.mark.asyncio
    @respx.mock
    async def test_add_review_confirms(self, directory, notifier):
        respx.post(GRAPHQL_URL).mock(
            return_value=data(
                {"addReview": {"id": "rev-1", "userId": "user-1", "restaurantId": "r1", "rating": 5}}
            )
        )

        review = await directory.add_review(CreateReviewInput(restaurant_id="r1", rating=5))

        assert review.id == "rev-1"
        assert [str(n) for n in notifier.peek()] == ["[success] Review added!"]

    @pytest.mark.asyncio
    async def test_add_review_requires_session(self, anonymous_directory, notifier):
        review = await anonymous_directory.add_review(CreateReviewInput(restaurant_id="r1", rating=5))

        assert review is None
        assert [n.message for n in notifier.peek()] == [REVIEW_LOGIN_REQUIRED_MESSAGE]

    @pytest.mark.asyncio
    @respx.mock
    async def test_duplicate_review_message_kept(self, directory, notifier):
        respx.post(GRAPHQL_URL).mock(
            return_value=httpx.Response(
                200,
                json={
                    "data": None,
                    "errors": [{"message": "You have already reviewed this restaurant"}],
                },
            )
        )

        assert await directory.add_review(CreateReviewInput(restaurant_id="r1", rating=3)) is None
        assert [n.message for n in notifier.peek()] == ["You have already reviewed this restaurant"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_add_favorite_confirms(self, directory, notifier):
        respx.post(GRAPHQL_URL).mock(
            return_value=data(
                {
                    "addFavoriteRestaurant": {
                        "id": "user-1",
                        "favoriteRestaurants": [{"id": "r1", "name": "Pizza Place"}],
                    }
                }
            )
        )

        favorites = await directory.add_favorite("r1")

        assert [r.id for r in favorites] == ["r1"]
        assert [str(n) for n in notifier.peek()] == ["[success] Added to favorites!"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_remove_favorite_rejected_session(self, directory, notifier):
        respx.post(GRAPHQL_URL).mock(
            return_value=httpx.Response(
                200,
                json={
                    "data": None,
                    "errors": [{"message": "Not authenticated", "extensions": {"code": "UNAUTHENTICATED"}}],
                },
            )
        )

        assert await directory.remove_favorite("r1") is None
        assert [n.message for n in notifier.peek()] == [FAVORITE_LOGIN_REQUIRED_MESSAGE]

    @pytest.mark.asyncio
    async def test_favorites_need_session_before_network(self, anonymous_directory, notifier):
        with respx.mock(assert_all_called=False) as router:
            route = router.post(GRAPHQL_URL)

            assert await anonymous_directory.add_favorite("r1") is None

        assert not route.called
        assert [n.message for n in notifier.peek()] == [FAVORITE_LOGIN_REQUIRED_MESSAGE]

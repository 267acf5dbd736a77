"""Restaurant details, reviews and favorites."""

import logging
from typing import Optional

from .auth import AuthManager
from .exceptions import FoodHubError, UnauthenticatedError
from .graphql_client import FoodHubClient
from .models import CreateReviewInput, Restaurant, RestaurantSummary, Review
from .notifications import Notifier

logger = logging.getLogger(__name__)

REVIEW_LOGIN_REQUIRED_MESSAGE = "Please login to add reviews"
FAVORITE_LOGIN_REQUIRED_MESSAGE = "Please login to add favorites"


class RestaurantDirectory:
    """Browse restaurants and keep the user's reviews and favorites."""

    def __init__(self, client: FoodHubClient, notifier: Notifier, auth_manager: AuthManager) -> None:
        self.client = client
        self.notifier = notifier
        self.auth_manager = auth_manager

    async def get_restaurant(self, restaurant_id: str) -> Optional[Restaurant]:
        try:
            restaurant = await self.client.get_restaurant(restaurant_id)
        except FoodHubError as e:
            self.notifier.error(e.message)
            return None

        if restaurant is None:
            self.notifier.error(f"Restaurant {restaurant_id} not found")
        return restaurant

    async def get_reviews(
        self, restaurant_id: str, limit: Optional[int] = 10, offset: Optional[int] = None
    ) -> list[Review]:
        try:
            return await self.client.get_reviews(restaurant_id, limit=limit, offset=offset)
        except FoodHubError as e:
            self.notifier.error(e.message)
            return []

    async def add_review(self, review_input: CreateReviewInput) -> Optional[Review]:
        """Submit a review; the cached review list is refreshed on next read."""
        if not self.auth_manager.is_authenticated():
            self.notifier.error(REVIEW_LOGIN_REQUIRED_MESSAGE)
            return None

        try:
            review = await self.client.add_review(review_input)
        except UnauthenticatedError:
            self.notifier.error(REVIEW_LOGIN_REQUIRED_MESSAGE)
            return None
        except FoodHubError as e:
            self.notifier.error(e.message or "Failed to add review")
            return None

        self.notifier.success("Review added!")
        return review

    async def get_favorites(self) -> list[RestaurantSummary]:
        try:
            return await self.client.get_favorites()
        except UnauthenticatedError:
            self.notifier.error("Please login to view your favorites")
            return []
        except FoodHubError as e:
            self.notifier.error(e.message)
            return []

    async def add_favorite(self, restaurant_id: str) -> Optional[list[RestaurantSummary]]:
        """
        Mark a restaurant as favorite.

        Returns:
            The updated favorites, or None when the change failed
        """
        return await self._change_favorite(
            restaurant_id, add=True, success_message="Added to favorites!"
        )

    async def remove_favorite(self, restaurant_id: str) -> Optional[list[RestaurantSummary]]:
        return await self._change_favorite(
            restaurant_id, add=False, success_message="Removed from favorites"
        )

    async def _change_favorite(
        self, restaurant_id: str, add: bool, success_message: str
    ) -> Optional[list[RestaurantSummary]]:
        if not self.auth_manager.is_authenticated():
            self.notifier.error(FAVORITE_LOGIN_REQUIRED_MESSAGE)
            return None

        try:
            if add:
                favorites = await self.client.add_favorite(restaurant_id)
            else:
                favorites = await self.client.remove_favorite(restaurant_id)
        except UnauthenticatedError:
            self.notifier.error(FAVORITE_LOGIN_REQUIRED_MESSAGE)
            return None
        except FoodHubError as e:
            logger.warning(f"Favorite change failed for restaurant {restaurant_id}: {e}")
            self.notifier.error(e.message or "Failed to update favorites")
            return None

        self.notifier.success(success_message)
        return favorites

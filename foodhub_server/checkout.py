"""Order placement from a restaurant cart."""

import logging
import math
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from .cart_sync import CartSync
from .exceptions import FoodHubError, UnauthenticatedError
from .graphql_client import FoodHubClient
from .models import CreateOrderInput, Location, Order
from .notifications import Notifier

logger = logging.getLogger(__name__)


class CheckoutRequest(BaseModel):
    """Checkout form data."""

    restaurant_id: str = Field(min_length=1)
    delivery_address: str = Field(description="Delivery address")
    special_instructions: Optional[str] = None
    delivery_location: Optional[Location] = Field(
        None, description="Only sent when both coordinates are valid"
    )

    @field_validator("delivery_address")
    @classmethod
    def _address_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Delivery address is required")
        return value

    @field_validator("special_instructions")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value

    @field_validator("delivery_location", mode="before")
    @classmethod
    def _drop_incomplete_location(cls, value: Any) -> Any:
        if value is None or isinstance(value, Location):
            return value
        if not isinstance(value, dict):
            return None
        coords = [value.get("lat"), value.get("lng")]
        if all(
            isinstance(c, (int, float)) and not isinstance(c, bool) and math.isfinite(c)
            for c in coords
        ):
            return value
        logger.info("Ignoring incomplete delivery location")
        return None

    def to_order_input(self) -> CreateOrderInput:
        return CreateOrderInput(
            restaurant_id=self.restaurant_id,
            delivery_address=self.delivery_address,
            delivery_location=self.delivery_location,
            special_instructions=self.special_instructions,
        )


class CheckoutService:
    """Turns the cart of a restaurant into an order."""

    def __init__(self, client: FoodHubClient, cart_sync: CartSync, notifier: Notifier) -> None:
        self.client = client
        self.cart_sync = cart_sync
        self.notifier = notifier

    async def place_order(self, request: CheckoutRequest) -> Optional[Order]:
        """
        Place an order for the current cart of ``request.restaurant_id``.

        Returns:
            The created order, or None when nothing was ordered
        """
        restaurant_id = request.restaurant_id
        logger.info(f"=== CHECKOUT: restaurant_id={restaurant_id} ===")

        cart = self.cart_sync.get_cart(restaurant_id)
        if cart is None:
            cart = await self.cart_sync.load(restaurant_id)

        if cart is None or not cart.items:
            self.notifier.error("Cart is empty")
            return None

        try:
            order = await self.client.create_order(request.to_order_input())
        except UnauthenticatedError:
            self.notifier.error("Please login to place an order")
            return None
        except FoodHubError as e:
            self.notifier.error(e.message)
            return None

        await self.cart_sync.clear(restaurant_id, remote=False)
        self.notifier.success("Order placed successfully!")
        logger.info(f"Order {order.id} placed for restaurant {restaurant_id}")
        return order

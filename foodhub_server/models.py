"""Data models for FoodHub GraphQL entities."""

import math
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GraphQLModel(BaseModel):
    """Base model accepting both camelCase payload keys and snake_case names."""

    model_config = ConfigDict(populate_by_name=True)


class OrderStatus(str, Enum):
    """Order lifecycle states reported by the API."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PREPARING = "PREPARING"
    READY = "READY"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


ACTIVE_ORDER_STATUSES = frozenset(
    {OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PREPARING, OrderStatus.READY}
)
CANCELLABLE_ORDER_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.CONFIRMED})


class Location(GraphQLModel):
    """Geographic coordinates."""

    lat: float
    lng: float

    @field_validator("lat", "lng")
    @classmethod
    def _finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("coordinates must be finite numbers")
        return value


class Rating(GraphQLModel):
    average: float = 0.0
    count: int = 0


class RestaurantSummary(GraphQLModel):
    """Represents a restaurant as embedded in carts, orders and search results."""

    id: str = Field(description="Restaurant ID")
    name: str = Field(description="Restaurant name")
    address: Optional[str] = Field(None, description="Street address")
    description: Optional[str] = None
    cuisine_type: Optional[str] = Field(None, alias="cuisineType")
    rating: Optional[Rating] = None
    crowd_level: Optional[str] = Field(None, alias="crowdLevel")
    location: Optional[Location] = None
    images: list[str] = Field(default_factory=list, description="Image URLs")


class OpeningHours(GraphQLModel):
    day: str
    open: Optional[str] = None
    close: Optional[str] = None
    is_closed: bool = Field(default=False, alias="isClosed")


class Restaurant(RestaurantSummary):
    """Full restaurant details as returned by getRestaurantById."""

    opening_hours: list[OpeningHours] = Field(default_factory=list, alias="openingHours")
    owner_id: Optional[str] = Field(None, alias="ownerId")
    created_at: Optional[str] = Field(None, alias="createdAt")
    updated_at: Optional[str] = Field(None, alias="updatedAt")


class MenuItem(GraphQLModel):
    """Represents a purchasable dish offered by a restaurant."""

    id: str = Field(description="Menu item ID")
    restaurant_id: Optional[str] = Field(None, alias="restaurantId")
    name: str = Field(description="Dish name")
    description: Optional[str] = None
    price: Decimal = Field(description="Current unit price")
    category: Optional[str] = None
    image: Optional[str] = Field(None, description="Image URL")


class CartItem(GraphQLModel):
    """Represents a line in a cart, unique by menu item within the cart."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    menu_item_id: str = Field(alias="menuItemId", description="Menu item ID")
    menu_item: Optional[MenuItem] = Field(
        None, alias="menuItem", description="Full menu item, for display only"
    )
    quantity: int = Field(gt=0, description="Quantity of the menu item")
    price: Decimal = Field(description="Unit price snapshot taken when added")
    name: str = Field(description="Item name snapshot taken when added")

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity


class Cart(GraphQLModel):
    """Represents the cart a user holds for a single restaurant."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(description="Cart ID")
    user_id: str = Field(alias="userId")
    restaurant_id: str = Field(alias="restaurantId")
    restaurant: Optional[RestaurantSummary] = None
    items: list[CartItem] = Field(default_factory=list, description="Cart items")
    total_amount: Decimal = Field(
        default=Decimal("0"), alias="totalAmount", description="Server computed total"
    )
    created_at: Optional[str] = Field(None, alias="createdAt")
    updated_at: Optional[str] = Field(None, alias="updatedAt")

    def find_item(self, menu_item_id: str) -> Optional[CartItem]:
        """Return the line for a menu item, if present."""
        for item in self.items:
            if item.menu_item_id == menu_item_id:
                return item
        return None

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)


class OrderItem(GraphQLModel):
    """Represents an item in an order."""

    menu_item_id: str = Field(alias="menuItemId")
    menu_item: Optional[MenuItem] = Field(None, alias="menuItem")
    quantity: int
    price: Decimal
    name: str

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity


class UserSummary(GraphQLModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None


class Order(GraphQLModel):
    """Represents an order placed from a cart."""

    id: str = Field(description="Order ID")
    user_id: str = Field(alias="userId")
    user: Optional[UserSummary] = None
    restaurant_id: str = Field(alias="restaurantId")
    restaurant: Optional[RestaurantSummary] = None
    items: list[OrderItem] = Field(default_factory=list, description="Order items")
    total_amount: Decimal = Field(alias="totalAmount", description="Order total value")
    status: OrderStatus = Field(description="Order status")
    delivery_address: Optional[str] = Field(None, alias="deliveryAddress")
    delivery_location: Optional[Location] = Field(None, alias="deliveryLocation")
    special_instructions: Optional[str] = Field(None, alias="specialInstructions")
    created_at: Optional[str] = Field(None, alias="createdAt")
    updated_at: Optional[str] = Field(None, alias="updatedAt")

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_ORDER_STATUSES

    @property
    def can_cancel(self) -> bool:
        return self.status in CANCELLABLE_ORDER_STATUSES


class Review(GraphQLModel):
    """A rating left by a user for a restaurant."""

    id: str = Field(description="Review ID")
    user_id: str = Field(alias="userId")
    user: Optional[UserSummary] = None
    restaurant_id: str = Field(alias="restaurantId")
    rating: int = Field(description="Stars, 1 to 5")
    comment: Optional[str] = None
    created_at: Optional[str] = Field(None, alias="createdAt")
    updated_at: Optional[str] = Field(None, alias="updatedAt")


class CreateReviewInput(GraphQLModel):
    """Input for the addReview mutation."""

    restaurant_id: str = Field(alias="restaurantId", min_length=1)
    rating: int = Field(ge=1, le=5, description="Stars, 1 to 5")
    comment: Optional[str] = None

    @field_validator("comment")
    @classmethod
    def _blank_comment_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value

    def to_variables(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class UserFavorites(GraphQLModel):
    """The user returned by the favorite mutations, with the updated list."""

    id: str
    favorite_restaurants: list[RestaurantSummary] = Field(
        default_factory=list, alias="favoriteRestaurants"
    )


class CreateOrderInput(GraphQLModel):
    """Input for the createOrder mutation."""

    restaurant_id: str = Field(alias="restaurantId")
    delivery_address: Optional[str] = Field(None, alias="deliveryAddress")
    delivery_location: Optional[Location] = Field(None, alias="deliveryLocation")
    special_instructions: Optional[str] = Field(None, alias="specialInstructions")

    def to_variables(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class AuthCredentials(BaseModel):
    """Authentication credentials."""

    email: str
    password: str


class AuthPayload(GraphQLModel):
    """Token and user returned by loginUser/registerUser."""

    token: str
    user: UserSummary


class SessionData(BaseModel):
    """Session data for authenticated user."""

    token: Optional[str] = Field(None, description="Bearer token")
    user_id: Optional[str] = Field(None, description="User ID")
    user_email: Optional[str] = Field(None, description="User email")
    is_authenticated: bool = Field(default=False, description="Authentication status")

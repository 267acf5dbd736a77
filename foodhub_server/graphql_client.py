"""FoodHub GraphQL API client."""

import logging
from typing import Any, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from . import documents
from .auth import AuthManager
from .config import DEFAULT_GRAPHQL_URL
from .exceptions import (
    NetworkError,
    ResponseValidationError,
    ServerError,
    UnauthenticatedError,
    classify_graphql_error,
)
from .models import (
    AuthCredentials,
    AuthPayload,
    Cart,
    CreateOrderInput,
    CreateReviewInput,
    MenuItem,
    Order,
    Restaurant,
    RestaurantSummary,
    Review,
    UserFavorites,
)
from .query_cache import FetchPolicy, QueryCache

logger = logging.getLogger(__name__)

NETWORK_ERROR_MESSAGE = "Network error. Please check your connection."


class FoodHubClient:
    """Client for the FoodHub GraphQL API."""

    def __init__(
        self,
        auth_manager: AuthManager,
        url: str = DEFAULT_GRAPHQL_URL,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
        cache: Optional[QueryCache] = None,
    ) -> None:
        """
        Initialize the FoodHub client.

        Args:
            auth_manager: Authentication manager instance
            url: GraphQL endpoint
            timeout: HTTP timeout in seconds (ignored when http_client is given)
            http_client: Optional HTTP client for dependency injection (testing)
            cache: Query cache shared with the rest of the application
        """
        self.auth_manager = auth_manager
        self.url = url
        self.cache = cache if cache is not None else QueryCache()
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout,
            headers={
                "Accept": "application/json",
                "Content-Type": "application/json",
            },
        )
        self._owns_client = http_client is None

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client:
            await self._client.aclose()

    # =========================================================================
    # Transport
    # =========================================================================

    async def execute(
        self,
        document: str,
        variables: Optional[dict[str, Any]] = None,
        operation_name: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Send a GraphQL operation and return its ``data`` object.

        Raises:
            NetworkError: Transport failure
            UnauthenticatedError: Missing or rejected session
            StaleStateError: Cart or cart item no longer exists
            ServerError: Any other error reported by the API
        """
        payload: dict[str, Any] = {"query": document, "variables": variables or {}}
        if operation_name:
            payload["operationName"] = operation_name

        try:
            response = await self._client.post(
                self.url, json=payload, headers=self.auth_manager.get_headers()
            )
        except httpx.RequestError as e:
            logger.error(f"[Network error]: {operation_name}: {e}")
            raise NetworkError(NETWORK_ERROR_MESSAGE) from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict) and body.get("errors"):
            errors = body["errors"]
            if not isinstance(errors, list) or not all(isinstance(e, dict) for e in errors):
                logger.error(f"[GraphQL error]: malformed errors in {operation_name}: {errors!r}")
                raise ResponseValidationError(
                    "Unexpected error response from server", status_code=response.status_code
                )
            for error in errors:
                logger.error(
                    f"[GraphQL error]: Message: {error.get('message')}, "
                    f"Location: {error.get('locations')}, Path: {error.get('path')}"
                )
            raise classify_graphql_error(errors[0])

        if response.status_code == 401:
            raise UnauthenticatedError("Authentication required", code="UNAUTHENTICATED")

        if response.status_code >= 400 or not isinstance(body, dict):
            logger.error(f"{operation_name} failed: status={response.status_code}")
            raise ServerError(
                f"FoodHub API error: {response.status_code}", status_code=response.status_code
            )

        data = body.get("data")
        if not isinstance(data, dict):
            raise ServerError(f"{operation_name} response contained no data")
        return data

    def _validate(self, type_: Any, value: Any, operation: str) -> Any:
        """Validate a response payload before it enters the application."""
        try:
            return TypeAdapter(type_).validate_python(value)
        except ValidationError as e:
            logger.error(f"Invalid {operation} payload: {e}")
            raise ResponseValidationError(
                f"Unexpected {operation} response from server"
            ) from e

    def remember_cart(self, restaurant_id: str, cart: Optional[Cart]) -> None:
        """Write a cart (or None for no cart) into the GetCart entry of its restaurant."""
        self.cache.write("GetCart", {"restaurantId": restaurant_id}, cart)

    # =========================================================================
    # Authentication
    # =========================================================================

    async def login(self, credentials: AuthCredentials) -> AuthPayload:
        """
        Authenticate and persist the session token.

        Args:
            credentials: User credentials (email and password)

        Returns:
            Token and user returned by the API
        """
        logger.info(f"=== LOGIN: email={credentials.email} ===")

        data = await self.execute(
            documents.LOGIN_USER,
            {"input": {"email": credentials.email, "password": credentials.password}},
            "LoginUser",
        )
        payload = self._validate(AuthPayload, data.get("loginUser"), "loginUser")

        self.auth_manager.save_session(payload.token, payload.user)
        logger.info(f"Login successful for user {payload.user.id}")
        return payload

    async def register(self, name: str, email: str, password: str) -> AuthPayload:
        """Create an account and persist the session token."""
        logger.info(f"=== REGISTER: email={email} ===")

        data = await self.execute(
            documents.REGISTER_USER,
            {"input": {"name": name, "email": email, "password": password}},
            "RegisterUser",
        )
        payload = self._validate(AuthPayload, data.get("registerUser"), "registerUser")

        self.auth_manager.save_session(payload.token, payload.user)
        return payload

    def logout(self) -> None:
        """Forget the session and every cached response."""
        self.auth_manager.clear_session()
        self.cache.clear()
        logger.info("Logged out successfully")

    # =========================================================================
    # Cart
    # =========================================================================

    async def fetch_cart(
        self,
        restaurant_id: str,
        fetch_policy: FetchPolicy = FetchPolicy.NETWORK_ONLY,
        write_cache: bool = True,
    ) -> Optional[Cart]:
        """
        Get the current user's cart for a restaurant.

        Args:
            restaurant_id: Restaurant whose cart is fetched
            fetch_policy: Whether a cached result may answer the call
            write_cache: Store the response under GetCart. Callers that may
                discard the response pass False and call remember_cart themselves.

        Returns:
            The cart, or None when the user has no cart there
        """
        variables = {"restaurantId": restaurant_id}
        if fetch_policy == FetchPolicy.CACHE_FIRST and self.cache.contains("GetCart", variables):
            logger.debug(f"GET CART cache hit: restaurant_id={restaurant_id}")
            return self.cache.read("GetCart", variables)

        logger.info(f"=== GET CART: restaurant_id={restaurant_id} ===")
        data = await self.execute(documents.GET_CART, variables, "GetCart")
        cart = self._validate(Optional[Cart], data.get("getCart"), "getCart")

        if write_cache:
            self.remember_cart(restaurant_id, cart)
        logger.info(
            f"Cart: item_count={cart.item_count if cart else 0}, "
            f"total={cart.total_amount if cart else 0}"
        )
        return cart

    async def fetch_user_carts(self) -> list[Cart]:
        """Get every cart the current user holds, one per restaurant."""
        logger.info("=== GET USER CARTS ===")
        data = await self.execute(documents.GET_USER_CARTS, None, "GetUserCarts")
        carts = self._validate(list[Cart], data.get("getUserCarts") or [], "getUserCarts")

        for cart in carts:
            self.remember_cart(cart.restaurant_id, cart)
        logger.info(f"Found {len(carts)} cart(s)")
        return carts

    async def add_to_cart(self, restaurant_id: str, menu_item_id: str, quantity: int = 1) -> Cart:
        """
        Add a menu item to the cart, or increase its quantity if already present.

        Returns:
            The full resulting cart
        """
        logger.info(
            f"=== ADD TO CART: restaurant_id={restaurant_id}, "
            f"menu_item_id={menu_item_id}, quantity={quantity} ==="
        )
        data = await self.execute(
            documents.ADD_TO_CART,
            {"restaurantId": restaurant_id, "menuItemId": menu_item_id, "quantity": quantity},
            "AddToCart",
        )
        cart = self._validate(Cart, data.get("addToCart"), "addToCart")
        self.remember_cart(restaurant_id, cart)
        return cart

    async def update_cart_item(self, restaurant_id: str, menu_item_id: str, quantity: int) -> Cart:
        """Set the quantity of a cart line. Returns the full resulting cart."""
        logger.info(
            f"=== UPDATE CART: restaurant_id={restaurant_id}, "
            f"menu_item_id={menu_item_id}, new_quantity={quantity} ==="
        )
        data = await self.execute(
            documents.UPDATE_CART_ITEM,
            {"restaurantId": restaurant_id, "menuItemId": menu_item_id, "quantity": quantity},
            "UpdateCartItem",
        )
        cart = self._validate(Cart, data.get("updateCartItem"), "updateCartItem")
        self.remember_cart(restaurant_id, cart)
        return cart

    async def remove_from_cart(self, restaurant_id: str, menu_item_id: str) -> Cart:
        """Remove a cart line. Returns the full resulting cart."""
        logger.info(
            f"=== REMOVE FROM CART: restaurant_id={restaurant_id}, menu_item_id={menu_item_id} ==="
        )
        data = await self.execute(
            documents.REMOVE_FROM_CART,
            {"restaurantId": restaurant_id, "menuItemId": menu_item_id},
            "RemoveFromCart",
        )
        cart = self._validate(Cart, data.get("removeFromCart"), "removeFromCart")
        self.remember_cart(restaurant_id, cart)
        return cart

    async def clear_cart(self, restaurant_id: str) -> bool:
        """Empty the cart for a restaurant."""
        logger.info(f"=== CLEAR CART: restaurant_id={restaurant_id} ===")
        data = await self.execute(
            documents.CLEAR_CART, {"restaurantId": restaurant_id}, "ClearCart"
        )
        self.remember_cart(restaurant_id, None)
        return bool(data.get("clearCart"))

    # =========================================================================
    # Orders
    # =========================================================================

    async def create_order(self, order_input: CreateOrderInput) -> Order:
        """Place an order from the current cart of a restaurant."""
        logger.info(f"=== CREATE ORDER: restaurant_id={order_input.restaurant_id} ===")
        data = await self.execute(
            documents.CREATE_ORDER, {"input": order_input.to_variables()}, "CreateOrder"
        )
        order = self._validate(Order, data.get("createOrder"), "createOrder")

        # The server consumes the cart when the order is created
        self.cache.evict("GetCart", {"restaurantId": order_input.restaurant_id})
        logger.info(f"Order {order.id} created, total={order.total_amount}")
        return order

    async def get_order(self, order_id: str) -> Optional[Order]:
        """Get a single order, or None when it does not exist."""
        logger.info(f"=== GET ORDER DETAILS: order_id={order_id} ===")
        data = await self.execute(documents.GET_ORDER_BY_ID, {"orderId": order_id}, "GetOrderById")
        return self._validate(Optional[Order], data.get("getOrderById"), "getOrderById")

    async def get_user_orders(
        self, limit: Optional[int] = None, offset: Optional[int] = None
    ) -> list[Order]:
        """Get the current user's orders, most recent first as ordered by the API."""
        logger.info(f"=== GET ORDERS: limit={limit}, offset={offset} ===")
        variables = {"limit": limit, "offset": offset}
        data = await self.execute(documents.GET_USER_ORDERS, variables, "GetUserOrders")
        orders = self._validate(list[Order], data.get("getUserOrders") or [], "getUserOrders")
        logger.info(f"Found {len(orders)} orders")
        return orders

    async def cancel_order(self, order_id: str) -> Order:
        logger.info(f"=== CANCEL ORDER: order_id={order_id} ===")
        data = await self.execute(documents.CANCEL_ORDER, {"orderId": order_id}, "CancelOrder")
        return self._validate(Order, data.get("cancelOrder"), "cancelOrder")

    # =========================================================================
    # Restaurants
    # =========================================================================

    async def search_restaurants(
        self, keyword: str, limit: int = 20, offset: int = 0
    ) -> list[RestaurantSummary]:
        """Search restaurants by keyword."""
        logger.info(f"=== SEARCH: keyword='{keyword}' ===")
        data = await self.execute(
            documents.SEARCH_RESTAURANTS,
            {"keyword": keyword, "limit": limit, "offset": offset},
            "SearchRestaurants",
        )
        restaurants = self._validate(
            list[RestaurantSummary], data.get("searchRestaurants") or [], "searchRestaurants"
        )
        logger.info(f"Found {len(restaurants)} restaurants")
        return restaurants

    async def get_menu(
        self, restaurant_id: str, fetch_policy: FetchPolicy = FetchPolicy.CACHE_FIRST
    ) -> list[MenuItem]:
        """Get the menu of a restaurant."""
        variables = {"restaurantId": restaurant_id}
        if fetch_policy == FetchPolicy.CACHE_FIRST and self.cache.contains(
            "GetMenuByRestaurant", variables
        ):
            return self.cache.read("GetMenuByRestaurant", variables)

        logger.info(f"=== GET MENU: restaurant_id={restaurant_id} ===")
        data = await self.execute(
            documents.GET_MENU_BY_RESTAURANT, variables, "GetMenuByRestaurant"
        )
        menu = self._validate(
            list[MenuItem], data.get("getMenuByRestaurant") or [], "getMenuByRestaurant"
        )
        self.cache.write("GetMenuByRestaurant", variables, menu)
        return menu

    async def get_restaurant(
        self, restaurant_id: str, fetch_policy: FetchPolicy = FetchPolicy.CACHE_FIRST
    ) -> Optional[Restaurant]:
        """Get the details of a restaurant, or None when it does not exist."""
        variables = {"id": restaurant_id}
        if fetch_policy == FetchPolicy.CACHE_FIRST and self.cache.contains(
            "GetRestaurantById", variables
        ):
            return self.cache.read("GetRestaurantById", variables)

        logger.info(f"=== GET RESTAURANT: restaurant_id={restaurant_id} ===")
        data = await self.execute(documents.GET_RESTAURANT_BY_ID, variables, "GetRestaurantById")
        restaurant = self._validate(
            Optional[Restaurant], data.get("getRestaurantById"), "getRestaurantById"
        )
        self.cache.write("GetRestaurantById", variables, restaurant)
        return restaurant

    # =========================================================================
    # Reviews
    # =========================================================================

    async def get_reviews(
        self,
        restaurant_id: str,
        limit: Optional[int] = 10,
        offset: Optional[int] = None,
        fetch_policy: FetchPolicy = FetchPolicy.CACHE_FIRST,
    ) -> list[Review]:
        """Get the reviews of a restaurant."""
        variables = {"restaurantId": restaurant_id, "limit": limit, "offset": offset}
        if fetch_policy == FetchPolicy.CACHE_FIRST and self.cache.contains(
            "GetReviewsByRestaurant", variables
        ):
            return self.cache.read("GetReviewsByRestaurant", variables)

        logger.info(f"=== GET REVIEWS: restaurant_id={restaurant_id}, limit={limit} ===")
        data = await self.execute(
            documents.GET_REVIEWS_BY_RESTAURANT, variables, "GetReviewsByRestaurant"
        )
        reviews = self._validate(
            list[Review], data.get("getReviewsByRestaurant") or [], "getReviewsByRestaurant"
        )
        self.cache.write("GetReviewsByRestaurant", variables, reviews)
        logger.info(f"Found {len(reviews)} reviews")
        return reviews

    async def add_review(self, review_input: CreateReviewInput) -> Review:
        """Review a restaurant as the current user."""
        logger.info(
            f"=== ADD REVIEW: restaurant_id={review_input.restaurant_id}, "
            f"rating={review_input.rating} ==="
        )
        data = await self.execute(
            documents.ADD_REVIEW, {"input": review_input.to_variables()}, "AddReview"
        )
        review = self._validate(Review, data.get("addReview"), "addReview")

        # The review list and the restaurant's average rating are now outdated
        self.cache.evict("GetReviewsByRestaurant")
        self.cache.evict("GetRestaurantById", {"id": review_input.restaurant_id})
        return review

    # =========================================================================
    # Favorites
    # =========================================================================

    async def get_favorites(self) -> list[RestaurantSummary]:
        """Get the current user's favorite restaurants."""
        logger.info("=== GET FAVORITES ===")
        data = await self.execute(documents.GET_USER_FAVORITES, None, "GetUserFavorites")
        favorites = self._validate(
            list[RestaurantSummary], data.get("getUserFavorites") or [], "getUserFavorites"
        )
        logger.info(f"Found {len(favorites)} favorites")
        return favorites

    async def add_favorite(self, restaurant_id: str) -> list[RestaurantSummary]:
        """Mark a restaurant as favorite. Returns the updated favorites."""
        logger.info(f"=== ADD FAVORITE: restaurant_id={restaurant_id} ===")
        data = await self.execute(
            documents.ADD_FAVORITE_RESTAURANT,
            {"restaurantId": restaurant_id},
            "AddFavoriteRestaurant",
        )
        user = self._validate(
            UserFavorites, data.get("addFavoriteRestaurant"), "addFavoriteRestaurant"
        )
        return user.favorite_restaurants

    async def remove_favorite(self, restaurant_id: str) -> list[RestaurantSummary]:
        """Unmark a favorite restaurant. Returns the updated favorites."""
        logger.info(f"=== REMOVE FAVORITE: restaurant_id={restaurant_id} ===")
        data = await self.execute(
            documents.REMOVE_FAVORITE_RESTAURANT,
            {"restaurantId": restaurant_id},
            "RemoveFavoriteRestaurant",
        )
        user = self._validate(
            UserFavorites, data.get("removeFavoriteRestaurant"), "removeFavoriteRestaurant"
        )
        return user.favorite_restaurants

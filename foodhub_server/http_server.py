"""HTTP server for FoodHub MCP Server."""

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field, ValidationError

from . import __version__
from .application import FoodHubApp
from .checkout import CheckoutRequest
from .config import Settings
from .exceptions import FoodHubError
from .models import AuthCredentials, Cart, CreateReviewInput, RestaurantSummary

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("foodhub-http-server")

# Global state
application: FoodHubApp
settings_override: Optional[Settings] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    global application

    # Startup
    logger.info("Starting FoodHub HTTP Server...")
    application = FoodHubApp(settings_override or Settings.from_env())

    yield

    # Shutdown
    logger.info("Shutting down FoodHub HTTP Server...")
    await application.close()


app = FastAPI(
    title="FoodHub MCP Server",
    description="HTTP API for restaurant carts and orders on FoodHub",
    version=__version__,
    lifespan=lifespan,
)


@app.middleware("http")
async def collect_notices(request: Request, call_next):
    """Give each request its own notice list."""
    with application.notifier.collect():
        return await call_next(request)


# Request/Response Models
class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class LoginResponse(BaseModel):
    success: bool
    message: str


class SearchRequest(BaseModel):
    keyword: str = Field(min_length=1)
    limit: int = 20
    offset: int = 0


class AddToCartRequest(BaseModel):
    menu_item_id: str
    quantity: int = 1


class UpdateCartRequest(BaseModel):
    menu_item_id: str
    quantity: int


class RemoveFromCartRequest(BaseModel):
    menu_item_id: str


class LocationRequest(BaseModel):
    lat: Optional[float] = None
    lng: Optional[float] = None


class CheckoutBody(BaseModel):
    restaurant_id: str
    delivery_address: str = ""
    special_instructions: Optional[str] = None
    delivery_location: Optional[LocationRequest] = None


class OrdersRequest(BaseModel):
    include_history: bool = True
    limit: Optional[int] = None
    offset: Optional[int] = None


class ReviewRequest(BaseModel):
    rating: int
    comment: Optional[str] = None


def _notices() -> list[dict[str, str]]:
    return [notice.model_dump(mode="json") for notice in application.notifier.drain()]


def _cart_payload(cart: Optional[Cart]) -> Optional[dict[str, Any]]:
    return cart.model_dump(mode="json") if cart else None


def _favorites_result(favorites: Optional[list[RestaurantSummary]]) -> dict[str, Any]:
    return {
        "success": favorites is not None,
        "restaurants": [r.model_dump(mode="json") for r in favorites or []],
        "notices": _notices(),
    }


async def _require_auth() -> None:
    if not await application.ensure_authenticated():
        raise HTTPException(status_code=401, detail="Not authenticated")


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "FoodHub MCP Server",
        "version": __version__,
        "description": "HTTP API for restaurant carts and orders on FoodHub",
        "mcp_compatible": True,
        "endpoints": {
            "docs": "/docs",
            "health": "/health",
            "auth": {"login": "POST /auth/login", "logout": "POST /auth/logout", "status": "GET /auth/status"},
            "restaurants": {
                "search": "POST /restaurants/search",
                "get": "GET /restaurants/{id}",
                "menu": "GET /restaurants/{id}/menu",
                "reviews": "GET /restaurants/{id}/reviews",
                "add_review": "POST /restaurants/{id}/reviews",
            },
            "favorites": {
                "list": "GET /favorites",
                "add": "POST /favorites/{restaurant_id}",
                "remove": "DELETE /favorites/{restaurant_id}",
            },
            "cart": {
                "get": "GET /carts/{restaurant_id}",
                "count": "GET /carts/{restaurant_id}/count",
                "add": "POST /carts/{restaurant_id}/add",
                "update": "POST /carts/{restaurant_id}/update",
                "remove": "POST /carts/{restaurant_id}/remove",
                "clear": "POST /carts/{restaurant_id}/clear",
            },
            "checkout": "POST /checkout",
            "orders": {
                "list": "POST /orders",
                "get": "GET /orders/{order_id}",
                "cancel": "POST /orders/{order_id}/cancel",
            },
        },
        "stdio_command": "python -m foodhub_server",
        "authenticated": application.auth_manager.is_authenticated(),
    }


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "authenticated": application.auth_manager.is_authenticated(),
        "graphql_url": application.settings.graphql_url,
    }


# Authentication endpoints
@app.post("/auth/login", response_model=LoginResponse)
async def login(request: LoginRequest):
    """Login to FoodHub, falling back to configured credentials."""
    configured = application.settings.credentials
    email = request.email or (configured.email if configured else None)
    password = request.password or (configured.password if configured else None)
    if not email or not password:
        raise HTTPException(status_code=400, detail="Email and password are required")

    try:
        payload = await application.login(AuthCredentials(email=email, password=password))
        return LoginResponse(
            success=True, message=f"Successfully logged in as {payload.user.email or email}"
        )
    except FoodHubError as e:
        logger.warning(f"Login failed: {e}")
        return LoginResponse(success=False, message=e.message)
    except Exception as e:
        logger.error(f"Login error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/auth/logout")
async def logout():
    """Logout from FoodHub and forget all carts."""
    application.logout()
    return {"success": True, "message": "Successfully logged out"}


@app.get("/auth/status")
async def auth_status():
    """Get authentication status."""
    authenticated = application.auth_manager.is_authenticated()
    return {
        "authenticated": authenticated,
        "email": application.auth_manager.session.user_email if authenticated else None,
    }


# Restaurant endpoints
@app.post("/restaurants/search")
async def search_restaurants(request: SearchRequest):
    """Search restaurants by keyword."""
    try:
        restaurants = await application.client.search_restaurants(
            request.keyword, limit=request.limit, offset=request.offset
        )
        return {
            "count": len(restaurants),
            "restaurants": [r.model_dump(mode="json") for r in restaurants],
        }
    except FoodHubError as e:
        logger.error(f"Search error: {e}")
        raise HTTPException(status_code=502, detail=e.message)


@app.get("/restaurants/{restaurant_id}/menu")
async def get_menu(restaurant_id: str):
    """Get the menu of a restaurant."""
    try:
        menu = await application.client.get_menu(restaurant_id)
        return {"count": len(menu), "items": [item.model_dump(mode="json") for item in menu]}
    except FoodHubError as e:
        logger.error(f"Get menu error: {e}")
        raise HTTPException(status_code=502, detail=e.message)


@app.get("/restaurants/{restaurant_id}")
async def get_restaurant(restaurant_id: str):
    """Get the details of a restaurant."""
    restaurant = await application.restaurants.get_restaurant(restaurant_id)
    notices = _notices()
    if restaurant is None:
        raise HTTPException(
            status_code=404, detail=notices[-1]["message"] if notices else "Restaurant not found"
        )
    return {"restaurant": restaurant.model_dump(mode="json"), "notices": notices}


@app.get("/restaurants/{restaurant_id}/reviews")
async def get_reviews(restaurant_id: str, limit: int = 10, offset: Optional[int] = None):
    """Get the reviews of a restaurant."""
    reviews = await application.restaurants.get_reviews(restaurant_id, limit=limit, offset=offset)
    return {
        "count": len(reviews),
        "reviews": [review.model_dump(mode="json") for review in reviews],
        "notices": _notices(),
    }


@app.post("/restaurants/{restaurant_id}/reviews")
async def add_review(restaurant_id: str, request: ReviewRequest):
    """Review a restaurant."""
    await _require_auth()
    try:
        review_input = CreateReviewInput(
            restaurant_id=restaurant_id, rating=request.rating, comment=request.comment
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail="; ".join(err["msg"] for err in e.errors()))

    review = await application.restaurants.add_review(review_input)
    return {
        "success": review is not None,
        "review": review.model_dump(mode="json") if review else None,
        "notices": _notices(),
    }


# Favorites endpoints
@app.get("/favorites")
async def get_favorites():
    """Get the user's favorite restaurants."""
    await _require_auth()
    favorites = await application.restaurants.get_favorites()
    return {
        "count": len(favorites),
        "restaurants": [r.model_dump(mode="json") for r in favorites],
        "notices": _notices(),
    }


@app.post("/favorites/{restaurant_id}")
async def add_favorite(restaurant_id: str):
    """Add a restaurant to the user's favorites."""
    await _require_auth()
    favorites = await application.restaurants.add_favorite(restaurant_id)
    return _favorites_result(favorites)


@app.delete("/favorites/{restaurant_id}")
async def remove_favorite(restaurant_id: str):
    """Remove a restaurant from the user's favorites."""
    await _require_auth()
    favorites = await application.restaurants.remove_favorite(restaurant_id)
    return _favorites_result(favorites)


# Cart endpoints
@app.get("/carts/{restaurant_id}")
async def get_cart(restaurant_id: str):
    """Load the current cart of a restaurant."""
    await _require_auth()
    cart = await application.cart_sync.load(restaurant_id)
    return {"cart": _cart_payload(cart), "notices": _notices()}


@app.get("/carts/{restaurant_id}/count")
async def cart_count(restaurant_id: str):
    """Item count of the last loaded cart, without a network call."""
    return {
        "restaurant_id": restaurant_id,
        "count": application.cart_sync.get_total_item_count(restaurant_id),
    }


@app.post("/carts/{restaurant_id}/add")
async def add_to_cart(restaurant_id: str, request: AddToCartRequest):
    """Add a menu item to the cart."""
    await _require_auth()
    cart = await application.cart_sync.add_item(
        restaurant_id, request.menu_item_id, request.quantity
    )
    return {"success": cart is not None, "cart": _cart_payload(cart), "notices": _notices()}


@app.post("/carts/{restaurant_id}/update")
async def update_cart_item(restaurant_id: str, request: UpdateCartRequest):
    """Set the quantity of a cart item. A quantity of 0 removes it."""
    await _require_auth()
    cart = await application.cart_sync.update_quantity(
        restaurant_id, request.menu_item_id, request.quantity
    )
    return {
        "success": cart is not None,
        "cart": _cart_payload(application.cart_sync.get_cart(restaurant_id)),
        "notices": _notices(),
    }


@app.post("/carts/{restaurant_id}/remove")
async def remove_from_cart(restaurant_id: str, request: RemoveFromCartRequest):
    """Remove an item from the cart."""
    await _require_auth()
    cart = await application.cart_sync.remove_item(restaurant_id, request.menu_item_id)
    return {
        "success": cart is not None,
        "cart": _cart_payload(application.cart_sync.get_cart(restaurant_id)),
        "notices": _notices(),
    }


@app.post("/carts/{restaurant_id}/clear")
async def clear_cart(restaurant_id: str):
    """Remove every item from the cart."""
    await _require_auth()
    success = await application.cart_sync.clear(restaurant_id)
    return {"success": success, "notices": _notices()}


# Checkout
@app.post("/checkout")
async def checkout(body: CheckoutBody):
    """Place an order for the cart of a restaurant."""
    await _require_auth()
    try:
        request = CheckoutRequest(
            restaurant_id=body.restaurant_id,
            delivery_address=body.delivery_address,
            special_instructions=body.special_instructions,
            delivery_location=body.delivery_location.model_dump() if body.delivery_location else None,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail="; ".join(err["msg"] for err in e.errors()))

    order = await application.checkout.place_order(request)
    return {
        "success": order is not None,
        "order": order.model_dump(mode="json") if order else None,
        "notices": _notices(),
    }


# Order endpoints
@app.post("/orders")
async def get_orders(request: OrdersRequest):
    """Get user's orders."""
    await _require_auth()
    orders = await application.orders.list_orders(
        include_history=request.include_history, limit=request.limit, offset=request.offset
    )
    return {
        "count": len(orders),
        "orders": [order.model_dump(mode="json") for order in orders],
        "notices": _notices(),
    }


@app.get("/orders/{order_id}")
async def get_order(order_id: str):
    """Get details of a specific order."""
    await _require_auth()
    order = await application.orders.get_order(order_id)
    notices = _notices()
    if order is None:
        raise HTTPException(
            status_code=404, detail=notices[-1]["message"] if notices else "Order not found"
        )
    return {"order": order.model_dump(mode="json"), "notices": notices}


@app.post("/orders/{order_id}/cancel")
async def cancel_order(order_id: str):
    """Cancel an order that is still pending or confirmed."""
    await _require_auth()
    order = await application.orders.cancel(order_id)
    return {
        "success": order is not None,
        "order": order.model_dump(mode="json") if order else None,
        "notices": _notices(),
    }


def run_http_server(
    host: str = "0.0.0.0",
    port: int = 8000,
    settings: Optional[Settings] = None,
    log_level: str = "info",
):
    """Run the HTTP server; without settings they are read from the environment at startup."""
    global settings_override
    import uvicorn

    settings_override = settings
    uvicorn.run(app, host=host, port=port, log_level=log_level)


if __name__ == "__main__":
    run_http_server()

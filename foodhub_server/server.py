"""MCP Server for the FoodHub restaurant ordering API."""

import asyncio
import json
import logging
from typing import Any, Optional

from mcp.server import Server
from mcp.types import Resource, Tool, TextContent
from pydantic import AnyUrl, ValidationError

from .application import FoodHubApp
from .checkout import CheckoutRequest
from .config import Settings
from .exceptions import FoodHubError
from .models import (
    AuthCredentials,
    Cart,
    CreateReviewInput,
    Order,
    Restaurant,
    RestaurantSummary,
    Review,
)
from .query_cache import FetchPolicy

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("foodhub-mcp-server")

# Initialize server
app = Server("foodhub-mcp-server")

# Global state
application: FoodHubApp

NOT_AUTHENTICATED_TEXT = (
    "Error: Not authenticated. Please configure FOODHUB_EMAIL and FOODHUB_PASSWORD "
    "(or FOODHUB_TOKEN), or use foodhub_login first."
)

RESTAURANT_ID_PROPERTY = {"type": "string", "description": "Restaurant ID"}
MENU_ITEM_ID_PROPERTY = {"type": "string", "description": "Menu item ID from foodhub_get_menu"}


def format_cart(cart: Optional[Cart], restaurant_id: str) -> str:
    """Render a cart as text."""
    if cart is None or not cart.items:
        return f"Your cart for restaurant {restaurant_id} is empty"

    name = cart.restaurant.name if cart.restaurant else restaurant_id
    result_lines = [f"Shopping Cart at {name} ({cart.item_count} items):\n"]
    for i, item in enumerate(cart.items, 1):
        result_lines.append(f"\n{i}. {item.name}")
        result_lines.append(f"   Menu item ID: {item.menu_item_id}")
        result_lines.append(f"   Price: ${item.price:.2f} each")
        result_lines.append(f"   Quantity: {item.quantity}")
        result_lines.append(f"   Subtotal: ${item.subtotal:.2f}")

    result_lines.append(f"\n{'=' * 50}")
    result_lines.append(f"Total: ${cart.total_amount:.2f}")
    return "\n".join(result_lines)


def format_order(order: Order, include_items: bool = True) -> str:
    """Render an order as text."""
    result_lines = [f"Order #{order.id}"]
    if order.restaurant:
        result_lines.append(f"Restaurant: {order.restaurant.name}")
    result_lines.append(f"Status: {order.status.value}")
    if order.created_at:
        result_lines.append(f"Date: {order.created_at}")
    result_lines.append(f"Total: ${order.total_amount:.2f}")
    if order.delivery_address:
        result_lines.append(f"Delivery Address: {order.delivery_address}")
    if order.special_instructions:
        result_lines.append(f"Instructions: {order.special_instructions}")

    if include_items and order.items:
        result_lines.append(f"Items ({len(order.items)}):")
        for item in order.items:
            result_lines.append(f"  - {item.name} x{item.quantity} (${item.subtotal:.2f})")
    return "\n".join(result_lines)


def format_restaurants(restaurants: list[RestaurantSummary]) -> str:
    """Render a numbered list of restaurants."""
    result_lines = []
    for i, restaurant in enumerate(restaurants, 1):
        result_lines.append(f"\n{i}. {restaurant.name}")
        result_lines.append(f"   ID: {restaurant.id}")
        if restaurant.cuisine_type:
            result_lines.append(f"   Cuisine: {restaurant.cuisine_type}")
        if restaurant.address:
            result_lines.append(f"   Address: {restaurant.address}")
        if restaurant.rating:
            result_lines.append(
                f"   Rating: {restaurant.rating.average:.1f} ({restaurant.rating.count} reviews)"
            )
    return "\n".join(result_lines)


def format_restaurant(restaurant: Restaurant) -> str:
    result_lines = [restaurant.name, f"ID: {restaurant.id}"]
    if restaurant.cuisine_type:
        result_lines.append(f"Cuisine: {restaurant.cuisine_type}")
    if restaurant.description:
        result_lines.append(restaurant.description)
    if restaurant.address:
        result_lines.append(f"Address: {restaurant.address}")
    if restaurant.rating:
        result_lines.append(
            f"Rating: {restaurant.rating.average:.1f} ({restaurant.rating.count} reviews)"
        )
    if restaurant.crowd_level:
        result_lines.append(f"Crowd: {restaurant.crowd_level}")
    if restaurant.opening_hours:
        result_lines.append("Opening hours:")
        for hours in restaurant.opening_hours:
            when = "Closed" if hours.is_closed else f"{hours.open} - {hours.close}"
            result_lines.append(f"  {hours.day}: {when}")
    return "\n".join(result_lines)


def format_review(review: Review) -> str:
    author = review.user.name if review.user and review.user.name else "Anonymous"
    line = f"{'*' * review.rating} by {author}"
    if review.created_at:
        line += f" on {review.created_at}"
    if review.comment:
        line += f"\n   {review.comment}"
    return line


def respond(text: str = "") -> list[TextContent]:
    """Build a tool response, appending notices produced during the call."""
    lines = [text] if text else []
    notices = application.notifier.drain()
    if notices:
        if lines:
            lines.append("")
        lines.extend(str(notice) for notice in notices)
    return [TextContent(type="text", text="\n".join(lines) or "Done")]


@app.list_resources()
async def list_resources() -> list[Resource]:
    """List available resources."""
    resources = []

    # If authenticated, provide carts and orders as resources
    if application.auth_manager.is_authenticated():
        resources.extend(
            [
                Resource(
                    uri=AnyUrl("foodhub://carts"),
                    name="Shopping Carts",
                    mimeType="application/json",
                    description="Current carts, one per restaurant",
                ),
                Resource(
                    uri=AnyUrl("foodhub://orders"),
                    name="Orders",
                    mimeType="application/json",
                    description="User's orders",
                ),
            ]
        )

    return resources


@app.read_resource()
async def read_resource(uri: AnyUrl) -> str:
    """Read a resource by URI."""
    # Notices raised by a resource read are only logged
    with application.notifier.collect():
        return await _read_resource(str(uri))


async def _read_resource(uri_str: str) -> str:
    if uri_str == "foodhub://carts":
        if not application.auth_manager.is_authenticated():
            return "Error: Not authenticated. Please login first."

        carts = await application.cart_sync.load_all()
        return json.dumps([cart.model_dump(mode="json") for cart in carts], indent=2)

    elif uri_str == "foodhub://orders":
        if not application.auth_manager.is_authenticated():
            return "Error: Not authenticated. Please login first."

        orders = await application.orders.list_orders()
        return json.dumps([order.model_dump(mode="json") for order in orders], indent=2)

    raise ValueError(f"Unknown resource: {uri_str}")


@app.list_tools()
async def list_tools() -> list[Tool]:
    """List available tools."""
    return [
        Tool(
            name="foodhub_login",
            description="Authenticate with FoodHub. Uses credentials from environment (FOODHUB_EMAIL, FOODHUB_PASSWORD) if not provided.",
            inputSchema={
                "type": "object",
                "properties": {
                    "email": {
                        "type": "string",
                        "description": "User email address (optional if FOODHUB_EMAIL is configured)",
                    },
                    "password": {
                        "type": "string",
                        "description": "User password (optional if FOODHUB_PASSWORD is configured)",
                    },
                },
            },
        ),
        Tool(
            name="foodhub_logout",
            description="Logout from FoodHub and forget all carts",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="foodhub_search_restaurants",
            description="Search restaurants by name, cuisine or keyword",
            inputSchema={
                "type": "object",
                "properties": {
                    "keyword": {"type": "string", "description": "Search term"},
                    "limit": {
                        "type": "integer",
                        "description": "Maximum number of results (default: 20)",
                        "default": 20,
                    },
                },
                "required": ["keyword"],
            },
        ),
        Tool(
            name="foodhub_get_menu",
            description="Get the menu of a restaurant, including menu item IDs and prices",
            inputSchema={
                "type": "object",
                "properties": {"restaurant_id": RESTAURANT_ID_PROPERTY},
                "required": ["restaurant_id"],
            },
        ),
        Tool(
            name="foodhub_get_restaurant",
            description="Get details of a restaurant, including address, rating and opening hours",
            inputSchema={
                "type": "object",
                "properties": {"restaurant_id": RESTAURANT_ID_PROPERTY},
                "required": ["restaurant_id"],
            },
        ),
        Tool(
            name="foodhub_get_reviews",
            description="Get the latest reviews of a restaurant",
            inputSchema={
                "type": "object",
                "properties": {
                    "restaurant_id": RESTAURANT_ID_PROPERTY,
                    "limit": {
                        "type": "integer",
                        "description": "Maximum number of reviews (default: 10)",
                        "default": 10,
                    },
                },
                "required": ["restaurant_id"],
            },
        ),
        Tool(
            name="foodhub_add_review",
            description="Review a restaurant with a 1 to 5 star rating and an optional comment",
            inputSchema={
                "type": "object",
                "properties": {
                    "restaurant_id": RESTAURANT_ID_PROPERTY,
                    "rating": {"type": "integer", "minimum": 1, "maximum": 5, "description": "Stars"},
                    "comment": {"type": "string", "description": "Review text (optional)"},
                },
                "required": ["restaurant_id", "rating"],
            },
        ),
        Tool(
            name="foodhub_get_favorites",
            description="Get the user's favorite restaurants",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="foodhub_add_favorite",
            description="Add a restaurant to the user's favorites",
            inputSchema={
                "type": "object",
                "properties": {"restaurant_id": RESTAURANT_ID_PROPERTY},
                "required": ["restaurant_id"],
            },
        ),
        Tool(
            name="foodhub_remove_favorite",
            description="Remove a restaurant from the user's favorites",
            inputSchema={
                "type": "object",
                "properties": {"restaurant_id": RESTAURANT_ID_PROPERTY},
                "required": ["restaurant_id"],
            },
        ),
        Tool(
            name="foodhub_get_cart",
            description="Get the current cart for a restaurant",
            inputSchema={
                "type": "object",
                "properties": {"restaurant_id": RESTAURANT_ID_PROPERTY},
                "required": ["restaurant_id"],
            },
        ),
        Tool(
            name="foodhub_add_to_cart",
            description="Add a menu item to the cart of its restaurant",
            inputSchema={
                "type": "object",
                "properties": {
                    "restaurant_id": RESTAURANT_ID_PROPERTY,
                    "menu_item_id": MENU_ITEM_ID_PROPERTY,
                    "quantity": {
                        "type": "integer",
                        "description": "Quantity to add (default: 1)",
                        "default": 1,
                    },
                },
                "required": ["restaurant_id", "menu_item_id"],
            },
        ),
        Tool(
            name="foodhub_update_cart_quantity",
            description="Set the quantity of a cart item. A quantity of 0 removes the item.",
            inputSchema={
                "type": "object",
                "properties": {
                    "restaurant_id": RESTAURANT_ID_PROPERTY,
                    "menu_item_id": MENU_ITEM_ID_PROPERTY,
                    "quantity": {"type": "integer", "description": "New quantity"},
                },
                "required": ["restaurant_id", "menu_item_id", "quantity"],
            },
        ),
        Tool(
            name="foodhub_remove_from_cart",
            description="Remove an item from the cart",
            inputSchema={
                "type": "object",
                "properties": {
                    "restaurant_id": RESTAURANT_ID_PROPERTY,
                    "menu_item_id": MENU_ITEM_ID_PROPERTY,
                },
                "required": ["restaurant_id", "menu_item_id"],
            },
        ),
        Tool(
            name="foodhub_clear_cart",
            description="Remove every item from the cart of a restaurant",
            inputSchema={
                "type": "object",
                "properties": {"restaurant_id": RESTAURANT_ID_PROPERTY},
                "required": ["restaurant_id"],
            },
        ),
        Tool(
            name="foodhub_cart_count",
            description="Number of items in the last loaded cart of a restaurant (no network call)",
            inputSchema={
                "type": "object",
                "properties": {"restaurant_id": RESTAURANT_ID_PROPERTY},
                "required": ["restaurant_id"],
            },
        ),
        Tool(
            name="foodhub_checkout",
            description="Place an order for the cart of a restaurant",
            inputSchema={
                "type": "object",
                "properties": {
                    "restaurant_id": RESTAURANT_ID_PROPERTY,
                    "delivery_address": {"type": "string", "description": "Delivery address"},
                    "special_instructions": {
                        "type": "string",
                        "description": "Notes for the restaurant (optional)",
                    },
                    "lat": {"type": "number", "description": "Delivery latitude (optional)"},
                    "lng": {"type": "number", "description": "Delivery longitude (optional)"},
                },
                "required": ["restaurant_id", "delivery_address"],
            },
        ),
        Tool(
            name="foodhub_get_orders",
            description="Get the user's orders",
            inputSchema={
                "type": "object",
                "properties": {
                    "include_history": {
                        "type": "boolean",
                        "description": "Include completed and cancelled orders (default: true)",
                        "default": True,
                    },
                    "limit": {"type": "integer", "description": "Maximum number of orders"},
                },
            },
        ),
        Tool(
            name="foodhub_get_order_details",
            description="Get details of a specific order",
            inputSchema={
                "type": "object",
                "properties": {"order_id": {"type": "string", "description": "Order ID"}},
                "required": ["order_id"],
            },
        ),
        Tool(
            name="foodhub_cancel_order",
            description="Cancel an order that is still pending or confirmed",
            inputSchema={
                "type": "object",
                "properties": {"order_id": {"type": "string", "description": "Order ID"}},
                "required": ["order_id"],
            },
        ),
    ]


@app.call_tool()
async def call_tool(name: str, arguments: Any) -> list[TextContent]:
    """Handle tool calls."""
    with application.notifier.collect():
        return await _run_tool(name, arguments or {})


async def _run_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    try:
        if name == "foodhub_login":
            email = arguments.get("email")
            password = arguments.get("password")

            # Use provided credentials or fall back to environment
            configured = application.settings.credentials
            if not email or not password:
                if configured:
                    email = email or configured.email
                    password = password or configured.password
                else:
                    return respond(
                        "Error: No credentials provided and FOODHUB_EMAIL/FOODHUB_PASSWORD not configured."
                    )

            payload = await application.login(AuthCredentials(email=email, password=password))
            return respond(f"Successfully logged in as {payload.user.email or email}")

        elif name == "foodhub_logout":
            application.logout()
            return respond("Successfully logged out")

        elif name == "foodhub_search_restaurants":
            keyword = arguments.get("keyword")
            if not keyword:
                return respond("Error: keyword parameter required")

            restaurants = await application.client.search_restaurants(
                keyword, limit=arguments.get("limit", 20)
            )
            if not restaurants:
                return respond(f"No restaurants found for: {keyword}")

            return respond(f"Found {len(restaurants)} restaurant(s):\n" + format_restaurants(restaurants))

        elif name == "foodhub_get_menu":
            restaurant_id = arguments["restaurant_id"]
            menu = await application.client.get_menu(restaurant_id)
            if not menu:
                return respond(f"No menu items found for restaurant {restaurant_id}")

            result_lines = [f"Menu ({len(menu)} items):\n"]
            for item in menu:
                category = f" [{item.category}]" if item.category else ""
                result_lines.append(f"- {item.name}{category}: ${item.price:.2f}")
                result_lines.append(f"  Menu item ID: {item.id}")
                if item.description:
                    result_lines.append(f"  {item.description}")
            return respond("\n".join(result_lines))

        elif name == "foodhub_get_restaurant":
            restaurant = await application.restaurants.get_restaurant(arguments["restaurant_id"])
            return respond(format_restaurant(restaurant) if restaurant else "")

        elif name == "foodhub_get_reviews":
            restaurant_id = arguments["restaurant_id"]
            reviews = await application.restaurants.get_reviews(
                restaurant_id, limit=arguments.get("limit", 10)
            )
            if not reviews:
                return respond(f"No reviews yet for restaurant {restaurant_id}")

            result_lines = [f"Found {len(reviews)} review(s):\n"]
            for i, review in enumerate(reviews, 1):
                result_lines.append(f"{i}. {format_review(review)}")
            return respond("\n".join(result_lines))

        # Everything below requires a session
        if not await application.ensure_authenticated():
            return respond(NOT_AUTHENTICATED_TEXT)

        cart_sync = application.cart_sync

        if name == "foodhub_add_review":
            try:
                review_input = CreateReviewInput(
                    restaurant_id=arguments["restaurant_id"],
                    rating=arguments.get("rating"),
                    comment=arguments.get("comment"),
                )
            except ValidationError as e:
                messages = "; ".join(err["msg"] for err in e.errors())
                return respond(f"Error: {messages}")

            review = await application.restaurants.add_review(review_input)
            return respond(format_review(review) if review else "")

        elif name == "foodhub_get_favorites":
            favorites = await application.restaurants.get_favorites()
            if not favorites:
                return respond("You haven't added any favorites yet.")
            return respond(f"Your {len(favorites)} favorite(s):\n" + format_restaurants(favorites))

        elif name in ("foodhub_add_favorite", "foodhub_remove_favorite"):
            restaurant_id = arguments["restaurant_id"]
            if name == "foodhub_add_favorite":
                favorites = await application.restaurants.add_favorite(restaurant_id)
            else:
                favorites = await application.restaurants.remove_favorite(restaurant_id)
            if favorites is None:
                return respond()
            return respond(f"{len(favorites)} favorite restaurant(s)")

        elif name == "foodhub_get_cart":
            restaurant_id = arguments["restaurant_id"]
            cart = await cart_sync.load(restaurant_id)
            return respond(format_cart(cart, restaurant_id))

        elif name == "foodhub_add_to_cart":
            restaurant_id = arguments["restaurant_id"]
            cart = await cart_sync.add_item(
                restaurant_id, arguments["menu_item_id"], arguments.get("quantity", 1)
            )
            return respond(format_cart(cart, restaurant_id) if cart else "")

        elif name == "foodhub_update_cart_quantity":
            restaurant_id = arguments["restaurant_id"]
            menu_item_id = arguments["menu_item_id"]
            # The stale-reference guard needs a known cart
            if cart_sync.get_cart(restaurant_id) is None:
                await cart_sync.load(restaurant_id, FetchPolicy.CACHE_FIRST)
            cart = await cart_sync.update_quantity(
                restaurant_id, menu_item_id, arguments["quantity"]
            )
            return respond(format_cart(cart, restaurant_id) if cart else "")

        elif name == "foodhub_remove_from_cart":
            restaurant_id = arguments["restaurant_id"]
            if cart_sync.get_cart(restaurant_id) is None:
                await cart_sync.load(restaurant_id, FetchPolicy.CACHE_FIRST)
            cart = await cart_sync.remove_item(restaurant_id, arguments["menu_item_id"])
            return respond(format_cart(cart, restaurant_id) if cart else "")

        elif name == "foodhub_clear_cart":
            await cart_sync.clear(arguments["restaurant_id"])
            return respond()

        elif name == "foodhub_cart_count":
            restaurant_id = arguments["restaurant_id"]
            count = cart_sync.get_total_item_count(restaurant_id)
            return respond(f"{count} item(s) in cart for restaurant {restaurant_id}")

        elif name == "foodhub_checkout":
            location = None
            if arguments.get("lat") is not None and arguments.get("lng") is not None:
                location = {"lat": arguments["lat"], "lng": arguments["lng"]}
            try:
                request = CheckoutRequest(
                    restaurant_id=arguments["restaurant_id"],
                    delivery_address=arguments.get("delivery_address", ""),
                    special_instructions=arguments.get("special_instructions"),
                    delivery_location=location,
                )
            except ValidationError as e:
                messages = "; ".join(err["msg"] for err in e.errors())
                return respond(f"Error: {messages}")

            order = await application.checkout.place_order(request)
            return respond(format_order(order) if order else "")

        elif name == "foodhub_get_orders":
            include_history = arguments.get("include_history", True)
            orders = await application.orders.list_orders(
                include_history=include_history, limit=arguments.get("limit")
            )
            if not orders:
                return respond("No orders found" if include_history else "No current orders")

            result_lines = [f"Found {len(orders)} order(s):"]
            for i, order in enumerate(orders, 1):
                result_lines.append(f"\n{i}. {format_order(order, include_items=False)}")
            return respond("\n".join(result_lines))

        elif name == "foodhub_get_order_details":
            order = await application.orders.get_order(arguments["order_id"])
            return respond(f"Order Details:\n\n{format_order(order)}" if order else "")

        elif name == "foodhub_cancel_order":
            order = await application.orders.cancel(arguments["order_id"])
            return respond(format_order(order, include_items=False) if order else "")

        else:
            return respond(f"Unknown tool: {name}")

    except FoodHubError as e:
        logger.error(f"Error executing tool {name}: {e}")
        return respond(f"Error: {e.message}")
    except Exception as e:
        logger.error(f"Error executing tool {name}: {e}", exc_info=True)
        return respond(f"Error: {str(e)}")


async def main(settings: Optional[Settings] = None) -> None:
    """Main entry point for the MCP server."""
    global application

    settings = settings or Settings.from_env()
    application = FoodHubApp(settings)

    if settings.credentials:
        logger.info(f"Credentials loaded from environment for: {settings.email}")
    elif not application.auth_manager.is_authenticated():
        logger.warning("No credentials found in environment variables (FOODHUB_EMAIL, FOODHUB_PASSWORD)")
        logger.warning("Cart and order operations will require manual login via foodhub_login tool")

    logger.info(f"Starting FoodHub MCP Server against {settings.graphql_url}...")

    # Import and run the server
    from mcp.server.stdio import stdio_server

    try:
        async with stdio_server() as (read_stream, write_stream):
            await app.run(
                read_stream,
                write_stream,
                app.create_initialization_options(),
            )
    finally:
        await application.close()


if __name__ == "__main__":
    asyncio.run(main())

"""Wiring of the FoodHub client, cart store and services."""

import logging
from typing import Optional

import httpx

from .auth import AuthManager
from .cart_store import CartStore
from .cart_sync import CartSync
from .checkout import CheckoutService
from .config import Settings
from .exceptions import FoodHubError
from .graphql_client import FoodHubClient
from .models import AuthCredentials, AuthPayload
from .notifications import Notifier
from .orders import OrderTracker
from .query_cache import QueryCache
from .restaurants import RestaurantDirectory

logger = logging.getLogger(__name__)


class FoodHubApp:
    """
    One instance per process, created at start-up by the MCP or HTTP server.

    Owns the cart store and query cache so their lifetime matches the
    session: logging out resets both. Callers wrap each tool call or request
    in ``notifier.collect()`` so its notices stay with it.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: Optional[httpx.AsyncClient] = None,
        auth_manager: Optional[AuthManager] = None,
    ) -> None:
        self.settings = settings
        self.auth_manager = auth_manager or AuthManager(
            session_file=settings.session_file, token=settings.token
        )
        self.cache = QueryCache()
        self.client = FoodHubClient(
            self.auth_manager,
            url=settings.graphql_url,
            timeout=settings.timeout,
            http_client=http_client,
            cache=self.cache,
        )
        self.notifier = Notifier()
        self.store = CartStore()
        self.cart_sync = CartSync(
            self.client,
            self.store,
            self.notifier,
            self.auth_manager,
            refetch_after_mutation=settings.refetch_after_mutation,
        )
        self.checkout = CheckoutService(self.client, self.cart_sync, self.notifier)
        self.orders = OrderTracker(self.client, self.notifier)
        self.restaurants = RestaurantDirectory(self.client, self.notifier, self.auth_manager)

    async def login(self, credentials: AuthCredentials) -> AuthPayload:
        """Log in, dropping any carts that belonged to a previous session."""
        self.cart_sync.reset()
        self.cache.clear()
        return await self.client.login(credentials)

    async def ensure_authenticated(self) -> bool:
        """Ensure there is a session, auto-login if credentials are configured."""
        if self.auth_manager.is_authenticated():
            return True

        credentials = self.settings.credentials
        if credentials:
            try:
                logger.info("Auto-logging in with configured credentials...")
                await self.login(credentials)
                logger.info("Auto-login successful")
                return True
            except FoodHubError as e:
                logger.error(f"Auto-login error: {e}")

        return False

    def logout(self) -> None:
        self.cart_sync.reset()
        self.client.logout()
        self.notifier.drain()

    async def close(self) -> None:
        await self.cart_sync.aclose()
        await self.client.close()

"""Keeps the local cart store in step with the remote cart service."""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from .auth import AuthManager
from .cart_store import CartStore
from .exceptions import FoodHubError, StaleStateError, UnauthenticatedError
from .graphql_client import FoodHubClient
from .models import Cart
from .notifications import Notifier
from .query_cache import FetchPolicy

logger = logging.getLogger(__name__)

LOGIN_REQUIRED_MESSAGE = "Please login to manage your cart"
ADD_LOGIN_REQUIRED_MESSAGE = "Please login to add items to your cart"
ITEM_MISSING_MESSAGE = "Item no longer in cart. Refreshing..."
CART_CHANGED_MESSAGE = "Cart was updated. Refreshing..."


class ItemState(str, Enum):
    """Lifecycle of one cart line while the user changes it."""

    IDLE = "idle"
    MUTATING = "mutating"
    RECONCILING = "reconciling"


class CartSync:
    """
    Cart operations for presentation code.

    Every write to the store is a whole cart taken from a server response.
    Mutations on the same (restaurant, menu item) never overlap: a second
    request while the first is pending is dropped, not queued. When the
    server reports that the cart or item is gone the cart is reloaded instead
    of surfacing an error. Errors never propagate to the caller; they become
    notices on the notifier.
    """

    def __init__(
        self,
        client: FoodHubClient,
        store: CartStore,
        notifier: Notifier,
        auth_manager: AuthManager,
        refetch_after_mutation: bool = True,
    ) -> None:
        """
        Initialize the synchronization layer.

        Args:
            client: FoodHub API client
            store: Local cart store to keep current
            notifier: Channel for user-facing notices
            auth_manager: Session used as the precondition for cart calls
            refetch_after_mutation: Refetch the cart in the background after each mutation
        """
        self.client = client
        self.store = store
        self.notifier = notifier
        self.auth_manager = auth_manager
        self.refetch_after_mutation = refetch_after_mutation
        self._states: dict[str, dict[str, ItemState]] = {}
        self._generations: dict[str, int] = {}
        self._tasks: set[asyncio.Task] = set()

    # =========================================================================
    # Synchronous reads
    # =========================================================================

    def get_cart(self, restaurant_id: str) -> Optional[Cart]:
        return self.store.get_cart(restaurant_id)

    def get_total_item_count(self, restaurant_id: str) -> int:
        return self.store.get_total_items(restaurant_id)

    def item_state(self, restaurant_id: str, menu_item_id: str) -> ItemState:
        return self._states.get(restaurant_id, {}).get(menu_item_id, ItemState.IDLE)

    def in_flight(self, restaurant_id: str) -> frozenset[str]:
        """Menu items of a restaurant currently being mutated or reconciled."""
        return frozenset(self._states.get(restaurant_id, {}))

    # =========================================================================
    # Loading
    # =========================================================================

    async def load(
        self, restaurant_id: str, fetch_policy: FetchPolicy = FetchPolicy.NETWORK_ONLY
    ) -> Optional[Cart]:
        """
        Fetch the cart of a restaurant and store it.

        Skipped without a restaurant id or session. On failure the store keeps
        its previous entry, which is returned. With ``FetchPolicy.CACHE_FIRST``
        a cached GetCart result is used without a network call.
        """
        if not restaurant_id or not self.auth_manager.is_authenticated():
            logger.debug(f"Skipping cart load for restaurant {restaurant_id!r}")
            return None

        try:
            cart = await self.client.fetch_cart(restaurant_id, fetch_policy)
        except FoodHubError as e:
            self._report(e)
            return self.store.get_cart(restaurant_id)

        self._write(restaurant_id, cart)
        return cart

    async def load_all(self) -> list[Cart]:
        """Fetch every cart of the user and store each under its restaurant."""
        if not self.auth_manager.is_authenticated():
            return []

        try:
            carts = await self.client.fetch_user_carts()
        except FoodHubError as e:
            self._report(e)
            return []

        for cart in carts:
            self._write(cart.restaurant_id, cart)
        return carts

    # =========================================================================
    # Mutations
    # =========================================================================

    async def add_item(
        self, restaurant_id: str, menu_item_id: str, quantity: int = 1
    ) -> Optional[Cart]:
        """
        Add a menu item, or raise its quantity when already in the cart.

        The store is only written with the server's resulting cart.
        """
        if not self.auth_manager.is_authenticated():
            self.notifier.error(ADD_LOGIN_REQUIRED_MESSAGE)
            return None
        if quantity < 1:
            self.notifier.error("Quantity must be at least 1")
            return None

        try:
            cart = await self.client.add_to_cart(restaurant_id, menu_item_id, quantity)
        except FoodHubError as e:
            self._report(e)
            return None

        self._apply(restaurant_id, cart)
        item = cart.find_item(menu_item_id)
        self.notifier.success(f"Added {item.name if item else 'item'} to cart")
        return cart

    async def update_quantity(
        self, restaurant_id: str, menu_item_id: str, quantity: int
    ) -> Optional[Cart]:
        """Set the quantity of a cart line; zero or less removes it."""
        if quantity <= 0:
            return await self.remove_item(restaurant_id, menu_item_id)

        return await self._mutate_item(
            restaurant_id,
            menu_item_id,
            lambda: self.client.update_cart_item(restaurant_id, menu_item_id, quantity),
            success_message="Cart updated",
        )

    async def remove_item(self, restaurant_id: str, menu_item_id: str) -> Optional[Cart]:
        """Remove a cart line."""
        return await self._mutate_item(
            restaurant_id,
            menu_item_id,
            lambda: self.client.remove_from_cart(restaurant_id, menu_item_id),
            success_message="Item removed from cart",
        )

    async def clear(self, restaurant_id: str, remote: bool = True) -> bool:
        """
        Empty the cart of a restaurant and drop its store entry.

        Args:
            restaurant_id: Restaurant whose cart is cleared
            remote: Ask the server to clear the cart. Checkout passes False
                because placing the order already consumed the cart.

        Returns:
            True when the store entry was dropped
        """
        if remote:
            if not self.auth_manager.is_authenticated():
                self.notifier.error(LOGIN_REQUIRED_MESSAGE)
                return False
            try:
                await self.client.clear_cart(restaurant_id)
            except StaleStateError as e:
                logger.info(f"Cart for restaurant {restaurant_id} already gone: {e}")
            except FoodHubError as e:
                self._report(e)
                return False
        else:
            self.client.remember_cart(restaurant_id, None)

        self._bump(restaurant_id)
        self.store.clear_cart(restaurant_id)
        if remote:
            self.notifier.success("Cart cleared")
        return True

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def reset(self) -> None:
        """Forget every cart and pending state, e.g. on logout."""
        for task in list(self._tasks):
            task.cancel()
        self._states.clear()
        self._generations.clear()
        self.store.reset()

    async def drain(self) -> None:
        """Wait for pending background refetches."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await self.drain()

    # =========================================================================
    # Internals
    # =========================================================================

    async def _mutate_item(
        self,
        restaurant_id: str,
        menu_item_id: str,
        call: Callable[[], Awaitable[Cart]],
        success_message: str,
    ) -> Optional[Cart]:
        if not self.auth_manager.is_authenticated():
            self.notifier.error(LOGIN_REQUIRED_MESSAGE)
            return None

        if self.item_state(restaurant_id, menu_item_id) != ItemState.IDLE:
            logger.debug(f"Ignoring duplicate mutation for {restaurant_id}/{menu_item_id}")
            return None

        self._set_state(restaurant_id, menu_item_id, ItemState.MUTATING)
        try:
            cart = self.store.get_cart(restaurant_id)
            if cart is None or cart.find_item(menu_item_id) is None:
                self.notifier.warning(ITEM_MISSING_MESSAGE)
                await self._reconcile(restaurant_id, menu_item_id)
                return None

            try:
                result = await call()
            except StaleStateError as e:
                logger.info(f"Stale cart for restaurant {restaurant_id}: {e}")
                self.notifier.warning(CART_CHANGED_MESSAGE)
                await self._reconcile(restaurant_id, menu_item_id)
                return None
            except FoodHubError as e:
                self._report(e)
                return None

            self._apply(restaurant_id, result)
            self.notifier.success(success_message)
            return result
        finally:
            self._set_state(restaurant_id, menu_item_id, ItemState.IDLE)

    async def _reconcile(self, restaurant_id: str, menu_item_id: str) -> None:
        self._set_state(restaurant_id, menu_item_id, ItemState.RECONCILING)
        await self.load(restaurant_id)

    def _set_state(self, restaurant_id: str, menu_item_id: str, state: ItemState) -> None:
        states = self._states.setdefault(restaurant_id, {})
        if state == ItemState.IDLE:
            states.pop(menu_item_id, None)
            if not states:
                del self._states[restaurant_id]
        else:
            states[menu_item_id] = state

    def _report(self, error: FoodHubError) -> None:
        if isinstance(error, UnauthenticatedError):
            self.notifier.error(LOGIN_REQUIRED_MESSAGE)
        else:
            self.notifier.error(error.message)

    def _bump(self, restaurant_id: str) -> int:
        generation = self._generations.get(restaurant_id, 0) + 1
        self._generations[restaurant_id] = generation
        return generation

    def _write(self, restaurant_id: str, cart: Optional[Cart]) -> int:
        generation = self._bump(restaurant_id)
        self.store.set_cart(restaurant_id, cart)
        return generation

    def _apply(self, restaurant_id: str, cart: Cart) -> None:
        generation = self._write(restaurant_id, cart)
        if self.refetch_after_mutation:
            task = asyncio.get_running_loop().create_task(
                self._refetch(restaurant_id, generation)
            )
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _refetch(self, restaurant_id: str, generation: int) -> None:
        try:
            cart = await self.client.fetch_cart(restaurant_id, write_cache=False)
        except FoodHubError as e:
            logger.warning(f"Background cart refetch failed for restaurant {restaurant_id}: {e}")
            return

        # A newer write landed while this request was in flight; it owns
        # both the store entry and the GetCart cache entry
        if self._generations.get(restaurant_id) != generation:
            logger.debug(f"Discarding outdated refetch for restaurant {restaurant_id}")
            return
        self.client.remember_cart(restaurant_id, cart)
        self.store.set_cart(restaurant_id, cart)

"""In-memory, restaurant-keyed store of the last known carts."""

import logging
from typing import Callable, Optional

from .models import Cart

logger = logging.getLogger(__name__)

CartListener = Callable[[str, Optional[Cart]], None]


class CartStore:
    """
    Synchronous read access to carts for badges and counters.

    The store has no authority: every entry is overwritten by the next
    successful server read. Entries are replaced whole, never edited in place.
    Create one per application and call ``reset`` on logout.
    """

    def __init__(self) -> None:
        self._carts: dict[str, Optional[Cart]] = {}
        self._listeners: list[CartListener] = []

    def set_cart(self, restaurant_id: str, cart: Optional[Cart]) -> None:
        """Replace the entry for a restaurant; None records an empty cart."""
        self._carts[restaurant_id] = cart
        self._notify(restaurant_id, cart)

    def clear_cart(self, restaurant_id: str) -> None:
        """Remove the entry for a restaurant entirely."""
        if restaurant_id in self._carts:
            del self._carts[restaurant_id]
            self._notify(restaurant_id, None)

    def get_cart(self, restaurant_id: str) -> Optional[Cart]:
        return self._carts.get(restaurant_id)

    def has_entry(self, restaurant_id: str) -> bool:
        return restaurant_id in self._carts

    def get_total_items(self, restaurant_id: str) -> int:
        """Sum of quantities in the stored cart, 0 when nothing is stored."""
        cart = self._carts.get(restaurant_id)
        if cart is None:
            return 0
        return sum(item.quantity for item in cart.items)

    def restaurant_ids(self) -> list[str]:
        return list(self._carts)

    def reset(self) -> None:
        """Drop every entry, e.g. on logout."""
        restaurant_ids = list(self._carts)
        self._carts.clear()
        for restaurant_id in restaurant_ids:
            self._notify(restaurant_id, None)

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        """
        Register a listener called with (restaurant_id, cart) after each write.

        Returns:
            A callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, restaurant_id: str, cart: Optional[Cart]) -> None:
        for listener in list(self._listeners):
            try:
                listener(restaurant_id, cart)
            except Exception as e:
                logger.warning(f"Cart listener failed for restaurant {restaurant_id}: {e}")

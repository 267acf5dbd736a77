"""Client-side cache of the last server response per query and variables."""

import json
import logging
from enum import Enum
from typing import Any, Optional

logger = logging.getLogger(__name__)

CacheKey = tuple[str, str]

_MISSING = object()


class FetchPolicy(str, Enum):
    """How a query consults the cache."""

    CACHE_FIRST = "cache-first"
    NETWORK_ONLY = "network-only"


def make_key(operation: str, variables: Optional[dict[str, Any]] = None) -> CacheKey:
    """Build a cache key that ignores variable ordering."""
    return operation, json.dumps(variables or {}, sort_keys=True, default=str)


class QueryCache:
    """
    Last-known result per (operation name, variables).

    Values are whatever the client stored for the operation, typically
    validated models or ``None`` for an explicitly empty result. Absence of a
    key and a cached ``None`` are different things; use ``contains``.
    """

    def __init__(self) -> None:
        self._entries: dict[CacheKey, Any] = {}

    def contains(self, operation: str, variables: Optional[dict[str, Any]] = None) -> bool:
        return make_key(operation, variables) in self._entries

    def read(self, operation: str, variables: Optional[dict[str, Any]] = None) -> Any:
        return self._entries.get(make_key(operation, variables))

    def write(self, operation: str, variables: Optional[dict[str, Any]], value: Any) -> None:
        self._entries[make_key(operation, variables)] = value
        logger.debug(f"Cache write: {operation} {variables}")

    def evict(self, operation: str, variables: Optional[dict[str, Any]] = None) -> int:
        """
        Drop cached results.

        Args:
            operation: Operation name
            variables: Exact variables to drop; None drops every entry of the operation

        Returns:
            Number of entries removed
        """
        if variables is not None:
            removed = self._entries.pop(make_key(operation, variables), _MISSING)
            return 0 if removed is _MISSING else 1

        keys = [key for key in self._entries if key[0] == operation]
        for key in keys:
            del self._entries[key]
        return len(keys)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

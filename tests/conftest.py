"""
Pytest configuration and shared fixtures for FoodHub tests.
"""

import pytest

from foodhub_server.auth import AuthManager
from foodhub_server.cart_store import CartStore
from foodhub_server.cart_sync import CartSync
from foodhub_server.notifications import Notifier
from tests.factories import FakeCartClient


@pytest.fixture
def session_file(tmp_path) -> str:
    return str(tmp_path / "session.json")


@pytest.fixture
def auth_manager(session_file) -> AuthManager:
    """Authenticated session backed by a temporary file."""
    return AuthManager(session_file=session_file, token="test-token")


@pytest.fixture
def anonymous_auth_manager(session_file) -> AuthManager:
    return AuthManager(session_file=session_file)


@pytest.fixture
def fake_client() -> FakeCartClient:
    return FakeCartClient()


@pytest.fixture
def store() -> CartStore:
    return CartStore()


@pytest.fixture
def notifier() -> Notifier:
    return Notifier()


@pytest.fixture
def cart_sync(fake_client, store, notifier, auth_manager) -> CartSync:
    """Sync layer without background refetch, so call counts stay exact."""
    return CartSync(fake_client, store, notifier, auth_manager, refetch_after_mutation=False)

"""Pytest configuration for storefront tests."""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from storefront.api import deps
from storefront.api.server import app
from storefront.cart.ledger import CartLedger
from storefront.core.config import StorefrontConfig, set_config
from storefront.data.memory_store import InMemoryStore
from storefront.utils.metrics import metrics_collector
from storefront.wishlist.ledger import WishlistLedger

USER_TOKEN = "user-token"
OTHER_USER_TOKEN = "other-user-token"
ADMIN_TOKEN = "admin-token"

TEST_USERS = [
    {"id": "u-alice", "name": "Alice Shopper", "email": "alice@example.com", "role": "user"},
    {"id": "u-bob", "name": "Bob Buyer", "email": "bob@example.com", "role": "user"},
    {"id": "u-admin", "name": "Ada Admin", "email": "admin@example.com", "role": "admin"},
]


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def config():
    cfg = StorefrontConfig(
        auth_tokens={
            USER_TOKEN: {"user_id": "u-alice", "role": "user"},
            OTHER_USER_TOKEN: {"user_id": "u-bob", "role": "user"},
            ADMIN_TOKEN: {"user_id": "u-admin", "role": "admin"},
        },
    )
    set_config(cfg)
    return cfg


@pytest.fixture
def store():
    return InMemoryStore(users=TEST_USERS)


@pytest.fixture
def cart(store, config):
    return CartLedger(store.get_product, config)


@pytest.fixture
def wishlist(store):
    return WishlistLedger(store)


# ---------------------------------------------------------------------------
# Every test gets a fresh store, fresh ledgers and zeroed metrics; app
# singletons are rebuilt from the test config.
# ---------------------------------------------------------------------------

@pytest.fixture
def client(config, store, cart, wishlist):
    deps.reset_dependencies()
    metrics_collector.reset()
    app.dependency_overrides[deps.get_store] = lambda: store
    app.dependency_overrides[deps.get_cart_ledger] = lambda: cart
    app.dependency_overrides[deps.get_wishlist_ledger] = lambda: wishlist
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    deps.reset_dependencies()


@pytest.fixture
def utc():
    """Build an aware UTC datetime."""
    def _make(*args):
        return datetime(*args, tzinfo=timezone.utc)
    return _make

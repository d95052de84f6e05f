"""
FastAPI dependencies.

Process-wide singletons (store, ledgers, cache, identity provider) are built
lazily from the current config. Tests replace them through
app.dependency_overrides or reset_dependencies().
"""
import threading
from typing import Optional

from fastapi import Depends, Header

from storefront.api.auth import (
    Identity,
    IdentityProvider,
    StaticTokenIdentityProvider,
    SupabaseIdentityProvider,
    bearer_token,
)
from storefront.cart.ledger import CartLedger
from storefront.core.config import StorefrontConfig, get_config
from storefront.core.errors import Forbidden, Unauthorized
from storefront.dashboard.aggregator import DashboardAggregator
from storefront.data.store import StorefrontStore
from storefront.utils.cache import CacheClient
from storefront.utils.logger import get_logger
from storefront.wishlist.ledger import WishlistLedger

logger = get_logger("api.deps")

_lock = threading.Lock()
_store: Optional[StorefrontStore] = None
_cart: Optional[CartLedger] = None
_wishlist: Optional[WishlistLedger] = None
_cache: Optional[CacheClient] = None
_identity: Optional[IdentityProvider] = None


def build_store(config: StorefrontConfig) -> StorefrontStore:
    """Instantiate the configured backend."""
    if config.backend == "supabase":
        from storefront.data.supabase_store import SupabaseStore
        return SupabaseStore()
    if config.backend == "sql":
        from storefront.data.sql_store import SQLStore
        return SQLStore()
    from storefront.data.memory_store import InMemoryStore
    return InMemoryStore()


def get_settings() -> StorefrontConfig:
    return get_config()


def get_store() -> StorefrontStore:
    global _store
    with _lock:
        if _store is None:
            config = get_config()
            _store = build_store(config)
            logger.info("Using %s store backend", _store.name)
        return _store


def get_cart_ledger(store: StorefrontStore = Depends(get_store)) -> CartLedger:
    global _cart
    with _lock:
        if _cart is None:
            _cart = CartLedger(store.get_product, get_config())
        return _cart


def get_wishlist_ledger(store: StorefrontStore = Depends(get_store)) -> WishlistLedger:
    global _wishlist
    with _lock:
        if _wishlist is None:
            _wishlist = WishlistLedger(store)
        return _wishlist


def get_dashboard(store: StorefrontStore = Depends(get_store)) -> DashboardAggregator:
    return DashboardAggregator(store, get_config())


def get_cache() -> Optional[CacheClient]:
    """The product detail cache, or None when caching is disabled."""
    global _cache
    config = get_config()
    if not config.cache_enabled:
        return None
    with _lock:
        if _cache is None:
            _cache = CacheClient(ttl_product=config.cache_ttl_product)
        return _cache


def get_identity_provider(store: StorefrontStore = Depends(get_store)) -> IdentityProvider:
    global _identity
    with _lock:
        if _identity is None:
            config = get_config()
            if config.backend == "supabase":
                _identity = SupabaseIdentityProvider(store.client, store)
            else:
                _identity = StaticTokenIdentityProvider(config.auth_tokens)
        return _identity


def require_user(
    authorization: Optional[str] = Header(default=None),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Identity:
    token = bearer_token(authorization)
    identity = provider.resolve(token) if token else None
    if identity is None:
        raise Unauthorized("Unauthorized")
    return identity


def require_admin(identity: Identity = Depends(require_user)) -> Identity:
    if not identity.is_admin:
        logger.warning("Non-admin user %s denied admin route", identity.user_id)
        raise Forbidden("Forbidden")
    return identity


def reset_dependencies() -> None:
    """Drop every singleton so the next request rebuilds from the current config."""
    global _store, _cart, _wishlist, _cache, _identity
    with _lock:
        _store = _cart = _wishlist = _cache = _identity = None

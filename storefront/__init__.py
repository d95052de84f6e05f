"""
Storefront - catalog, cart, wishlist and admin dashboard backend.

Serves product listing and search over a pluggable store (in-memory,
Supabase REST or SQLAlchemy), session carts with per-session locking, and
an admin analytics snapshot.
"""

from storefront.core.config import StorefrontConfig, get_config, set_config

__all__ = [
    'StorefrontConfig',
    'get_config',
    'set_config',
]

__version__ = '0.1.0'

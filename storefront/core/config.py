"""
Configuration management for the storefront backend.

Loads settings from YAML config file and provides typed access.
Secrets and service endpoints (Supabase, DATABASE_URL, Redis) stay in the
environment; everything tunable about pricing, querying and the dashboard
lives in config/default.yaml.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
import yaml

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()


def _project_root() -> Path:
    """Return project root (parent of storefront package)."""
    return Path(__file__).resolve().parent.parent.parent


DEFAULT_CONFIG_PATH = _project_root() / "config" / "default.yaml"

DEFAULT_CATEGORIES = ["Electronics", "Fashion", "Home & Living", "Sports", "Books", "Toys"]

DEFAULT_CATEGORY_COLORS = {
    "Electronics": "#8b5cf6",
    "Fashion": "#ec4899",
    "Home & Living": "#10b981",
    "Sports": "#f59e0b",
    "Books": "#3b82f6",
    "Toys": "#ef4444",
}

BACKENDS = ("memory", "supabase", "sql")


@dataclass
class StorefrontConfig:
    """Configuration for the storefront backend."""

    # Which store backs the catalog, orders, users and wishlist
    backend: str = "memory"             # "memory", "supabase" or "sql"

    # Cart pricing
    tax_rate: float = 0.08
    free_shipping_threshold: float = 50.0   # strictly greater than this ships free
    flat_shipping: float = 9.99

    # Query defaults (used when parameters are missing or unparseable)
    listing_page_size: int = 8
    search_page_size: int = 12
    max_page_size: int = 100
    default_min_price: float = 0.0
    default_max_price: float = 1000.0
    default_min_rating: float = 0.0

    # Catalog
    categories: List[str] = field(default_factory=lambda: list(DEFAULT_CATEGORIES))
    related_products_limit: int = 4

    # Dashboard
    dashboard_months: int = 6
    dashboard_top_products: int = 5
    dashboard_recent_orders: int = 5
    top_product_revenue_multiplier: float = 100.0   # placeholder, not true revenue
    category_colors: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_CATEGORY_COLORS))
    default_category_color: str = "#6b7280"

    # Auth: static bearer tokens for the in-memory/sql backends
    # token -> {"user_id": ..., "role": "user" | "admin"}
    auth_tokens: Dict[str, Dict[str, str]] = field(default_factory=dict)

    # Product detail cache (Redis)
    cache_enabled: bool = False
    cache_ttl_product: int = 300

    @classmethod
    def from_yaml(cls, config_path: Optional[Path] = None) -> "StorefrontConfig":
        """Load configuration from YAML file, then apply environment overrides."""
        path = config_path or DEFAULT_CONFIG_PATH
        data: Dict[str, Any] = {}
        if path.exists():
            with open(path, 'r') as f:
                data = yaml.safe_load(f) or {}

        store_config = data.get('store', {})
        pricing_config = data.get('pricing', {})
        query_config = data.get('query', {})
        catalog_config = data.get('catalog', {})
        dashboard_config = data.get('dashboard', {})
        auth_config = data.get('auth', {})
        cache_config = data.get('cache', {})

        config = cls(
            backend=store_config.get('backend', 'memory'),
            tax_rate=pricing_config.get('tax_rate', 0.08),
            free_shipping_threshold=pricing_config.get('free_shipping_threshold', 50.0),
            flat_shipping=pricing_config.get('flat_shipping', 9.99),
            listing_page_size=query_config.get('listing_page_size', 8),
            search_page_size=query_config.get('search_page_size', 12),
            max_page_size=query_config.get('max_page_size', 100),
            default_min_price=query_config.get('min_price', 0.0),
            default_max_price=query_config.get('max_price', 1000.0),
            default_min_rating=query_config.get('min_rating', 0.0),
            categories=catalog_config.get('categories', list(DEFAULT_CATEGORIES)),
            related_products_limit=catalog_config.get('related_products_limit', 4),
            dashboard_months=dashboard_config.get('months', 6),
            dashboard_top_products=dashboard_config.get('top_products', 5),
            dashboard_recent_orders=dashboard_config.get('recent_orders', 5),
            top_product_revenue_multiplier=dashboard_config.get('revenue_multiplier', 100.0),
            category_colors=dashboard_config.get('category_colors', dict(DEFAULT_CATEGORY_COLORS)),
            default_category_color=dashboard_config.get('default_color', '#6b7280'),
            auth_tokens=auth_config.get('tokens') or {},
            cache_enabled=cache_config.get('enabled', False),
            cache_ttl_product=cache_config.get('ttl_product', 300),
        )

        # Environment wins over the YAML file
        env_backend = os.getenv("STOREFRONT_BACKEND")
        if env_backend:
            config.backend = env_backend.lower()
        if os.getenv("STOREFRONT_CACHE", "").lower() in ("1", "true", "yes"):
            config.cache_enabled = True

        if config.backend not in BACKENDS:
            raise ValueError(f"Unknown store backend '{config.backend}' (expected one of {BACKENDS})")
        return config


# Global config instance
_config: Optional[StorefrontConfig] = None


def get_config() -> StorefrontConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = StorefrontConfig.from_yaml()
    return _config


def set_config(config: StorefrontConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config

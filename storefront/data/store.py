"""
Store interface shared by the memory, Supabase and SQLAlchemy backends.

The store is the only place that talks to persistence. Backends raise
UpstreamFailure when the underlying service fails; they never return a
partial or empty result in place of an error.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from storefront.data.records import NewProduct, Order, Product, User, WishlistEntry
from storefront.search.query_builder import SearchCriteria, SearchResult, run_query


class StorefrontStore(ABC):
    """Catalog, orders, users and wishlist behind one interface."""

    name: str = "store"

    # -- catalog ----------------------------------------------------------

    @abstractmethod
    def list_products(self) -> List[Product]:
        """All products in catalog order, any status."""

    @abstractmethod
    def get_product(self, product_id: str) -> Optional[Product]:
        """A single product, or None."""

    @abstractmethod
    def create_product(self, product: NewProduct) -> Product:
        """Insert a new active product with zero rating/reviews."""

    def search_products(self, criteria: SearchCriteria) -> SearchResult:
        """Resolve `criteria`; the default runs the query builder in-process."""
        return run_query(self.list_products(), criteria)

    # -- users & orders ---------------------------------------------------

    @abstractmethod
    def count_users(self) -> int: ...

    @abstractmethod
    def count_orders(self) -> int: ...

    @abstractmethod
    def count_products(self) -> int: ...

    @abstractmethod
    def list_orders(self, status: Optional[str] = None) -> List[Order]:
        """Orders (optionally only those with `status`), newest first."""

    @abstractmethod
    def get_users(self, user_ids: Iterable[str]) -> Dict[str, User]:
        """Users keyed by id; unknown ids are simply absent."""

    # -- wishlist ---------------------------------------------------------

    @abstractmethod
    def list_wishlist(self, user_id: str) -> List[WishlistEntry]:
        """Entries newest first, each joined with its product."""

    @abstractmethod
    def find_wishlist_entry(self, user_id: str, product_id: str) -> Optional[WishlistEntry]: ...

    @abstractmethod
    def add_wishlist_entry(self, user_id: str, product_id: str) -> WishlistEntry:
        """Insert an entry; raises Conflict if (user, product) already exists."""

    @abstractmethod
    def delete_wishlist(self, user_id: str, product_id: Optional[str] = None) -> int:
        """Delete one entry, or every entry of the user; returns rows removed."""

    # -- health -----------------------------------------------------------

    def ping(self) -> bool:
        return True

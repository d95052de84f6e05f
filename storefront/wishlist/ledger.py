"""
Per-user wishlist on top of the store.

The duplicate check and the insert for a given user run under the lock the
user id hashes to, out of a fixed pool; the store's own uniqueness guarantee
(unique constraint, or the memory store's locked check) covers other
processes.
"""
from __future__ import annotations

import threading
from typing import List, Optional

from storefront.core.errors import Conflict, NotFound, ValidationFailure
from storefront.data.records import WishlistEntry
from storefront.data.store import StorefrontStore
from storefront.utils.logger import get_logger

logger = get_logger("wishlist.ledger")

LOCK_STRIPES = 32


class WishlistLedger:
    def __init__(self, store: StorefrontStore) -> None:
        self._store = store
        self._locks = [threading.Lock() for _ in range(LOCK_STRIPES)]

    def _lock_for(self, user_id: str) -> threading.Lock:
        return self._locks[hash(user_id) % len(self._locks)]

    def list(self, user_id: str) -> List[WishlistEntry]:
        return self._store.list_wishlist(user_id)

    def add(self, user_id: str, product_id: Optional[str]) -> WishlistEntry:
        if product_id is None or str(product_id).strip() == "":
            raise ValidationFailure("Product ID is required")
        product_id = str(product_id)

        product = self._store.get_product(product_id)
        if product is None or not product.is_active:
            raise NotFound("Product not found")

        with self._lock_for(user_id):
            if self._store.find_wishlist_entry(user_id, product_id) is not None:
                raise Conflict("Already in wishlist")
            entry = self._store.add_wishlist_entry(user_id, product_id)

        logger.info("wishlist: method=add user_id=%s product_id=%s", user_id, product_id)
        return entry.model_copy(update={"product": product})

    def remove(self, user_id: str, product_id: Optional[str] = None) -> int:
        """Remove one product, or clear the wishlist when `product_id` is None."""
        removed = self._store.delete_wishlist(user_id, product_id)
        logger.info("wishlist: method=remove user_id=%s product_id=%s removed=%s",
                    user_id, product_id, removed)
        return removed

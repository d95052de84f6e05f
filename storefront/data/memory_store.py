"""
In-memory store seeded with the fixture catalog.

Default backend for local development and the test suite. A single lock
guards every mutation; reads work on copies.
"""
from __future__ import annotations

import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from storefront.core.errors import Conflict
from storefront.data.fixtures import fixture_products
from storefront.data.records import NewProduct, Order, Product, User, WishlistEntry
from storefront.data.store import StorefrontStore
from storefront.utils.logger import get_logger

logger = get_logger("data.memory_store")


class InMemoryStore(StorefrontStore):
    name = "memory"

    def __init__(
        self,
        products: Optional[Iterable[Dict[str, Any]]] = None,
        users: Optional[Iterable[Dict[str, Any]]] = None,
        orders: Optional[Iterable[Dict[str, Any]]] = None,
    ) -> None:
        rows = fixture_products() if products is None else products
        self._products: List[Product] = [Product(**row) for row in rows]
        self._users: Dict[str, User] = {}
        for row in users or []:
            user = User(**row)
            self._users[user.id] = user
        self._orders: List[Order] = [Order(**row) for row in orders or []]
        self._wishlist: List[WishlistEntry] = []
        self._lock = threading.Lock()
        logger.info(
            "In-memory store ready: %d products, %d users, %d orders",
            len(self._products), len(self._users), len(self._orders),
        )

    # -- catalog ----------------------------------------------------------

    def list_products(self) -> List[Product]:
        return list(self._products)

    def get_product(self, product_id: str) -> Optional[Product]:
        for product in self._products:
            if product.id == product_id:
                return product
        return None

    def create_product(self, product: NewProduct) -> Product:
        with self._lock:
            next_id = max((int(p.id) for p in self._products if p.id.isdigit()), default=0) + 1
            created = Product(
                id=str(next_id),
                name=product.name,
                description=product.description,
                price=product.price,
                original_price=product.originalPrice,
                badge=product.badge,
                category=product.category,
                image_url=product.image,
                stock=product.stock,
                features=product.features,
                tags=product.tags,
                created_at=datetime.now(timezone.utc),
            )
            self._products.append(created)
        logger.info("Created product %s (%s)", created.id, created.name)
        return created

    # -- users & orders ---------------------------------------------------

    def count_users(self) -> int:
        return len(self._users)

    def count_orders(self) -> int:
        return len(self._orders)

    def count_products(self) -> int:
        return len(self._products)

    def list_orders(self, status: Optional[str] = None) -> List[Order]:
        orders = [o for o in self._orders if status is None or o.status == status]
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    def get_users(self, user_ids: Iterable[str]) -> Dict[str, User]:
        return {uid: self._users[uid] for uid in user_ids if uid in self._users}

    def add_user(self, user: User) -> None:
        self._users[user.id] = user

    def add_order(self, order: Order) -> None:
        with self._lock:
            self._orders.append(order)

    # -- wishlist ---------------------------------------------------------

    def list_wishlist(self, user_id: str) -> List[WishlistEntry]:
        entries = [(i, e) for i, e in enumerate(self._wishlist) if e.user_id == user_id]
        entries.sort(key=lambda pair: (pair[1].created_at, pair[0]), reverse=True)
        joined = []
        for _, entry in entries:
            product = self.get_product(entry.product_id)
            if product is None:
                continue
            joined.append(entry.model_copy(update={"product": product}))
        return joined

    def find_wishlist_entry(self, user_id: str, product_id: str) -> Optional[WishlistEntry]:
        for entry in self._wishlist:
            if entry.user_id == user_id and entry.product_id == product_id:
                return entry
        return None

    def add_wishlist_entry(self, user_id: str, product_id: str) -> WishlistEntry:
        with self._lock:
            if self.find_wishlist_entry(user_id, product_id) is not None:
                raise Conflict("Already in wishlist")
            entry = WishlistEntry(
                id=str(uuid.uuid4()),
                user_id=user_id,
                product_id=product_id,
                created_at=datetime.now(timezone.utc),
            )
            self._wishlist.append(entry)
        return entry

    def delete_wishlist(self, user_id: str, product_id: Optional[str] = None) -> int:
        with self._lock:
            before = len(self._wishlist)
            self._wishlist = [
                e for e in self._wishlist
                if not (e.user_id == user_id and (product_id is None or e.product_id == product_id))
            ]
            return before - len(self._wishlist)

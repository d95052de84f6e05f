"""
Supabase REST store for the storefront tables.

Uses the PostgREST API through SupabaseClient (httpx), so no DATABASE_URL is
needed. Table schema (Supabase):

  products  id, name, description, price, original_price, rating,
            reviews_count, badge, category, image_url, stock, features[],
            tags[], status, created_at, sales_count
  orders    id, user_id, status, total, subtotal, tax, shipping, created_at
  users     id, name, email, role
  wishlist  id, user_id, product_id, created_at   UNIQUE (user_id, product_id)

Search is pushed down to PostgREST; the exact total comes back in the
Content-Range header.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from storefront.core.errors import Conflict, UpstreamFailure
from storefront.data.records import NewProduct, Order, Product, User, WishlistEntry
from storefront.data.store import StorefrontStore
from storefront.search.query_builder import SearchCriteria, SearchResult, to_postgrest_params
from storefront.utils.logger import get_logger
from storefront.utils.supabase_client import SupabaseClient

logger = get_logger("data.supabase_store")

_WISHLIST_SELECT = "id,user_id,product_id,created_at,products!inner(*)"


def _row_to_product(row: Dict[str, Any]) -> Product:
    """Normalise a Supabase products row into a Product."""
    return Product(
        id=str(row.get("id", "")),
        name=row.get("name") or "Unknown Product",
        description=row.get("description") or "",
        price=float(row.get("price") or 0),
        original_price=float(row["original_price"]) if row.get("original_price") is not None else None,
        rating=float(row.get("rating") or 0),
        reviews_count=int(row.get("reviews_count") or 0),
        badge=row.get("badge"),
        category=row.get("category") or "",
        image_url=row.get("image_url") or "",
        stock=int(row.get("stock") or 0),
        features=row.get("features") or [],
        tags=row.get("tags") or [],
        status=row.get("status") or "active",
        created_at=row.get("created_at"),
        sales_count=int(row.get("sales_count") or 0),
    )


def _row_to_order(row: Dict[str, Any]) -> Order:
    return Order(
        id=str(row["id"]),
        user_id=row.get("user_id"),
        status=row.get("status") or "pending",
        total=float(row.get("total") or 0),
        subtotal=float(row.get("subtotal") or 0),
        tax=float(row.get("tax") or 0),
        shipping=float(row.get("shipping") or 0),
        created_at=row["created_at"],
    )


def _row_to_wishlist(row: Dict[str, Any]) -> WishlistEntry:
    product_row = row.get("products")
    return WishlistEntry(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        product_id=str(row["product_id"]),
        created_at=row["created_at"],
        product=_row_to_product(product_row) if product_row else None,
    )


class SupabaseStore(StorefrontStore):
    name = "supabase"

    def __init__(self, client: Optional[SupabaseClient] = None) -> None:
        self.client = client or SupabaseClient()

    # -- catalog ----------------------------------------------------------

    def list_products(self) -> List[Product]:
        rows, _ = self.client.select("products", [("select", "*"), ("order", "id.asc")])
        return [_row_to_product(r) for r in rows]

    def get_product(self, product_id: str) -> Optional[Product]:
        rows, _ = self.client.select(
            "products",
            [("select", "*"), ("id", f"eq.{product_id}"), ("limit", "1")],
        )
        return _row_to_product(rows[0]) if rows else None

    def search_products(self, criteria: SearchCriteria) -> SearchResult:
        if criteria.matches_nothing:
            return SearchResult(items=[], total=0, page=1, page_size=criteria.page_size)
        params = to_postgrest_params(criteria)
        logger.debug("products search params=%s", params)
        rows, total = self.client.select("products", params, count=True)
        return SearchResult(
            items=[_row_to_product(r) for r in rows],
            total=total if total is not None else len(rows),
            page=criteria.page,
            page_size=criteria.page_size,
        )

    def create_product(self, product: NewProduct) -> Product:
        row = self.client.insert("products", {
            "name": product.name,
            "description": product.description,
            "price": product.price,
            "original_price": product.originalPrice,
            "badge": product.badge,
            "category": product.category,
            "image_url": product.image,
            "stock": product.stock,
            "features": product.features,
            "tags": product.tags,
            "rating": 0,
            "reviews_count": 0,
            "status": "active",
        })
        return _row_to_product(row)

    # -- users & orders ---------------------------------------------------

    def count_users(self) -> int:
        return self.client.count("users")

    def count_orders(self) -> int:
        return self.client.count("orders")

    def count_products(self) -> int:
        return self.client.count("products")

    def list_orders(self, status: Optional[str] = None) -> List[Order]:
        params = [
            ("select", "id,user_id,status,total,subtotal,tax,shipping,created_at"),
            ("order", "created_at.desc"),
        ]
        if status:
            params.append(("status", f"eq.{status}"))
        rows, _ = self.client.select("orders", params)
        return [_row_to_order(r) for r in rows]

    def get_users(self, user_ids: Iterable[str]) -> Dict[str, User]:
        ids = sorted({str(uid) for uid in user_ids if uid})
        if not ids:
            return {}
        rows, _ = self.client.select(
            "users",
            [("select", "id,name,email,role"), ("id", f"in.({','.join(ids)})")],
        )
        users = [User(id=str(r["id"]), name=r.get("name") or "", email=r.get("email"), role=r.get("role") or "user") for r in rows]
        return {u.id: u for u in users}

    # -- wishlist ---------------------------------------------------------

    def list_wishlist(self, user_id: str) -> List[WishlistEntry]:
        rows, _ = self.client.select(
            "wishlist",
            [("select", _WISHLIST_SELECT), ("user_id", f"eq.{user_id}"), ("order", "created_at.desc")],
        )
        return [_row_to_wishlist(r) for r in rows]

    def find_wishlist_entry(self, user_id: str, product_id: str) -> Optional[WishlistEntry]:
        rows, _ = self.client.select(
            "wishlist",
            [
                ("select", "id,user_id,product_id,created_at"),
                ("user_id", f"eq.{user_id}"),
                ("product_id", f"eq.{product_id}"),
                ("limit", "1"),
            ],
        )
        return _row_to_wishlist(rows[0]) if rows else None

    def add_wishlist_entry(self, user_id: str, product_id: str) -> WishlistEntry:
        try:
            row = self.client.insert("wishlist", {"user_id": user_id, "product_id": product_id})
        except Conflict as e:
            raise Conflict("Already in wishlist") from e
        row.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        return _row_to_wishlist(row)

    def delete_wishlist(self, user_id: str, product_id: Optional[str] = None) -> int:
        params = [("user_id", f"eq.{user_id}")]
        if product_id is not None:
            params.append(("product_id", f"eq.{product_id}"))
        return self.client.delete("wishlist", params)

    def ping(self) -> bool:
        try:
            self.client.select("products", [("select", "id"), ("limit", "1")])
            return True
        except UpstreamFailure:
            return False

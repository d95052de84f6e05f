"""
SQLAlchemy store (DATABASE_URL).

Structural filters (status, category, price, rating, stock) are pushed into
SQL; text matching, sorting and paging then run through the query builder
in Python, which gives identical semantics to the memory backend (tag
equality, stable ordering) on both Postgres and SQLite.
"""
from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, Iterable, Iterator, List, Optional

from sqlalchemy import func, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.core.errors import Conflict, UpstreamFailure
from storefront.data.database import Base, make_engine, make_session_factory
from storefront.data.models import OrderRow, ProductRow, UserRow, WishlistRow
from storefront.data.records import NewProduct, Order, Product, User, WishlistEntry
from storefront.data.store import StorefrontStore
from storefront.search.query_builder import SearchCriteria, SearchResult, run_query
from storefront.utils.logger import get_logger

logger = get_logger("data.sql_store")


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite drops tzinfo; stored timestamps are UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_product(row: ProductRow) -> Product:
    return Product(
        id=row.id,
        name=row.name,
        description=row.description or "",
        price=float(row.price),
        original_price=float(row.original_price) if row.original_price is not None else None,
        rating=float(row.rating or 0),
        reviews_count=row.reviews_count or 0,
        badge=row.badge,
        category=row.category,
        image_url=row.image_url or "",
        stock=row.stock or 0,
        features=list(row.features or []),
        tags=list(row.tags or []),
        status=row.status,
        created_at=_aware(row.created_at),
        sales_count=row.sales_count or 0,
    )


def _to_order(row: OrderRow) -> Order:
    return Order(
        id=row.id,
        user_id=row.user_id,
        status=row.status,
        total=float(row.total or 0),
        subtotal=float(row.subtotal or 0),
        tax=float(row.tax or 0),
        shipping=float(row.shipping or 0),
        created_at=_aware(row.created_at),
    )


def _to_wishlist(row: WishlistRow, with_product: bool = False) -> WishlistEntry:
    return WishlistEntry(
        id=row.id,
        user_id=row.user_id,
        product_id=row.product_id,
        created_at=_aware(row.created_at),
        product=_to_product(row.product) if with_product and row.product is not None else None,
    )


class SQLStore(StorefrontStore):
    name = "sql"

    def __init__(self, engine: Optional[Engine] = None, create_tables: bool = False) -> None:
        self.engine = engine or make_engine()
        self._sessions = make_session_factory(self.engine)
        if create_tables:
            Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self._sessions()
        try:
            yield session
            session.commit()
        except IntegrityError:
            session.rollback()
            raise
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"SQL store query failed: {e}")
            raise UpstreamFailure(f"Database error: {e.__class__.__name__}") from e
        finally:
            session.close()

    # -- catalog ----------------------------------------------------------

    def list_products(self) -> List[Product]:
        with self._session() as session:
            rows = session.scalars(select(ProductRow).order_by(ProductRow.seq)).all()
            return [_to_product(r) for r in rows]

    def get_product(self, product_id: str) -> Optional[Product]:
        with self._session() as session:
            row = session.scalars(select(ProductRow).where(ProductRow.id == product_id)).first()
            return _to_product(row) if row is not None else None

    def search_products(self, criteria: SearchCriteria) -> SearchResult:
        if criteria.matches_nothing:
            return SearchResult(items=[], total=0, page=1, page_size=criteria.page_size)

        stmt = select(ProductRow)
        if criteria.active_only:
            stmt = stmt.where(ProductRow.status == "active")
        if criteria.categories:
            if criteria.categories_case_insensitive:
                stmt = stmt.where(func.lower(ProductRow.category).in_([c.lower() for c in criteria.categories]))
            else:
                stmt = stmt.where(ProductRow.category.in_(sorted(criteria.categories)))
        if criteria.min_price is not None:
            stmt = stmt.where(ProductRow.price >= criteria.min_price)
        if criteria.max_price is not None:
            stmt = stmt.where(ProductRow.price <= criteria.max_price)
        if criteria.min_rating is not None:
            stmt = stmt.where(ProductRow.rating >= criteria.min_rating)
        if criteria.in_stock_only:
            stmt = stmt.where(ProductRow.stock > 0)
        stmt = stmt.order_by(ProductRow.seq)

        with self._session() as session:
            candidates = [_to_product(r) for r in session.scalars(stmt).all()]
        return run_query(candidates, criteria)

    def create_product(self, product: NewProduct) -> Product:
        row = ProductRow(
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
            rating=0,
            reviews_count=0,
            status="active",
            created_at=datetime.now(timezone.utc),
        )
        with self._session() as session:
            session.add(row)
            session.flush()
            created = _to_product(row)
        logger.info("Created product %s (%s)", created.id, created.name)
        return created

    # -- users & orders ---------------------------------------------------

    def _count(self, model) -> int:
        with self._session() as session:
            return session.scalar(select(func.count()).select_from(model)) or 0

    def count_users(self) -> int:
        return self._count(UserRow)

    def count_orders(self) -> int:
        return self._count(OrderRow)

    def count_products(self) -> int:
        return self._count(ProductRow)

    def list_orders(self, status: Optional[str] = None) -> List[Order]:
        stmt = select(OrderRow).order_by(OrderRow.created_at.desc())
        if status:
            stmt = stmt.where(OrderRow.status == status)
        with self._session() as session:
            return [_to_order(r) for r in session.scalars(stmt).all()]

    def get_users(self, user_ids: Iterable[str]) -> Dict[str, User]:
        ids = sorted({uid for uid in user_ids if uid})
        if not ids:
            return {}
        with self._session() as session:
            rows = session.scalars(select(UserRow).where(UserRow.id.in_(ids))).all()
            return {r.id: User(id=r.id, name=r.name, email=r.email, role=r.role) for r in rows}

    # -- wishlist ---------------------------------------------------------

    def list_wishlist(self, user_id: str) -> List[WishlistEntry]:
        stmt = (
            select(WishlistRow)
            .join(ProductRow, WishlistRow.product_id == ProductRow.id)
            .where(WishlistRow.user_id == user_id)
            .order_by(WishlistRow.created_at.desc())
        )
        with self._session() as session:
            return [_to_wishlist(r, with_product=True) for r in session.scalars(stmt).all()]

    def find_wishlist_entry(self, user_id: str, product_id: str) -> Optional[WishlistEntry]:
        stmt = select(WishlistRow).where(
            WishlistRow.user_id == user_id, WishlistRow.product_id == product_id
        )
        with self._session() as session:
            row = session.scalars(stmt).first()
            return _to_wishlist(row) if row is not None else None

    def add_wishlist_entry(self, user_id: str, product_id: str) -> WishlistEntry:
        row = WishlistRow(user_id=user_id, product_id=product_id, created_at=datetime.now(timezone.utc))
        try:
            with self._session() as session:
                session.add(row)
                session.flush()
                entry = _to_wishlist(row)
        except IntegrityError as e:
            raise Conflict("Already in wishlist") from e
        return entry

    def delete_wishlist(self, user_id: str, product_id: Optional[str] = None) -> int:
        with self._session() as session:
            query = session.query(WishlistRow).filter(WishlistRow.user_id == user_id)
            if product_id is not None:
                query = query.filter(WishlistRow.product_id == product_id)
            return query.delete(synchronize_session=False)

    def ping(self) -> bool:
        try:
            with self._session() as session:
                session.execute(text("SELECT 1"))
            return True
        except UpstreamFailure:
            return False

"""
Tests for the SQLAlchemy store against in-memory SQLite.

The same engine setup the seed script uses; no external database needed.
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy.orm import sessionmaker

from storefront.core.config import StorefrontConfig
from storefront.core.errors import Conflict
from storefront.dashboard.aggregator import DashboardAggregator
from storefront.data.database import make_engine
from storefront.data.models import OrderRow, UserRow
from storefront.data.records import NewProduct
from storefront.data.seed import main as seed_main, seed_products
from storefront.data.sql_store import SQLStore
from storefront.search.query_builder import listing_criteria, search_criteria
from storefront.wishlist.ledger import WishlistLedger


@pytest.fixture
def engine():
    eng = make_engine("sqlite://")
    seed_products(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def sql_store(engine):
    return SQLStore(engine=engine, create_tables=True)


@pytest.fixture
def cfg():
    return StorefrontConfig(backend="sql")


def _add_people_and_orders(engine):
    Session = sessionmaker(bind=engine)
    with Session() as session:
        session.add_all([
            UserRow(id="u1", name="Alice", email="a@example.com"),
            UserRow(id="u2", name="Bob", email="b@example.com", role="admin"),
        ])
        session.add_all([
            OrderRow(id="o1", user_id="u1", status="delivered", total=80,
                     created_at=datetime(2024, 3, 2, 12, tzinfo=timezone.utc)),
            OrderRow(id="o2", user_id="u2", status="pending", total=40,
                     created_at=datetime(2024, 3, 5, 12, tzinfo=timezone.utc)),
        ])
        session.commit()


class TestSeed:
    def test_seed_is_idempotent(self, engine):
        assert seed_products(engine) == 0

    def test_force_reseeds(self, engine):
        assert seed_products(engine, force=True) == 8

    def test_cli(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'shop.db'}"
        seed_main(["--database-url", url])
        store = SQLStore(engine=make_engine(url))
        assert store.count_products() == 8


class TestCatalog:
    def test_list_and_get(self, sql_store):
        products = sql_store.list_products()
        assert [p.id for p in products] == ["1", "2", "3", "4", "5", "6", "7", "8"]
        product = sql_store.get_product("2")
        assert product.name == "Smart Watch Ultra"
        assert product.price == 449.99
        assert product.tags == ["wearable", "fitness", "watch"]
        assert product.created_at.tzinfo is not None
        assert sql_store.get_product("999") is None

    def test_search_matches_memory_semantics(self, sql_store, cfg):
        result = sql_store.search_products(search_criteria(cfg, q="fitness"))
        assert [p.id for p in result.items] == ["2", "5", "7"]
        assert result.total == 3

        result = sql_store.search_products(listing_criteria(cfg, category="ELECTRONICS", sort="price-high"))
        assert [p.id for p in result.items] == ["2", "1", "4"]

        result = sql_store.search_products(search_criteria(cfg, q="", category="Sports"))
        assert result.total == 0

    def test_search_pushes_down_filters(self, sql_store, cfg):
        criteria = search_criteria(cfg, q="o", category="Electronics,Fashion", max_price="200", in_stock="true")
        ids = {p.id for p in sql_store.search_products(criteria).items}
        assert ids == {"3", "4"}

    def test_create_product(self, sql_store):
        created = sql_store.create_product(NewProduct(name="Lamp", price=25, category="Home & Living"))
        assert created.id
        assert created.rating == 0
        assert created.status == "active"
        assert sql_store.get_product(created.id).name == "Lamp"
        assert sql_store.count_products() == 9


class TestOrdersAndUsers:
    def test_counts_orders_users(self, engine, sql_store):
        _add_people_and_orders(engine)
        assert sql_store.count_users() == 2
        assert sql_store.count_orders() == 2
        assert [o.id for o in sql_store.list_orders()] == ["o2", "o1"]
        assert [o.id for o in sql_store.list_orders(status="delivered")] == ["o1"]
        users = sql_store.get_users(["u1", "missing"])
        assert list(users) == ["u1"]
        assert users["u1"].name == "Alice"

    def test_dashboard_over_sql(self, engine, sql_store):
        _add_people_and_orders(engine)
        snapshot = DashboardAggregator(sql_store, StorefrontConfig()).compute_snapshot(now=datetime(2024, 3, 20))
        assert snapshot.total_revenue == 80.0
        assert snapshot.sales_data[-1]["name"] == "Mar"
        assert snapshot.sales_data[-1]["orders"] == 1
        assert [o["customer"] for o in snapshot.recent_orders] == ["Bob", "Alice"]


class TestWishlist:
    def test_unique_constraint(self, sql_store):
        sql_store.add_wishlist_entry("u1", "1")
        with pytest.raises(Conflict):
            sql_store.add_wishlist_entry("u1", "1")
        assert len(sql_store.list_wishlist("u1")) == 1

    def test_ledger_over_sql(self, sql_store):
        ledger = WishlistLedger(sql_store)
        ledger.add("u1", "1")
        ledger.add("u1", "5")
        items = ledger.list("u1")
        assert {i.product_id for i in items} == {"1", "5"}
        assert all(i.product is not None for i in items)
        assert ledger.remove("u1", "1") == 1
        assert ledger.remove("u1") == 1
        assert ledger.list("u1") == []

    def test_ping(self, sql_store):
        assert sql_store.ping() is True

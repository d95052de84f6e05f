"""
Tests for the Supabase REST backend.

PostgREST is replaced by an httpx.MockTransport, so these run offline and
assert on the exact requests the store sends.
"""

import json

import httpx
import pytest

from storefront.api.auth import SupabaseIdentityProvider
from storefront.core.config import StorefrontConfig
from storefront.core.errors import Conflict, UpstreamFailure
from storefront.data.supabase_store import SupabaseStore
from storefront.search.query_builder import search_criteria
from storefront.utils.supabase_client import SupabaseClient, _total_from_content_range

BASE_URL = "https://example.supabase.co"

PRODUCT_ROW = {
    "id": "p-1",
    "name": "Smart Watch Ultra",
    "description": "Fitness tracking",
    "price": "449.99",
    "original_price": 599.99,
    "rating": 4.9,
    "reviews_count": 567,
    "badge": "New",
    "category": "Electronics",
    "image_url": "/products/smartwatch.jpg",
    "stock": 8,
    "features": ["GPS Tracking"],
    "tags": ["watch"],
    "status": "active",
    "created_at": "2024-02-01T10:00:00+00:00",
    "sales_count": 298,
}


class FakePostgrest:
    """Records requests and answers them from a route table."""

    def __init__(self):
        self.requests = []
        self.routes = {}

    def on(self, method, path, status=200, body=None, headers=None):
        self.routes[(method, path)] = (status, body, headers or {})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body, headers = self.routes.get((request.method, request.url.path), (404, {"message": "no route"}, {}))
        content = b"" if body is None else json.dumps(body).encode()
        return httpx.Response(status, content=content, headers={"content-type": "application/json", **headers})

    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def fake():
    return FakePostgrest()


@pytest.fixture
def supabase(fake):
    http = httpx.Client(transport=httpx.MockTransport(fake), base_url=BASE_URL)
    return SupabaseClient(url=BASE_URL, key="service-key", client=http)


@pytest.fixture
def sb_store(supabase):
    return SupabaseStore(client=supabase)


def test_content_range_parsing():
    assert _total_from_content_range("0-9/42") == 42
    assert _total_from_content_range("*/0") == 0
    assert _total_from_content_range("0-9/*") is None
    assert _total_from_content_range(None) is None


class TestCatalog:
    def test_get_product(self, fake, sb_store):
        fake.on("GET", "/rest/v1/products", body=[PRODUCT_ROW])
        product = sb_store.get_product("p-1")
        assert product.id == "p-1"
        assert product.price == 449.99
        assert product.created_at.year == 2024
        assert fake.last().url.params["id"] == "eq.p-1"

    def test_get_missing_product(self, fake, sb_store):
        fake.on("GET", "/rest/v1/products", body=[])
        assert sb_store.get_product("nope") is None

    def test_search_is_pushed_down(self, fake, sb_store):
        fake.on("GET", "/rest/v1/products", body=[PRODUCT_ROW], headers={"content-range": "12-12/13"})
        criteria = search_criteria(StorefrontConfig(), q="watch", category="Electronics",
                                   sort_by="price-low", page="2")
        result = sb_store.search_products(criteria)

        request = fake.last()
        assert request.headers["prefer"] == "count=exact"
        params = request.url.params
        assert params["status"] == "eq.active"
        assert params.get_list("price") == ["gte.0.0", "lte.1000.0"]
        assert params["or"] == '(name.ilike."*watch*",description.ilike."*watch*",tags.cs.{"watch"})'
        assert params["category"] == 'in.("Electronics")'
        assert params["order"] == "price.asc,id.asc"
        assert params["offset"] == "12"
        assert params["limit"] == "12"

        assert result.total == 13
        assert result.page == 2
        assert result.total_pages == 2
        assert [p.id for p in result.items] == ["p-1"]

    def test_blank_search_sends_nothing(self, fake, sb_store):
        result = sb_store.search_products(search_criteria(StorefrontConfig(), q=" "))
        assert result.total == 0
        assert fake.requests == []

    def test_http_error_is_upstream_failure(self, fake, sb_store):
        fake.on("GET", "/rest/v1/products", status=503, body={"message": "down"})
        with pytest.raises(UpstreamFailure):
            sb_store.list_products()
        assert sb_store.ping() is False

    def test_transport_error_is_upstream_failure(self):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)
        http = httpx.Client(transport=httpx.MockTransport(refuse), base_url=BASE_URL)
        store = SupabaseStore(client=SupabaseClient(url=BASE_URL, key="k", client=http))
        with pytest.raises(UpstreamFailure):
            store.get_product("1")


class TestCountsAndOrders:
    def test_counts_use_head(self, fake, sb_store):
        fake.on("HEAD", "/rest/v1/users", headers={"content-range": "*/17"})
        assert sb_store.count_users() == 17
        assert fake.last().method == "HEAD"
        assert fake.last().headers["prefer"] == "count=exact"

    def test_missing_count_is_failure(self, fake, sb_store):
        fake.on("HEAD", "/rest/v1/orders")
        with pytest.raises(UpstreamFailure):
            sb_store.count_orders()

    def test_list_orders_by_status(self, fake, sb_store):
        fake.on("GET", "/rest/v1/orders", body=[
            {"id": 5, "user_id": "u1", "status": "delivered", "total": "12.50", "created_at": "2024-05-01T00:00:00Z"},
        ])
        orders = sb_store.list_orders(status="delivered")
        assert orders[0].id == "5"
        assert orders[0].total == 12.5
        params = fake.last().url.params
        assert params["status"] == "eq.delivered"
        assert params["order"] == "created_at.desc"

    def test_get_users(self, fake, sb_store):
        fake.on("GET", "/rest/v1/users", body=[{"id": "u1", "name": "Alice", "role": "admin"}])
        users = sb_store.get_users(["u2", "u1", "u1"])
        assert users["u1"].role == "admin"
        assert fake.last().url.params["id"] == "in.(u1,u2)"

    def test_get_users_empty_skips_request(self, fake, sb_store):
        assert sb_store.get_users([]) == {}
        assert fake.requests == []


class TestWishlist:
    def test_list_joins_products(self, fake, sb_store):
        fake.on("GET", "/rest/v1/wishlist", body=[{
            "id": "w1", "user_id": "u1", "product_id": "p-1",
            "created_at": "2024-05-01T00:00:00Z", "products": PRODUCT_ROW,
        }])
        entries = sb_store.list_wishlist("u1")
        assert entries[0].product.name == "Smart Watch Ultra"
        params = fake.last().url.params
        assert "products!inner(*)" in params["select"]
        assert params["order"] == "created_at.desc"

    def test_add(self, fake, sb_store):
        fake.on("POST", "/rest/v1/wishlist", status=201, body=[
            {"id": "w2", "user_id": "u1", "product_id": "p-1", "created_at": "2024-05-02T00:00:00Z"},
        ])
        entry = sb_store.add_wishlist_entry("u1", "p-1")
        assert entry.id == "w2"
        assert json.loads(fake.last().content) == {"user_id": "u1", "product_id": "p-1"}

    def test_unique_violation_is_conflict(self, fake, sb_store):
        fake.on("POST", "/rest/v1/wishlist", status=409, body={
            "code": "23505", "message": "duplicate key value violates unique constraint",
        })
        with pytest.raises(Conflict) as exc:
            sb_store.add_wishlist_entry("u1", "p-1")
        assert exc.value.message == "Already in wishlist"

    def test_delete(self, fake, sb_store):
        fake.on("DELETE", "/rest/v1/wishlist", body=[{"id": "w1"}, {"id": "w2"}])
        assert sb_store.delete_wishlist("u1") == 2
        params = fake.last().url.params
        assert params["user_id"] == "eq.u1"
        assert "product_id" not in params


class TestIdentity:
    def test_valid_token(self, fake, supabase, sb_store):
        fake.on("GET", "/auth/v1/user", body={"id": "u1", "email": "a@example.com"})
        fake.on("GET", "/rest/v1/users", body=[{"id": "u1", "name": "Alice", "role": "admin"}])
        identity = SupabaseIdentityProvider(supabase, sb_store).resolve("user-jwt")
        assert identity.user_id == "u1"
        assert identity.is_admin
        auth_request = next(r for r in fake.requests if r.url.path == "/auth/v1/user")
        assert auth_request.headers["authorization"] == "Bearer user-jwt"

    def test_unknown_profile_defaults_to_user_role(self, fake, supabase, sb_store):
        fake.on("GET", "/auth/v1/user", body={"id": "u9"})
        fake.on("GET", "/rest/v1/users", body=[])
        identity = SupabaseIdentityProvider(supabase, sb_store).resolve("jwt")
        assert identity.role == "user"

    def test_rejected_token(self, fake, supabase, sb_store):
        fake.on("GET", "/auth/v1/user", status=401, body={"message": "invalid JWT"})
        assert SupabaseIdentityProvider(supabase, sb_store).resolve("expired") is None

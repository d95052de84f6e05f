"""
Tests for the product detail cache.

TestRedisCache uses a real local Redis instance (db=15) and is skipped if
Redis is not available. The cache-aside endpoint tests use an in-process
stand-in for the redis client so they always run.
"""

import fnmatch
import os

import pytest
import redis

from conftest import ADMIN_TOKEN, auth
from storefront.api import deps
from storefront.api.server import app
from storefront.utils.cache import CacheClient
from storefront.utils.metrics import metrics_collector


@pytest.fixture
def redis_cache():
    os.environ["REDIS_DB"] = "15"  # Use db=15 for tests to avoid touching real data
    c = CacheClient(namespace="storefront-test", ttl_product=30)
    if not c.ping():
        os.environ.pop("REDIS_DB", None)
        pytest.skip("Redis not available")
    c.invalidate_products()
    yield c
    c.invalidate_products()
    os.environ.pop("REDIS_DB", None)


class TestRedisCache:
    def test_miss_then_hit(self, redis_cache):
        metrics_collector.reset()
        assert redis_cache.get_product_detail("1") is None
        redis_cache.set_product_detail("1", {"product": {"id": "1"}, "relatedProducts": []})
        assert redis_cache.get_product_detail("1") == {"product": {"id": "1"}, "relatedProducts": []}
        assert metrics_collector.cache_hits == 1
        assert metrics_collector.cache_misses == 1

    def test_ttl_is_applied(self, redis_cache):
        redis_cache.set_product_detail("2", {"product": {"id": "2"}})
        ttl = redis_cache.client.ttl("storefront-test:prod_detail:2")
        assert 0 < ttl <= 30

    def test_invalidate(self, redis_cache):
        redis_cache.set_product_detail("1", {"a": 1})
        redis_cache.set_product_detail("2", {"b": 2})
        assert redis_cache.invalidate_products() == 2
        assert redis_cache.get_product_detail("1") is None


class FakeRedis:
    """Just enough of redis.Redis for CacheClient."""

    def __init__(self, fail=False):
        self.data = {}
        self.fail = fail

    def _check(self):
        if self.fail:
            raise redis.ConnectionError("redis down")

    def ping(self):
        self._check()
        return True

    def get(self, key):
        self._check()
        return self.data.get(key)

    def setex(self, key, ttl, value):
        self._check()
        self.data[key] = value

    def scan_iter(self, match=None, count=None):
        self._check()
        return [k for k in list(self.data) if match is None or fnmatch.fnmatch(k, match)]

    def delete(self, *keys):
        self._check()
        return sum(1 for k in keys if self.data.pop(k, None) is not None)


@pytest.fixture
def cached_client(client):
    fake = FakeRedis()
    cache = CacheClient(client=fake)
    app.dependency_overrides[deps.get_cache] = lambda: cache
    yield client, fake
    app.dependency_overrides.pop(deps.get_cache, None)


class TestCacheAside:
    def test_detail_is_cached(self, cached_client, store, monkeypatch):
        client, fake = cached_client
        first = client.get("/api/products/1").json()
        assert "storefront:prod_detail:1" in fake.data

        # Served from cache even if the store would now fail
        monkeypatch.setattr(store, "get_product", lambda pid: pytest.fail("store was hit"))
        assert client.get("/api/products/1").json() == first

    def test_not_found_is_not_cached(self, cached_client):
        client, fake = cached_client
        assert client.get("/api/products/999").status_code == 404
        assert fake.data == {}

    def test_create_invalidates(self, cached_client):
        client, fake = cached_client
        client.get("/api/products/1")
        body = {"name": "Tablet", "price": 199, "category": "Electronics"}
        assert client.post("/api/products", json=body, headers=auth(ADMIN_TOKEN)).status_code == 201
        assert fake.data == {}
        related = client.get("/api/products/1").json()["relatedProducts"]
        assert "Tablet" in [p["name"] for p in related]

    def test_redis_errors_are_misses(self, client):
        cache = CacheClient(client=FakeRedis(fail=True))
        assert cache.ping() is False
        assert cache.get_product_detail("1") is None
        assert cache.set_product_detail("1", {}) is False
        assert cache.invalidate_products() == 0

        app.dependency_overrides[deps.get_cache] = lambda: cache
        try:
            assert client.get("/api/products/1").status_code == 200
            health = client.get("/health").json()
            assert health["cache"] == "unhealthy: no response"
            assert health["service"] == "degraded"
        finally:
            app.dependency_overrides.pop(deps.get_cache, None)

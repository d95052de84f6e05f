"""
Redis cache for product detail payloads.

Redis is ONLY a cache, never the source of truth. The configured store is
always authoritative; every cache failure is logged and treated as a miss.

Keys:
- storefront:prod_detail:{product_id}   {product, relatedProducts} (TTL from config)

Supports both local Redis and Upstash (cloud-hosted) via UPSTASH_REDIS_URL.
"""

import json
import os
from typing import Any, Dict, Optional

import redis

from storefront.utils.logger import get_logger
from storefront.utils.metrics import metrics_collector

logger = get_logger("utils.cache")


class CacheClient:
    """Cache-aside client for product detail responses."""

    def __init__(self, namespace: str = "storefront", ttl_product: int = 300, client: Optional[redis.Redis] = None):
        """
        Connection priority:
        1. an explicit `client`
        2. UPSTASH_REDIS_URL (cloud-hosted, rediss:// TLS)
        3. REDIS_HOST + REDIS_PORT (local)
        """
        self.namespace = namespace
        self.ttl_product = ttl_product

        if client is not None:
            self.client = client
            return

        upstash_url = os.getenv("UPSTASH_REDIS_URL")
        if upstash_url:
            self.client = redis.from_url(
                upstash_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
        else:
            self.client = redis.Redis(
                host=os.getenv("REDIS_HOST", "localhost"),
                port=int(os.getenv("REDIS_PORT", "6379")),
                db=int(os.getenv("REDIS_DB", "0")),
                decode_responses=True,
                socket_connect_timeout=2,
                socket_timeout=2,
            )

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except redis.RedisError:
            return False

    def get_product_detail(self, product_id: str) -> Optional[Dict[str, Any]]:
        """Cached detail payload, or None on miss or error."""
        key = self._key(f"prod_detail:{product_id}")
        try:
            cached = self.client.get(key)
        except redis.RedisError as e:
            logger.warning(f"Cache read error for {key}: {e}")
            metrics_collector.record_cache_miss()
            return None
        if not cached:
            metrics_collector.record_cache_miss()
            return None
        metrics_collector.record_cache_hit()
        return json.loads(cached)

    def set_product_detail(self, product_id: str, payload: Dict[str, Any]) -> bool:
        key = self._key(f"prod_detail:{product_id}")
        try:
            self.client.setex(key, self.ttl_product, json.dumps(payload))
            return True
        except redis.RedisError as e:
            logger.warning(f"Cache write error for {key}: {e}")
            return False

    def invalidate_products(self) -> int:
        """Drop every cached detail payload; returns keys deleted."""
        try:
            keys = list(self.client.scan_iter(match=self._key("prod_detail:*"), count=100))
            if keys:
                return self.client.delete(*keys)
            return 0
        except redis.RedisError as e:
            logger.warning(f"Cache invalidation error: {e}")
            return 0

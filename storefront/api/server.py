"""
Storefront HTTP API.

Endpoints:
- GET/POST /api/products, GET /api/products/{id}
- GET /api/search
- GET/POST/PUT/DELETE /api/cart
- GET/POST/DELETE /api/wishlist (signed in)
- GET /api/admin/dashboard (admin)
- GET /, /health, /metrics

Every error is returned as {"error": message} with its HTTP status.
"""

import os
import time
import traceback
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request as StarletteRequest
from starlette.responses import Response as StarletteResponse

from storefront import __version__
from storefront.api.auth import Identity
from storefront.api.deps import (
    get_cache,
    get_cart_ledger,
    get_dashboard,
    get_settings,
    get_store,
    get_wishlist_ledger,
    require_admin,
    require_user,
)
from storefront.api.models import CartAddRequest, CartUpdateRequest, WishlistAddRequest
from storefront.cart.ledger import CartLedger
from storefront.core.config import StorefrontConfig
from storefront.core.errors import NotFound, StorefrontError
from storefront.dashboard.aggregator import DashboardAggregator
from storefront.data.records import NewProduct
from storefront.data.store import StorefrontStore
from storefront.search.query_builder import listing_criteria, search_criteria
from storefront.utils.cache import CacheClient
from storefront.utils.logger import get_logger
from storefront.utils.metrics import metrics_collector, record_request_metrics
from storefront.wishlist.ledger import WishlistLedger

logger = get_logger("api.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Storefront API v%s starting", __version__)
    yield
    logger.info("Storefront API shutting down")


app = FastAPI(
    title="Storefront API",
    description="Catalog search, cart, wishlist and admin dashboard",
    version=__version__,
    lifespan=lifespan,
)

# In production, configure this more strictly
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class LatencyLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status and duration of every non-OPTIONS request and feeds /metrics."""

    async def dispatch(self, request: StarletteRequest, call_next) -> StarletteResponse:
        if request.method == "OPTIONS":
            return await call_next(request)
        t0 = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - t0) * 1000, 1)
        route = request.scope.get("route")
        endpoint = f"{request.method} {getattr(route, 'path', request.url.path)}"
        record_request_metrics(endpoint, duration_ms, is_error=response.status_code >= 500)
        logger.info("[LATENCY] %s %s -> %d  %.1fms",
                    request.method, request.url.path, response.status_code, duration_ms)
        return response


app.add_middleware(LatencyLoggingMiddleware)


#
# Error handlers
#

@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log unhandled exceptions and return 500."""
    logger.error("Unhandled exception: %s\n%s", exc, traceback.format_exc())
    is_dev = os.getenv("ENV", "development").lower() in ("development", "dev", "")
    detail = str(exc) if is_dev else "Internal server error"
    return JSONResponse(status_code=500, content={"error": detail})


#
# Health Check Endpoints
#

@app.get("/")
def root():
    """Root endpoint - basic health check."""
    return {
        "service": "Storefront API",
        "version": __version__,
        "status": "operational",
    }


@app.get("/health")
def health_check(
    store: StorefrontStore = Depends(get_store),
    cache: Optional[CacheClient] = Depends(get_cache),
):
    """Detailed health check including store and cache connectivity."""
    health_status = {
        "service": "healthy",
        "store": store.name,
        "database": "healthy" if store.ping() else "unhealthy",
        "cache": "disabled",
    }
    if health_status["database"] != "healthy":
        health_status["service"] = "degraded"
    if cache is not None:
        if cache.ping():
            health_status["cache"] = "healthy"
        else:
            health_status["cache"] = "unhealthy: no response"
            health_status["service"] = "degraded"
    return health_status


@app.get("/metrics")
def get_metrics():
    """Latency percentiles, request and error counts per endpoint, cache hit rate."""
    return metrics_collector.get_summary()


#
# Catalog
#

@app.get("/api/products")
def list_products(
    category: Optional[str] = None,
    search: Optional[str] = None,
    sort: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    store: StorefrontStore = Depends(get_store),
    config: StorefrontConfig = Depends(get_settings),
):
    criteria = listing_criteria(config, category=category, search=search, sort=sort, page=page, limit=limit)
    result = store.search_products(criteria)
    return {
        "products": [p.to_api() for p in result.items],
        "pagination": {
            "page": result.page,
            "limit": result.page_size,
            "total": result.total,
            "pages": result.total_pages,
        },
        "categories": list(config.categories),
    }


@app.post("/api/products", status_code=201)
def create_product(
    product: NewProduct,
    admin: Identity = Depends(require_admin),
    store: StorefrontStore = Depends(get_store),
    cache: Optional[CacheClient] = Depends(get_cache),
):
    created = store.create_product(product)
    if cache is not None:
        # Related-product lists of the new category are now stale
        cache.invalidate_products()
    logger.info("Admin %s created product %s", admin.user_id, created.id)
    return created.to_api()


@app.get("/api/products/{product_id}")
def get_product(
    product_id: str,
    store: StorefrontStore = Depends(get_store),
    config: StorefrontConfig = Depends(get_settings),
    cache: Optional[CacheClient] = Depends(get_cache),
):
    if cache is not None:
        cached = cache.get_product_detail(product_id)
        if cached is not None:
            return cached

    product = store.get_product(product_id)
    if product is None or not product.is_active:
        raise NotFound("Product not found")

    related = [
        p for p in store.list_products()
        if p.is_active and p.category == product.category and p.id != product.id
    ][: config.related_products_limit]
    payload: Dict[str, Any] = {
        "product": product.to_api(),
        "relatedProducts": [p.to_api() for p in related],
    }
    if cache is not None:
        cache.set_product_detail(product_id, payload)
    return payload


@app.get("/api/search")
def search(
    q: Optional[str] = None,
    category: Optional[str] = None,
    minPrice: Optional[str] = None,
    maxPrice: Optional[str] = None,
    rating: Optional[str] = None,
    inStock: Optional[str] = None,
    sortBy: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    store: StorefrontStore = Depends(get_store),
    config: StorefrontConfig = Depends(get_settings),
):
    criteria = search_criteria(
        config,
        q=q,
        category=category,
        min_price=minPrice,
        max_price=maxPrice,
        rating=rating,
        in_stock=inStock,
        sort_by=sortBy,
        page=page,
        limit=limit,
    )
    result = store.search_products(criteria)
    return {
        "products": [p.to_api() for p in result.items],
        "total": result.total,
        "page": result.page,
        "pages": result.total_pages,
        "hasMore": result.has_more,
    }


#
# Cart
#

@app.get("/api/cart")
def get_cart(sessionId: str = "default", cart: CartLedger = Depends(get_cart_ledger)):
    lines = cart.lines(sessionId)
    summary = cart.summarize_lines(lines)
    return {
        "items": [line.to_api() for line in lines],
        "summary": summary.to_api(),
        "count": summary.count,
    }


@app.post("/api/cart")
def add_to_cart(body: CartAddRequest, cart: CartLedger = Depends(get_cart_ledger)):
    count = cart.add(str(body.productId), body.quantity, body.sessionId)
    return {"message": "Item added to cart", "cartCount": count}


@app.put("/api/cart")
def update_cart(body: CartUpdateRequest, cart: CartLedger = Depends(get_cart_ledger)):
    cart.set_quantity(str(body.cartItemId), body.quantity, body.sessionId)
    return {"message": "Cart updated successfully"}


@app.delete("/api/cart")
def remove_from_cart(
    cartItemId: Optional[str] = None,
    sessionId: str = "default",
    cart: CartLedger = Depends(get_cart_ledger),
):
    cart.remove(cartItemId or None, sessionId)
    return {"message": "Item removed from cart"}


#
# Wishlist
#

@app.get("/api/wishlist")
def get_wishlist(
    identity: Identity = Depends(require_user),
    wishlist: WishlistLedger = Depends(get_wishlist_ledger),
):
    return {"items": [entry.to_api() for entry in wishlist.list(identity.user_id)]}


@app.post("/api/wishlist")
def add_to_wishlist(
    body: WishlistAddRequest,
    identity: Identity = Depends(require_user),
    wishlist: WishlistLedger = Depends(get_wishlist_ledger),
):
    product_id = str(body.productId) if body.productId is not None else None
    entry = wishlist.add(identity.user_id, product_id)
    return {"item": entry.to_api()}


@app.delete("/api/wishlist")
def remove_from_wishlist(
    productId: Optional[str] = None,
    identity: Identity = Depends(require_user),
    wishlist: WishlistLedger = Depends(get_wishlist_ledger),
):
    if productId:
        wishlist.remove(identity.user_id, productId)
        return {"message": "Removed from wishlist"}
    wishlist.remove(identity.user_id)
    return {"message": "Wishlist cleared"}


#
# Admin
#

@app.get("/api/admin/dashboard")
def admin_dashboard(
    admin: Identity = Depends(require_admin),
    dashboard: DashboardAggregator = Depends(get_dashboard),
):
    return dashboard.compute_snapshot().to_api()


def main() -> None:
    port = int(os.getenv("PORT", "8000"))
    uvicorn.run("storefront.api.server:app", host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()

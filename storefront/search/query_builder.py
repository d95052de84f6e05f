"""
Product search & filtering query construction.

Turns raw request parameters into a SearchCriteria and resolves it either
in-process over a sequence of products (memory backend, SQL post-filtering)
or as PostgREST query parameters (Supabase backend).

The two HTTP call sites deliberately differ:
  - catalog listing: blank query matches everything, single case-insensitive
    category ("all" = no filter), no price/rating defaults, unsorted by default
  - search: blank query matches nothing, comma-separated categories matched
    exactly, price range [0, 1000] and rating 0 by default, active products
    only, relevance (= rating desc) by default
"""
from __future__ import annotations

import math
import re
import unicodedata
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, FrozenSet, Iterable, List, Optional, Tuple

from storefront.core.config import StorefrontConfig
from storefront.data.records import Product

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_LEADING_FLOAT = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


class TextMatchMode(str, Enum):
    """What a blank query means."""
    MATCH_ALL = "match_all"
    MATCH_NOTHING = "match_nothing"


class SortKey(str, Enum):
    PRICE_LOW = "price-low"
    PRICE_HIGH = "price-high"
    RATING = "rating"
    NAME = "name"
    NEWEST = "newest"
    BESTSELLING = "bestselling"
    RELEVANCE = "relevance"

    @classmethod
    def parse(cls, value: Optional[str], default: Optional["SortKey"]) -> Optional["SortKey"]:
        """Map a raw sort parameter to a key; unknown values give `default`."""
        if not value:
            return default
        try:
            return cls(value.strip().lower())
        except ValueError:
            return default


@dataclass(frozen=True)
class SearchCriteria:
    """Everything needed to resolve one listing/search request."""
    query: str = ""
    empty_query: TextMatchMode = TextMatchMode.MATCH_ALL
    categories: FrozenSet[str] = field(default_factory=frozenset)
    categories_case_insensitive: bool = False
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_rating: Optional[float] = None
    in_stock_only: bool = False
    active_only: bool = False
    sort: Optional[SortKey] = None
    page: int = 1
    page_size: int = 12

    @property
    def text(self) -> str:
        return self.query.strip()

    @property
    def matches_nothing(self) -> bool:
        return not self.text and self.empty_query == TextMatchMode.MATCH_NOTHING

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass
class SearchResult:
    items: List[Product]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0

    @property
    def has_more(self) -> bool:
        return self.page < self.total_pages


# ---------------------------------------------------------------------------
# Lenient numeric parsing: leading-number semantics, defaults on failure
# ---------------------------------------------------------------------------

def parse_int(value: Any, default: int) -> int:
    """Parse the leading integer of `value` ("12abc" -> 12); `default` if none."""
    if value is None:
        return default
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else default
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else default


def parse_float(value: Any, default: float) -> float:
    """Parse the leading float of `value` ("9.5kg" -> 9.5); `default` if none."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else default
    match = _LEADING_FLOAT.match(str(value))
    if not match:
        return default
    parsed = float(match.group(1))
    return parsed if math.isfinite(parsed) else default


def clamp_page(page: int) -> int:
    return max(page, 1)


def clamp_page_size(size: int, max_page_size: int) -> int:
    return min(max(size, 1), max_page_size)


# ---------------------------------------------------------------------------
# Criteria builders for the two call sites
# ---------------------------------------------------------------------------

def listing_criteria(
    config: StorefrontConfig,
    category: Optional[str] = None,
    search: Optional[str] = None,
    sort: Optional[str] = None,
    page: Any = None,
    limit: Any = None,
) -> SearchCriteria:
    """Criteria for the catalog listing endpoint."""
    categories: FrozenSet[str] = frozenset()
    if category and category.strip().lower() != "all":
        categories = frozenset([category.strip()])
    return SearchCriteria(
        query=search or "",
        empty_query=TextMatchMode.MATCH_ALL,
        categories=categories,
        categories_case_insensitive=True,
        active_only=True,
        sort=SortKey.parse(sort, default=None),
        page=clamp_page(parse_int(page, 1)),
        page_size=clamp_page_size(parse_int(limit, config.listing_page_size), config.max_page_size),
    )


def search_criteria(
    config: StorefrontConfig,
    q: Optional[str] = None,
    category: Optional[str] = None,
    min_price: Any = None,
    max_price: Any = None,
    rating: Any = None,
    in_stock: Optional[str] = None,
    sort_by: Optional[str] = None,
    page: Any = None,
    limit: Any = None,
) -> SearchCriteria:
    """Criteria for the search endpoint."""
    categories = frozenset(part.strip() for part in (category or "").split(",") if part.strip())
    return SearchCriteria(
        query=q or "",
        empty_query=TextMatchMode.MATCH_NOTHING,
        categories=categories,
        categories_case_insensitive=False,
        min_price=parse_float(min_price, config.default_min_price),
        max_price=parse_float(max_price, config.default_max_price),
        min_rating=float(parse_int(rating, int(config.default_min_rating))),
        in_stock_only=(in_stock == "true"),
        active_only=True,
        sort=SortKey.parse(sort_by, default=SortKey.RELEVANCE),
        page=clamp_page(parse_int(page, 1)),
        page_size=clamp_page_size(parse_int(limit, config.search_page_size), config.max_page_size),
    )


# ---------------------------------------------------------------------------
# In-process resolution
# ---------------------------------------------------------------------------

def matches_text(product: Product, text: str) -> bool:
    needle = text.lower()
    if needle in product.name.lower() or needle in (product.description or "").lower():
        return True
    return any(tag.lower() == needle for tag in product.tags)


def matches(product: Product, criteria: SearchCriteria) -> bool:
    """True if `product` passes every filter in `criteria` (ignores paging)."""
    if criteria.active_only and not product.is_active:
        return False
    text = criteria.text
    if text:
        if not matches_text(product, text):
            return False
    elif criteria.empty_query == TextMatchMode.MATCH_NOTHING:
        return False
    if criteria.categories:
        if criteria.categories_case_insensitive:
            wanted = {c.lower() for c in criteria.categories}
            if product.category.lower() not in wanted:
                return False
        elif product.category not in criteria.categories:
            return False
    if criteria.min_price is not None and product.price < criteria.min_price:
        return False
    if criteria.max_price is not None and product.price > criteria.max_price:
        return False
    if criteria.min_rating is not None and product.rating < criteria.min_rating:
        return False
    if criteria.in_stock_only and product.stock <= 0:
        return False
    return True


def _name_key(name: str) -> Tuple[str, str]:
    decomposed = unicodedata.normalize("NFKD", name)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return (stripped.casefold(), name)


def _created_key(created_at: Optional[datetime]) -> float:
    # Missing timestamps sort as oldest
    if created_at is None:
        return float("-inf")
    return created_at.timestamp()


def sort_products(products: Iterable[Product], sort: Optional[SortKey]) -> List[Product]:
    """Stable sort; equal keys keep their input order."""
    items = list(products)
    if sort is None:
        return items
    if sort == SortKey.PRICE_LOW:
        return sorted(items, key=lambda p: p.price)
    if sort == SortKey.PRICE_HIGH:
        return sorted(items, key=lambda p: p.price, reverse=True)
    if sort == SortKey.NAME:
        return sorted(items, key=lambda p: _name_key(p.name))
    if sort == SortKey.NEWEST:
        return sorted(items, key=lambda p: _created_key(p.created_at), reverse=True)
    if sort == SortKey.BESTSELLING:
        return sorted(items, key=lambda p: p.sales_count, reverse=True)
    # rating, relevance
    return sorted(items, key=lambda p: p.rating, reverse=True)


def paginate(items: List[Product], page: int, page_size: int) -> List[Product]:
    start = (page - 1) * page_size
    return items[start:start + page_size]


def run_query(products: Iterable[Product], criteria: SearchCriteria) -> SearchResult:
    """Filter, sort and paginate `products` according to `criteria`."""
    if criteria.matches_nothing:
        return SearchResult(items=[], total=0, page=1, page_size=criteria.page_size)
    filtered = [p for p in products if matches(p, criteria)]
    ordered = sort_products(filtered, criteria.sort)
    return SearchResult(
        items=paginate(ordered, criteria.page, criteria.page_size),
        total=len(filtered),
        page=criteria.page,
        page_size=criteria.page_size,
    )


# ---------------------------------------------------------------------------
# PostgREST rendering
# ---------------------------------------------------------------------------

_POSTGREST_ORDER = {
    SortKey.PRICE_LOW: "price.asc",
    SortKey.PRICE_HIGH: "price.desc",
    SortKey.RATING: "rating.desc",
    SortKey.NAME: "name.asc",
    SortKey.NEWEST: "created_at.desc.nullslast",
    SortKey.BESTSELLING: "sales_count.desc",
    SortKey.RELEVANCE: "rating.desc",
}


def _quote(value: str) -> str:
    """Quote a value for use inside a PostgREST or=()/in.() list."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def to_postgrest_params(criteria: SearchCriteria) -> List[Tuple[str, str]]:
    """
    Render `criteria` as PostgREST query parameters for the `products` table.

    Tag matching uses array containment (`cs`), which is case-sensitive on the
    server side. Callers must short-circuit `criteria.matches_nothing` first.
    """
    params: List[Tuple[str, str]] = [("select", "*")]
    if criteria.active_only:
        params.append(("status", "eq.active"))
    if criteria.min_price is not None:
        params.append(("price", f"gte.{criteria.min_price}"))
    if criteria.max_price is not None:
        params.append(("price", f"lte.{criteria.max_price}"))
    if criteria.min_rating is not None:
        params.append(("rating", f"gte.{criteria.min_rating}"))

    text = criteria.text
    if text:
        pattern = _quote(f"*{text}*")
        params.append((
            "or",
            f"(name.ilike.{pattern},description.ilike.{pattern},tags.cs.{{{_quote(text)}}})",
        ))

    if criteria.categories:
        ordered = sorted(criteria.categories)
        if criteria.categories_case_insensitive:
            if len(ordered) == 1:
                params.append(("category", f"ilike.{ordered[0]}"))
            else:
                clauses = ",".join(f"category.ilike.{_quote(c)}" for c in ordered)
                params.append(("or", f"({clauses})"))
        else:
            params.append(("category", f"in.({','.join(_quote(c) for c in ordered)})"))

    if criteria.in_stock_only:
        params.append(("stock", "gt.0"))

    if criteria.sort is not None:
        params.append(("order", f"{_POSTGREST_ORDER[criteria.sort]},id.asc"))
    else:
        params.append(("order", "id.asc"))

    params.append(("offset", str(criteria.offset)))
    params.append(("limit", str(criteria.page_size)))
    return params

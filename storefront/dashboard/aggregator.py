"""
Admin dashboard snapshot.

Everything is read from the store up front; the snapshot is then computed in
Python. If any read fails the whole snapshot fails with one UpstreamFailure,
never a partial result.

Month buckets are computed in the server's local time zone: an order placed
at 23:30 UTC on the last day of a month lands in the next month's bucket on a
server east of UTC. This matches the storefront's historical behaviour and is
left as is until reporting settles on UTC.
"""
from __future__ import annotations

import calendar
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from storefront.core.config import StorefrontConfig
from storefront.core.errors import UpstreamFailure
from storefront.data.records import Order, OrderStatus, Product, User
from storefront.data.store import StorefrontStore
from storefront.utils.logger import get_logger

logger = get_logger("dashboard.aggregator")

FAILURE_MESSAGE = "Failed to fetch dashboard data"


@dataclass
class DashboardSnapshot:
    total_users: int
    total_orders: int
    total_products: int
    total_revenue: float
    sales_data: List[Dict[str, Any]] = field(default_factory=list)
    category_data: List[Dict[str, Any]] = field(default_factory=list)
    top_products: List[Dict[str, Any]] = field(default_factory=list)
    recent_orders: List[Dict[str, Any]] = field(default_factory=list)

    def to_api(self) -> Dict[str, Any]:
        return {
            "totalUsers": self.total_users,
            "totalOrders": self.total_orders,
            "totalProducts": self.total_products,
            "totalRevenue": self.total_revenue,
            "salesData": self.sales_data,
            "categoryData": self.category_data,
            "topProducts": self.top_products,
            "recentOrders": self.recent_orders,
        }


def to_local(value: datetime) -> datetime:
    """Naive local wall-clock time for `value` (naive input is taken as UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone().replace(tzinfo=None)


def month_windows(now: datetime, months: int) -> List[Tuple[str, datetime, datetime]]:
    """
    The `months` calendar months ending with the month of `now`, oldest first.

    Each window is (label, first instant, last instant) in naive local time,
    both ends inclusive.
    """
    windows = []
    for back in range(months - 1, -1, -1):
        year, month = now.year, now.month - back
        while month < 1:
            month += 12
            year -= 1
        last_day = calendar.monthrange(year, month)[1]
        start = datetime(year, month, 1)
        end = datetime(year, month, last_day, 23, 59, 59, 999999)
        windows.append((calendar.month_abbr[month], start, end))
    return windows


class DashboardAggregator:
    def __init__(self, store: StorefrontStore, config: StorefrontConfig) -> None:
        self._store = store
        self._config = config

    def compute_snapshot(self, now: Optional[datetime] = None) -> DashboardSnapshot:
        """
        Build the snapshot as of `now` (default: the current local time).

        Raises:
            UpstreamFailure: if any store read fails
        """
        if now is None:
            now = datetime.now()
        elif now.tzinfo is not None:
            now = to_local(now)

        try:
            total_users = self._store.count_users()
            total_orders = self._store.count_orders()
            total_products = self._store.count_products()
            delivered = self._store.list_orders(status=OrderStatus.DELIVERED.value)
            all_orders = self._store.list_orders()
            products = self._store.list_products()
            customers = self._store.get_users(o.user_id for o in all_orders if o.user_id)
        except Exception as e:
            logger.error(f"Dashboard API error: {e}", exc_info=True)
            raise UpstreamFailure(FAILURE_MESSAGE) from e

        snapshot = DashboardSnapshot(
            total_users=total_users,
            total_orders=total_orders,
            total_products=total_products,
            total_revenue=round(sum(o.total for o in delivered), 2),
            sales_data=self._sales_data(delivered, now),
            category_data=self._category_data(products),
            top_products=self._top_products(products),
            recent_orders=self._recent_orders(all_orders, customers),
        )
        logger.info(
            "dashboard: users=%d orders=%d products=%d revenue=%.2f",
            total_users, total_orders, total_products, snapshot.total_revenue,
        )
        return snapshot

    def _sales_data(self, delivered: List[Order], now: datetime) -> List[Dict[str, Any]]:
        local_orders = [(to_local(o.created_at), o.total) for o in delivered]
        series = []
        for label, start, end in month_windows(now, self._config.dashboard_months):
            in_month = [total for created, total in local_orders if start <= created <= end]
            series.append({
                "name": label,
                "sales": round(sum(in_month), 2),
                "orders": len(in_month),
            })
        return series

    def _category_data(self, products: List[Product]) -> List[Dict[str, Any]]:
        counts: "OrderedDict[str, int]" = OrderedDict()
        for product in products:
            if product.is_active:
                counts[product.category] = counts.get(product.category, 0) + 1
        return [
            {"name": name, "value": value, "color": self.category_color(name)}
            for name, value in counts.items()
        ]

    def category_color(self, category: str) -> str:
        return self._config.category_colors.get(category, self._config.default_category_color)

    def _top_products(self, products: List[Product]) -> List[Dict[str, Any]]:
        # sorted() is stable, so equal sales keep catalog order
        ranked = sorted(products, key=lambda p: p.sales_count, reverse=True)
        multiplier = self._config.top_product_revenue_multiplier
        return [
            {
                "id": p.id,
                "name": p.name,
                "sales": p.sales_count,
                "revenue": round(p.sales_count * multiplier, 2),
            }
            for p in ranked[: self._config.dashboard_top_products]
        ]

    def _recent_orders(self, orders: List[Order], customers: Dict[str, User]) -> List[Dict[str, Any]]:
        """Newest orders with a known customer, up to the configured count."""
        rows = []
        for order in orders:
            if len(rows) >= self._config.dashboard_recent_orders:
                break
            customer = customers.get(order.user_id) if order.user_id else None
            if customer is None:
                continue
            rows.append({
                "id": order.id,
                "customer": customer.name,
                "total": order.total,
                "status": order.status,
                "date": to_local(order.created_at).date().isoformat(),
            })
        return rows

"""
Analytics Service - sales KPIs for the console dashboard.

Aggregates the order and product collections returned by the accessors into
a request-scoped snapshot. Nothing here is stored; the same inputs always
give the same snapshot.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from console_core.errors import DataValidationError
from console_core.logging import LogContext, get_logger
from console_core.services.accessors import OrdersAccessor, ProductsAccessor
from console_core.services.base_service import AccessorResult

logger = get_logger(__name__)


# =============================================================================
# TIME RANGES
# =============================================================================

TIME_RANGE_DAYS = {
    "week": 7,
    "month": 30,
    "quarter": 90,
    "year": 365,
}
ALL_TIME = "all"

UNKNOWN = "Unknown"


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass
class AnalyticsSnapshot:
    """Derived sales KPIs for one time range."""

    time_range: str = "month"
    total_sales: float = 0.0
    order_count: int = 0
    average_order_value: float = 0.0

    top_selling_products: List[Dict] = field(default_factory=list)   # id, name, brand, units, sales
    monthly_sales: List[Dict] = field(default_factory=list)          # period, month, order_count, amount
    sales_by_category: List[Dict] = field(default_factory=list)      # category (brand), amount, percentage
    payment_methods: List[Dict] = field(default_factory=list)        # payment_method, count
    order_status: List[Dict] = field(default_factory=list)           # status, count, percentage

    returning_customers: int = 0
    returning_percentage: int = 0
    new_customers: int = 0
    new_percentage: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Key names used by the dashboard pages."""
        return {
            "totalSales": self.total_sales,
            "orderCount": self.order_count,
            "averageOrderValue": self.average_order_value,
            "topSellingProducts": self.top_selling_products,
            "monthlySales": self.monthly_sales,
            "salesByCategory": self.sales_by_category,
            "paymentMethods": self.payment_methods,
            "orderStatus": self.order_status,
            "customerRetention": {
                "returning": {"count": self.returning_customers, "percentage": self.returning_percentage},
                "new": {"count": self.new_customers, "percentage": self.new_percentage},
            },
        }


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def validate_time_range(time_range: str) -> None:
    if time_range != ALL_TIME and time_range not in TIME_RANGE_DAYS:
        raise DataValidationError(
            f"Unknown time range: {time_range!r}",
            field="time_range",
            expected=" | ".join([*TIME_RANGE_DAYS, ALL_TIME]),
            actual=time_range,
        )


def _round_half_up(value: float) -> int:
    return int(np.floor(value + 0.5))


def _percent(count: float, total: float) -> int:
    return _round_half_up(count / total * 100) if total else 0


def _orders_frame(orders: List[Dict[str, Any]]) -> pd.DataFrame:
    columns = ["id", "user_id", "product_id", "status", "total_price", "payment_method", "created_at"]
    df = pd.DataFrame(list(orders))
    for col in columns:
        if col not in df.columns:
            df[col] = None
    df["total_price"] = pd.to_numeric(df["total_price"], errors="coerce").fillna(0.0)
    df["created_at"] = pd.to_datetime(df["created_at"], utc=True, errors="coerce", format="ISO8601")
    return df


def _filter_time_range(df: pd.DataFrame, time_range: str, now: datetime) -> pd.DataFrame:
    if time_range == ALL_TIME:
        return df
    cutoff = pd.Timestamp(now - timedelta(days=TIME_RANGE_DAYS[time_range]))
    return df[df["created_at"].notna() & (df["created_at"] >= cutoff)]


def _product_index(orders: List[Dict[str, Any]], products: List[Dict[str, Any]]) -> Dict[Any, Dict]:
    """Products by id; a product joined onto an order wins over the product list."""
    index = {p.get("id"): p for p in products if isinstance(p, dict)}
    for order in orders:
        joined = order.get("products")
        if isinstance(joined, dict) and joined.get("id") is not None:
            index[joined["id"]] = joined
    return index


def _top_products(df: pd.DataFrame, product_index: Dict[Any, Dict], top_n: int) -> List[Dict]:
    sold = df[df["product_id"].notna()]
    if sold.empty:
        return []

    # groupby(sort=False) keeps first-appearance order; the stable sort keeps it for ties
    stats = (
        sold.groupby("product_id", sort=False)["total_price"]
        .agg(units="count", sales="sum")
        .reset_index()
        .sort_values("units", ascending=False, kind="stable")
        .head(top_n)
    )

    top = []
    for row in stats.itertuples(index=False):
        product = product_index.get(row.product_id) or {}
        top.append({
            "id": row.product_id,
            "name": product.get("name") or "Unknown Product",
            "brand": product.get("brand") or "Unknown Brand",
            "units": int(row.units),
            "sales": float(row.sales),
        })
    return top


def _monthly_sales(df: pd.DataFrame) -> List[Dict]:
    dated = df[df["created_at"].notna()]
    if dated.empty:
        return []

    periods = dated["created_at"].dt.strftime("%Y-%m")
    grouped = dated.groupby(periods)["total_price"].agg(order_count="count", amount="sum")

    monthly = []
    for period, row in grouped.sort_index().iterrows():
        monthly.append({
            "period": period,
            "month": datetime.strptime(period, "%Y-%m").strftime("%b"),
            "order_count": int(row["order_count"]),
            "amount": float(row["amount"]),
        })
    return monthly


def _sales_by_brand(df: pd.DataFrame, product_index: Dict[Any, Dict]) -> List[Dict]:
    sold = df[df["product_id"].notna()]
    if sold.empty:
        return []

    brands = sold["product_id"].map(
        lambda pid: (product_index.get(pid) or {}).get("brand") or UNKNOWN
    )
    amounts = sold.groupby(brands, sort=False)["total_price"].sum()
    total = float(amounts.sum())

    rows = [
        {
            "category": brand,
            "amount": float(amount),
            "percentage": round(float(amount) / total * 100, 1) if total > 0 else 0,
        }
        for brand, amount in amounts.items()
    ]
    return sorted(rows, key=lambda r: r["amount"], reverse=True)


def _counts(df: pd.DataFrame, column: str) -> pd.Series:
    values = df[column].where(df[column].notna() & (df[column] != ""), UNKNOWN)
    return values.groupby(values, sort=False).size()


def build_snapshot(
    orders: List[Dict[str, Any]],
    products: List[Dict[str, Any]],
    time_range: str = "month",
    now: Optional[datetime] = None,
    top_n: int = 5,
) -> AnalyticsSnapshot:
    """
    Compute the analytics snapshot from order and product collections.

    Args:
        orders: Order records (joined ``products`` are used when present)
        products: Product records for name/brand lookup
        time_range: week | month | quarter | year | all
        now: Reference time for the range (default: current UTC time)
        top_n: Number of top-selling products to return

    Returns:
        AnalyticsSnapshot; all-zero when no order falls in the range

    Raises:
        DataValidationError: on an unknown time range
    """
    validate_time_range(time_range)

    snapshot = AnalyticsSnapshot(time_range=time_range)
    if not orders:
        return snapshot

    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    df = _filter_time_range(_orders_frame(orders), time_range, now)
    if df.empty:
        return snapshot

    product_index = _product_index(orders, products)

    snapshot.order_count = int(len(df))
    snapshot.total_sales = float(df["total_price"].sum())
    snapshot.average_order_value = snapshot.total_sales / snapshot.order_count

    snapshot.top_selling_products = _top_products(df, product_index, top_n)
    snapshot.monthly_sales = _monthly_sales(df)
    snapshot.sales_by_category = _sales_by_brand(df, product_index)

    snapshot.payment_methods = [
        {"payment_method": method, "count": int(count)}
        for method, count in _counts(df, "payment_method").items()
    ]
    snapshot.order_status = [
        {"status": status, "count": int(count), "percentage": _percent(count, snapshot.order_count)}
        for status, count in _counts(df, "status").items()
    ]

    per_customer = df[df["user_id"].notna()].groupby("user_id").size()
    snapshot.returning_customers = int((per_customer > 1).sum())
    snapshot.new_customers = int((per_customer == 1).sum())
    customers = snapshot.returning_customers + snapshot.new_customers
    snapshot.returning_percentage = _percent(snapshot.returning_customers, customers)
    snapshot.new_percentage = _percent(snapshot.new_customers, customers)

    return snapshot


# =============================================================================
# AGGREGATOR
# =============================================================================

class AnalyticsAggregator:
    """
    Computes snapshots from whatever the accessors return (remote or mirror).

    Usage:
        analytics = AnalyticsAggregator(service.orders, service.products)
        result = await analytics.compute_snapshot("quarter")
        if result.success:
            print(result.data.total_sales)
    """

    def __init__(self, orders: OrdersAccessor, products: ProductsAccessor):
        self.orders = orders
        self.products = products

    async def compute_snapshot(self, time_range: str = "month", top_n: int = 5) -> AccessorResult:
        """
        Snapshot of the current orders for ``time_range``.

        Returns:
            AccessorResult with an AnalyticsSnapshot as data
        """
        try:
            validate_time_range(time_range)
        except DataValidationError as e:
            return AccessorResult.fail(e)

        orders_result = await self.orders.list()
        if orders_result.error is not None:
            return AccessorResult.fail(orders_result.error, source=orders_result.source)

        products_result = await self.products.list()
        products = products_result.data if products_result.success else []

        with LogContext(
            logger,
            f"Computing {time_range} analytics snapshot",
            expected=(DataValidationError,),
        ):
            snapshot = build_snapshot(orders_result.data, products, time_range, top_n=top_n)

        return AccessorResult.ok(snapshot, source=orders_result.source)

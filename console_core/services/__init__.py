# =============================================================================
# console_core/services/__init__.py
# Accessor Layer for the Retail Console
# Everything the console pages are allowed to call
# =============================================================================
"""
Accessor layer for the retail console.

Usage Example:
-------------
    from console_core import create_data_service

    service = create_data_service()

    products = await service.products.list()
    order = await service.orders.update_status(order_id, "shipped")
    snapshot = await service.analytics.compute_snapshot("quarter")

Every call returns an AccessorResult with exactly one of ``data`` / ``error``
set, whichever backend served it.
"""

from .base_service import AccessorResult
from .accessors import (
    EntityAccessor,
    OrdersAccessor,
    ProductsAccessor,
    Reference,
    ServiceRequestsAccessor,
    UsersAccessor,
    resolve_references,
)
from .analytics_service import AnalyticsAggregator, AnalyticsSnapshot, build_snapshot

__all__ = [
    "AccessorResult",
    "EntityAccessor",
    "UsersAccessor",
    "ProductsAccessor",
    "OrdersAccessor",
    "ServiceRequestsAccessor",
    "Reference",
    "resolve_references",
    "AnalyticsAggregator",
    "AnalyticsSnapshot",
    "build_snapshot",
]

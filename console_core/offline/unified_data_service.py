# =============================================================================
# console_core/offline/unified_data_service.py
# Unified Data Service - Single API for Remote/Local Operations
# =============================================================================
"""
DataService - wires the data layer together for one client.

Construction order is fixed: local store → seed → remote client →
coordinator → accessors → analytics. Seeding happens here, once, before the
first accessor call, never lazily on a read.

Usage:
------
from console_core import create_data_service

service = create_data_service(configure_logging=True)

result = await service.orders.list()
await service.orders.update_status(result.data[0]["id"], "shipped")

# Check status
print(service.get_status()["connection"]["status"])
"""

from __future__ import annotations
from typing import Any, Callable, Dict, Optional
import logging

from console_core.data.outcomes import Ok
from console_core.data.supabase_client import RemoteClient
from console_core.errors import ErrorContext, error_boundary, safe_execute
from console_core.logging import setup_logging
from console_core.offline.connection_monitor import ConnectionMonitor, ConnectionState
from console_core.offline.fallback import FallbackCoordinator
from console_core.offline.local_store import COLLECTIONS, LocalStore
from console_core.offline.seed_data import SeedInitializer
from console_core.services.accessors import (
    OrdersAccessor,
    ProductsAccessor,
    ServiceRequestsAccessor,
    UsersAccessor,
)
from console_core.services.analytics_service import AnalyticsAggregator
from console_core.settings import AppConfig, get_config

logger = logging.getLogger(__name__)


class DataService:
    """
    One client's data layer: accessors for every entity plus diagnostics.

    Build one explicitly and pass it where it is needed; nothing here is a
    process-wide singleton, so tests and multiple mirrors can coexist.
    """

    def __init__(
        self,
        config: AppConfig,
        store: Optional[LocalStore] = None,
        remote: Optional[RemoteClient] = None,
        monitor: Optional[ConnectionMonitor] = None,
    ):
        """
        Args:
            config: Application configuration
            store: Local mirror (default: SQLite file at config.local_db_path)
            remote: Remote client (default: Supabase client from config)
            monitor: Connection monitor shared with the coordinator
        """
        self.config = config

        self.store = store or LocalStore(config.local_db_path)
        self.store.initialize()
        self.seeder = SeedInitializer(self.store)
        self.seeder.ensure_seeded()

        self.remote = remote or RemoteClient(config)
        self.monitor = monitor or ConnectionMonitor()
        self.coordinator = FallbackCoordinator(monitor=self.monitor)

        self.users = UsersAccessor(self.remote, self.store, self.coordinator)
        self.products = ProductsAccessor(self.remote, self.store, self.coordinator)
        self.orders = OrdersAccessor(self.remote, self.store, self.coordinator)
        self.service_requests = ServiceRequestsAccessor(self.remote, self.store, self.coordinator)
        self.analytics = AnalyticsAggregator(self.orders, self.products)

        logger.info(
            f"DataService ready (remote configured: {config.has_remote_credentials}, "
            f"mirror: {self.store.db_path})"
        )

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def is_online(self) -> bool:
        """Whether the last remote attempt was answered."""
        return self.monitor.is_online

    @property
    def connection_status(self) -> str:
        return self.monitor.status.value

    # =========================================================================
    # DIAGNOSTICS
    # =========================================================================

    async def test_connection(self) -> Dict[str, Any]:
        """
        Ping the remote backend.

        Returns:
            {"connected": bool, "mock_fallback": bool, "error": str | None}
        """
        outcome = await self.remote.ping()
        if isinstance(outcome, Ok):
            self.monitor.record_success()
            logger.info("Connection test successful")
            return {"connected": True, "mock_fallback": False, "error": None}

        reason = getattr(outcome, "reason", None) or getattr(outcome, "error", None)
        message = reason.message if reason is not None else "unknown"
        self.monitor.record_failure(message)
        logger.warning(f"Connection test failed, local mirror in use: {message}")
        return {"connected": False, "mock_fallback": True, "error": message}

    def register_status_callback(self, callback: Callable[[ConnectionState], None]) -> None:
        """Register a callback for online/offline status changes."""
        self.monitor.register_callback(callback)

    def unregister_status_callback(self, callback: Callable[[ConnectionState], None]) -> None:
        self.monitor.unregister_callback(callback)

    def get_status(self) -> Dict[str, Any]:
        """
        Get status information for the console's status badge.

        Returns:
            Dict with connection and mirror information
        """
        return {
            "connection": self.monitor.get_status_display(),
            "remote_configured": self.config.has_remote_credentials,
            "mirror": {
                "path": str(self.store.db_path),
                "seeded": safe_execute(
                    lambda: self.seeder.is_seeded,
                    default=False,
                    error_message="Reading seeded flag",
                ),
                "counts": self._mirror_counts(),
            },
        }

    @error_boundary(default_return={}, error_message="Counting mirror records failed")
    def _mirror_counts(self) -> Dict[str, int]:
        return {name: len(self.store.list(name)) for name in COLLECTIONS}

    # =========================================================================
    # MIRROR MAINTENANCE
    # =========================================================================

    def reset_local_mirror(self) -> None:
        """Throw away every local change and reseed the mirror."""
        self.seeder.reseed()

    def close(self) -> None:
        """Cleanup resources."""
        with ErrorContext("Closing local mirror"):
            self.store.close()


def create_data_service(
    config: Optional[AppConfig] = None,
    configure_logging: bool = False,
    **kwargs,
) -> DataService:
    """
    Build a DataService from the process configuration.

    Args:
        config: Configuration (default: ``get_config()``)
        configure_logging: Call ``setup_logging`` with the configured level first
        **kwargs: Passed through to DataService (store, remote, monitor)

    Returns:
        A seeded, ready-to-use DataService
    """
    config = config or get_config()
    if configure_logging:
        setup_logging(config.log_level)
    return DataService(config, **kwargs)

# =============================================================================
# console_core/offline/__init__.py
# Remote-First Architecture with a Local Mirror
# =============================================================================
"""
Remote-First Data Layer with Local Mirror Fallback

The console works identically whether Supabase is reachable or not.

Architecture:
------------
┌─────────────────────────────────────────────────────────────────┐
│                         DataService                              │
│      users / products / orders / service_requests / analytics   │
└─────────────────────────────────────────────────────────────────┘
                             │
                             ▼
                 ┌───────────────────────┐
                 │  FallbackCoordinator  │──► ConnectionMonitor
                 └───────────────────────┘     (status badge)
                   │                   │
          1st      ▼                   ▼   on Fallback
        ┌──────────────────┐   ┌──────────────────┐
        │   RemoteClient   │   │    LocalStore    │◄── SeedInitializer
        │   (Supabase)     │   │ (SQLite mirror)  │    (once, at startup)
        └──────────────────┘   └──────────────────┘

Usage:
------
from console_core.offline import DataService

service = DataService(get_config())
result = await service.products.list()
"""

from console_core.offline.connection_monitor import (
    ConnectionMonitor,
    ConnectionState,
    ConnectionStatus,
)

from console_core.offline.local_store import (
    COLLECTIONS,
    SEEDED_FLAG,
    LocalStore,
)

from console_core.offline.seed_data import (
    SeedInitializer,
    seed_collections,
)

from console_core.offline.fallback import (
    FallbackCoordinator,
    dispatch,
)

from console_core.offline.unified_data_service import (
    DataService,
    create_data_service,
)

__all__ = [
    # Connection status
    "ConnectionMonitor",
    "ConnectionState",
    "ConnectionStatus",
    # Local mirror
    "COLLECTIONS",
    "SEEDED_FLAG",
    "LocalStore",
    "SeedInitializer",
    "seed_collections",
    # Fallback
    "FallbackCoordinator",
    "dispatch",
    # Unified Service (Main API)
    "DataService",
    "create_data_service",
]

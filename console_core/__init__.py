# =============================================================================
# console_core/__init__.py
# Data-Access Layer for the Retail Admin Console
# =============================================================================
"""
console_core - remote-first, locally mirrored data access for the console.

Usage:
------
from console_core import create_data_service

service = create_data_service()
result = await service.products.list()
if result.error is None:
    for product in result.data:
        print(product["name"])
"""

from console_core.offline.unified_data_service import (
    DataService,
    create_data_service,
)
from console_core.services.base_service import AccessorResult
from console_core.settings import AppConfig, get_config

__all__ = [
    "AccessorResult",
    "AppConfig",
    "DataService",
    "create_data_service",
    "get_config",
]

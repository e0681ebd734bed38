# =============================================================================
# console_core/offline/seed_data.py
# Fixed Seed Dataset for the Local Mirror
# =============================================================================
"""
SeedInitializer - writes the representative dataset into a fresh mirror.

The ``seeded`` flag is the sole gate: once it is set the seed is never written
again, even if the dataset below changes in a later release. Orders are stored
raw; their ``users``/``products`` fields are joined at read time.

Prices are CHF.
"""

from __future__ import annotations
import copy
from typing import Any, Dict, List
import logging

from console_core.offline.local_store import SEEDED_FLAG, LocalStore

logger = logging.getLogger(__name__)


SEED_USERS: List[Dict[str, Any]] = [
    {
        "id": "1",
        "email": "admin@example.com",
        "name": "Admin User",
        "role": "admin",
        "created_at": "2023-01-01T00:00:00.000Z",
    },
    {
        "id": "2",
        "email": "user@example.com",
        "name": "Regular User",
        "role": "user",
        "created_at": "2023-01-02T00:00:00.000Z",
    },
    {
        "id": "3",
        "email": "admin@test.com",
        "name": "Test Admin",
        "role": "admin",
        "created_at": "2023-01-03T00:00:00.000Z",
    },
]

SEED_PRODUCTS: List[Dict[str, Any]] = [
    {
        "id": "1",
        "name": "Royal Oak",
        "brand": "Audemars Piguet",
        "description": "A luxury sports watch with octagonal bezel",
        "price": 22500,
        "inventory_count": 5,
        "image_url": "https://example.com/watch1.jpg",
        "movement_type": "Automatic",
        "case_material": "Stainless Steel",
        "water_resistance": "50m",
        "complications": "Date",
        "diameter": "41",
        "reference_number": "15400ST.OO.1220ST.01",
        "created_at": "2023-01-01T00:00:00.000Z",
    },
    {
        "id": "2",
        "name": "Submariner",
        "brand": "Rolex",
        "description": "Iconic diving watch with rotating bezel",
        "price": 10800,
        "inventory_count": 8,
        "image_url": "https://example.com/watch2.jpg",
        "movement_type": "Automatic",
        "case_material": "Stainless Steel",
        "water_resistance": "300m",
        "complications": "Date",
        "diameter": "41",
        "reference_number": "126610LN",
        "created_at": "2023-01-02T00:00:00.000Z",
    },
    {
        "id": "3",
        "name": "Nautilus",
        "brand": "Patek Philippe",
        "description": "Elegant sports watch with porthole-shaped case",
        "price": 31500,
        "inventory_count": 3,
        "image_url": "https://example.com/watch3.jpg",
        "movement_type": "Automatic",
        "case_material": "Rose Gold",
        "water_resistance": "120m",
        "complications": "Date, Moonphase",
        "diameter": "40",
        "reference_number": "5711/1R-001",
        "created_at": "2023-01-03T00:00:00.000Z",
    },
]

SEED_ORDERS: List[Dict[str, Any]] = [
    {
        "id": "1",
        "user_id": "2",
        "product_id": "1",
        "status": "completed",
        "total_price": 22500,
        "payment_method": "credit_card",
        "created_at": "2023-02-01T00:00:00.000Z",
    },
    {
        "id": "2",
        "user_id": "2",
        "product_id": "3",
        "status": "processing",
        "total_price": 31500,
        "payment_method": "bank_transfer",
        "created_at": "2023-02-15T00:00:00.000Z",
    },
]

SEED_SERVICE_REQUESTS: List[Dict[str, Any]] = [
    {
        "id": "1",
        "customer_name": "John Smith",
        "email": "john.smith@example.com",
        "phone": "(555) 123-4567",
        "watch_brand": "Rolex",
        "watch_model": "Submariner",
        "serial_number": "RX789012345",
        "service_type": "maintenance",
        "issue_description": "Regular maintenance service",
        "estimated_cost": 650,
        "status": "completed",
        "technician": "David Chen",
        "received_date": "2023-05-15",
        "completion_date": "2023-05-25",
        "created_at": "2023-05-15T00:00:00.000Z",
    },
    {
        "id": "2",
        "customer_name": "Emma Johnson",
        "email": "emma.j@example.com",
        "phone": "(555) 987-6543",
        "watch_brand": "Patek Philippe",
        "watch_model": "Nautilus",
        "serial_number": "PP12345678",
        "service_type": "repair",
        "issue_description": "Watch runs fast, crystal has scratch",
        "estimated_cost": 1200,
        "status": "in_progress",
        "technician": "Maria Rodriguez",
        "received_date": "2023-05-18",
        "completion_date": None,
        "created_at": "2023-05-18T00:00:00.000Z",
    },
    {
        "id": "3",
        "customer_name": "Michael Brown",
        "email": "mbrown@example.com",
        "phone": "(555) 456-7890",
        "watch_brand": "Audemars Piguet",
        "watch_model": "Royal Oak",
        "serial_number": "AP567891234",
        "service_type": "overhaul",
        "issue_description": "Complete movement overhaul needed",
        "estimated_cost": 2500,
        "status": "received",
        "technician": None,
        "received_date": "2023-05-20",
        "completion_date": None,
        "created_at": "2023-05-20T00:00:00.000Z",
    },
]


def seed_collections() -> Dict[str, List[Dict[str, Any]]]:
    """A fresh copy of the full seed, keyed by collection name."""
    return {
        "users": copy.deepcopy(SEED_USERS),
        "products": copy.deepcopy(SEED_PRODUCTS),
        "orders": copy.deepcopy(SEED_ORDERS),
        "service_requests": copy.deepcopy(SEED_SERVICE_REQUESTS),
    }


class SeedInitializer:
    """
    Populates a LocalStore with the seed dataset exactly once per store lifetime.

    Usage:
        store = LocalStore(path)
        SeedInitializer(store).ensure_seeded()
    """

    def __init__(self, store: LocalStore):
        self.store = store

    @property
    def is_seeded(self) -> bool:
        return self.store.get_flag(SEEDED_FLAG)

    def ensure_seeded(self) -> bool:
        """
        Seed the mirror if the flag is absent.

        Returns:
            True if the seed was written by this call, False if it was a no-op
        """
        if self.is_seeded:
            logger.debug("Local mirror already seeded")
            return False

        # Collections and flag land in one transaction
        self.store.replace_collections(seed_collections(), flags={SEEDED_FLAG: True})
        logger.info("Local mirror seeded with initial dataset")
        return True

    def reseed(self) -> None:
        """Clear the mirror and write the seed again."""
        logger.info("Reinitializing local mirror")
        self.store.clear()
        self.ensure_seeded()

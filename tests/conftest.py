# =============================================================================
# tests/conftest.py
# Pytest Configuration and Fixtures
# =============================================================================

import copy
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

REMOTE_USERS = [
    {"id": "u-100", "email": "remote.admin@example.com", "name": "Remote Admin",
     "role": "admin", "created_at": "2024-03-01T09:00:00.000Z"},
    {"id": "u-200", "email": "remote.customer@example.com", "name": "Remote Customer",
     "role": "customer", "created_at": "2024-03-02T09:00:00.000Z"},
]

REMOTE_PRODUCTS = [
    {"id": "p-100", "name": "Speedmaster", "brand": "Omega", "price": "6400.00",
     "inventory_count": 4, "created_at": "2024-03-01T10:00:00.000Z"},
    {"id": "p-200", "name": "Reverso", "brand": "Jaeger-LeCoultre", "price": "8900.00",
     "inventory_count": 2, "created_at": "2024-03-02T10:00:00.000Z"},
]

REMOTE_ORDERS = [
    {"id": "o-100", "user_id": "u-200", "product_id": "p-100", "status": "pending",
     "total_price": "6400.00", "payment_method": "credit_card",
     "created_at": "2024-03-05T12:00:00.000Z"},
]


@pytest.fixture
def remote_dataset():
    """Rows the in-memory remote backend starts with (distinct from the seed)"""
    return {
        "users": copy.deepcopy(REMOTE_USERS),
        "products": copy.deepcopy(REMOTE_PRODUCTS),
        "orders": copy.deepcopy(REMOTE_ORDERS),
        "service_requests": [],
    }


@pytest.fixture
def sample_orders():
    """Orders spread over several months, brands and customers"""
    return [
        {"id": "a", "user_id": "1", "product_id": "1", "status": "completed",
         "total_price": 22500, "payment_method": "credit_card",
         "created_at": "2024-01-10T10:00:00.000Z"},
        {"id": "b", "user_id": "1", "product_id": "2", "status": "completed",
         "total_price": 10800, "payment_method": "credit_card",
         "created_at": "2024-02-11T10:00:00.000Z"},
        {"id": "c", "user_id": "2", "product_id": "2", "status": "pending",
         "total_price": 10800, "payment_method": "bank_transfer",
         "created_at": "2024-02-20T10:00:00.000Z"},
        {"id": "d", "user_id": "3", "product_id": "3", "status": "shipped",
         "total_price": 31500, "payment_method": None,
         "created_at": "2024-03-01T10:00:00.000Z"},
    ]


# =============================================================================
# CONFIG AND STORE FIXTURES
# =============================================================================

@pytest.fixture
def mirror_path(tmp_path) -> Path:
    """Path of a fresh SQLite mirror file"""
    return tmp_path / "local_data" / "console_mirror.db"


@pytest.fixture
def offline_config(mirror_path):
    """Configuration without Supabase credentials"""
    from console_core.settings import AppConfig

    return AppConfig(supabase_url=None, supabase_key=None, local_db_path=mirror_path)


@pytest.fixture
def online_config(mirror_path):
    """Configuration with (fake) Supabase credentials"""
    from console_core.settings import AppConfig

    return AppConfig(
        supabase_url="https://example.supabase.co",
        supabase_key="test-anon-key",
        local_db_path=mirror_path,
    )


@pytest.fixture
def store(mirror_path):
    """Empty, initialized local mirror"""
    from console_core.offline.local_store import LocalStore

    local_store = LocalStore(mirror_path)
    local_store.initialize()
    yield local_store
    local_store.close()


@pytest.fixture
def seeded_store(store):
    """Local mirror holding the seed dataset"""
    from console_core.offline.seed_data import SeedInitializer

    SeedInitializer(store).ensure_seeded()
    return store


# =============================================================================
# MOCK FIXTURES
# =============================================================================

class InMemoryRemote:
    """
    Stand-in for RemoteClient backed by dicts.

    ``available = False`` makes every call fall back; entities listed in
    ``failing`` fall back individually. Mutations are recorded in ``calls``.
    """

    def __init__(self, tables: Dict[str, List[Dict[str, Any]]]):
        self.tables = tables
        self.available = True
        self.failing: set = set()
        self.calls: List[tuple] = []

    def _unavailable(self, entity: str):
        from console_core.data.outcomes import Fallback
        from console_core.errors import RemoteUnavailableError

        if not self.available or entity in self.failing:
            return Fallback(RemoteUnavailableError(f"{entity} unreachable", operation=entity))
        return None

    def _not_found(self, entity: str, record_id: Optional[str]):
        from console_core.data.outcomes import NotFound
        from console_core.errors import NotFoundError

        return NotFound(NotFoundError(f"{entity} record not found: {record_id}",
                                      entity=entity, record_id=record_id))

    def _find(self, entity: str, record_id: str):
        for row in self.tables[entity]:
            if row["id"] == record_id:
                return row
        return None

    async def list(self, entity, order_by="created_at", descending=True):
        from console_core.data.outcomes import Ok

        self.calls.append(("list", entity))
        down = self._unavailable(entity)
        if down:
            return down
        rows = sorted(self.tables[entity], key=lambda r: r.get(order_by) or "", reverse=descending)
        return Ok(copy.deepcopy(rows))

    async def list_by_ids(self, entity, ids):
        from console_core.data.outcomes import Ok

        self.calls.append(("list_by_ids", entity))
        down = self._unavailable(entity)
        if down:
            return down
        return Ok([copy.deepcopy(r) for r in self.tables[entity] if r["id"] in ids])

    async def get(self, entity, record_id):
        from console_core.data.outcomes import Ok

        self.calls.append(("get", entity))
        down = self._unavailable(entity)
        if down:
            return down
        row = self._find(entity, record_id)
        return Ok(copy.deepcopy(row)) if row else self._not_found(entity, record_id)

    async def create(self, entity, fields):
        from console_core.data.outcomes import Ok

        self.calls.append(("create", entity))
        down = self._unavailable(entity)
        if down:
            return down
        row = {
            **fields,
            "id": str(uuid.uuid4()),
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        self.tables[entity].append(row)
        return Ok(copy.deepcopy(row))

    async def update(self, entity, record_id, fields):
        from console_core.data.outcomes import Ok

        self.calls.append(("update", entity))
        down = self._unavailable(entity)
        if down:
            return down
        row = self._find(entity, record_id)
        if row is None:
            return self._not_found(entity, record_id)
        row.update(fields)
        return Ok(copy.deepcopy(row))

    async def delete(self, entity, record_id):
        from console_core.data.outcomes import Ok

        self.calls.append(("delete", entity))
        down = self._unavailable(entity)
        if down:
            return down
        row = self._find(entity, record_id)
        if row is None:
            return self._not_found(entity, record_id)
        self.tables[entity].remove(row)
        return Ok(copy.deepcopy(row))

    async def ping(self, entity="products"):
        from console_core.data.outcomes import Ok

        down = self._unavailable(entity)
        return down or Ok(True)


@pytest.fixture
def in_memory_remote(remote_dataset):
    """Reachable remote backend holding ``remote_dataset``"""
    return InMemoryRemote(remote_dataset)


@pytest.fixture
def online_service(online_config, store, in_memory_remote):
    """DataService whose remote backend answers"""
    from console_core.offline.unified_data_service import DataService

    return DataService(online_config, store=store, remote=in_memory_remote)


@pytest.fixture
def offline_service(offline_config, store):
    """DataService without credentials: every call is served by the mirror"""
    from console_core.offline.unified_data_service import DataService

    return DataService(offline_config, store=store)


def make_supabase_client(data: Any = None, error: Optional[Exception] = None) -> MagicMock:
    """
    Mock async Supabase client.

    Every query-builder method returns the same builder; ``execute`` is
    awaited and either returns a response with ``data`` or raises ``error``.
    """
    builder = MagicMock()
    for method in ("select", "insert", "update", "delete", "eq", "in_", "order", "limit"):
        getattr(builder, method).return_value = builder

    if error is not None:
        builder.execute = AsyncMock(side_effect=error)
    else:
        builder.execute = AsyncMock(return_value=MagicMock(data=data))

    client = MagicMock()
    client.table.return_value = builder
    return client


@pytest.fixture
def mock_supabase():
    """Mock Supabase client answering with no rows"""
    return make_supabase_client(data=[])


@pytest.fixture
def supabase_factory():
    """Factory building mock Supabase clients with a given response"""
    return make_supabase_client

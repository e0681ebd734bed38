# =============================================================================
# tests/unit/test_seed_data.py
# Unit Tests for Local Mirror Seeding
# =============================================================================

import sqlite3


class TestSeedInitializer:
    """Test one-time seeding of the local mirror"""

    def test_fresh_mirror_is_seeded(self, store):
        """First call writes every collection and the flag"""
        from console_core.offline.seed_data import (
            SEED_ORDERS,
            SEED_PRODUCTS,
            SEED_SERVICE_REQUESTS,
            SEED_USERS,
            SeedInitializer,
        )

        seeder = SeedInitializer(store)

        assert seeder.ensure_seeded() is True
        assert seeder.is_seeded
        assert len(store.list("users")) == len(SEED_USERS)
        assert len(store.list("products")) == len(SEED_PRODUCTS)
        assert len(store.list("orders")) == len(SEED_ORDERS)
        assert len(store.list("service_requests")) == len(SEED_SERVICE_REQUESTS)

    def test_seeding_is_idempotent(self, store):
        """A second call is a no-op and keeps local changes"""
        from console_core.offline.seed_data import SeedInitializer

        seeder = SeedInitializer(store)
        seeder.ensure_seeded()
        store.remove("products", "1")
        added = store.insert("products", {"name": "Local Only", "price": 99})

        assert seeder.ensure_seeded() is False

        ids = {r["id"] for r in store.list("products")}
        assert "1" not in ids
        assert added["id"] in ids

    def test_seed_survives_restart(self, mirror_path):
        """The flag persists, so a restarted client does not reseed"""
        from console_core.offline.local_store import LocalStore
        from console_core.offline.seed_data import SeedInitializer

        first = LocalStore(mirror_path)
        SeedInitializer(first).ensure_seeded()
        first.remove("users", "3")
        first.close()

        second = LocalStore(mirror_path)
        try:
            assert SeedInitializer(second).ensure_seeded() is False
            assert second.get("users", "3") is None
        finally:
            second.close()

    def test_reseed_restores_initial_dataset(self, seeded_store):
        """reseed throws away local changes"""
        from console_core.offline.seed_data import SeedInitializer

        seeded_store.remove("orders", "1")
        seeded_store.insert("orders", {"user_id": "1", "product_id": "2", "total_price": 10800})

        SeedInitializer(seeded_store).reseed()

        assert sorted(r["id"] for r in seeded_store.list("orders")) == ["1", "2"]

    def test_seed_orders_reference_seed_rows(self, seeded_store):
        """Every seeded order points at a seeded user and product"""
        for order in seeded_store.list("orders"):
            assert seeded_store.get("users", order["user_id"]) is not None
            assert seeded_store.get("products", order["product_id"]) is not None

    def test_seed_data_is_copied(self, seeded_store):
        """Editing the mirror never edits the module-level seed"""
        from console_core.offline.seed_data import SEED_PRODUCTS

        seeded_store.put("products", "1", {"price": 1})

        assert SEED_PRODUCTS[0]["price"] == 22500


class TestCorruptedSeedFlag:
    """Test the rule for an unreadable seeded flag"""

    def _corrupt_flag(self, path):
        with sqlite3.connect(str(path)) as conn:
            conn.execute(
                "INSERT OR REPLACE INTO mirror_documents (key, value) VALUES ('seeded', 'garbage')"
            )

    def test_corrupted_flag_with_data_counts_as_seeded(self, seeded_store, mirror_path):
        """Existing collections mean the mirror is not reseeded"""
        from console_core.offline.seed_data import SeedInitializer

        seeded_store.remove("users", "1")
        self._corrupt_flag(mirror_path)

        assert SeedInitializer(seeded_store).ensure_seeded() is False
        assert seeded_store.get("users", "1") is None

    def test_undecodable_blob_flag_with_data_counts_as_seeded(self, seeded_store, mirror_path):
        """A non-UTF-8 flag follows the same rule as unparseable JSON"""
        from console_core.offline.seed_data import SeedInitializer

        seeded_store.remove("users", "1")
        with sqlite3.connect(str(mirror_path)) as conn:
            conn.execute(
                "INSERT OR REPLACE INTO mirror_documents (key, value) VALUES ('seeded', ?)",
                [sqlite3.Binary(b"\xff\xfe[not utf8")],
            )

        assert SeedInitializer(seeded_store).ensure_seeded() is False
        assert seeded_store.get("users", "1") is None

    def test_undecodable_blob_flag_does_not_break_service(self, seeded_store, mirror_path, offline_config):
        """DataService still starts on a mirror with a non-UTF-8 flag"""
        from console_core.offline.unified_data_service import DataService

        with sqlite3.connect(str(mirror_path)) as conn:
            conn.execute(
                "INSERT OR REPLACE INTO mirror_documents (key, value) VALUES ('seeded', ?)",
                [sqlite3.Binary(b"\xff\xfe[not utf8")],
            )

        service = DataService(offline_config, store=seeded_store)

        assert service.get_status()["mirror"]["seeded"] is True
        assert service.store.get("users", "1") is not None

    def test_corrupted_flag_without_data_reseeds(self, store, mirror_path):
        """An otherwise empty mirror is seeded"""
        from console_core.offline.seed_data import SeedInitializer

        self._corrupt_flag(mirror_path)

        assert SeedInitializer(store).ensure_seeded() is True
        assert store.get("users", "1") is not None

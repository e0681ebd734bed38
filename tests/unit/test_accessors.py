# =============================================================================
# tests/unit/test_accessors.py
# Unit Tests for the Entity Accessors
# =============================================================================

import pytest


NEW_USER = {"email": "new.customer@example.com", "name": "New Customer", "role": "customer"}


class TestAccessorsOffline:
    """Test accessors served by the local mirror"""

    async def test_create_then_get_returns_same_record(self, offline_service):
        """What create returns is what get_by_id reads back"""
        created = await offline_service.users.create(NEW_USER)
        fetched = await offline_service.users.get_by_id(created.data["id"])

        assert created.success and fetched.success
        assert fetched.data == created.data
        assert created.source == "local"

    async def test_list_contains_created_record(self, offline_service):
        created = await offline_service.products.create({"name": "Tank", "brand": "Cartier", "price": 3200})

        result = await offline_service.products.list()

        assert created.data["id"] in [p["id"] for p in result.data]
        assert result.data[0]["id"] == created.data["id"]

    async def test_seeded_orders_are_joined(self, offline_service):
        """Mirror orders carry the mirror user and product"""
        result = await offline_service.orders.get_by_id("1")

        assert result.data["users"]["email"] == "user@example.com"
        assert result.data["products"]["name"] == "Royal Oak"

    async def test_order_with_unknown_product_rejected(self, offline_service):
        """A mirror order must point at a mirror product"""
        from console_core.errors import DataValidationError

        result = await offline_service.orders.create({
            "user_id": "2", "product_id": "does-not-exist", "total_price": 100,
        })

        assert isinstance(result.error, DataValidationError)
        assert len((await offline_service.orders.list()).data) == 2

    async def test_validation_failure_has_no_side_effect(self, offline_service):
        """Invalid input is rejected before any storage call"""
        from console_core.errors import DataValidationError

        result = await offline_service.products.create({"brand": "Rolex"})

        assert isinstance(result.error, DataValidationError)
        assert result.data is None
        assert offline_service.monitor.state.last_check is None
        assert len(offline_service.store.list("products")) == 3

    async def test_clearing_inventory_keeps_stock(self, offline_service):
        """update with inventory_count=None is rejected and the stock is unchanged"""
        from console_core.errors import DataValidationError

        before = offline_service.store.get("products", "1")["inventory_count"]

        result = await offline_service.products.update("1", {"inventory_count": None})

        assert isinstance(result.error, DataValidationError)
        assert offline_service.store.get("products", "1")["inventory_count"] == before

    async def test_update_status_changes_only_status(self, offline_service):
        """Every other field of the order is untouched"""
        before = offline_service.store.get("orders", "2")

        result = await offline_service.orders.update_status("2", "shipped")

        after = offline_service.store.get("orders", "2")
        assert result.data["status"] == "shipped"
        assert {**before, "status": "shipped"} == after

    async def test_update_status_rejects_unknown_status(self, offline_service):
        from console_core.errors import DataValidationError

        result = await offline_service.orders.update_status("2", "teleported")

        assert isinstance(result.error, DataValidationError)
        assert offline_service.store.get("orders", "2")["status"] == "processing"

    async def test_get_missing_record(self, offline_service):
        from console_core.errors import NotFoundError

        result = await offline_service.orders.get_by_id("missing")

        assert isinstance(result.error, NotFoundError)
        assert result.data is None

    async def test_delete_returns_removed_record(self, offline_service):
        result = await offline_service.service_requests.delete("3")

        assert result.data["customer_name"] == "Michael Brown"
        assert offline_service.store.get("service_requests", "3") is None

    async def test_duplicate_email_rejected(self, offline_service):
        from console_core.errors import DuplicateRecordError

        result = await offline_service.users.create({"email": "admin@example.com", "name": "Copy"})

        assert isinstance(result.error, DuplicateRecordError)

    async def test_result_shape(self, offline_service):
        """to_dict gives the {data, error} pair the pages consume"""
        from console_core.errors import NotFoundError

        ok = (await offline_service.users.list()).to_dict()
        missing = (await offline_service.users.get_by_id("nope")).to_dict()

        assert set(ok) == {"data", "error"}
        assert ok["error"] is None and isinstance(ok["data"], list)
        assert missing["data"] is None
        assert missing["error"]["error_type"] == NotFoundError.__name__


class TestAccessorsOnline:
    """Test accessors served by a reachable remote backend"""

    async def test_remote_answer_used_and_mirror_untouched(self, online_service):
        result = await online_service.products.list()

        assert result.source == "remote"
        assert [p["id"] for p in result.data] == ["p-200", "p-100"]
        assert len(online_service.store.list("products")) == 3

    async def test_remote_not_found_does_not_fall_back(self, online_service):
        """Id "1" exists only in the mirror; the remote answer wins"""
        from console_core.errors import NotFoundError

        result = await online_service.products.get_by_id("1")

        assert isinstance(result.error, NotFoundError)
        assert result.source == "remote"

    async def test_remote_orders_joined_with_remote_rows(self, online_service):
        result = await online_service.orders.list()

        order = result.data[0]
        assert order["users"]["id"] == "u-200"
        assert order["products"]["brand"] == "Omega"

    async def test_failed_join_falls_back_whole_read(self, online_service, in_memory_remote):
        """Orders and their users always come from the same source"""
        in_memory_remote.failing = {"users"}

        result = await online_service.orders.list()

        assert result.source == "local"
        assert sorted(o["id"] for o in result.data) == ["1", "2"]
        assert all(o["users"]["email"] == "user@example.com" for o in result.data)

    async def test_remote_create_never_replayed_locally(self, online_service, in_memory_remote):
        """A remote insert whose join fails is still a remote success"""
        in_memory_remote.failing = {"users"}

        result = await online_service.orders.create({
            "user_id": "u-200", "product_id": "p-200", "total_price": 8900,
        })

        assert result.source == "remote"
        assert result.data["users"] is None
        assert result.data["products"]["name"] == "Reverso"
        assert len(in_memory_remote.tables["orders"]) == 2
        assert len(online_service.store.list("orders")) == 2

    async def test_outage_and_recovery(self, online_service, in_memory_remote):
        """Same call shape during an outage; remote resumes when it recovers"""
        in_memory_remote.available = False
        during = await online_service.users.list()

        in_memory_remote.available = True
        after = await online_service.users.list()

        assert during.success and after.success
        assert {u["id"] for u in during.data} == {"1", "2", "3"}
        assert {u["id"] for u in after.data} == {"u-100", "u-200"}

    async def test_remote_update(self, online_service, in_memory_remote):
        result = await online_service.orders.update_status("o-100", "shipped")

        assert result.data["status"] == "shipped"
        assert in_memory_remote.tables["orders"][0]["status"] == "shipped"
        assert online_service.store.get("orders", "1")["status"] == "completed"

    async def test_remote_update_missing(self, online_service):
        from console_core.errors import NotFoundError

        result = await online_service.orders.update_status("1", "shipped")

        assert isinstance(result.error, NotFoundError)
        assert online_service.store.get("orders", "1")["status"] == "completed"


class TestResolveReferences:
    """Test the generic reference resolver"""

    def test_attaches_targets_and_none_for_missing(self):
        from console_core.services.accessors import Reference, resolve_references

        records = [{"id": "o1", "user_id": "u1"}, {"id": "o2", "user_id": "gone"}]
        lookups = {"users": {"u1": {"id": "u1", "name": "A"}}}

        joined = resolve_references(records, [Reference("user_id", "users", "users")], lookups)

        assert joined[0]["users"] == {"id": "u1", "name": "A"}
        assert joined[1]["users"] is None
        assert "users" not in records[0]

    def test_joined_records_are_copies(self):
        from console_core.services.accessors import Reference, resolve_references

        target = {"id": "u1", "name": "A"}
        joined = resolve_references(
            [{"id": "o1", "user_id": "u1"}],
            [Reference("user_id", "users", "users")],
            {"users": {"u1": target}},
        )
        joined[0]["users"]["name"] = "B"

        assert target["name"] == "A"

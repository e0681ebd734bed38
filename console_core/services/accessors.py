# =============================================================================
# console_core/services/accessors.py
# Entity Accessors - the API the console pages call
# =============================================================================
"""
Per-entity CRUD accessors built on the FallbackCoordinator.

Every method is a coroutine returning an AccessorResult. The caller never
learns which backend answered unless it inspects ``result.source``.

Orders carry ``users`` and ``products`` joined at read time. A join always
uses the same source as the order: remote orders are joined with remote rows,
mirror orders with mirror rows.
"""

from __future__ import annotations
import copy
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Sequence, Tuple

from console_core.data.outcomes import Fallback, Ok, RemoteOutcome
from console_core.data.schemas import (
    ORDERS,
    PRODUCTS,
    SERVICE_REQUESTS,
    USERS,
    EntitySchema,
    validate_new_record,
    validate_patch,
)
from console_core.errors import DataValidationError, NotFoundError
from console_core.logging import get_logger
from console_core.services.base_service import AccessorResult

if TYPE_CHECKING:
    from console_core.data.supabase_client import RemoteClient
    from console_core.offline.fallback import FallbackCoordinator
    from console_core.offline.local_store import LocalStore

logger = get_logger(__name__)


# =============================================================================
# REFERENCE RESOLUTION
# =============================================================================

@dataclass(frozen=True)
class Reference:
    """A foreign key and where its target is attached on read."""
    field: str        # e.g. "user_id"
    entity: str       # e.g. "users"
    attach_as: str    # e.g. "users"


def resolve_references(
    records: Sequence[Dict[str, Any]],
    references: Sequence[Reference],
    lookups: Mapping[str, Mapping[str, Dict[str, Any]]],
) -> List[Dict[str, Any]]:
    """
    Attach referenced records to each record.

    Args:
        records: Referencing records (e.g. orders)
        references: Which fields to resolve
        lookups: ``{entity: {id: record}}`` built from ONE source

    Returns:
        New records; an unresolvable reference is attached as None
    """
    resolved = []
    for record in records:
        joined = dict(record)
        for ref in references:
            target_id = record.get(ref.field)
            target = lookups.get(ref.entity, {}).get(target_id)
            if target is None and target_id is not None:
                logger.warning(
                    f"{ref.field}={target_id!r} on record {record.get('id')!r} does not resolve"
                )
            joined[ref.attach_as] = copy.deepcopy(target)
        resolved.append(joined)
    return resolved


# =============================================================================
# GENERIC ACCESSOR
# =============================================================================

class EntityAccessor:
    """
    list / get_by_id / create / update / delete for one collection.

    Subclasses set ``schema`` and, for referencing entities, ``references``.
    """

    schema: EntitySchema
    references: Tuple[Reference, ...] = ()

    def __init__(
        self,
        remote: RemoteClient,
        store: LocalStore,
        coordinator: FallbackCoordinator,
    ):
        self.remote = remote
        self.store = store
        self.coordinator = coordinator

    @property
    def entity(self) -> str:
        return self.schema.name

    # -------------------------------------------------------------------------
    # Joins
    # -------------------------------------------------------------------------

    async def _join_remote(self, outcome: RemoteOutcome, strict: bool = True) -> RemoteOutcome:
        """
        Resolve references of a successful remote outcome against the remote backend.

        With ``strict`` (reads) a failed lookup turns the whole operation into
        a fallback. Without it (a mutation already applied remotely) the
        references are left unresolved so the mutation is never replayed locally.
        """
        if not self.references or not isinstance(outcome, Ok):
            return outcome

        single = isinstance(outcome.value, dict)
        records = [outcome.value] if single else outcome.value

        lookups: Dict[str, Dict[str, Dict[str, Any]]] = {}
        for ref in self.references:
            ids = sorted({r[ref.field] for r in records if r.get(ref.field) is not None})
            ref_outcome = await self.remote.list_by_ids(ref.entity, ids)
            if isinstance(ref_outcome, Ok):
                lookups.setdefault(ref.entity, {}).update({r["id"]: r for r in ref_outcome.value})
            elif strict:
                if isinstance(ref_outcome, Fallback):
                    return ref_outcome
            else:
                logger.warning(f"Could not resolve {ref.field} remotely for {self.entity}")

        joined = resolve_references(records, self.references, lookups)
        return Ok(joined[0] if single else joined)

    def _join_local(self, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if not self.references:
            return records
        lookups: Dict[str, Dict[str, Dict[str, Any]]] = {}
        for ref in self.references:
            if ref.entity not in lookups:
                lookups[ref.entity] = {r["id"]: r for r in self.store.list(ref.entity)}
        return resolve_references(records, self.references, lookups)

    def _check_local_references(self, fields: Dict[str, Any]) -> None:
        """A mirror record may only point at records that exist in the mirror."""
        for ref in self.references:
            if ref.field in fields and self.store.get(ref.entity, fields[ref.field]) is None:
                raise DataValidationError(
                    f"{ref.field} {fields[ref.field]!r} does not exist in {ref.entity}",
                    entity=self.entity,
                    field=ref.field,
                    actual=fields[ref.field],
                )

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    async def list(self) -> AccessorResult:
        """All records, newest first."""
        async def remote_call():
            return await self._join_remote(await self.remote.list(self.entity))

        def local_call():
            return self._join_local(self.store.list(self.entity))

        return await self.coordinator.execute(f"list {self.entity}", remote_call, local_call)

    async def get_by_id(self, record_id: str) -> AccessorResult:
        async def remote_call():
            return await self._join_remote(await self.remote.get(self.entity, record_id))

        def local_call():
            record = self.store.get(self.entity, record_id)
            if record is None:
                raise NotFoundError(
                    f"{self.entity} record not found: {record_id}",
                    entity=self.entity,
                    record_id=record_id,
                )
            return self._join_local([record])[0]

        return await self.coordinator.execute(f"get {self.entity}", remote_call, local_call)

    async def create(self, fields: Dict[str, Any]) -> AccessorResult:
        """
        Create a record. The id and created_at are assigned by the backend
        that stores it.
        """
        try:
            payload = validate_new_record(self.schema, fields)
        except DataValidationError as e:
            logger.info(f"Rejected new {self.entity} record: {e}")
            return AccessorResult.fail(e)

        async def remote_call():
            outcome = await self.remote.create(self.entity, payload)
            return await self._join_remote(outcome, strict=False)

        def local_call():
            self._check_local_references(payload)
            record = self.store.insert(self.entity, payload)
            return self._join_local([record])[0]

        return await self.coordinator.execute(f"create {self.entity}", remote_call, local_call)

    async def update(self, record_id: str, fields: Dict[str, Any]) -> AccessorResult:
        """Merge ``fields`` into an existing record; id and created_at never change."""
        try:
            patch = validate_patch(self.schema, fields)
        except DataValidationError as e:
            logger.info(f"Rejected update of {self.entity}/{record_id}: {e}")
            return AccessorResult.fail(e)

        async def remote_call():
            outcome = await self.remote.update(self.entity, record_id, patch)
            return await self._join_remote(outcome, strict=False)

        def local_call():
            self._check_local_references(patch)
            record = self.store.put(self.entity, record_id, patch)
            return self._join_local([record])[0]

        return await self.coordinator.execute(f"update {self.entity}", remote_call, local_call)

    async def delete(self, record_id: str) -> AccessorResult:
        """Delete a record; the removed record is returned as data."""
        async def remote_call():
            return await self.remote.delete(self.entity, record_id)

        def local_call():
            return self.store.remove(self.entity, record_id)

        return await self.coordinator.execute(f"delete {self.entity}", remote_call, local_call)


# =============================================================================
# ENTITY ACCESSORS
# =============================================================================

class UsersAccessor(EntityAccessor):
    schema = USERS


class ProductsAccessor(EntityAccessor):
    schema = PRODUCTS


class OrdersAccessor(EntityAccessor):
    schema = ORDERS
    references = (
        Reference(field="user_id", entity="users", attach_as="users"),
        Reference(field="product_id", entity="products", attach_as="products"),
    )

    async def update_status(self, record_id: str, status: str) -> AccessorResult:
        """Change only the status of an order."""
        return await self.update(record_id, {"status": status})


class ServiceRequestsAccessor(EntityAccessor):
    schema = SERVICE_REQUESTS

# =============================================================================
# console_core/data/supabase_client.py
# Supabase Client for the Retail Console
# Issues PostgREST requests and normalizes their outcome
# =============================================================================

from __future__ import annotations
from typing import Any, Awaitable, Callable, Dict, List, Optional
import logging

from postgrest.exceptions import APIError
from supabase import AsyncClient, acreate_client

from console_core.data.outcomes import Fallback, NotFound, Ok, RemoteOutcome
from console_core.data.schemas import get_schema, normalize_record
from console_core.errors import NotFoundError, RemoteUnavailableError
from console_core.settings import AppConfig

logger = logging.getLogger(__name__)


# PostgREST answers this when .single() matches no row
NO_ROWS_CODE = "PGRST116"


class RemoteClient:
    """
    Thin async wrapper around the Supabase tables.

    Every method returns a RemoteOutcome and never raises: missing
    credentials, connectivity problems, PostgREST errors (missing table,
    permission denied) and unexpected exceptions all become ``Fallback``.

    Usage:
        remote = RemoteClient(get_config())
        outcome = await remote.list("products")
        if isinstance(outcome, Ok):
            products = outcome.value
    """

    def __init__(self, config: AppConfig, client: Optional[AsyncClient] = None):
        """
        Args:
            config: Application configuration with Supabase URL and key
            client: Pre-built Supabase client (tests inject a mock here)
        """
        self.config = config
        self._client = client

    async def _get_client(self) -> AsyncClient:
        """Create the Supabase client on first use; retried on every call until it works."""
        if self._client is None:
            if not self.config.has_remote_credentials:
                raise RemoteUnavailableError(
                    "Supabase credentials not configured",
                    details={"missing": [
                        name for name, value in (
                            ("SUPABASE_URL", self.config.supabase_url),
                            ("SUPABASE_KEY", self.config.supabase_key),
                        ) if not value
                    ]},
                )
            self._client = await acreate_client(self.config.supabase_url, self.config.supabase_key)
            logger.info(f"Supabase client created for {self.config.supabase_url}")
        return self._client

    async def _run(
        self,
        operation: str,
        entity: str,
        query: Callable[[AsyncClient], Awaitable[Any]],
        record_id: Optional[str] = None,
    ) -> RemoteOutcome:
        """
        Execute ``query`` and classify whatever happens.

        ``query`` returns the response rows; an empty list for a by-id
        operation means the id does not exist.
        """
        try:
            client = await self._get_client()
            rows = await query(client)
        except RemoteUnavailableError as e:
            e.details.setdefault("operation", operation)
            return Fallback(e)
        except APIError as e:
            if e.code == NO_ROWS_CODE:
                return NotFound(self._not_found(entity, record_id))
            logger.debug(f"PostgREST error on {operation}: [{e.code}] {e.message}")
            return Fallback(RemoteUnavailableError(
                f"{operation} failed: {e.message}",
                operation=operation,
                remote_code=e.code,
            ))
        except Exception as e:
            logger.debug(f"Remote {operation} raised {type(e).__name__}: {e}")
            return Fallback(RemoteUnavailableError(
                f"{operation} failed: {e}",
                operation=operation,
                details={"error_type": type(e).__name__},
            ))

        if not isinstance(rows, list):
            return Fallback(RemoteUnavailableError(
                f"{operation} returned a malformed response",
                operation=operation,
                details={"response_type": type(rows).__name__},
            ))

        schema = get_schema(entity)
        return Ok([normalize_record(schema, row) for row in rows])

    @staticmethod
    def _not_found(entity: str, record_id: Optional[str]) -> NotFoundError:
        return NotFoundError(f"{entity} record not found: {record_id}", entity=entity, record_id=record_id)

    def _single(self, outcome: RemoteOutcome, entity: str, record_id: Optional[str]) -> RemoteOutcome:
        """Collapse a row list to its first row; no rows means not found."""
        if not isinstance(outcome, Ok):
            return outcome
        if not outcome.value:
            return NotFound(self._not_found(entity, record_id))
        return Ok(outcome.value[0])

    # =========================================================================
    # CRUD OPERATIONS
    # =========================================================================

    async def list(
        self,
        entity: str,
        order_by: str = "created_at",
        descending: bool = True,
    ) -> RemoteOutcome:
        """All rows of a table, newest first by default."""
        async def query(client: AsyncClient):
            response = await (
                client.table(entity)
                .select("*")
                .order(order_by, desc=descending)
                .execute()
            )
            return response.data

        return await self._run(f"list {entity}", entity, query)

    async def list_by_ids(self, entity: str, ids: List[str]) -> RemoteOutcome:
        """Rows whose id is in ``ids`` (used to resolve order references)."""
        if not ids:
            return Ok([])

        async def query(client: AsyncClient):
            response = await client.table(entity).select("*").in_("id", ids).execute()
            return response.data

        return await self._run(f"list {entity} by id", entity, query)

    async def get(self, entity: str, record_id: str) -> RemoteOutcome:
        async def query(client: AsyncClient):
            response = await client.table(entity).select("*").eq("id", record_id).limit(1).execute()
            return response.data

        outcome = await self._run(f"get {entity}", entity, query, record_id)
        return self._single(outcome, entity, record_id)

    async def create(self, entity: str, fields: Dict[str, Any]) -> RemoteOutcome:
        async def query(client: AsyncClient):
            response = await client.table(entity).insert(fields).execute()
            return response.data

        outcome = await self._run(f"create {entity}", entity, query)
        if isinstance(outcome, Ok) and not outcome.value:
            return Fallback(RemoteUnavailableError(
                f"create {entity} returned no rows",
                operation=f"create {entity}",
            ))
        return self._single(outcome, entity, None)

    async def update(self, entity: str, record_id: str, fields: Dict[str, Any]) -> RemoteOutcome:
        async def query(client: AsyncClient):
            response = await client.table(entity).update(fields).eq("id", record_id).execute()
            return response.data

        outcome = await self._run(f"update {entity}", entity, query, record_id)
        return self._single(outcome, entity, record_id)

    async def delete(self, entity: str, record_id: str) -> RemoteOutcome:
        async def query(client: AsyncClient):
            response = await client.table(entity).delete().eq("id", record_id).execute()
            return response.data

        outcome = await self._run(f"delete {entity}", entity, query, record_id)
        return self._single(outcome, entity, record_id)

    # =========================================================================
    # DIAGNOSTICS
    # =========================================================================

    async def ping(self, entity: str = "products") -> RemoteOutcome:
        """Cheapest possible query to check the backend answers."""
        async def query(client: AsyncClient):
            response = await client.table(entity).select("id").limit(1).execute()
            return response.data

        outcome = await self._run("connection test", entity, query)
        return Ok(True) if isinstance(outcome, Ok) else outcome

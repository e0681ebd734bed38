# =============================================================================
# console_core/offline/local_store.py
# Local SQLite Mirror for Offline Operations
# =============================================================================
"""
LocalStore - a persisted key-value mirror of the Supabase tables.

Each entity collection is stored as one JSON document in a SQLite key-value
table, next to a ``seeded`` flag document. Reads and writes go through an
in-memory copy of every collection; every mutation is written through to disk
before the call returns.

Features:
- Generic list/get/put/insert/remove per collection
- Collision-checked id generation (base-36 time + random suffix)
- Monotonic ``created_at`` per collection
- Unique fields (user email) enforced on insert/put
- Corrupted documents are reset to an empty collection
"""

from __future__ import annotations
import copy
import json
import secrets
import sqlite3
import string
import time
from contextlib import contextmanager
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union
import logging

import numpy as np
import pandas as pd

from console_core.data.schemas import READONLY_FIELDS, SCHEMAS
from console_core.errors import DuplicateRecordError, LocalStoreError, NotFoundError

logger = logging.getLogger(__name__)


COLLECTIONS = ("users", "products", "orders", "service_requests")
SEEDED_FLAG = "seeded"

_ID_ALPHABET = string.digits + string.ascii_lowercase
_ID_RANDOM_LENGTH = 11
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_ID_ALPHABET[rem])
    return "".join(reversed(digits))


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string (``Z`` suffix or date-only accepted) to an aware datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(moment: datetime) -> str:
    """Millisecond ISO-8601 in UTC with a ``Z`` suffix, the format the seed uses."""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def newest_first(records: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Sort records by created_at descending; undated records sink to the end."""
    return sorted(
        records,
        key=lambda r: parse_timestamp(r.get("created_at")) or _EPOCH,
        reverse=True,
    )


def _json_default(value: Any) -> Any:
    """Make pandas/numpy/datetime values JSON serializable."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, np.floating):
        return float(value)
    if isinstance(value, pd.Timestamp):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _parse_document(raw: Union[str, bytes]) -> Any:
    """
    Decode a stored JSON document.

    Raises:
        ValueError: for undecodable bytes or malformed JSON
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    return json.loads(raw)


class LocalStore:
    """
    Local SQLite mirror for offline data storage.

    Mirrors the Supabase tables for seamless remote/local switching. Build one
    per client and pass it to the accessors; there is no global instance.
    """

    # Default database location
    DEFAULT_DB_PATH = Path("local_data") / "console_mirror.db"

    SCHEMA = """
        CREATE TABLE IF NOT EXISTS mirror_documents (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    """

    def __init__(self, db_path: Optional[Path] = None):
        """
        Initialize local store.

        Args:
            db_path: Path to SQLite database file (":memory:" for a throwaway store)
        """
        self.db_path = Path(db_path) if db_path else self.DEFAULT_DB_PATH
        self._connection: Optional[sqlite3.Connection] = None
        self._collections: Dict[str, List[Dict[str, Any]]] = {}
        self._initialized = False

    @property
    def _in_memory(self) -> bool:
        return str(self.db_path) == ":memory:"

    def _ensure_directory(self) -> None:
        """Ensure database directory exists."""
        if not self._in_memory:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        if self._connection is None:
            self._ensure_directory()
            self._connection = sqlite3.connect(str(self.db_path))
            self._connection.row_factory = sqlite3.Row
        return self._connection

    @contextmanager
    def transaction(self):
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def initialize(self) -> None:
        """Initialize database schema."""
        if self._initialized:
            return

        try:
            with self.transaction() as conn:
                conn.execute(self.SCHEMA)
        except sqlite3.Error as e:
            raise LocalStoreError(f"Cannot open local mirror at {self.db_path}: {e}") from e

        self._initialized = True
        logger.info(f"Local mirror initialized at: {self.db_path}")

    # =========================================================================
    # DOCUMENT I/O
    # =========================================================================

    def _read_document(self, key: str) -> Optional[Union[str, bytes]]:
        self.initialize()
        row = self._get_connection().execute(
            "SELECT value FROM mirror_documents WHERE key = ?",
            [key],
        ).fetchone()
        return row["value"] if row else None

    def _write_documents(self, documents: Dict[str, Any]) -> None:
        """Serialize and write several documents in one transaction."""
        self.initialize()
        now = datetime.now(timezone.utc).isoformat()
        try:
            rows = [
                (key, json.dumps(value, default=_json_default), now)
                for key, value in documents.items()
            ]
            with self.transaction() as conn:
                conn.executemany(
                    """
                    INSERT OR REPLACE INTO mirror_documents (key, value, updated_at)
                    VALUES (?, ?, ?)
                    """,
                    rows,
                )
        except (TypeError, ValueError) as e:
            raise LocalStoreError(f"Cannot serialize {list(documents)}: {e}") from e
        except sqlite3.Error as e:
            raise LocalStoreError(f"Cannot persist {list(documents)}: {e}") from e

    def _collection(self, entity: str) -> List[Dict[str, Any]]:
        """Return the live in-memory collection, loading it on first access."""
        if entity not in COLLECTIONS:
            raise LocalStoreError(f"Unknown collection: {entity}", collection=entity)

        if entity not in self._collections:
            self._collections[entity] = self._load_collection(entity)
        return self._collections[entity]

    def _load_collection(self, entity: str) -> List[Dict[str, Any]]:
        raw = self._read_document(entity)
        if raw is None:
            return []

        try:
            records = _parse_document(raw)
        except ValueError as e:
            records = None
            reason = str(e)
        else:
            reason = "document is not a list of records"

        if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
            logger.warning(f"Local collection '{entity}' is corrupted ({reason}); resetting it")
            self._write_documents({entity: []})
            return []

        return records

    def _persist(self, entity: str) -> None:
        self._write_documents({entity: self._collections[entity]})

    # =========================================================================
    # FLAGS
    # =========================================================================

    def get_flag(self, key: str) -> bool:
        raw = self._read_document(key)
        if raw is None:
            return False
        try:
            value = _parse_document(raw)
        except ValueError:
            value = None
        if isinstance(value, bool):
            return value

        # Unreadable flag: the mirror counts as seeded if any collection is on disk
        present = any(self._read_document(name) is not None for name in COLLECTIONS)
        logger.warning(f"Local flag '{key}' is corrupted; treating it as {present}")
        return present

    def set_flag(self, key: str, value: bool = True) -> None:
        self._write_documents({key: bool(value)})

    # =========================================================================
    # GENERIC CRUD OPERATIONS
    # =========================================================================

    def generate_id(self) -> str:
        """Base-36 millisecond clock followed by a random base-36 suffix."""
        millis = int(time.time() * 1000)
        suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_RANDOM_LENGTH))
        return _to_base36(millis) + suffix

    def _next_timestamp(self, records: List[Dict[str, Any]]) -> str:
        now = datetime.now(timezone.utc)
        now = now.replace(microsecond=(now.microsecond // 1000) * 1000)
        latest = max(
            (parse_timestamp(r.get("created_at")) for r in records),
            default=None,
            key=lambda ts: ts or _EPOCH,
        )
        if latest is not None and now <= latest:
            now = latest + timedelta(milliseconds=1)
        return format_timestamp(now)

    def _check_unique(
        self,
        entity: str,
        records: List[Dict[str, Any]],
        candidate: Dict[str, Any],
        ignore_id: Optional[str] = None,
    ) -> None:
        schema = SCHEMAS.get(entity)
        if schema is None:
            return
        for name in schema.unique_fields:
            value = candidate.get(name)
            if value is None:
                continue
            for record in records:
                if record.get("id") != ignore_id and record.get(name) == value:
                    raise DuplicateRecordError(
                        f"A record in {entity} already has {name} = {value!r}",
                        entity=entity,
                        field=name,
                        value=value,
                    )

    def list(self, entity: str) -> List[Dict[str, Any]]:
        """All records of a collection, newest first."""
        return copy.deepcopy(newest_first(self._collection(entity)))

    def get(self, entity: str, record_id: str) -> Optional[Dict[str, Any]]:
        """A record by id, or None when absent."""
        for record in self._collection(entity):
            if record.get("id") == record_id:
                return copy.deepcopy(record)
        return None

    def insert(self, entity: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """
        Append a record, assigning id and created_at when missing.

        Returns:
            The stored record
        """
        records = self._collection(entity)
        new_record = copy.deepcopy(record)
        existing_ids = {r.get("id") for r in records}

        record_id = new_record.get("id")
        if record_id is None:
            record_id = self.generate_id()
            while record_id in existing_ids:
                record_id = self.generate_id()
        elif record_id in existing_ids:
            raise DuplicateRecordError(
                f"A record in {entity} already has id {record_id!r}",
                entity=entity,
                field="id",
                value=record_id,
            )
        new_record["id"] = record_id

        if not new_record.get("created_at"):
            new_record["created_at"] = self._next_timestamp(records)

        self._check_unique(entity, records, new_record)

        records.append(new_record)
        try:
            self._persist(entity)
        except LocalStoreError:
            records.pop()
            raise

        logger.debug(f"Inserted {entity}/{record_id} into local mirror")
        return copy.deepcopy(new_record)

    def put(self, entity: str, record_id: str, partial: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge ``partial`` into an existing record (last write wins).

        Raises:
            NotFoundError: if no record has this id
        """
        records = self._collection(entity)
        for index, record in enumerate(records):
            if record.get("id") != record_id:
                continue

            changes = {k: v for k, v in partial.items() if k not in READONLY_FIELDS}
            merged = {**record, **copy.deepcopy(changes)}
            self._check_unique(entity, records, merged, ignore_id=record_id)

            records[index] = merged
            try:
                self._persist(entity)
            except LocalStoreError:
                records[index] = record
                raise

            logger.debug(f"Updated {entity}/{record_id} in local mirror")
            return copy.deepcopy(merged)

        raise NotFoundError(f"{entity} record not found: {record_id}", entity=entity, record_id=record_id)

    def remove(self, entity: str, record_id: str) -> Dict[str, Any]:
        """
        Filter a record out of its collection.

        Returns:
            The removed record

        Raises:
            NotFoundError: if no record has this id
        """
        records = self._collection(entity)
        for index, record in enumerate(records):
            if record.get("id") == record_id:
                del records[index]
                try:
                    self._persist(entity)
                except LocalStoreError:
                    records.insert(index, record)
                    raise
                logger.debug(f"Removed {entity}/{record_id} from local mirror")
                return copy.deepcopy(record)

        raise NotFoundError(f"{entity} record not found: {record_id}", entity=entity, record_id=record_id)

    # =========================================================================
    # BULK OPERATIONS
    # =========================================================================

    def replace_collections(
        self,
        collections: Dict[str, List[Dict[str, Any]]],
        flags: Optional[Dict[str, bool]] = None,
    ) -> None:
        """Write whole collections (and flags) in a single transaction."""
        for entity in collections:
            if entity not in COLLECTIONS:
                raise LocalStoreError(f"Unknown collection: {entity}", collection=entity)

        documents: Dict[str, Any] = {k: copy.deepcopy(v) for k, v in collections.items()}
        for key, value in (flags or {}).items():
            documents[key] = bool(value)

        self._write_documents(documents)
        for entity, records in collections.items():
            self._collections[entity] = copy.deepcopy(records)

    def clear(self) -> None:
        """Drop every collection and flag. The only way the mirror is destroyed."""
        self.initialize()
        with self.transaction() as conn:
            conn.execute("DELETE FROM mirror_documents")
        self._collections.clear()
        logger.info(f"Local mirror cleared: {self.db_path}")

    def reload(self) -> None:
        """Forget the in-memory copy; the next access re-reads from disk."""
        self._collections.clear()

    def close(self) -> None:
        """Close database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None
            self._initialized = False
        self._collections.clear()

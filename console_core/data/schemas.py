# =============================================================================
# console_core/data/schemas.py
# Entity Schemas and Field Validation
# =============================================================================
"""
Entity schemas shared by the remote client, the local mirror and the accessors.

Records travel as plain dicts (the shape PostgREST returns). Each schema lists
the fields a new record must carry, enumerated values, numeric constraints and
the fields a partial update may never overwrite.

Tables (Supabase and local mirror use the same names):
    - users
    - products
    - orders            (joined: users, products)
    - service_requests
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from console_core.errors import DataValidationError


class UserRole(str, Enum):
    """Roles a console user may hold."""
    ADMIN = "admin"
    MANAGER = "manager"
    CUSTOMER = "customer"
    USER = "user"


class OrderStatus(str, Enum):
    """Order lifecycle states (drive the UI status badges)."""
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ServiceStatus(str, Enum):
    """Service ticket lifecycle states."""
    RECEIVED = "received"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Never written by a partial update
READONLY_FIELDS = ("id", "created_at")


@dataclass(frozen=True)
class EntitySchema:
    """Declarative description of one entity collection."""
    name: str
    required: Tuple[str, ...] = ()
    enums: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    defaults: Dict[str, Any] = field(default_factory=dict)
    numeric_fields: Tuple[str, ...] = ()    # decimals, >= 0
    integer_fields: Tuple[str, ...] = ()    # ints, >= 0
    unique_fields: Tuple[str, ...] = ()
    joined_fields: Tuple[str, ...] = ()     # populated at read time, never stored

    @property
    def protected_fields(self) -> Tuple[str, ...]:
        return READONLY_FIELDS + self.joined_fields


USERS = EntitySchema(
    name="users",
    required=("email", "name"),
    enums={"role": tuple(r.value for r in UserRole)},
    defaults={"role": UserRole.USER.value},
    unique_fields=("email",),
)

PRODUCTS = EntitySchema(
    name="products",
    required=("name", "price"),
    numeric_fields=("price",),
    integer_fields=("inventory_count",),
    defaults={"inventory_count": 0},
)

ORDERS = EntitySchema(
    name="orders",
    required=("user_id", "product_id", "total_price"),
    enums={"status": tuple(s.value for s in OrderStatus)},
    defaults={"status": OrderStatus.PENDING.value},
    numeric_fields=("total_price",),
    joined_fields=("users", "products"),
)

SERVICE_REQUESTS = EntitySchema(
    name="service_requests",
    required=("customer_name", "watch_brand", "watch_model", "service_type", "received_date"),
    enums={"status": tuple(s.value for s in ServiceStatus)},
    defaults={"status": ServiceStatus.RECEIVED.value},
    numeric_fields=("estimated_cost",),
)

SCHEMAS: Dict[str, EntitySchema] = {
    schema.name: schema
    for schema in (USERS, PRODUCTS, ORDERS, SERVICE_REQUESTS)
}


def get_schema(entity: str) -> EntitySchema:
    """Look up a schema by collection name."""
    try:
        return SCHEMAS[entity]
    except KeyError:
        raise DataValidationError(
            f"Unknown entity: {entity}",
            entity=entity,
            expected=", ".join(SCHEMAS),
        ) from None


# =============================================================================
# FIELD CHECKS
# =============================================================================

def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _coerce_decimal(schema: EntitySchema, name: str, value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise DataValidationError(
            f"{name} must be a number", entity=schema.name, field=name, actual=value
        )
    if isinstance(value, (int, float)):
        number = value
    else:
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise DataValidationError(
                f"{name} must be a number", entity=schema.name, field=name, actual=value
            ) from None
    if number < 0:
        raise DataValidationError(
            f"{name} must be non-negative", entity=schema.name, field=name, actual=value
        )
    return number


def _coerce_integer(schema: EntitySchema, name: str, value: Any) -> int:
    number = _coerce_decimal(schema, name, value)
    # New records get their default before this check, so a blank here is an explicit clear
    if number is None:
        raise DataValidationError(
            f"{name} cannot be empty", entity=schema.name, field=name, actual=value
        )
    if float(number) != int(number):
        raise DataValidationError(
            f"{name} must be a whole number", entity=schema.name, field=name, actual=value
        )
    return int(number)


def _check_fields(schema: EntitySchema, fields: Dict[str, Any]) -> Dict[str, Any]:
    """Validate enum and numeric fields present in ``fields``; returns a cleaned copy."""
    cleaned = dict(fields)

    for name, allowed in schema.enums.items():
        if name not in cleaned:
            continue
        value = cleaned[name]
        if isinstance(value, Enum):
            value = value.value
        if value not in allowed:
            raise DataValidationError(
                f"Invalid {name}: {value!r}",
                entity=schema.name,
                field=name,
                expected=" | ".join(allowed),
                actual=value,
            )
        cleaned[name] = value

    for name in schema.numeric_fields:
        if name in cleaned:
            cleaned[name] = _coerce_decimal(schema, name, cleaned[name])

    for name in schema.integer_fields:
        if name in cleaned:
            cleaned[name] = _coerce_integer(schema, name, cleaned[name])

    if "email" in cleaned and not _is_blank(cleaned["email"]) and "@" not in str(cleaned["email"]):
        raise DataValidationError(
            "email must contain '@'", entity=schema.name, field="email", actual=cleaned["email"]
        )

    return cleaned


def validate_new_record(schema: EntitySchema, fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate the fields of a record about to be created.

    Strips id/created_at/joined fields (assigned by the store), applies
    defaults, checks required fields, enums and numeric constraints.

    Raises:
        DataValidationError: before any storage call is made
    """
    if not isinstance(fields, dict):
        raise DataValidationError(
            "Record fields must be a mapping", entity=schema.name, actual=type(fields).__name__
        )

    payload = {k: v for k, v in fields.items() if k not in schema.protected_fields}
    for name, default in schema.defaults.items():
        if _is_blank(payload.get(name)):
            payload[name] = default

    missing = [name for name in schema.required if _is_blank(payload.get(name))]
    if missing:
        raise DataValidationError(
            f"Missing required fields: {', '.join(missing)}",
            entity=schema.name,
            field=", ".join(missing),
        )

    return _check_fields(schema, payload)


def validate_patch(schema: EntitySchema, fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate a partial update.

    Read-only and joined fields are dropped; required fields may not be
    blanked out.
    """
    if not isinstance(fields, dict):
        raise DataValidationError(
            "Update fields must be a mapping", entity=schema.name, actual=type(fields).__name__
        )

    patch = {k: v for k, v in fields.items() if k not in schema.protected_fields}
    if not patch:
        raise DataValidationError("Nothing to update", entity=schema.name)

    blanked = [name for name in schema.required if name in patch and _is_blank(patch[name])]
    if blanked:
        raise DataValidationError(
            f"Required fields cannot be empty: {', '.join(blanked)}",
            entity=schema.name,
            field=", ".join(blanked),
        )

    return _check_fields(schema, patch)


def normalize_record(schema: EntitySchema, record: Dict[str, Any]) -> Dict[str, Any]:
    """
    Coerce numeric columns PostgREST may return as strings (DECIMAL) to floats.

    Unparseable values are left untouched.
    """
    normalized = dict(record)
    for name in schema.numeric_fields:
        value = normalized.get(name)
        if isinstance(value, str):
            try:
                normalized[name] = float(value)
            except ValueError:
                pass
    return normalized

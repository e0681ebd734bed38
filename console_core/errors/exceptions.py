# =============================================================================
# console_core/errors/exceptions.py
# Custom Exception Hierarchy for the Retail Console Data Layer
# =============================================================================

from typing import Optional, Dict, Any


class ConsoleError(Exception):
    """
    Base exception for all data-layer errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "DATA_001")
        details: Additional context as a dictionary
        recoverable: Whether the error can be recovered from
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "CONSOLE_000"
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        base = f"[{self.code}] {self.message}"
        if self.details:
            base += f" | Details: {self.details}"
        return base

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization"""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# VALIDATION EXCEPTIONS
# =============================================================================

class DataValidationError(ConsoleError):
    """Raised when input fields fail validation before any storage call"""

    def __init__(
        self,
        message: str,
        entity: Optional[str] = None,
        field: Optional[str] = None,
        expected: Optional[str] = None,
        actual: Optional[Any] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if entity:
            details["entity"] = entity
        if field:
            details["field"] = field
        if expected:
            details["expected"] = expected
        if actual is not None:
            details["actual"] = actual

        super().__init__(
            message=message,
            code=kwargs.pop("code", "DATA_001"),
            details=details,
            **kwargs,
        )


class DuplicateRecordError(DataValidationError):
    """Raised when a unique field (e.g. user email) already exists in the store"""

    def __init__(self, message: str, entity: str, field: str, value: Any, **kwargs):
        super().__init__(
            message=message,
            entity=entity,
            field=field,
            actual=value,
            code="DATA_002",
            **kwargs,
        )


# =============================================================================
# LOOKUP EXCEPTIONS
# =============================================================================

class NotFoundError(ConsoleError):
    """Raised when a record id does not exist in the source that was asked"""

    def __init__(
        self,
        message: str,
        entity: Optional[str] = None,
        record_id: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if entity:
            details["entity"] = entity
        if record_id is not None:
            details["record_id"] = record_id

        super().__init__(
            message=message,
            code="NOT_FOUND_001",
            details=details,
            **kwargs,
        )


# =============================================================================
# STORAGE EXCEPTIONS
# =============================================================================

class RemoteUnavailableError(ConsoleError):
    """Raised when the remote backend cannot service a request"""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        remote_code: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if operation:
            details["operation"] = operation
        if remote_code:
            details["remote_code"] = remote_code

        super().__init__(
            message=message,
            code="REMOTE_001",
            details=details,
            **kwargs,
        )


class LocalStoreError(ConsoleError):
    """Raised when the local mirror cannot complete an operation"""

    def __init__(
        self,
        message: str,
        collection: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if collection:
            details["collection"] = collection

        super().__init__(
            message=message,
            code="LOCAL_001",
            details=details,
            **kwargs,
        )


# =============================================================================
# CONFIGURATION EXCEPTIONS
# =============================================================================

class ConfigurationError(ConsoleError):
    """Raised when configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        expected_type: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key
        if expected_type:
            details["expected_type"] = expected_type

        super().__init__(
            message=message,
            code="CONFIG_001",
            details=details,
            recoverable=False,
            **kwargs,
        )

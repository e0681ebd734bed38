# =============================================================================
# console_core/errors/__init__.py
# Centralized Error Handling for the Retail Console Data Layer
# =============================================================================

from .exceptions import (
    ConsoleError,
    DataValidationError,
    DuplicateRecordError,
    NotFoundError,
    RemoteUnavailableError,
    LocalStoreError,
    ConfigurationError,
)

from .handlers import (
    handle_error,
    safe_execute,
    ErrorContext,
    error_boundary,
)

__all__ = [
    # Exceptions
    "ConsoleError",
    "DataValidationError",
    "DuplicateRecordError",
    "NotFoundError",
    "RemoteUnavailableError",
    "LocalStoreError",
    "ConfigurationError",
    # Handlers
    "handle_error",
    "safe_execute",
    "ErrorContext",
    "error_boundary",
]

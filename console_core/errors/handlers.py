# =============================================================================
# console_core/errors/handlers.py
# Error Handling Utilities for the Retail Console Data Layer
# =============================================================================

from __future__ import annotations
import functools
import traceback
from typing import Any, Callable, Optional, TypeVar

from console_core.logging import get_logger
from .exceptions import ConsoleError

logger = get_logger(__name__)

T = TypeVar("T")


def handle_error(
    error: Exception,
    log_error: bool = True,
    context: Optional[str] = None,
) -> ConsoleError:
    """
    Centralized error handling function.

    Logs the error and normalizes it into a ConsoleError so callers can
    hand it back inside an AccessorResult.

    Args:
        error: The exception to handle
        log_error: Whether to log the error
        context: Short description of the operation that failed

    Returns:
        The error as a ConsoleError
    """
    if isinstance(error, ConsoleError):
        normalized = error
        details = error.details
    else:
        message = f"{context}: {error}" if context else str(error)
        normalized = ConsoleError(
            message,
            code="UNKNOWN",
            details={"error_type": type(error).__name__},
        )
        details = {"traceback": traceback.format_exc()}

    if log_error:
        logger.error(
            f"[{normalized.code}] {normalized.message}",
            extra={"details": details},
            exc_info=not isinstance(error, ConsoleError),
        )

    return normalized


def safe_execute(
    func: Callable[..., T],
    *args,
    default: Optional[T] = None,
    error_message: Optional[str] = None,
    reraise: bool = False,
    **kwargs,
) -> Optional[T]:
    """
    Execute a function with automatic error handling.

    Args:
        func: Function to execute
        *args: Positional arguments to pass to func
        default: Default value to return on error
        error_message: Context used in the log message
        reraise: Whether to reraise the exception after handling
        **kwargs: Keyword arguments to pass to func

    Returns:
        Function result or default value on error

    Usage:
        seeded = safe_execute(
            store.get_flag, "seeded",
            default=False,
            error_message="Reading seeded flag",
        )
    """
    try:
        return func(*args, **kwargs)
    except Exception as e:
        handle_error(e, context=error_message)
        if reraise:
            raise
        return default


class ErrorContext:
    """
    Context manager for error handling with automatic logging.

    Usage:
        with ErrorContext("Closing local mirror"):
            store.close()

        # On error, logs "Error during: Closing local mirror" and suppresses
        # the exception when recoverable=True
    """

    def __init__(self, operation: str, recoverable: bool = True):
        self.operation = operation
        self.recoverable = recoverable
        self.error: Optional[ConsoleError] = None

    def __enter__(self) -> ErrorContext:
        logger.debug(f"Starting: {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is not None:
            self.error = handle_error(exc_val, context=f"Error during: {self.operation}")
            return self.recoverable

        logger.debug(f"Completed: {self.operation}")
        return False


def error_boundary(
    default_return: Any = None,
    error_message: Optional[str] = None,
    log: bool = True,
):
    """
    Decorator to wrap functions with error handling.

    Args:
        default_return: Value to return if function fails
        error_message: Custom error message
        log: Whether to log errors

    Usage:
        @error_boundary(default_return={}, error_message="Counting mirror records failed")
        def mirror_counts(self) -> Dict[str, int]:
            ...
    """
    def decorator(func: Callable[..., T]) -> Callable[..., Optional[T]]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Optional[T]:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                if log:
                    logger.error(
                        f"{error_message or 'Error in ' + func.__name__}: {e}",
                        exc_info=True,
                    )
                return default_return

        return wrapper

    return decorator

# =============================================================================
# console_core/logging/config.py
# Logging Configuration for the Retail Console Data Layer
# =============================================================================

import logging
import sys
import time
from datetime import date
from pathlib import Path
from typing import Tuple, Type, Union


# Log format
LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Log directory
LOG_DIR = Path("logs")

# Supabase pulls in an HTTP/2 stack that logs every request at INFO
NOISY_LOGGERS = ("urllib3", "httpx", "httpcore", "hpack", "supabase", "postgrest")


def resolve_level(level: Union[int, str]) -> int:
    """Accept ``logging.DEBUG`` or a name such as "debug" (CONSOLE_LOG_LEVEL); unknown names mean INFO."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: Union[int, str] = logging.INFO, log_to_file: bool = False) -> None:
    """
    Configure application-wide logging.

    Args:
        level: Logging level, as an int or a level name
        log_to_file: Also write to ``logs/console_YYYY-MM-DD.log``
    """
    handlers = [logging.StreamHandler(sys.stdout)]

    if log_to_file:
        LOG_DIR.mkdir(exist_ok=True)
        handlers.append(logging.FileHandler(LOG_DIR / f"console_{date.today():%Y-%m-%d}.log"))

    logging.basicConfig(
        level=resolve_level(level),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("console_core").info(
        f"Logging initialized at {logging.getLevelName(resolve_level(level))}"
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Usage:
        from console_core.logging import get_logger
        logger = get_logger(__name__)
        logger.info("Fetching products")
    """
    return logging.getLogger(name)


class LogContext:
    """
    Times a data-layer operation.

    Exceptions of the ``expected`` types (bad input, say) are logged as a
    warning without traceback; anything else is logged as an error with its
    traceback. Exceptions are never suppressed.

    Usage:
        with LogContext(logger, "Computing month analytics snapshot",
                        expected=(DataValidationError,)):
            snapshot = build_snapshot(orders, products)
        # DEBUG "Computing month analytics snapshot... completed in 4 ms"
    """

    def __init__(
        self,
        logger: logging.Logger,
        operation: str,
        expected: Tuple[Type[BaseException], ...] = (),
    ):
        self.logger = logger
        self.operation = operation
        self.expected = expected
        self.elapsed_ms = 0.0
        self._started = 0.0

    def __enter__(self):
        self._started = time.perf_counter()
        self.logger.debug(f"{self.operation}... started")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed_ms = (time.perf_counter() - self._started) * 1000

        if exc_type is None:
            self.logger.debug(f"{self.operation}... completed in {self.elapsed_ms:.0f} ms")
        elif isinstance(exc_val, self.expected):
            self.logger.warning(f"{self.operation}... failed after {self.elapsed_ms:.0f} ms: {exc_val}")
        else:
            self.logger.error(
                f"{self.operation}... failed after {self.elapsed_ms:.0f} ms: {exc_val}",
                exc_info=True,
            )
        return False

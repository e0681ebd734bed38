# =============================================================================
# console_core/services/base_service.py
# Accessor Result Container
# =============================================================================

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional

from console_core.errors import ConsoleError


@dataclass
class AccessorResult:
    """
    Standard result container for every public data-layer call.

    Exactly one of ``data`` / ``error`` is set. List operations return a list
    (empty on zero matches, never None on success). ``source`` records which
    backend answered ("remote" or "local") for diagnostics; callers do not
    need it.
    """
    data: Optional[Any] = None
    error: Optional[ConsoleError] = None
    source: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(cls, data: Any, source: Optional[str] = None) -> AccessorResult:
        """Create a successful result"""
        return cls(data=data, error=None, source=source)

    @classmethod
    def fail(cls, error: ConsoleError, source: Optional[str] = None) -> AccessorResult:
        """Create a failed result"""
        return cls(data=None, error=error, source=source)

    def to_dict(self) -> Dict[str, Any]:
        """The ``{data, error}`` shape the UI consumes."""
        return {
            "data": self.data,
            "error": self.error.to_dict() if self.error is not None else None,
        }

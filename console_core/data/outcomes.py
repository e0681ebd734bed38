# =============================================================================
# console_core/data/outcomes.py
# Remote Call Outcomes
# =============================================================================
"""
Every remote call resolves to exactly one of three outcomes:

- ``Ok(value)``        the backend answered; value is returned untouched
- ``NotFound(error)``  the backend answered that the id does not exist
- ``Fallback(reason)`` the backend could not answer; use the local mirror

Only ``Fallback`` sends an operation to the local mirror.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Union

from console_core.errors import NotFoundError, RemoteUnavailableError


@dataclass(frozen=True)
class Ok:
    value: Any


@dataclass(frozen=True)
class NotFound:
    error: NotFoundError


@dataclass(frozen=True)
class Fallback:
    reason: RemoteUnavailableError


RemoteOutcome = Union[Ok, NotFound, Fallback]

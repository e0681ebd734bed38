# =============================================================================
# console_core/offline/connection_monitor.py
# Remote Availability Tracking
# =============================================================================
"""
ConnectionMonitor - remembers how recent remote attempts went.

The monitor is observational only. It feeds the console's status badge and
never decides whether a call goes to the remote backend: every call tries the
remote first, so recovery needs no reset.

Features:
- Status derived from the latest remote outcome
- Consecutive failure counter and last error
- Callbacks on status changes
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional
import logging

logger = logging.getLogger(__name__)


class ConnectionStatus(Enum):
    """Connection status states."""
    ONLINE = "online"           # Last remote attempt was answered
    OFFLINE = "offline"         # Last remote attempt fell back to the mirror
    UNKNOWN = "unknown"         # No remote attempt yet


@dataclass
class ConnectionState:
    """Current connection state with metadata."""
    status: ConnectionStatus = ConnectionStatus.UNKNOWN
    last_check: Optional[datetime] = None
    last_online: Optional[datetime] = None
    consecutive_failures: int = 0
    error_message: Optional[str] = None
    fallback_count: int = 0


class ConnectionMonitor:
    """
    Tracks remote availability from the outcomes the coordinator observes.

    Usage:
        monitor = ConnectionMonitor()
        coordinator = FallbackCoordinator(monitor=monitor)
        ...
        monitor.get_status_display()["status"]   # "online" / "offline"
    """

    def __init__(self):
        self._state = ConnectionState()
        self._callbacks: List[Callable[[ConnectionState], None]] = []

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def status(self) -> ConnectionStatus:
        return self._state.status

    @property
    def is_online(self) -> bool:
        return self._state.status == ConnectionStatus.ONLINE

    @property
    def is_offline(self) -> bool:
        return self._state.status == ConnectionStatus.OFFLINE

    def record_success(self) -> None:
        """The remote backend answered (including an authoritative not-found)."""
        now = datetime.now(timezone.utc)
        self._state.last_check = now
        self._state.last_online = now
        self._state.consecutive_failures = 0
        self._state.error_message = None
        self._set_status(ConnectionStatus.ONLINE)

    def record_failure(self, reason: str) -> None:
        """The remote backend could not answer and the mirror served the call."""
        self._state.last_check = datetime.now(timezone.utc)
        self._state.consecutive_failures += 1
        self._state.fallback_count += 1
        self._state.error_message = reason
        self._set_status(ConnectionStatus.OFFLINE)

    def _set_status(self, status: ConnectionStatus) -> None:
        old_status = self._state.status
        self._state.status = status
        if old_status != status:
            logger.info(f"Connection status changed: {old_status.value} -> {status.value}")
            self._notify_callbacks()

    def register_callback(self, callback: Callable[[ConnectionState], None]) -> None:
        """
        Register a callback for connection status changes.

        Args:
            callback: Function called with ConnectionState when status changes
        """
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def unregister_callback(self, callback: Callable[[ConnectionState], None]) -> None:
        """Remove a registered callback."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _notify_callbacks(self) -> None:
        for callback in self._callbacks:
            try:
                callback(self._state)
            except Exception as e:
                logger.error(f"Error in connection callback: {e}")

    def get_status_display(self) -> dict:
        """Get status information for UI display."""
        return {
            "status": self._state.status.value,
            "is_online": self.is_online,
            "is_offline": self.is_offline,
            "last_check": self._state.last_check.isoformat() if self._state.last_check else None,
            "last_online": self._state.last_online.isoformat() if self._state.last_online else None,
            "failures": self._state.consecutive_failures,
            "fallbacks": self._state.fallback_count,
            "error": self._state.error_message,
        }

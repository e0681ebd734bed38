# =============================================================================
# console_core/offline/fallback.py
# Remote-First Dispatch with Local Mirror Fallback
# =============================================================================
"""
FallbackCoordinator - runs one logical operation remote-first.

    remote_call()  ──► Ok(value)        ──► {data: value, error: None}   (mirror untouched)
                   ──► NotFound(error)  ──► {data: None, error}          (no fallback)
                   ──► Fallback(reason) ──► local_call() ──► {data, error: None}

Nothing is cached between calls: every operation re-attempts the remote
backend, so a recovered backend is picked up on the next call.
"""

from __future__ import annotations
from typing import Any, Awaitable, Callable, Optional
import logging

from console_core.data.outcomes import Fallback, NotFound, Ok, RemoteOutcome
from console_core.errors import ConsoleError, RemoteUnavailableError, handle_error
from console_core.offline.connection_monitor import ConnectionMonitor
from console_core.services.base_service import AccessorResult

logger = logging.getLogger(__name__)


RemoteCall = Callable[[], Awaitable[RemoteOutcome]]
LocalCall = Callable[[], Any]


def dispatch(outcome: RemoteOutcome, local_call: LocalCall) -> AccessorResult:
    """
    Turn a remote outcome into the caller-visible result.

    Only ``Fallback`` runs ``local_call``; its exceptions propagate.
    """
    if isinstance(outcome, Ok):
        return AccessorResult.ok(outcome.value, source="remote")
    if isinstance(outcome, NotFound):
        return AccessorResult.fail(outcome.error, source="remote")
    if isinstance(outcome, Fallback):
        return AccessorResult.ok(local_call(), source="local")
    raise TypeError(f"Unknown remote outcome: {outcome!r}")


class FallbackCoordinator:
    """
    Per-call policy: remote first, local mirror on any availability failure.

    Usage:
        coordinator = FallbackCoordinator()
        result = await coordinator.execute(
            "list products",
            lambda: remote.list("products"),
            lambda: store.list("products"),
        )
    """

    def __init__(self, monitor: Optional[ConnectionMonitor] = None):
        self.monitor = monitor or ConnectionMonitor()

    async def execute(
        self,
        operation: str,
        remote_call: RemoteCall,
        local_call: LocalCall,
    ) -> AccessorResult:
        """
        Run ``operation`` remote-first.

        Args:
            operation: Description used in logs (e.g. "update orders")
            remote_call: Coroutine function returning a RemoteOutcome
            local_call: Synchronous equivalent against the local mirror

        Returns:
            AccessorResult; never raises
        """
        try:
            outcome = await remote_call()
        except Exception as e:
            outcome = Fallback(RemoteUnavailableError(
                f"{operation} failed: {e}",
                operation=operation,
                details={"error_type": type(e).__name__},
            ))

        if isinstance(outcome, Fallback):
            self.monitor.record_failure(outcome.reason.message)
            logger.warning(f"Remote {operation} unavailable, using local mirror: {outcome.reason.message}")
        else:
            self.monitor.record_success()

        try:
            return dispatch(outcome, local_call)
        except ConsoleError as e:
            logger.info(f"Local {operation} rejected: {e}")
            return AccessorResult.fail(e, source="local")
        except Exception as e:
            return AccessorResult.fail(handle_error(e, context=f"Local {operation}"), source="local")

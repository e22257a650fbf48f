# =============================================================================
# health_store/storage/backend_status.py
# Remote/Local Backend Status Tracking
# =============================================================================
"""
Records which backend served each store call.

Status is observational only: routing is decided per call by whether the
remote raises, never by the recorded state.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class BackendStatus(Enum):
    """Backend status states."""
    ONLINE = "online"           # Last remote call succeeded
    DEGRADED = "degraded"       # Last remote call failed; serving from local
    LOCAL_ONLY = "local_only"   # No remote configured
    UNKNOWN = "unknown"         # No call made yet


@dataclass
class BackendState:
    """Current backend state with metadata."""
    status: BackendStatus = BackendStatus.UNKNOWN
    last_remote_success: Optional[datetime] = None
    last_fallback: Optional[datetime] = None
    last_operation: Optional[str] = None
    consecutive_failures: int = 0
    fallback_count: int = 0
    error_message: Optional[str] = None


class BackendStatusTracker:
    """Tracks remote successes and fallbacks for one collection."""

    def __init__(self, has_remote: bool):
        self._state = BackendState(
            status=BackendStatus.UNKNOWN if has_remote else BackendStatus.LOCAL_ONLY
        )

    @property
    def state(self) -> BackendState:
        return self._state

    @property
    def status(self) -> BackendStatus:
        return self._state.status

    def record_success(self, operation: str) -> None:
        self._state.status = BackendStatus.ONLINE
        self._state.last_remote_success = datetime.now(timezone.utc)
        self._state.last_operation = operation
        self._state.consecutive_failures = 0
        self._state.error_message = None

    def record_fallback(self, operation: str, error: Optional[BaseException] = None) -> None:
        self._state.last_fallback = datetime.now(timezone.utc)
        self._state.last_operation = operation
        self._state.fallback_count += 1
        if error is None:
            # No remote configured: nothing failed
            self._state.status = BackendStatus.LOCAL_ONLY
            return
        self._state.status = BackendStatus.DEGRADED
        self._state.consecutive_failures += 1
        self._state.error_message = str(error)

    def get_status_display(self) -> Dict[str, Any]:
        """Get status information for UI display."""
        state = self._state
        return {
            "status": state.status.value,
            "is_online": state.status == BackendStatus.ONLINE,
            "last_remote_success": (
                state.last_remote_success.isoformat() if state.last_remote_success else None
            ),
            "last_fallback": state.last_fallback.isoformat() if state.last_fallback else None,
            "last_operation": state.last_operation,
            "failures": state.consecutive_failures,
            "fallbacks": state.fallback_count,
            "error": state.error_message,
        }

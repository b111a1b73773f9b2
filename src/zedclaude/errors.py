"""Exception types for the session bridge.

Failures inside a single prompt are converted to a visible message at the
agent boundary; these types exist so that the boundary can tell them apart
by identity instead of by message text.
"""

from __future__ import annotations

from enum import Enum


class CancelReason(Enum):
    """Why a query's cancellation token fired."""

    USER = "user"  # session/cancel from the client
    SUPERSEDED = "superseded"  # a newer prompt replaced the running one
    TIMEOUT = "timeout"  # the query exceeded its time budget
    SHUTDOWN = "shutdown"  # process is exiting

    @property
    def reports_cancelled(self) -> bool:
        """Whether a prompt aborted for this reason ends with stop_reason=cancelled."""
        return self in (CancelReason.USER, CancelReason.SUPERSEDED)


class BridgeError(Exception):
    """Base class for session bridge errors."""


class SessionNotFound(BridgeError, KeyError):
    """Raised when a request references an unknown session id."""

    def __init__(self, session_id: str) -> None:
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        return f"Session {self.session_id} not found"


class QueryTimeout(BridgeError):
    """Raised when an upstream query runs past its configured budget."""

    def __init__(self, timeout_ms: int) -> None:
        super().__init__(f"Query timed out after {timeout_ms} ms")
        self.timeout_ms = timeout_ms


class QueryCancelled(BridgeError):
    """Raised when an upstream query is aborted through its cancellation token."""

    def __init__(self, reason: CancelReason) -> None:
        super().__init__(f"Query cancelled ({reason.value})")
        self.reason = reason

"""Session lifecycle: registry, permission modes, cancellation and eviction."""

from zedclaude.session.cancellation import CancellationToken, race_query
from zedclaude.session.permissions import (
    PERMISSION_MARKERS,
    PermissionModeController,
    SwitchOutcome,
    SwitchResult,
)
from zedclaude.session.reaper import IdleSessionReaper
from zedclaude.session.registry import SessionRegistry
from zedclaude.session.state import ActiveQuery, PermissionMode, Session, SessionStats

__all__ = [
    "ActiveQuery",
    "CancellationToken",
    "IdleSessionReaper",
    "PERMISSION_MARKERS",
    "PermissionMode",
    "PermissionModeController",
    "Session",
    "SessionRegistry",
    "SessionStats",
    "SwitchOutcome",
    "SwitchResult",
    "race_query",
]

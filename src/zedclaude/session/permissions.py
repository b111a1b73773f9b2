"""Permission mode parsing, in-band marker detection and gated switching.

Users can change the upstream permission mode mid-conversation by embedding
one of the literal markers below in a prompt, e.g.::

    [ACP:PERMISSION:ACCEPT_EDITS] refactor the parser module

Detection happens before the query starts and at most one switch is applied
per prompt. Switching to ``bypassPermissions`` is gated behind a flag.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from zedclaude.logging import get_logger
from zedclaude.session.state import PermissionMode, Session

log = get_logger("permissions")

PERMISSION_MARKERS: dict[PermissionMode, str] = {
    PermissionMode.ACCEPT_EDITS: "[ACP:PERMISSION:ACCEPT_EDITS]",
    PermissionMode.BYPASS_PERMISSIONS: "[ACP:PERMISSION:BYPASS]",
    PermissionMode.DEFAULT: "[ACP:PERMISSION:DEFAULT]",
    PermissionMode.PLAN: "[ACP:PERMISSION:PLAN]",
}


class SwitchResult(Enum):
    SWITCHED = "switched"
    BLOCKED = "blocked"


@dataclass(frozen=True, slots=True)
class SwitchOutcome:
    """Result of a requested mode switch, reported back to the user."""

    result: SwitchResult
    requested: PermissionMode
    mode: PermissionMode  # mode in effect after the request
    previous: PermissionMode

    @property
    def blocked(self) -> bool:
        return self.result is SwitchResult.BLOCKED


class PermissionModeController:
    """Validates, detects and applies permission mode changes."""

    def __init__(self, bypass_allowed: bool = True) -> None:
        self.bypass_allowed = bypass_allowed

    @staticmethod
    def parse_default(raw: str | None) -> PermissionMode:
        """Parse a configured mode; anything unrecognized resolves to ``default``."""
        if raw:
            try:
                return PermissionMode(raw.strip())
            except ValueError:
                log.warning("Unknown permission mode %r, using default", raw)
        return PermissionMode.DEFAULT

    @staticmethod
    def detect_marker(text: str) -> PermissionMode | None:
        """Return the mode of the earliest marker in ``text``, if any."""
        best: tuple[int, PermissionMode] | None = None
        for mode, marker in PERMISSION_MARKERS.items():
            pos = text.find(marker)
            if pos != -1 and (best is None or pos < best[0]):
                best = (pos, mode)
        return best[1] if best else None

    @staticmethod
    def strip_markers(text: str) -> str:
        """Remove every marker so it is not sent upstream as conversation."""
        for marker in PERMISSION_MARKERS.values():
            text = text.replace(marker, "")
        return text.strip()

    def apply_switch(
        self,
        session: Session,
        requested: PermissionMode,
        bypass_allowed: bool | None = None,
    ) -> SwitchOutcome:
        """Switch ``session`` to ``requested`` unless bypass is gated off."""
        allowed = self.bypass_allowed if bypass_allowed is None else bypass_allowed
        previous = session.permission_mode

        if requested is PermissionMode.BYPASS_PERMISSIONS and not allowed:
            log.info(
                "Blocked switch to %s for session %s", requested.value, session.session_id
            )
            return SwitchOutcome(SwitchResult.BLOCKED, requested, previous, previous)

        session.permission_mode = requested
        log.info(
            "Session %s permission mode %s -> %s",
            session.session_id,
            previous.value,
            requested.value,
        )
        return SwitchOutcome(SwitchResult.SWITCHED, requested, requested, previous)

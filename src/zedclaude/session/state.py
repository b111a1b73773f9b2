"""Per-session state owned by the SessionRegistry."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from zedclaude.session.cancellation import CancellationToken


class PermissionMode(str, Enum):
    """Upstream permission policy for side-effecting tools."""

    DEFAULT = "default"  # Ask for permission on all operations
    ACCEPT_EDITS = "acceptEdits"  # Auto-accept file edits only
    BYPASS_PERMISSIONS = "bypassPermissions"  # Bypass all permission checks
    PLAN = "plan"  # Planning mode, no side effects


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class ActiveQuery:
    """Ownership handle for one in-flight upstream stream.

    Installed on the session before the stream exists so that concurrent
    prompts see the slot as taken; ``stream`` is filled in once the query
    starts.
    """

    stream: AsyncIterator[Any] | None = None
    token: CancellationToken = field(default_factory=CancellationToken)
    finished: asyncio.Event = field(default_factory=asyncio.Event)
    started_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True, slots=True)
class SessionStats:
    """Read-only snapshot of a session for logging and diagnostics."""

    created_at: datetime
    last_active_at: datetime
    message_count: int
    permission_mode: PermissionMode
    has_upstream_session: bool


@dataclass(slots=True)
class Session:
    """One logical conversation between the editor and the upstream engine."""

    session_id: str
    permission_mode: PermissionMode = PermissionMode.DEFAULT
    cwd: str | None = None
    upstream_session_id: str | None = None
    active_query: ActiveQuery | None = None
    message_count: int = 0
    created_at: datetime = field(default_factory=utcnow)
    last_active_at: datetime = field(default_factory=utcnow)

    @property
    def is_querying(self) -> bool:
        return self.active_query is not None

    def touch(self, now: datetime | None = None) -> None:
        self.last_active_at = now or utcnow()

    def idle_seconds(self, now: datetime | None = None) -> float:
        return ((now or utcnow()) - self.last_active_at).total_seconds()

    def stats(self) -> SessionStats:
        return SessionStats(
            created_at=self.created_at,
            last_active_at=self.last_active_at,
            message_count=self.message_count,
            permission_mode=self.permission_mode,
            has_upstream_session=self.upstream_session_id is not None,
        )

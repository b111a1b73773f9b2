"""Session registry: the single owner of session id -> Session mapping."""

from __future__ import annotations

import uuid

from zedclaude.errors import SessionNotFound
from zedclaude.logging import get_logger
from zedclaude.session.state import PermissionMode, Session

log = get_logger("session")


class SessionRegistry:
    """Creates, loads, looks up and removes sessions.

    All access happens on the event loop thread, so the mapping needs no lock.
    """

    def __init__(self, default_mode: PermissionMode = PermissionMode.DEFAULT) -> None:
        self._sessions: dict[str, Session] = {}
        self.default_mode = default_mode

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def _new_session(self, session_id: str, cwd: str | None) -> Session:
        session = Session(session_id=session_id, permission_mode=self.default_mode, cwd=cwd)
        self._sessions[session_id] = session
        return session

    def create(self, cwd: str | None = None) -> Session:
        """Insert a session under a freshly generated id."""
        session_id = str(uuid.uuid4())
        while session_id in self._sessions:
            session_id = str(uuid.uuid4())
        session = self._new_session(session_id, cwd)
        log.info(
            "Created session %s (mode=%s)", session_id, session.permission_mode.value
        )
        return session

    def load(self, session_id: str, cwd: str | None = None) -> Session:
        """Ensure ``session_id`` exists. Known ids are left untouched."""
        existing = self._sessions.get(session_id)
        if existing is not None:
            log.debug("Session %s already loaded", session_id)
            return existing
        session = self._new_session(session_id, cwd)
        log.info("Loaded session %s (cold start)", session_id)
        return session

    def find(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def get(self, session_id: str) -> Session:
        """Look up a session, raising SessionNotFound when absent."""
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    def remove(self, session_id: str) -> None:
        """Delete a session. It must not have an active query."""
        session = self._sessions.get(session_id)
        if session is None:
            return
        if session.active_query is not None:
            raise RuntimeError(f"Session {session_id} has an active query")
        del self._sessions[session_id]
        log.info("Removed session %s", session_id)

    def ids(self) -> list[str]:
        return list(self._sessions)

    def sessions(self) -> list[Session]:
        """Snapshot of current sessions, safe to iterate while removing."""
        return list(self._sessions.values())

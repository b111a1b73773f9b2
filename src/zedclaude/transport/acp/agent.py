"""ACP Agent implementation for the Claude bridge.

This module provides the ACP-compatible agent that Zed (and other ACP
editors) talk to. Each prompt runs one Claude Agent SDK query whose message
stream is translated into session/update notifications.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

import acp
from acp.schema import (
    AgentCapabilities,
    ClientCapabilities,
    Implementation,
    PromptCapabilities,
    SessionMode,
    SessionModeState,
    SetSessionModeResponse,
)

from zedclaude import __version__
from zedclaude.config import Config, get_config
from zedclaude.errors import CancelReason, QueryCancelled, QueryTimeout, SessionNotFound
from zedclaude.i18n import Localizer, Message
from zedclaude.logging import get_logger
from zedclaude.session.cancellation import race_query
from zedclaude.session.permissions import PermissionModeController
from zedclaude.session.reaper import IdleSessionReaper
from zedclaude.session.registry import SessionRegistry
from zedclaude.session.state import ActiveQuery, PermissionMode, Session
from zedclaude.stream.buffering import TextBufferer
from zedclaude.stream.translator import StreamTranslator
from zedclaude.stream.truncate import truncate
from zedclaude.upstream import QueryFn, QueryRequest, claude_query

log = get_logger("acp")

if TYPE_CHECKING:
    from acp.interfaces import Client

# How long a new prompt waits for a superseded query to wind down
RELEASE_TIMEOUT = 5.0

MODE_DESCRIPTIONS = {
    PermissionMode.DEFAULT: "Ask before side-effecting operations",
    PermissionMode.ACCEPT_EDITS: "Auto-accept file edits",
    PermissionMode.BYPASS_PERMISSIONS: "Skip all permission checks",
    PermissionMode.PLAN: "Plan without making changes",
}


def extract_text(blocks: Iterable[Any]) -> str:
    """Concatenate the text of all ``text`` content blocks in a prompt."""
    parts: list[str] = []
    for block in blocks:
        if isinstance(block, dict):
            kind, text = block.get("type"), block.get("text")
        else:
            kind, text = getattr(block, "type", None), getattr(block, "text", None)
        if kind == "text" and isinstance(text, str):
            parts.append(text)
    return "".join(parts)


class ZedClaudeAgent:
    """ACP Agent that bridges editor sessions to Claude Agent SDK queries.

    Session state lives in a SessionRegistry; streaming output goes through
    a StreamTranslator whose text is coalesced by a TextBufferer. Idle
    sessions are evicted by an IdleSessionReaper once the first session
    exists.
    """

    def __init__(
        self,
        config: Config | None = None,
        query_fn: QueryFn | None = None,
    ) -> None:
        self._config = config or get_config()
        self._conn: Client | None = None
        self._query_fn = query_fn or claude_query

        self._localizer = Localizer(self._config.ui.locale)
        self._permissions = PermissionModeController(
            bypass_allowed=self._config.permissions.allow_bypass
        )
        self._registry = SessionRegistry(
            PermissionModeController.parse_default(self._config.permissions.default_mode)
        )
        self._bufferer = TextBufferer(
            self._send_text,
            flush_ms=self._config.buffer.flush_ms,
            flush_bytes=self._config.buffer.flush_bytes,
        )
        self._translator = StreamTranslator(
            self._send_update,
            self._bufferer,
            self._localizer,
            max_output_bytes=self._config.output.max_tool_output_bytes,
        )
        self._reaper = IdleSessionReaper(
            self._registry,
            self._bufferer,
            ttl_ms=self._config.session.idle_ttl_ms,
        )

        log.info(
            "Agent initialized (default_mode=%s, locale=%s, timeout=%dms)",
            self._registry.default_mode.value,
            self._localizer.locale.value,
            self._config.query.timeout_ms,
        )

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    # --- outbound updates ---

    async def _send_update(self, session_id: str, update: Any) -> None:
        if not self._conn:
            log.debug("No ACP client connected, dropping update for %s", session_id)
            return
        await self._conn.session_update(session_id, update)

    async def _send_text(self, session_id: str, text: str) -> None:
        await self._send_update(session_id, acp.update_agent_message_text(text))

    async def _notify(self, session_id: str, text: str) -> None:
        """Send a bridge-generated message right away, after any pending text."""
        await self._bufferer.flush(session_id)
        await self._send_text(session_id, text)

    async def _report(self, session_id: str, text: str) -> None:
        """Deliver a user-visible failure message, capped like tool output."""
        marker = self._localizer(Message.TRUNCATED, removed="{removed}")
        text = truncate(text, self._config.output.max_tool_output_bytes, marker)
        try:
            await self._notify(session_id, text)
        except Exception:
            log.exception("Failed to deliver error message to session %s", session_id)

    # --- session modes ---

    def _modes_state(self, session: Session) -> SessionModeState:
        modes = [
            SessionMode(
                id=mode.value,
                name=self._localizer.mode_label(mode.value),
                description=MODE_DESCRIPTIONS[mode],
            )
            for mode in PermissionMode
            if mode is not PermissionMode.BYPASS_PERMISSIONS or self._permissions.bypass_allowed
        ]
        return SessionModeState(
            available_modes=modes,
            current_mode_id=session.permission_mode.value,
        )

    def _get_session(self, session_id: str) -> Session:
        try:
            return self._registry.get(session_id)
        except SessionNotFound as e:
            log.warning("Session not found: %s", session_id)
            raise acp.RequestError(
                code=-32602,
                message=str(e),
                data={"sessionId": session_id},
            ) from e

    # --- ACP Agent methods ---

    def on_connect(self, conn: Client) -> None:
        """Called when a client connects."""
        self._conn = conn

    async def initialize(
        self,
        protocol_version: int,
        client_capabilities: ClientCapabilities | None = None,
        client_info: Implementation | None = None,
        **kwargs: Any,
    ) -> acp.InitializeResponse:
        """Handle initialization request from client."""
        log.info("Initialize request (client protocol=%s)", protocol_version)
        return acp.InitializeResponse(
            protocol_version=acp.PROTOCOL_VERSION,
            agent_info=Implementation(name="zed-claude-acp", version=__version__),
            agent_capabilities=AgentCapabilities(
                load_session=True,
                prompt_capabilities=PromptCapabilities(image=False, audio=False),
            ),
        )

    async def new_session(
        self,
        cwd: str,
        mcp_servers: list[Any] | None = None,
        **kwargs: Any,
    ) -> acp.NewSessionResponse:
        """Create a new session."""
        self._reaper.start()
        session = self._registry.create(cwd=cwd)
        return acp.NewSessionResponse(
            session_id=session.session_id,
            modes=self._modes_state(session),
        )

    async def load_session(
        self,
        cwd: str,
        mcp_servers: list[Any] | None = None,
        session_id: str = "",
        **kwargs: Any,
    ) -> acp.LoadSessionResponse:
        """Load a session by id, creating a fresh entry for unknown ids."""
        self._reaper.start()
        session = self._registry.load(session_id, cwd=cwd)
        return acp.LoadSessionResponse(modes=self._modes_state(session))

    async def set_session_mode(
        self,
        mode_id: str,
        session_id: str,
        **kwargs: Any,
    ) -> SetSessionModeResponse | None:
        """Switch the session's permission mode on explicit request."""
        session = self._get_session(session_id)
        try:
            mode = PermissionMode(mode_id)
        except ValueError:
            valid = ", ".join(m.value for m in PermissionMode)
            raise acp.RequestError(
                code=-32602,
                message=f"Invalid mode: {mode_id}. Valid modes: {valid}",
            ) from None

        outcome = self._permissions.apply_switch(session, mode)
        if outcome.blocked:
            raise acp.RequestError(
                code=-32602,
                message=self._localizer(
                    Message.MODE_BLOCKED, mode=self._localizer.mode_label(mode.value)
                ).strip(),
            )
        return SetSessionModeResponse()

    async def authenticate(
        self,
        method_id: str,
        **kwargs: Any,
    ) -> acp.AuthenticateResponse | None:
        """Credentials are owned by the Claude CLI; nothing to do here."""
        log.info("Authentication requested (%s), delegating to Claude Agent SDK", method_id)
        return None

    async def prompt(
        self,
        prompt: list[Any],
        session_id: str,
        **kwargs: Any,
    ) -> acp.PromptResponse:
        """Handle a prompt request.

        1. Cancels and waits out any query already running for the session
        2. Applies an in-band permission marker, if present
        3. Runs one upstream query raced against the timeout and cancel token
        4. Returns ``cancelled`` if the token fired, otherwise ``end_turn``
        """
        session = self._get_session(session_id)

        while session.active_query is not None:
            await self._cancel_active(session, CancelReason.SUPERSEDED)

        active = ActiveQuery()
        session.active_query = active
        session.touch()
        stop_reason = "end_turn"

        try:
            text = extract_text(prompt)
            log.debug("Prompt for %s (%d chars): %.100s", session_id, len(text), text)

            if self._config.query.show_thinking:
                await self._notify(session_id, self._localizer(Message.THINKING))

            text = await self._apply_permission_marker(session, text)
            if not text.strip():
                log.info("Prompt for %s has no text after markers, skipping query", session_id)
                return acp.PromptResponse(stop_reason=stop_reason)

            active.token.raise_if_cancelled()
            request = QueryRequest(
                prompt=text,
                permission_mode=session.permission_mode.value,
                resume=session.upstream_session_id,
                cwd=session.cwd,
                max_turns=self._config.query.max_turns,
            )
            active.stream = self._query_fn(request)

            await race_query(
                self._translator.drain(session, active.stream, active.token),
                active.token,
                self._config.query.timeout_ms,
            )
            log.debug(
                "Prompt for %s completed (upstream=%s)", session_id, session.upstream_session_id
            )

        except QueryTimeout as e:
            log.warning("Query for %s timed out after %dms", session_id, e.timeout_ms)
            await self._report(
                session_id,
                self._localizer(Message.TIMEOUT, seconds=round(e.timeout_ms / 1000)),
            )

        except QueryCancelled as e:
            log.info("Query for %s cancelled (%s)", session_id, e.reason.value)
            if e.reason.reports_cancelled:
                stop_reason = "cancelled"

        except Exception as e:
            reason = active.token.reason
            if reason is not None and reason.reports_cancelled:
                # The stream failed while being torn down after a cancel.
                log.debug("Error after cancellation of %s: %s", session_id, e)
                stop_reason = "cancelled"
            else:
                log.exception("Prompt processing failed for %s", session_id)
                await self._report(
                    session_id,
                    self._localizer(Message.ERROR, message=str(e) or type(e).__name__),
                )

        finally:
            try:
                await self._bufferer.flush(session_id)
            except Exception:
                log.exception("Final flush failed for %s", session_id)
            await self._release(active)
            if session.active_query is active:
                session.active_query = None
            active.finished.set()
            session.touch()

        return acp.PromptResponse(stop_reason=stop_reason)

    async def cancel(self, session_id: str, **kwargs: Any) -> None:
        """Cancel the running query of a session; unknown sessions are ignored."""
        session = self._registry.find(session_id)
        if session is None:
            log.debug("Cancel for unknown session %s ignored", session_id)
            return
        active = session.active_query
        if active is None:
            log.debug("Cancel for idle session %s ignored", session_id)
            return
        active.token.cancel(CancelReason.USER)
        await self._bufferer.flush(session_id)
        log.info("Session %s cancelled", session_id)

    async def ext_method(self, method: str, params: dict[str, Any]) -> dict[str, Any]:
        """Handle extension methods."""
        return {}

    async def ext_notification(self, method: str, params: dict[str, Any]) -> None:
        """Handle extension notifications."""
        pass

    # --- internals ---

    async def _apply_permission_marker(self, session: Session, text: str) -> str:
        requested = self._permissions.detect_marker(text)
        if requested is None:
            return text

        outcome = self._permissions.apply_switch(session, requested)
        label = self._localizer.mode_label(requested.value)
        if outcome.blocked:
            await self._notify(session.session_id, self._localizer(Message.MODE_BLOCKED, mode=label))
        else:
            await self._notify(session.session_id, self._localizer(Message.MODE_SWITCHED, mode=label))
        return self._permissions.strip_markers(text)

    async def _cancel_active(self, session: Session, reason: CancelReason) -> None:
        """Fire the running query's token and wait until it has released its stream."""
        active = session.active_query
        if active is None:
            return
        active.token.cancel(reason)
        try:
            await asyncio.wait_for(active.finished.wait(), timeout=RELEASE_TIMEOUT)
        except asyncio.TimeoutError:
            log.warning(
                "Query for %s did not stop within %.0fs, releasing it",
                session.session_id,
                RELEASE_TIMEOUT,
            )
            await self._release(active)
            if session.active_query is active:
                session.active_query = None

    async def _release(self, active: ActiveQuery) -> None:
        """Close the upstream stream; failures are logged, not raised."""
        stream, active.stream = active.stream, None
        aclose = getattr(stream, "aclose", None)
        if aclose is None:
            return
        try:
            await aclose()
        except Exception as e:
            log.warning("Error closing upstream stream: %s", e)

    async def close(self) -> None:
        """Stop the reaper and abort every running query."""
        await self._reaper.stop()
        for session in self._registry.sessions():
            if session.active_query is not None:
                session.active_query.token.cancel(CancelReason.SHUTDOWN)
        self._bufferer.close()


def create_agent(config: Config | None = None) -> ZedClaudeAgent:
    """Create a new bridge agent."""
    return ZedClaudeAgent(config)

"""Nagle-style coalescing of agent message chunks.

The upstream engine emits many small text deltas. Sending each one as its own
session/update is wasteful and makes the editor jitter, so text is buffered
per session and flushed as one chunk when the window elapses, the buffer
grows past a byte threshold, or a caller flushes explicitly (for instance
before a tool-call update, to keep ordering).
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from zedclaude.logging import get_logger

log = get_logger("buffer")

# async (session_id, text) -> None
TextSender = Callable[[str, str], Awaitable[None]]


@dataclass(slots=True)
class _Buffer:
    text: str = ""
    timer: asyncio.Task[None] | None = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class TextBufferer:
    """Per-session text buffers with a flush timer."""

    def __init__(
        self,
        send: TextSender,
        flush_ms: int = 60,
        flush_bytes: int = 2048,
    ) -> None:
        self._send = send
        self.flush_ms = flush_ms
        self.flush_bytes = flush_bytes
        self._buffers: dict[str, _Buffer] = {}

    def pending(self, session_id: str) -> str:
        """Text waiting to be flushed for ``session_id``."""
        buf = self._buffers.get(session_id)
        return buf.text if buf else ""

    def has_timer(self, session_id: str) -> bool:
        buf = self._buffers.get(session_id)
        return bool(buf and buf.timer and not buf.timer.done())

    async def append(self, session_id: str, text: str) -> None:
        """Buffer ``text``, flushing now if the threshold or a zero window demands it."""
        if not text:
            return
        buf = self._buffers.setdefault(session_id, _Buffer())
        buf.text += text

        if self.flush_ms <= 0 or len(buf.text.encode("utf-8")) >= self.flush_bytes:
            await self.flush(session_id)
            return

        if buf.timer is None:
            buf.timer = asyncio.create_task(self._delayed_flush(session_id))

    async def _delayed_flush(self, session_id: str) -> None:
        await asyncio.sleep(self.flush_ms / 1000)
        buf = self._buffers.get(session_id)
        if buf is not None and buf.timer is asyncio.current_task():
            # The timer has fired; flush must not cancel the task running it.
            buf.timer = None
        try:
            await self.flush(session_id)
        except Exception:
            log.exception("Delayed flush failed for session %s", session_id)

    async def flush(self, session_id: str) -> None:
        """Emit the buffered text as one chunk and reset the buffer."""
        buf = self._buffers.get(session_id)
        if buf is None:
            return
        if buf.timer is not None:
            buf.timer.cancel()
            buf.timer = None
        if not buf.text:
            return

        text, buf.text = buf.text, ""
        async with buf.lock:
            await self._send(session_id, text)

    def discard(self, session_id: str) -> None:
        """Forget a session's buffer without sending it."""
        buf = self._buffers.pop(session_id, None)
        if buf and buf.timer:
            buf.timer.cancel()

    async def flush_all(self) -> None:
        for session_id in list(self._buffers):
            await self.flush(session_id)

    def close(self) -> None:
        """Cancel every pending timer and drop all buffered text."""
        for session_id in list(self._buffers):
            self.discard(session_id)

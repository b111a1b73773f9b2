"""Background eviction of idle sessions."""

from __future__ import annotations

import asyncio
import contextlib
from datetime import datetime

from zedclaude.logging import get_logger
from zedclaude.session.registry import SessionRegistry
from zedclaude.session.state import utcnow
from zedclaude.stream.buffering import TextBufferer

log = get_logger("reaper")

MIN_SWEEP_INTERVAL = 30.0  # seconds


def sweep_interval(ttl_ms: int) -> float:
    """Seconds between sweeps: max(30s, TTL/6)."""
    return max(MIN_SWEEP_INTERVAL, ttl_ms / 1000 / 6)


class IdleSessionReaper:
    """Removes sessions idle longer than the TTL that have no query in flight."""

    def __init__(
        self,
        registry: SessionRegistry,
        bufferer: TextBufferer,
        ttl_ms: int = 1_800_000,
    ) -> None:
        self._registry = registry
        self._bufferer = bufferer
        self.ttl_ms = ttl_ms
        self.interval = sweep_interval(ttl_ms)
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep(self, now: datetime | None = None) -> list[str]:
        """Evict expired sessions once. Returns the evicted ids."""
        now = now or utcnow()
        ttl = self.ttl_ms / 1000
        evicted: list[str] = []

        for session in self._registry.sessions():
            if session.active_query is not None:
                continue
            if session.idle_seconds(now) <= ttl:
                continue

            try:
                await self._bufferer.flush(session.session_id)
            except Exception:
                log.exception("Final flush failed for session %s", session.session_id)
            # A prompt may have started while the flush was awaiting.
            if session.active_query is not None:
                continue
            self._bufferer.discard(session.session_id)
            self._registry.remove(session.session_id)
            evicted.append(session.session_id)

        if evicted:
            log.info("Evicted %d idle session(s): %s", len(evicted), ", ".join(evicted))
        return evicted

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.sweep()
            except Exception:
                log.exception("Idle session sweep failed")

    def start(self) -> None:
        """Start the sweep loop on the running event loop (idempotent)."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run())
        log.debug("Reaper started (ttl=%dms, interval=%.0fs)", self.ttl_ms, self.interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

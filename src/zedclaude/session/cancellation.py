"""Cancellation tokens and the query/timeout race.

A token is fired at most once and remembers why. The race runs the stream
drain alongside a timer and a token waiter; whichever settles first wins and
the others are cancelled and awaited before returning.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable
from typing import TypeVar

from zedclaude.errors import CancelReason, QueryCancelled, QueryTimeout

T = TypeVar("T")


class CancellationToken:
    """One-shot cancellation signal carrying a reason tag."""

    def __init__(self) -> None:
        self._reason: CancelReason | None = None
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._reason is not None

    @property
    def reason(self) -> CancelReason | None:
        return self._reason

    def cancel(self, reason: CancelReason = CancelReason.USER) -> bool:
        """Fire the token. Returns False if it had already fired (first reason wins)."""
        if self._reason is not None:
            return False
        self._reason = reason
        self._event.set()
        return True

    def raise_if_cancelled(self) -> None:
        if self._reason is not None:
            raise QueryCancelled(self._reason)

    async def wait(self) -> CancelReason:
        await self._event.wait()
        assert self._reason is not None
        return self._reason


async def _cancel_and_reap(task: asyncio.Task[object]) -> None:
    if task.done():
        if not task.cancelled():
            # Retrieve the exception so asyncio does not warn about it.
            task.exception()
        return
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError, Exception):
        await task


async def race_query(
    work: Awaitable[T],
    token: CancellationToken,
    timeout_ms: int,
) -> T:
    """Run ``work`` against a timeout and the token, first to settle wins.

    Raises:
        QueryTimeout: the timer won. The token is fired with ``TIMEOUT``.
        QueryCancelled: the token fired before ``work`` finished.
        Exception: whatever ``work`` raised.
    """
    work_task = asyncio.ensure_future(work)
    timer_task = asyncio.ensure_future(asyncio.sleep(timeout_ms / 1000))
    cancel_task = asyncio.ensure_future(token.wait())
    racers = {work_task, timer_task, cancel_task}

    try:
        done, _ = await asyncio.wait(racers, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        for task in racers:
            await _cancel_and_reap(task)
        raise

    if work_task in done:
        await _cancel_and_reap(timer_task)
        await _cancel_and_reap(cancel_task)
        return work_task.result()

    await _cancel_and_reap(work_task)
    await _cancel_and_reap(timer_task)
    await _cancel_and_reap(cancel_task)

    if cancel_task in done or token.cancelled:
        # The token may have fired on the same tick as the timer; the
        # recorded reason decides.
        reason = token.reason or CancelReason.USER
        if reason is CancelReason.TIMEOUT:
            raise QueryTimeout(timeout_ms)
        raise QueryCancelled(reason)

    token.cancel(CancelReason.TIMEOUT)
    raise QueryTimeout(timeout_ms)

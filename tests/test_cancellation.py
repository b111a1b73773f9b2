"""Tests for cancellation tokens and the query/timeout race."""

from __future__ import annotations

import asyncio

import pytest

from zedclaude.errors import CancelReason, QueryCancelled, QueryTimeout
from zedclaude.session.cancellation import CancellationToken, race_query


class TestCancellationToken:
    """Test CancellationToken."""

    def test_first_reason_wins(self) -> None:
        """Test only the first cancel records its reason."""
        token = CancellationToken()
        assert token.cancel(CancelReason.USER)
        assert not token.cancel(CancelReason.TIMEOUT)
        assert token.reason is CancelReason.USER
        assert token.cancelled

    def test_raise_if_cancelled(self) -> None:
        """Test the raised error carries the reason."""
        token = CancellationToken()
        token.raise_if_cancelled()
        token.cancel(CancelReason.SUPERSEDED)
        with pytest.raises(QueryCancelled) as exc_info:
            token.raise_if_cancelled()
        assert exc_info.value.reason is CancelReason.SUPERSEDED

    async def test_wait(self) -> None:
        """Test wait resolves with the reason once fired."""
        token = CancellationToken()
        waiter = asyncio.ensure_future(token.wait())
        await asyncio.sleep(0)
        assert not waiter.done()
        token.cancel()
        assert await waiter is CancelReason.USER

    def test_reports_cancelled(self) -> None:
        """Test which reasons surface as a cancelled stop reason."""
        assert CancelReason.USER.reports_cancelled
        assert CancelReason.SUPERSEDED.reports_cancelled
        assert not CancelReason.TIMEOUT.reports_cancelled
        assert not CancelReason.SHUTDOWN.reports_cancelled


class TestRaceQuery:
    """Test race_query."""

    async def test_work_wins(self) -> None:
        """Test the work result is returned when it finishes first."""

        async def work() -> str:
            return "done"

        assert await race_query(work(), CancellationToken(), 1000) == "done"

    async def test_work_error_propagates(self) -> None:
        """Test errors from the work are re-raised unchanged."""

        async def work() -> None:
            raise ValueError("upstream exploded")

        with pytest.raises(ValueError, match="exploded"):
            await race_query(work(), CancellationToken(), 1000)

    async def test_timeout_wins(self) -> None:
        """Test the timer aborts slow work and tags the token."""
        token = CancellationToken()
        cancelled = asyncio.Event()

        async def slow() -> None:
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        with pytest.raises(QueryTimeout) as exc_info:
            await race_query(slow(), token, 20)

        assert exc_info.value.timeout_ms == 20
        assert token.reason is CancelReason.TIMEOUT
        assert cancelled.is_set()

    async def test_token_wins(self) -> None:
        """Test firing the token aborts the work with QueryCancelled."""
        token = CancellationToken()

        async def slow() -> None:
            await asyncio.sleep(10)

        async def fire() -> None:
            await asyncio.sleep(0.01)
            token.cancel(CancelReason.USER)

        asyncio.ensure_future(fire())
        with pytest.raises(QueryCancelled) as exc_info:
            await race_query(slow(), token, 5000)
        assert exc_info.value.reason is CancelReason.USER

    async def test_timeout_reason_on_token_is_timeout(self) -> None:
        """Test a token fired with TIMEOUT reports as a timeout, not a cancel."""
        token = CancellationToken()
        token.cancel(CancelReason.TIMEOUT)

        async def slow() -> None:
            await asyncio.sleep(10)

        with pytest.raises(QueryTimeout):
            await race_query(slow(), token, 5000)

    async def test_no_leftover_tasks(self) -> None:
        """Test the losers are reaped before race_query returns."""
        before = asyncio.all_tasks()

        async def work() -> int:
            return 1

        await race_query(work(), CancellationToken(), 5000)
        leftover = [t for t in asyncio.all_tasks() - before if not t.done()]
        assert leftover == []

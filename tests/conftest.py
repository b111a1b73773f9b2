"""Root pytest configuration for all tests."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from zedclaude.config import ENV_VARS, Config, reset_config

# Configure pytest-asyncio to use auto mode
# This is redundant with pyproject.toml but ensures it's set
pytest_plugins = ("pytest_asyncio",)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Keep ACP_* variables and real config files out of every test."""
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    reset_config()
    yield
    reset_config()


@pytest.fixture
def config() -> Config:
    """English, unbuffered config without the thinking banner."""
    cfg = Config()
    cfg.ui.locale = "en"
    cfg.query.show_thinking = False
    cfg.buffer.flush_ms = 0
    return cfg


class ScriptedStream:
    """Async iterator standing in for an upstream query stream.

    Yields ``messages`` in order. With ``hang=True`` it then blocks forever,
    like a query that never finishes. ``fail`` is raised after the messages.
    """

    def __init__(
        self,
        messages: list[Any] | None = None,
        hang: bool = False,
        fail: Exception | None = None,
    ) -> None:
        self._items = list(messages or [])
        self.hang = hang
        self.fail = fail
        self.closed = False
        self.yielded = 0

    def __aiter__(self) -> ScriptedStream:
        return self

    async def __anext__(self) -> Any:
        if self._items:
            self.yielded += 1
            return self._items.pop(0)
        if self.fail is not None:
            raise self.fail
        if self.hang:
            await asyncio.Event().wait()
        raise StopAsyncIteration

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def scripted_stream():
    return ScriptedStream

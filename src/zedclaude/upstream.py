"""Upstream query engine adapter.

The bridge only needs "give me a lazy message stream for this prompt". The
default implementation calls ``claude_agent_sdk.query``; tests and embedders
can pass any callable with the same shape.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from typing import Any

from zedclaude.logging import get_logger

log = get_logger("upstream")


@dataclass(frozen=True, slots=True)
class QueryRequest:
    """Everything the upstream engine needs to start one query."""

    prompt: str
    permission_mode: str = "default"
    resume: str | None = None
    cwd: str | None = None
    max_turns: int = 10


QueryFn = Callable[[QueryRequest], AsyncIterator[Any]]


def claude_query(request: QueryRequest) -> AsyncIterator[Any]:
    """Start a Claude Agent SDK query and return its message iterator."""
    # Imported lazily so the bridge can be imported (and tested) without
    # spawning or locating the Claude CLI.
    from claude_agent_sdk import ClaudeAgentOptions, query

    options_kwargs: dict[str, Any] = dict(
        permission_mode=request.permission_mode,
        max_turns=request.max_turns,
    )
    if request.resume:
        options_kwargs["resume"] = request.resume
    if request.cwd:
        options_kwargs["cwd"] = request.cwd

    log.debug(
        "Starting query mode=%s resume=%s cwd=%s",
        request.permission_mode,
        request.resume or "-",
        request.cwd or "-",
    )
    return query(prompt=request.prompt, options=ClaudeAgentOptions(**options_kwargs))

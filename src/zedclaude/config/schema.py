"""Configuration schema dataclasses for the bridge.

All fields have defaults so partial configs (a file that only sets
``query.timeout_ms``, or a single environment variable) work after merging.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class LoggingConfig:
    """Logging configuration."""

    debug: bool = False  # ACP_DEBUG
    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    file: str | None = None  # Log file path; stderr when unset
    allow_console_log: bool = False  # Echo stray stdout writes to stderr


@dataclass
class PermissionConfig:
    """Permission mode defaults and gating."""

    default_mode: str = "default"  # default, acceptEdits, bypassPermissions, plan
    allow_bypass: bool = True  # Gate for the bypassPermissions mode


@dataclass
class QueryConfig:
    """Per-query behavior."""

    timeout_ms: int = 60_000  # Clamped to [1000, 600000]
    max_turns: int = 10
    show_thinking: bool = True  # Emit a "thinking" banner when a prompt starts


@dataclass
class BufferConfig:
    """Text chunk coalescing.

    Example config.yaml:
        buffer:
          flush_ms: 60
          flush_bytes: 2048
    """

    flush_ms: int = 60  # Clamped to [0, 1000]; 0 disables buffering
    flush_bytes: int = 2048  # Flush immediately once this many bytes are pending


@dataclass
class OutputConfig:
    """Tool output capping."""

    max_tool_output_bytes: int = 16_384  # Clamped to [1024, 524288]


@dataclass
class SessionConfig:
    """Session lifecycle."""

    idle_ttl_ms: int = 1_800_000  # Clamped to [60000, 86400000]


@dataclass
class UIConfig:
    """User-facing text."""

    locale: str = "ko"  # ko or en


@dataclass
class Config:
    """Root configuration object."""

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    permissions: PermissionConfig = field(default_factory=PermissionConfig)
    query: QueryConfig = field(default_factory=QueryConfig)
    buffer: BufferConfig = field(default_factory=BufferConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    ui: UIConfig = field(default_factory=UIConfig)

    # Unknown top-level sections, kept for forward compatibility
    extra: dict[str, Any] = field(default_factory=dict)

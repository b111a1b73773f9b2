"""Logging configuration for the bridge.

Uses Python's standard logging module:
- stdout is reserved for the ACP protocol, so records go to a log file or stderr
- ACP_DEBUG turns on DEBUG output; otherwise ``logging.level`` or WARNING
- Structured format with timestamps and lowercase level names
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from zedclaude.config.schema import LoggingConfig

# Module-level logger
logger = logging.getLogger("zedclaude")

_initialized = False

_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class _LowercaseLevelFormatter(logging.Formatter):
    """Formatter that emits lowercase level names."""

    def format(self, record: logging.LogRecord) -> str:
        record.levelname = record.levelname.lower()
        return super().format(record)


def resolve_level(config: LoggingConfig | None) -> int:
    if config is None:
        return logging.WARNING
    if config.debug:
        return logging.DEBUG
    if config.level:
        return _LEVEL_MAP.get(config.level.upper(), logging.WARNING)
    return logging.WARNING


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Initialize logging once at startup. Subsequent calls are no-ops."""
    global _initialized
    if _initialized:
        return
    _initialized = True

    log_level = resolve_level(config)
    logger.setLevel(log_level)
    # Keep records away from the root logger, whose handlers may write to stdout.
    logger.propagate = False

    formatter = _LowercaseLevelFormatter(
        "%(asctime)s %(levelname)s [%(name)s] %(message)s", datefmt="%H:%M:%S"
    )

    log_path = config.file if config else None
    if log_path:
        log_path = os.path.expanduser(log_path)
        try:
            handler: logging.Handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        except OSError as e:
            print(f"[zedclaude] Failed to open log file: {e}", file=sys.stderr)
            handler = logging.StreamHandler(sys.stderr)
    else:
        handler = logging.StreamHandler(sys.stderr)

    handler.setLevel(log_level)
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def get_logger(name: str | None = None) -> logging.Logger:
    """Get the bridge logger or one of its children (e.g. "acp", "session")."""
    if name:
        return logger.getChild(name)
    return logger

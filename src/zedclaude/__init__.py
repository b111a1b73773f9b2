"""zedclaude: ACP bridge between Zed-style editors and the Claude Agent SDK."""

__version__ = "0.1.0"

# Public API
from zedclaude.config import Config, get_config, load_config
from zedclaude.errors import (
    BridgeError,
    CancelReason,
    QueryCancelled,
    QueryTimeout,
    SessionNotFound,
)
from zedclaude.session import PermissionMode, Session, SessionRegistry
from zedclaude.transport import ZedClaudeAgent, create_agent

__all__ = [
    # Main entry points
    "ZedClaudeAgent",
    "create_agent",
    # Config
    "Config",
    "load_config",
    "get_config",
    # Errors
    "BridgeError",
    "CancelReason",
    "QueryCancelled",
    "QueryTimeout",
    "SessionNotFound",
    # Session
    "PermissionMode",
    "Session",
    "SessionRegistry",
]

"""Configuration management for the bridge.

Optional YAML files (system, user, project) merged with ACP_* environment
variables, which take precedence:

    from zedclaude.config import load_config

    config = load_config()
    print(config.query.timeout_ms)
"""

from zedclaude.config.loader import (
    ENV_VARS,
    get_config,
    load_config,
    reset_config,
)
from zedclaude.config.paths import get_config_paths
from zedclaude.config.schema import (
    BufferConfig,
    Config,
    LoggingConfig,
    OutputConfig,
    PermissionConfig,
    QueryConfig,
    SessionConfig,
    UIConfig,
)

__all__ = [
    "Config",
    "load_config",
    "get_config",
    "reset_config",
    "ENV_VARS",
    "get_config_paths",
    "LoggingConfig",
    "PermissionConfig",
    "QueryConfig",
    "BufferConfig",
    "OutputConfig",
    "SessionConfig",
    "UIConfig",
]

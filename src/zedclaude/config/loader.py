"""Configuration loading and caching.

Handles:
- YAML file parsing (system, user, project)
- ACP_* environment variable overrides (highest priority)
- Range clamping and lenient value parsing
- Conversion from the merged dict to the typed Config dataclass
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

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

# Module logger (may not be configured yet at import time)
_log = logging.getLogger("zedclaude.config")

_cached_config: Config | None = None

# env var -> (section, key)
ENV_VARS: dict[str, tuple[str, str]] = {
    "ACP_DEBUG": ("logging", "debug"),
    "ACP_LOG_FILE": ("logging", "file"),
    "ACP_ALLOW_CONSOLE_LOG": ("logging", "allow_console_log"),
    "ACP_PERMISSION_MODE": ("permissions", "default_mode"),
    "ACP_ALLOW_BYPASS": ("permissions", "allow_bypass"),
    "ACP_QUERY_TIMEOUT_MS": ("query", "timeout_ms"),
    "ACP_MAX_TURNS": ("query", "max_turns"),
    "ACP_SHOW_THINKING": ("query", "show_thinking"),
    "ACP_LOCALE": ("ui", "locale"),
    "ACP_TEXT_BUFFER_MS": ("buffer", "flush_ms"),
    "ACP_TEXT_BUFFER_FLUSH_BYTES": ("buffer", "flush_bytes"),
    "ACP_MAX_TOOL_OUTPUT_BYTES": ("output", "max_tool_output_bytes"),
    "ACP_SESSION_TTL_MS": ("session", "idle_ttl_ms"),
}

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning an empty dict if missing or invalid."""
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except OSError as e:
        _log.warning("Error reading %s: %s", path, e)
        return {}


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into ``base``: nested dicts merge, None never overrides."""
    result = dict(base)
    for key, value in override.items():
        if value is None:
            continue
        current = result.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            result[key] = deep_merge(current, value)
        else:
            result[key] = value
    return result


def env_overrides(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Build a config dict from ACP_* environment variables (raw strings)."""
    environ = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}
    for var, (section, key) in ENV_VARS.items():
        value = environ.get(var)
        if value is None or value == "":
            continue
        overrides.setdefault(section, {})[key] = value
    return overrides


def parse_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
    if isinstance(value, int):
        return value != 0
    if value is not None:
        _log.warning("Invalid boolean %r, using %s", value, default)
    return default


def parse_int(value: Any, default: int, lo: int | None = None, hi: int | None = None) -> int:
    """Parse an integer, falling back to ``default`` and clamping to [lo, hi]."""
    if value is None:
        result = default
    elif isinstance(value, bool):
        _log.warning("Invalid integer %r, using %d", value, default)
        result = default
    else:
        try:
            result = int(str(value).strip()) if not isinstance(value, int) else value
        except ValueError:
            _log.warning("Invalid integer %r, using %d", value, default)
            result = default
    if lo is not None and result < lo:
        result = lo
    if hi is not None and result > hi:
        result = hi
    return result


def dict_to_config(data: dict[str, Any]) -> Config:
    """Convert the merged dict to a typed Config, clamping ranges."""

    def section(name: str) -> dict[str, Any]:
        value = data.get(name)
        return value if isinstance(value, dict) else {}

    log_data = section("logging")
    logging_config = LoggingConfig(
        debug=parse_bool(log_data.get("debug"), False),
        level=log_data.get("level"),
        file=log_data.get("file"),
        allow_console_log=parse_bool(log_data.get("allow_console_log"), False),
    )

    perm_data = section("permissions")
    permissions = PermissionConfig(
        default_mode=str(perm_data.get("default_mode") or "default"),
        allow_bypass=parse_bool(perm_data.get("allow_bypass"), True),
    )

    query_data = section("query")
    query = QueryConfig(
        timeout_ms=parse_int(query_data.get("timeout_ms"), 60_000, 1_000, 600_000),
        max_turns=parse_int(query_data.get("max_turns"), 10, 1),
        show_thinking=parse_bool(query_data.get("show_thinking"), True),
    )

    buffer_data = section("buffer")
    buffer = BufferConfig(
        flush_ms=parse_int(buffer_data.get("flush_ms"), 60, 0, 1_000),
        flush_bytes=parse_int(buffer_data.get("flush_bytes"), 2048, 1, 1_048_576),
    )

    output_data = section("output")
    output = OutputConfig(
        max_tool_output_bytes=parse_int(
            output_data.get("max_tool_output_bytes"), 16_384, 1_024, 524_288
        ),
    )

    session_data = section("session")
    session = SessionConfig(
        idle_ttl_ms=parse_int(session_data.get("idle_ttl_ms"), 1_800_000, 60_000, 86_400_000),
    )

    ui_data = section("ui")
    ui = UIConfig(locale=str(ui_data.get("locale") or "ko"))

    known_keys = {"logging", "permissions", "query", "buffer", "output", "session", "ui"}
    extra = {k: v for k, v in data.items() if k not in known_keys}

    return Config(
        logging=logging_config,
        permissions=permissions,
        query=query,
        buffer=buffer,
        output=output,
        session=session,
        ui=ui,
        extra=extra,
    )


def load_config(
    project_root: str | None = None,
    reload: bool = False,
    environ: Mapping[str, str] | None = None,
) -> Config:
    """Load and merge config from all sources.

    Priority order (highest to lowest):
    1. ACP_* environment variables
    2. Project config (<project_root>/.zed-claude-acp/config.yaml)
    3. User config
    4. System config

    Only the global config (no project_root, process environment) is cached.
    """
    global _cached_config

    cacheable = project_root is None and environ is None
    if cacheable and _cached_config is not None and not reload:
        return _cached_config

    merged: dict[str, Any] = {}
    for path in get_config_paths(project_root):
        file_data = load_yaml_file(path)
        if file_data:
            _log.debug("Loaded config from %s", path)
            merged = deep_merge(merged, file_data)

    merged = deep_merge(merged, env_overrides(environ))
    config = dict_to_config(merged)

    if cacheable:
        _cached_config = config
    return config


def get_config() -> Config:
    """Return the cached global config, loading it on first use."""
    if _cached_config is None:
        return load_config()
    return _cached_config


def reset_config() -> None:
    """Drop the cached config (tests, forced reload)."""
    global _cached_config
    _cached_config = None

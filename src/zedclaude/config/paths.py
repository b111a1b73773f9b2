"""Platform-aware configuration path resolution.

- Windows: %PROGRAMDATA% (system), %APPDATA% (user)
- Unix: /etc/ (system), $XDG_CONFIG_HOME or ~/.config (user)
- Project: <cwd>/.zed-claude-acp/
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

CONFIG_FILENAME = "config.yaml"
APP_NAME = "zed-claude-acp"
PROJECT_DIR = ".zed-claude-acp"


def get_system_config_path() -> Path | None:
    """System-level config path (the file may not exist)."""
    if sys.platform == "win32":
        program_data = os.environ.get("PROGRAMDATA")
        if program_data:
            return Path(program_data) / APP_NAME / CONFIG_FILENAME
        return None
    return Path("/etc") / APP_NAME / CONFIG_FILENAME


def get_user_config_path() -> Path | None:
    """User-level config path (the file may not exist)."""
    if sys.platform == "win32":
        app_data = os.environ.get("APPDATA")
        if app_data:
            return Path(app_data) / APP_NAME / CONFIG_FILENAME
        return None

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / APP_NAME / CONFIG_FILENAME
    return Path.home() / ".config" / APP_NAME / CONFIG_FILENAME


def get_project_config_path(project_root: str) -> Path:
    return Path(project_root) / PROJECT_DIR / CONFIG_FILENAME


def get_config_paths(project_root: str | None = None) -> list[Path]:
    """All config paths, lowest priority first: system, user, project."""
    paths = [p for p in (get_system_config_path(), get_user_config_path()) if p]
    if project_root:
        paths.append(get_project_config_path(project_root))
    return paths

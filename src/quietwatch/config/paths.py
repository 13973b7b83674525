"""Platform-aware configuration path resolution.

Handles config file locations for:
- Windows: %APPDATA%\\quietwatch\\config.yaml (user)
- Unix: $XDG_CONFIG_HOME/quietwatch/ or ~/.config/quietwatch/ (user)
- Project: $project_root/.quietwatch.yaml
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

CONFIG_FILENAME = "config.yaml"
APP_NAME = "quietwatch"
PROJECT_CONFIG_FILENAME = ".quietwatch.yaml"


def get_user_config_path() -> Path | None:
    """Get user-level config path.

    Returns:
        Path to user config file, or None if not determinable.
        The file may not exist.
    """
    if sys.platform == "win32":
        app_data = os.environ.get("APPDATA")
        if app_data:
            return Path(app_data) / APP_NAME / CONFIG_FILENAME
        return None

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / APP_NAME / CONFIG_FILENAME
    return Path.home() / ".config" / APP_NAME / CONFIG_FILENAME


def get_project_config_path(project_root: str | Path) -> Path:
    """Get project-level config path (may not exist)."""
    return Path(project_root) / PROJECT_CONFIG_FILENAME


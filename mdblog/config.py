"""Configuration loading for mdblog.

Settings live in an optional ``mdblog.yaml`` file at the project root and are
merged over DEFAULT_CONFIG.

Key functions:
- load_config: Loads the project configuration.
- resolve_dir: Resolves a configured directory against the project root.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

CONFIG_FILENAME = "mdblog.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "posts_dir": "post",
    "pages_dir": "nav",
    "templates_dir": "templates",
    "host": "",
    "port": 8090,
    "site_title": "My Blog",
    "highlight_style": "dracula",
    "skip_invalid_posts": False,
}


def load_config(project_root: Path) -> dict[str, Any]:
    """Load site configuration from mdblog.yaml.

    Args:
        project_root: Root directory of the project.

    Returns:
        Dictionary containing configuration values, with defaults applied.
    """
    config_path = project_root / CONFIG_FILENAME
    config = DEFAULT_CONFIG.copy()
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
            if isinstance(loaded, dict):
                config.update(loaded)
    return config


def resolve_dir(project_root: Path, config: dict[str, Any], key: str) -> Path:
    """Return the directory configured under ``key``, relative to the project root."""
    path = Path(str(config.get(key) or DEFAULT_CONFIG[key]))
    if path.is_absolute():
        return path
    return project_root / path

"""Configuration loading for jot-journal.

Supports two tiers:
1. Simple config via .toml or .json - most users
2. Python config via .py - adds hook_* functions run after mutations
"""

from __future__ import annotations

import importlib.util
import json
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

# Python 3.11+ has tomllib in stdlib; fall back to tomli for older versions
try:
    import tomllib  # Python 3.11+
except ImportError:
    try:
        import tomli as tomllib  # Python <3.11
    except ImportError:  # pragma: no cover
        tomllib = None

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_FILE = ".history.json"
HISTORY_FILE_ENV = "JOT_HISTORY_FILE"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

KNOWN_HOOKS = ("post_insert", "post_roll")


@dataclass
class ProjectConfig:
    """Configuration for one jot history."""

    project_root: Path = field(default_factory=Path.cwd)

    # History file (relative paths resolve against project_root)
    history_file: str = DEFAULT_HISTORY_FILE
    lock_timeout: float = 5.0

    # Level name for the root logger when no -v flag is given
    log_level: str = "WARNING"

    # Hooks (populated from Python config)
    hooks: dict[str, Callable] = field(default_factory=dict)

    def get_history_path(self) -> Path:
        override = os.environ.get(HISTORY_FILE_ENV)
        path = Path(override) if override else Path(self.history_file)
        if path.is_absolute():
            return path
        return self.project_root / path

    def run_hook(self, name: str, *args: Any) -> None:
        """Call hook ``name`` if the config defines one."""
        hook = self.hooks.get(name)
        if hook is not None:
            hook(*args)


def load_toml_config(path: Path) -> dict[str, Any]:
    """Load configuration from TOML file."""
    if tomllib is None:
        raise ImportError("tomli required for TOML config: pip install tomli")
    with open(path, "rb") as f:
        return tomllib.load(f)


def load_json_config(path: Path) -> dict[str, Any]:
    """Load configuration from JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_python_config(path: Path) -> tuple[dict[str, Any], dict[str, Callable]]:
    """Load configuration from Python file.

    Returns:
        Tuple of (config_dict, hooks_dict)

    Convention:
        - CONFIG dict for static configuration (same layout as TOML)
        - Functions named hook_* become hooks; unknown names are ignored
    """
    spec = importlib.util.spec_from_file_location("jot_config", path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load Python config from {path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules["jot_config"] = module
    spec.loader.exec_module(module)

    config_dict = getattr(module, "CONFIG", {})

    hooks = {}
    for name in dir(module):
        if not name.startswith("hook_"):
            continue
        hook_name = name[5:]
        if hook_name in KNOWN_HOOKS:
            hooks[hook_name] = getattr(module, name)
        else:
            logger.warning("Ignoring unknown hook %s in %s", name, path)

    return config_dict, hooks


def dict_to_config(data: dict[str, Any], project_root: Path) -> ProjectConfig:
    """Convert dictionary to ProjectConfig.

    Raises:
        ValueError: If a value has the wrong type or an unknown log level
    """
    config = ProjectConfig(project_root=project_root)

    history = data.get("history", {})
    if "file" in history:
        if not isinstance(history["file"], str):
            raise ValueError("history.file must be a string")
        config.history_file = history["file"]
    if "lock_timeout" in history:
        config.lock_timeout = float(history["lock_timeout"])

    logging_section = data.get("logging", {})
    if "level" in logging_section:
        level = str(logging_section["level"]).upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level '{level}'. Expected one of: {LOG_LEVELS}")
        config.log_level = level

    return config


def find_config_file(project_root: Path) -> Optional[Path]:
    """Find configuration file in project root.

    Search order:
    1. jot_config.py
    2. jot_config.toml
    3. jot_config.json
    4. .jot.toml
    5. .jot.json
    """
    candidates = [
        "jot_config.py",
        "jot_config.toml",
        "jot_config.json",
        ".jot.toml",
        ".jot.json",
    ]

    for name in candidates:
        path = project_root / name
        if path.exists():
            return path

    return None


def load_config(project_root: Path, config_path: Optional[Path] = None) -> ProjectConfig:
    """Load project configuration.

    Args:
        project_root: Directory the history file is resolved against
        config_path: Optional explicit path to config file

    Returns:
        ProjectConfig instance
    """
    if config_path is None:
        config_path = find_config_file(project_root)

    if config_path is None:
        return ProjectConfig(project_root=project_root)

    logger.debug("Loading config from %s", config_path)
    suffix = config_path.suffix.lower()

    if suffix == ".py":
        config_dict, hooks = load_python_config(config_path)
        config = dict_to_config(config_dict, project_root)
        config.hooks = hooks
        return config

    elif suffix == ".toml":
        return dict_to_config(load_toml_config(config_path), project_root)

    elif suffix == ".json":
        return dict_to_config(load_json_config(config_path), project_root)

    else:
        raise ValueError(f"Unsupported config file type: {suffix}")


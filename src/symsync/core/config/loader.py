"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < env vars
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from .models import SymSyncConfig

logger = logging.getLogger(__name__)

# Global cache to avoid reloading config multiple times per process
_config_cache: SymSyncConfig | None = None

# Environment variable -> top-level config key
ENV_OVERRIDES = {
    "SYMSYNC_DESTINATION": "destination",
    "SYMSYNC_BUILD_SOURCE": "build_source",
    "SYMSYNC_SYMSTORE_EXE": "symstore_exe",
}


def get_xdg_config_home() -> Path:
    """
    Get XDG config home directory.

    Returns:
        Path to config directory (defaults to ~/.config)
    """
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_path() -> Path:
    """Path to ~/.config/symsync/config.json (or XDG equivalent)."""
    return get_xdg_config_home() / "symsync" / "config.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    """Path to .symsync.json in `cwd` (defaults to the current directory)."""
    if cwd is None:
        cwd = Path.cwd()
    return cwd / ".symsync.json"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence over values in `base`. Nested
    dicts are merged, anything else (lists included) is replaced.

    Example:
        >>> deep_merge({"a": 1, "b": {"x": 10}}, {"b": {"y": 20}})
        {'a': 1, 'b': {'x': 10, 'y': 20}}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON file, returning None if it doesn't exist or is invalid.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON as dict, or None if file doesn't exist or can't be parsed
    """
    if not path.exists():
        return None

    try:
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            logger.warning("Ignoring config at %s: top level is not an object", path)
            return None
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to parse config at %s: %s", path, e)
        return None


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Supported env vars:
        SYMSYNC_DESTINATION - overrides destination
        SYMSYNC_BUILD_SOURCE - overrides build_source
        SYMSYNC_SYMSTORE_EXE - overrides symstore_exe
        SYMSYNC_TOOL_TIMEOUT - overrides tool_timeout (seconds)
    """
    result = config_dict.copy()

    for env_name, key in ENV_OVERRIDES.items():
        if value := os.environ.get(env_name):
            result[key] = value

    if timeout_str := os.environ.get("SYMSYNC_TOOL_TIMEOUT"):
        try:
            timeout = float(timeout_str)
            if timeout <= 0:
                logger.warning(
                    "SYMSYNC_TOOL_TIMEOUT must be > 0, got %s, ignoring", timeout_str
                )
            else:
                result["tool_timeout"] = timeout
        except ValueError:
            logger.warning("Invalid SYMSYNC_TOOL_TIMEOUT value '%s', ignoring", timeout_str)

    return result


def get_default_config() -> dict[str, Any]:
    """Hardcoded default configuration."""
    return {
        "latest_build_file": "latestbuild.txt",
        "pdb_zip_file": "debug.zip",
        "symstore_exe": "symstore.exe",
        "exclude_list": [],
        "branches": [],
    }


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> SymSyncConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables (SYMSYNC_*)
        2. Project config (.symsync.json)
        3. User config (~/.config/symsync/config.json)
        4. Hardcoded defaults

    Args:
        project_dir: Directory to load .symsync.json from (defaults to cwd)
        use_cache: If True, return cached config from previous load

    Returns:
        Validated SymSyncConfig instance

    Raises:
        ValidationError: If the merged config fails Pydantic validation
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged = get_default_config()

    if user_config := load_json_file(get_user_config_path()):
        merged = deep_merge(merged, user_config)

    if project_config := load_json_file(get_project_config_path(project_dir)):
        merged = deep_merge(merged, project_config)

    merged = apply_env_overrides(merged)

    config = SymSyncConfig(**merged)
    _config_cache = config
    return config


def clear_cache() -> None:
    """
    Clear the cached configuration.

    Useful for testing or when config files change during execution.
    """
    global _config_cache
    _config_cache = None

"""
.env support for SYMSYNC_* settings.

Files are applied in order, user file first, then the project file; a
later file replaces a value set by an earlier one. Variables already in
the process environment are never touched.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable

from dotenv import dotenv_values

from .loader import get_xdg_config_home

logger = logging.getLogger(__name__)

ENV_FILE = ".env"


def get_user_env_path() -> Path:
    """User-level .env file, next to the user config."""
    return get_xdg_config_home() / "symsync" / ENV_FILE


def load_layered_env(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> list[str]:
    """
    Export variables from the user and project .env files.

    Args:
        project_dir: Directory holding the project .env (defaults to cwd)
        user_env_paths: Override the user .env location(s)
        project_env_paths: Override the project .env location(s)

    Returns:
        Sorted names of the variables that were set
    """
    if user_env_paths is None:
        user_env_paths = [get_user_env_path()]
    if project_env_paths is None:
        project_env_paths = [(project_dir or Path.cwd()) / ENV_FILE]

    preset = set(os.environ)
    applied: dict[str, str] = {}
    for path in [*user_env_paths, *project_env_paths]:
        path = Path(path)
        if not path.is_file():
            continue
        for key, value in dotenv_values(path).items():
            if value is None or key in preset:
                continue
            applied[key] = value
        logger.debug("Read environment from %s", path)

    os.environ.update(applied)
    return sorted(applied)

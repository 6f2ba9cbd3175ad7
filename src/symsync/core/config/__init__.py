"""
Configuration models and loading.

Pydantic models for symsync configuration with multi-layer merging:
defaults < user < project < env vars.
"""

from .env import get_user_env_path, load_layered_env
from .loader import (
    clear_cache,
    get_project_config_path,
    get_user_config_path,
    get_xdg_config_home,
    load_config,
)
from .models import BranchConfig, SymSyncConfig

__all__ = [
    # Models
    "BranchConfig",
    "SymSyncConfig",
    # Loader functions
    "clear_cache",
    "get_project_config_path",
    "get_user_env_path",
    "get_user_config_path",
    "get_xdg_config_home",
    "load_config",
    "load_layered_env",
]

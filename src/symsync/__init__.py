"""
SymSync - symbol store synchronization

Tracks, per build branch, the history of debug-symbol publications into a
symbol store and publishes new builds from the build server exactly once.
"""

__version__ = "0.3.0-dev"

# Re-export core models for convenience
from symsync.core.branch.models import Arch, Branch, Build, Symbol
from symsync.core.config.models import SymSyncConfig

__all__ = ["Arch", "Branch", "Build", "Symbol", "SymSyncConfig", "__version__"]

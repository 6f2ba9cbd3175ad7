"""Utility helpers shared across symsync."""

from symsync.utils.locking import ReadWriteLock

__all__ = ["ReadWriteLock"]

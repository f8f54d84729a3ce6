"""Storage implementations for Replayline."""

from .store import SQLiteStore

__all__ = [
    "SQLiteStore",
]

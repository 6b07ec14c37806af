"""Storage collaborators for the quiz engine."""

from .memory_store import InMemoryNameDirectory, InMemoryProgressStore, InMemoryQuestionPool
from .sqlite_store import SqliteNameDirectory, SqliteProgressStore, SqliteQuestionPool, init_db

__all__ = [
    "InMemoryNameDirectory",
    "InMemoryProgressStore",
    "InMemoryQuestionPool",
    "SqliteNameDirectory",
    "SqliteProgressStore",
    "SqliteQuestionPool",
    "init_db",
]

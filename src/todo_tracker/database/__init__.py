"""Async SQLite persistence for todo tasks.

This package owns the database connection, the versioned schema
migrations, and the task operations. All operations are async using
aiosqlite.
"""

from __future__ import annotations

from .connection import MIGRATIONS_DIR, Migration, load_migrations
from .core import TodoDB
from .tasks import row_to_task

__all__ = [
    "MIGRATIONS_DIR",
    "Migration",
    "TodoDB",
    "load_migrations",
    "row_to_task",
]

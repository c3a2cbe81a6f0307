"""Todo tracker.

A personal command-line task tracker backed by a local SQLite database.
"""

from __future__ import annotations

from .config import TodoConfig, resolve_config
from .database import TodoDB
from .errors import (
    ConfigError,
    MigrationError,
    RowDecodeError,
    StoreError,
    StoreOpenError,
    TodoError,
)
from .models import Task, TaskStatus

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "MigrationError",
    "RowDecodeError",
    "StoreError",
    "StoreOpenError",
    "Task",
    "TaskStatus",
    "TodoConfig",
    "TodoDB",
    "TodoError",
    "__version__",
    "resolve_config",
]

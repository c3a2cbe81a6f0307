"""Configuration for the todo tracker.

The database lives in a per-user .todo/ directory under the home
directory. The path is resolved once at startup into a TodoConfig and
never changes during the process. An explicit path (the --db option or
the TODO_DB environment variable) takes precedence.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigError

logger = logging.getLogger(__name__)

_TODO_DIR = ".todo"
_DB_FILE = "todo.db"

DB_ENV_VAR = "TODO_DB"


@dataclass(frozen=True)
class TodoConfig:
    """Process-wide settings, populated once before any operation runs."""

    db_path: Path


def default_db_path(home: Path | None = None) -> Path:
    """Resolve the default database path under the user's home directory.

    Args:
        home: Home directory. Defaults to the current user's home.

    Returns:
        Absolute path to <home>/.todo/todo.db.

    Raises:
        ConfigError: If the home directory cannot be determined.
    """
    if home is None:
        try:
            home = Path.home()
        except RuntimeError as exc:
            msg = f"Could not determine home directory: {exc}"
            raise ConfigError(msg) from exc
    return home.resolve() / _TODO_DIR / _DB_FILE


def resolve_config(db_override: str | None = None, home: Path | None = None) -> TodoConfig:
    """Build the TodoConfig for this process.

    Args:
        db_override: Explicit database path (--db or TODO_DB). If given,
            the home directory is not consulted.
        home: Home directory override, mainly for tests.

    Returns:
        The resolved TodoConfig.

    Raises:
        ConfigError: If no override is given and the home directory
            cannot be determined.
    """
    if db_override:
        db_path = Path(db_override).expanduser()
    else:
        db_path = default_db_path(home)
    logger.debug("Using database path %s", db_path)
    return TodoConfig(db_path=db_path)

"""Exceptions for the todo tracker.

Startup failures (configuration, opening the database, migrations) and
per-operation storage failures share the TodoError root so the CLI can
report any of them with a single handler.
"""

from __future__ import annotations


class TodoError(Exception):
    """Base exception for all todo tracker errors."""

    pass


class ConfigError(TodoError):
    """Raised when process configuration cannot be resolved.

    This exception is raised when:
    - The user's home directory cannot be determined
    """

    pass


class StoreOpenError(TodoError):
    """Raised when the database cannot be opened.

    This exception is raised when:
    - The storage directory cannot be created
    - The database file cannot be created or opened
    """

    pass


class MigrationError(TodoError):
    """Raised when schema migrations cannot be loaded or applied.

    Attributes:
        version: Version of the offending migration, if known.
    """

    def __init__(self, message: str, version: int | None = None) -> None:
        super().__init__(message)
        self.version = version


class StoreError(TodoError):
    """Raised when a statement against an open store fails."""

    pass


class RowDecodeError(StoreError):
    """Raised in strict mode when a stored row cannot be turned into a Task.

    Attributes:
        row: The raw row values that failed to decode.
    """

    def __init__(self, message: str, row: dict[str, object] | None = None) -> None:
        super().__init__(message)
        self.row = row or {}

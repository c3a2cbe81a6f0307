"""Database connection management and schema migrations.

Provides the base ConnectionMixin with connection lifecycle, versioned
migrations, and a generic query helper.
"""

from __future__ import annotations

import asyncio
import logging
import re
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import aiosqlite

from ..errors import MigrationError, StoreOpenError

logger = logging.getLogger(__name__)

# Migrations ship inside the package: database/migrations/V<version>__<name>.sql
MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"

_MIGRATION_FILE = re.compile(r"^V(?P<version>\d+)__(?P<name>\w+)\.sql$")

_CREATE_HISTORY_SQL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version     INTEGER PRIMARY KEY,
    name        TEXT NOT NULL,
    applied_at  DATETIME DEFAULT CURRENT_TIMESTAMP
)
"""


@dataclass(frozen=True)
class Migration:
    """A single versioned schema step."""

    version: int
    name: str
    sql: str


def load_migrations(directory: Path = MIGRATIONS_DIR) -> list[Migration]:
    """Load migration files from a directory, ordered by version.

    Args:
        directory: Directory containing V<n>__<name>.sql files.

    Returns:
        Migrations sorted by ascending version.

    Raises:
        MigrationError: If a .sql file is misnamed or two files share a version.
    """
    migrations: dict[int, Migration] = {}
    for path in sorted(directory.glob("*.sql")):
        match = _MIGRATION_FILE.match(path.name)
        if match is None:
            msg = f"Invalid migration file name: {path.name} (expected V<n>__<name>.sql)"
            raise MigrationError(msg)
        version = int(match.group("version"))
        if version in migrations:
            msg = f"Duplicate migration version {version}: {path.name}"
            raise MigrationError(msg, version=version)
        migrations[version] = Migration(
            version=version,
            name=match.group("name"),
            sql=path.read_text(encoding="utf-8"),
        )
    return [migrations[v] for v in sorted(migrations)]


class ConnectionMixin:
    """Base mixin providing database connection management.

    Manages the aiosqlite connection lifecycle, applies pending
    migrations on connect, and offers a generic query helper.
    """

    def __init__(
        self,
        db_path: str | Path,
        migrations_dir: Path | None = None,
    ) -> None:
        """Initialize database connection settings.

        Args:
            db_path: Path to SQLite database file. Use ":memory:" for testing.
            migrations_dir: Directory of migration files. Defaults to the
                migrations shipped with the package.
        """
        if isinstance(db_path, str) and db_path != ":memory:":
            db_path = Path(db_path)
        self.db_path: str | Path = db_path
        self.migrations_dir = migrations_dir or MIGRATIONS_DIR
        self._conn: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()

    async def __aenter__(self) -> ConnectionMixin:
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Async context manager exit."""
        await self.close()

    async def connect(self) -> None:
        """Open the database, creating it if needed, and apply migrations.

        Raises:
            StoreOpenError: If the directory or database file cannot be opened.
            MigrationError: If a pending migration cannot be applied.
        """
        if self._conn is not None:
            return

        if isinstance(self.db_path, Path):
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                msg = f"Cannot create storage directory {self.db_path.parent}: {exc}"
                raise StoreOpenError(msg) from exc
            logger.info("Database: %s (exists: %s)", self.db_path, self.db_path.exists())

        try:
            self._conn = await aiosqlite.connect(str(self.db_path))
            self._conn.row_factory = aiosqlite.Row
            await self._conn.execute(_CREATE_HISTORY_SQL)
            await self._conn.commit()
        except sqlite3.Error as exc:
            await self.close()
            msg = f"Cannot open database {self.db_path}: {exc}"
            raise StoreOpenError(msg) from exc

        try:
            await self._apply_migrations()
        except MigrationError:
            await self.close()
            raise

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    async def _ensure_connected(self) -> aiosqlite.Connection:
        """Ensure database is connected and return the connection."""
        if self._conn is None:
            await self.connect()
        assert self._conn is not None
        return self._conn

    # =========================================================================
    # Migrations
    # =========================================================================

    async def applied_migrations(self) -> list[int]:
        """Versions recorded in schema_migrations, ascending."""
        conn = await self._ensure_connected()
        async with conn.execute("SELECT version FROM schema_migrations ORDER BY version") as cursor:
            return [int(row[0]) for row in await cursor.fetchall()]

    async def _apply_migrations(self) -> None:
        """Apply every migration not yet recorded, in version order.

        Each migration and its history row commit together, so a failing
        migration leaves the schema at the previous version.

        Raises:
            MigrationError: If loading or applying a migration fails.
        """
        if not self._conn:
            msg = "Database not connected"
            raise MigrationError(msg)

        migrations = load_migrations(self.migrations_dir)
        async with self._conn.execute("SELECT version FROM schema_migrations") as cursor:
            applied = {int(row[0]) for row in await cursor.fetchall()}

        pending = [m for m in migrations if m.version not in applied]
        if not pending:
            logger.debug("Schema up to date (%d migrations)", len(applied))
            return

        async with self._write_lock:
            for migration in pending:
                # name is \w+ and version is an int, both safe to inline
                script = (
                    "BEGIN;\n"
                    f"{migration.sql}\n;\n"
                    "INSERT INTO schema_migrations (version, name) "
                    f"VALUES ({migration.version}, '{migration.name}');\n"
                    "COMMIT;"
                )
                try:
                    await self._conn.executescript(script)
                except sqlite3.Error as exc:
                    await self._conn.rollback()
                    msg = f"Migration V{migration.version}__{migration.name} failed: {exc}"
                    raise MigrationError(msg, version=migration.version) from exc
                logger.info("Applied migration V%d__%s", migration.version, migration.name)

    # =========================================================================
    # Generic Query Helper (for testing)
    # =========================================================================

    async def execute_query(
        self,
        query: str,
        params: tuple[Any, ...] | None = None,
    ) -> list[dict[str, Any]]:
        """Execute a SELECT query and return results as list of dicts.

        Args:
            query: SQL SELECT query.
            params: Optional query parameters.

        Returns:
            List of result rows as dictionaries.
        """
        conn = await self._ensure_connected()
        async with conn.execute(query, params or ()) as cursor:
            rows = await cursor.fetchall()
            return [dict(row) for row in rows]

"""Task insert, listing, status update, and prune operations.

Provides the TaskMixin with all task-related database methods.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Any

import aiosqlite

from ..errors import RowDecodeError, StoreError
from ..models import Task, TaskStatus

logger = logging.getLogger(__name__)

_INSERT_SQL = "INSERT INTO todos (title, status) VALUES (?, ?)"

_OPEN_TASKS_SQL = """
SELECT id, created_at, title, status
FROM todos
WHERE status != ?
ORDER BY id
"""

_SET_STATUS_SQL = "UPDATE todos SET status = ? WHERE id = ?"

_DELETE_DONE_SQL = "DELETE FROM todos WHERE status = ?"

# Compact the AUTOINCREMENT counter so the next id follows the highest remaining one.
_RESET_SEQUENCE_SQL = """
UPDATE sqlite_sequence
SET seq = (SELECT COALESCE(MAX(id), 0) FROM todos)
WHERE name = 'todos'
"""


def _parse_created_at(raw: Any) -> datetime:
    """Parse a CURRENT_TIMESTAMP value (UTC) into an aware local datetime."""
    if not isinstance(raw, str):
        msg = f"created_at must be text, got {type(raw).__name__}"
        raise TypeError(msg)
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone()


def row_to_task(row: aiosqlite.Row | dict[str, Any]) -> Task:
    """Convert a todos row into a Task.

    Raises:
        ValueError: If a column holds a value the model cannot represent.
        TypeError: If a column has the wrong type.
    """
    task_id = row["id"]
    if not isinstance(task_id, int) or task_id < 0:
        msg = f"Invalid task id: {task_id!r}"
        raise ValueError(msg)
    title = row["title"]
    if not isinstance(title, str):
        msg = f"Invalid title for task {task_id}: {title!r}"
        raise TypeError(msg)
    return Task(
        id=task_id,
        created_at=_parse_created_at(row["created_at"]),
        title=title,
        status=TaskStatus(row["status"]),
    )


class TaskMixin:
    """Mixin providing task CRUD and prune operations."""

    _conn: aiosqlite.Connection | None
    _write_lock: asyncio.Lock

    async def _ensure_connected(self) -> aiosqlite.Connection: ...

    # =========================================================================
    # Task Queries
    # =========================================================================

    async def list_open_tasks(self, *, strict: bool = False) -> list[Task]:
        """Get every task that is not DONE, in ascending id order.

        Rows that cannot be decoded are logged and skipped unless strict
        is set.

        Args:
            strict: Raise on an undecodable row instead of skipping it.

        Returns:
            List of open tasks.

        Raises:
            RowDecodeError: If strict and a row cannot be decoded.
            StoreError: If the query fails.
        """
        conn = await self._ensure_connected()
        try:
            async with conn.execute(_OPEN_TASKS_SQL, (TaskStatus.DONE.value,)) as cursor:
                rows = await cursor.fetchall()
        except sqlite3.Error as exc:
            msg = f"Failed to list tasks: {exc}"
            raise StoreError(msg) from exc

        tasks: list[Task] = []
        for row in rows:
            try:
                tasks.append(row_to_task(row))
            except (TypeError, ValueError) as exc:
                if strict:
                    msg = f"Cannot decode task row: {exc}"
                    raise RowDecodeError(msg, row=dict(row)) from exc
                logger.warning("Skipping undecodable task row %s: %s", dict(row), exc)
        return tasks

    # =========================================================================
    # Task Mutations
    # =========================================================================

    async def insert_task(self, title: str) -> int:
        """Insert a new READY task.

        The title is stored as given; empty strings are accepted.

        Args:
            title: Task title.

        Returns:
            The id assigned to the new task.

        Raises:
            StoreError: If the insert fails.
        """
        conn = await self._ensure_connected()
        async with self._write_lock:
            try:
                cursor = await conn.execute(_INSERT_SQL, (title, TaskStatus.READY.value))
                await conn.commit()
            except sqlite3.Error as exc:
                await conn.rollback()
                msg = f"Failed to insert task: {exc}"
                raise StoreError(msg) from exc
        task_id = cursor.lastrowid
        if task_id is None:
            msg = "SQLite did not return lastrowid for task insert"
            raise StoreError(msg)
        logger.debug("Task %d added", task_id)
        return task_id

    async def set_status(self, task_id: int, status: TaskStatus) -> bool:
        """Update a task's status.

        Unknown ids are not an error: the update simply matches no row.

        Args:
            task_id: The task identifier.
            status: New status.

        Returns:
            True if a task was updated, False if no task has that id.

        Raises:
            StoreError: If the update fails.
        """
        conn = await self._ensure_connected()
        async with self._write_lock:
            try:
                cursor = await conn.execute(_SET_STATUS_SQL, (status.value, task_id))
                await conn.commit()
            except (sqlite3.Error, OverflowError) as exc:
                await conn.rollback()
                msg = f"Failed to update task {task_id}: {exc}"
                raise StoreError(msg) from exc
        updated = cursor.rowcount > 0
        if updated:
            logger.debug("Task %d status updated to %s", task_id, status)
        else:
            logger.debug("No task with id %d; status unchanged", task_id)
        return updated

    async def prune_done(self) -> int:
        """Delete all DONE tasks and compact the id counter.

        The delete and the counter reset commit together. After pruning,
        the next inserted task gets max(remaining id) + 1, or 1 when the
        table is empty.

        Returns:
            Number of tasks deleted.

        Raises:
            StoreError: If either statement fails; nothing is deleted then.
        """
        conn = await self._ensure_connected()
        async with self._write_lock:
            try:
                cursor = await conn.execute(_DELETE_DONE_SQL, (TaskStatus.DONE.value,))
                deleted = cursor.rowcount
                await conn.execute(_RESET_SEQUENCE_SQL)
                await conn.commit()
            except sqlite3.Error as exc:
                await conn.rollback()
                msg = f"Failed to prune done tasks: {exc}"
                raise StoreError(msg) from exc
        logger.debug("Pruned %d done tasks", deleted)
        return deleted

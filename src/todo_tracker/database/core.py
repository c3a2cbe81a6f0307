"""Composed TodoDB class.

Combines the mixin classes into the final TodoDB that provides
the complete database API.
"""

from __future__ import annotations

from typing import Any

from .connection import ConnectionMixin
from .tasks import TaskMixin


class TodoDB(ConnectionMixin, TaskMixin):
    """Async SQLite store for todo tasks.

    Usage:
        async with TodoDB(path) as db:
            await db.insert_task("buy milk")
            for task in await db.list_open_tasks():
                print(task.id, task.title)
    """

    async def __aenter__(self) -> TodoDB:
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

"""Shared fixtures for store integration tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from todo_tracker.database import TodoDB
from todo_tracker.models import TaskStatus


@pytest.fixture
async def db():
    """In-memory database with migrations applied."""
    async with TodoDB(":memory:") as database:
        yield database


@pytest.fixture
async def file_db(db_path: Path):
    """File-backed database under a temporary home."""
    async with TodoDB(db_path) as database:
        yield database


@pytest.fixture
async def db_with_mixed_tasks(db):
    """Database with tasks 1-4 in statuses READY, DOING, DONE, DONE."""
    for title in ("write report", "review PR", "pay rent", "call mom"):
        await db.insert_task(title)
    await db.set_status(2, TaskStatus.DOING)
    await db.set_status(3, TaskStatus.DONE)
    await db.set_status(4, TaskStatus.DONE)
    return db

"""Task operation tests against a real SQLite store.

Covers insert/list round-trips, status updates, prune semantics
(including id compaction and atomicity), and the undecodable-row policy.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import pytest

from todo_tracker.database import TodoDB
from todo_tracker.database import tasks as tasks_module
from todo_tracker.errors import RowDecodeError, StoreError
from todo_tracker.models import TaskStatus


async def _all_rows(db: TodoDB) -> list[dict[str, object]]:
    return await db.execute_query("SELECT id, title, status FROM todos ORDER BY id")


class TestInsertAndList:
    """Round-trip between insert_task and list_open_tasks."""

    @pytest.mark.asyncio
    async def test_round_trip(self, db: TodoDB) -> None:
        """An inserted task is listed READY with its title."""
        task_id = await db.insert_task("buy milk")

        tasks = await db.list_open_tasks()

        assert len(tasks) == 1
        assert tasks[0].id == task_id == 1
        assert tasks[0].title == "buy milk"
        assert tasks[0].status is TaskStatus.READY

    @pytest.mark.asyncio
    async def test_ids_increase(self, db: TodoDB) -> None:
        """Each insert gets an id greater than every earlier id."""
        ids = [await db.insert_task(f"task {n}") for n in range(5)]
        assert ids == sorted(ids)
        assert len(set(ids)) == 5

    @pytest.mark.asyncio
    async def test_listing_in_ascending_id_order(self, db: TodoDB) -> None:
        """Tasks are listed in insertion order."""
        for title in ("first", "second", "third"):
            await db.insert_task(title)
        await db.set_status(1, TaskStatus.DOING)

        assert [t.title for t in await db.list_open_tasks()] == ["first", "second", "third"]

    @pytest.mark.asyncio
    async def test_empty_title_accepted(self, db: TodoDB) -> None:
        """Titles are not validated; empty strings are stored as-is."""
        await db.insert_task("")
        assert [t.title for t in await db.list_open_tasks()] == [""]

    @pytest.mark.asyncio
    async def test_created_at_is_recent_local_time(self, db: TodoDB) -> None:
        """created_at is an aware datetime close to now."""
        await db.insert_task("timed")

        (task,) = await db.list_open_tasks()

        assert task.created_at.tzinfo is not None
        age = datetime.now(timezone.utc) - task.created_at
        assert timedelta(seconds=-2) < age < timedelta(seconds=10)

    @pytest.mark.asyncio
    async def test_listing_is_read_only(self, db_with_mixed_tasks: TodoDB) -> None:
        """Listing does not change any row."""
        before = await _all_rows(db_with_mixed_tasks)
        await db_with_mixed_tasks.list_open_tasks()
        assert await _all_rows(db_with_mixed_tasks) == before


class TestSetStatus:
    """Tests for set_status()."""

    @pytest.mark.asyncio
    async def test_done_hides_and_ready_restores(self, db: TodoDB) -> None:
        """DONE tasks leave the listing and come back when reset to READY."""
        task_id = await db.insert_task("toggle me")

        assert await db.set_status(task_id, TaskStatus.DONE) is True
        assert await db.list_open_tasks() == []

        assert await db.set_status(task_id, TaskStatus.READY) is True
        assert [t.id for t in await db.list_open_tasks()] == [task_id]

    @pytest.mark.asyncio
    async def test_any_transition_allowed(self, db: TodoDB) -> None:
        """No transition is forbidden."""
        task_id = await db.insert_task("jump around")
        for status in (TaskStatus.DONE, TaskStatus.DOING, TaskStatus.READY, TaskStatus.DONE):
            assert await db.set_status(task_id, status) is True
        rows = await _all_rows(db)
        assert rows[0]["status"] == "DONE"

    @pytest.mark.asyncio
    async def test_stores_canonical_token(self, db: TodoDB) -> None:
        """The stored value is the enum token."""
        task_id = await db.insert_task("in progress")
        await db.set_status(task_id, TaskStatus.DOING)
        (task,) = await db.list_open_tasks()
        assert task.status is TaskStatus.DOING
        assert (await _all_rows(db))[0]["status"] == "DOING"

    @pytest.mark.asyncio
    async def test_unknown_id_is_noop(self, db_with_mixed_tasks: TodoDB) -> None:
        """Updating a missing id succeeds and changes nothing."""
        before = await _all_rows(db_with_mixed_tasks)

        assert await db_with_mixed_tasks.set_status(999, TaskStatus.DONE) is False

        assert await _all_rows(db_with_mixed_tasks) == before


    @pytest.mark.asyncio
    async def test_id_beyond_integer_range_raises_store_error(self, db: TodoDB) -> None:
        """Ids SQLite cannot bind surface as StoreError, not OverflowError."""
        await db.insert_task("safe")

        with pytest.raises(StoreError, match="Failed to update task"):
            await db.set_status(2**63, TaskStatus.DONE)

        assert (await _all_rows(db))[0]["status"] == "READY"


class TestPruneDone:
    """Tests for prune_done()."""

    @pytest.mark.asyncio
    async def test_removes_only_done(self, db_with_mixed_tasks: TodoDB) -> None:
        """Exactly the DONE rows are deleted; the rest keep their ids."""
        deleted = await db_with_mixed_tasks.prune_done()

        assert deleted == 2
        assert await _all_rows(db_with_mixed_tasks) == [
            {"id": 1, "title": "write report", "status": "READY"},
            {"id": 2, "title": "review PR", "status": "DOING"},
        ]

    @pytest.mark.asyncio
    async def test_next_id_follows_remaining_max(self, db_with_mixed_tasks: TodoDB) -> None:
        """After pruning ids 3 and 4, the next task reuses id 3."""
        await db_with_mixed_tasks.prune_done()

        assert await db_with_mixed_tasks.insert_task("after prune") == 3

    @pytest.mark.asyncio
    async def test_next_id_restarts_when_table_empty(self, db: TodoDB) -> None:
        """Pruning every task restarts ids at 1."""
        for title in ("a", "b", "c"):
            task_id = await db.insert_task(title)
            await db.set_status(task_id, TaskStatus.DONE)

        assert await db.prune_done() == 3
        assert await db.insert_task("fresh start") == 1

    @pytest.mark.asyncio
    async def test_gap_below_max_is_not_refilled(self, db: TodoDB) -> None:
        """Only the tail is compacted; holes below the max stay."""
        for title in ("a", "b", "c"):
            await db.insert_task(title)
        await db.set_status(2, TaskStatus.DONE)

        await db.prune_done()

        assert await db.insert_task("d") == 4

    @pytest.mark.asyncio
    async def test_without_done_tasks_changes_nothing(self, db: TodoDB) -> None:
        """Pruning with nothing DONE deletes nothing and keeps the counter."""
        await db.insert_task("a")
        await db.insert_task("b")

        assert await db.prune_done() == 0
        assert await db.insert_task("c") == 3

    @pytest.mark.asyncio
    async def test_prune_on_fresh_database(self, db: TodoDB) -> None:
        """Pruning before any insert is a harmless no-op."""
        assert await db.prune_done() == 0
        assert await db.insert_task("first") == 1

    @pytest.mark.asyncio
    async def test_counter_reset_failure_rolls_back_delete(
        self, db_with_mixed_tasks: TodoDB, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """If the counter reset fails, the DONE rows are not deleted."""
        before = await _all_rows(db_with_mixed_tasks)
        monkeypatch.setattr(tasks_module, "_RESET_SEQUENCE_SQL", "UPDATE no_such_table SET x = 1")

        with pytest.raises(StoreError, match="Failed to prune"):
            await db_with_mixed_tasks.prune_done()

        assert await _all_rows(db_with_mixed_tasks) == before


class TestUndecodableRows:
    """Rows that cannot become a Task are skipped or raised on."""

    @pytest.fixture
    async def db_with_bad_row(self, db: TodoDB) -> TodoDB:
        await db.insert_task("good one")
        assert db._conn is not None
        await db._conn.execute(
            "INSERT INTO todos (title, status, created_at) VALUES (?, ?, ?)",
            ("bad one", "BOGUS", "2024-01-01 00:00:00"),
        )
        await db._conn.execute(
            "INSERT INTO todos (title, status, created_at) VALUES (?, ?, ?)",
            ("bad date", "READY", "not a timestamp"),
        )
        await db._conn.commit()
        await db.insert_task("good two")
        return db

    @pytest.mark.asyncio
    async def test_skipped_and_logged_by_default(
        self, db_with_bad_row: TodoDB, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Bad rows are dropped with a warning and good rows are still listed."""
        with caplog.at_level(logging.WARNING, logger="todo_tracker.database.tasks"):
            tasks = await db_with_bad_row.list_open_tasks()

        assert [t.title for t in tasks] == ["good one", "good two"]
        skipped = [r for r in caplog.records if "Skipping undecodable" in r.getMessage()]
        assert len(skipped) == 2

    @pytest.mark.asyncio
    async def test_strict_mode_raises(self, db_with_bad_row: TodoDB) -> None:
        """strict=True surfaces the first bad row."""
        with pytest.raises(RowDecodeError) as exc_info:
            await db_with_bad_row.list_open_tasks(strict=True)

        assert exc_info.value.row["title"] == "bad one"

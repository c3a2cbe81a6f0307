"""Domain models for the todo tracker.

Defines the task lifecycle status and the Task record returned by the store.

The status lifecycle has no enforced transitions:
    READY <-> DOING <-> DONE

Only DONE tasks are hidden from listings and removed by prune.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class TaskStatus(Enum):
    """Task lifecycle status.

    The enum value is the canonical token. It is written to the database
    and rendered back to the user unchanged, so every other module derives
    its strings from here.

    - READY: Initial state for every new task
    - DOING: Work in progress
    - DONE: Finished, hidden from listings and eligible for prune
    """

    READY = "READY"
    DOING = "DOING"
    DONE = "DONE"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, token: str) -> TaskStatus:
        """Look up a status by token, ignoring case.

        Args:
            token: Status token such as "done" or "DONE".

        Returns:
            The matching TaskStatus.

        Raises:
            ValueError: If the token is not a known status.
        """
        try:
            return cls(token.strip().upper())
        except ValueError:
            msg = f"Invalid status: {token!r}. Must be one of {cls.choices()}"
            raise ValueError(msg) from None

    @classmethod
    def choices(cls) -> list[str]:
        """Lowercase tokens accepted on the command line."""
        return [status.value.lower() for status in cls]


@dataclass(frozen=True)
class Task:
    """A single stored task.

    Attributes:
        id: Store-assigned identifier, ascending in insertion order.
        created_at: Insertion time as a timezone-aware local datetime.
        title: User-supplied text, stored as given.
        status: Current lifecycle status.
    """

    id: int
    created_at: datetime
    title: str
    status: TaskStatus = TaskStatus.READY

    @property
    def is_open(self) -> bool:
        """Whether the task still shows up in listings."""
        return self.status is not TaskStatus.DONE

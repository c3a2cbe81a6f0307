"""Root conftest.py for pytest configuration.

Adds project root to sys.path so test modules are importable by dotted path
in monkeypatch.setattr calls, and provides fixtures shared by every suite.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from click.testing import CliRunner

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Database file inside a not-yet-created storage directory."""
    return tmp_path / ".todo" / "todo.db"


@pytest.fixture
def runner(monkeypatch: pytest.MonkeyPatch) -> CliRunner:
    """CliRunner with TODO_DB cleared so tests never touch the real home."""
    monkeypatch.delenv("TODO_DB", raising=False)
    return CliRunner()

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from clioboard.config import get_settings
from clioboard.db import get_store
from clioboard.models.common import Column
from clioboard.models.notes import Note
from clioboard.models.routines import Routine
from clioboard.models.tasks import ListItem, Task, TaskKind

NOW = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

SAMPLE_TASK = Task(
    id="task123", title="Buy milk", column_name=Column.TODAY, position=0,
    created_at=NOW, updated_at=NOW,
)

SAMPLE_CHECKLIST = Task(
    id="task456", title="Costco", kind=TaskKind.CHECKLIST, column_name=Column.TOMORROW, position=0,
    created_at=NOW, updated_at=NOW,
    items=[ListItem(id="item1", task_id="task456", title="Milk", position=0, created_at=NOW)],
)

SAMPLE_NOTE = Note(
    id="note123", title="Idea", content="buy milk", column_position=1,
    created_at=NOW, updated_at=NOW,
)

SAMPLE_ROUTINE = Routine(id="routine123", title="Errands", created_at=NOW, updated_at=NOW)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    get_store.cache_clear()
    yield
    get_settings.cache_clear()
    get_store.cache_clear()


@pytest.fixture
def store(tmp_path, monkeypatch):
    """A fresh SQLite board for each test."""
    monkeypatch.setenv("CLIO_DB_FILE", str(tmp_path / "board.db"))
    get_settings.cache_clear()
    get_store.cache_clear()
    return get_store()


@pytest.fixture
def api_client():
    """FastAPI TestClient for router tests."""
    from clioboard.main import api
    return TestClient(api)


def column_titles(store, column: str) -> list[tuple[str, int]]:
    """(title, position) pairs of the active tasks in a column, in board order."""
    with store.connection() as conn:
        rows = conn.execute(
            "SELECT title, position FROM tasks WHERE column_name = ? AND archived = 0 ORDER BY position",
            (column,),
        ).fetchall()
    return [(r["title"], r["position"]) for r in rows]

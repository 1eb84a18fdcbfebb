"""SQLite store backing the board.

Every mutation runs inside ``Store.transaction()``, which takes the database
write lock up front (``BEGIN IMMEDIATE``) so that read-then-write sequences
such as position shifts and checklist kind flips cannot interleave with
another writer.
"""

import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path

from clioboard.config import get_settings
from clioboard.exceptions import StoreError

logger = logging.getLogger(__name__)

BUSY_TIMEOUT_SECONDS = 10.0

SCHEMA = """
CREATE TABLE IF NOT EXISTS routines (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    description TEXT,
    color TEXT NOT NULL DEFAULT '#3498db',
    icon TEXT NOT NULL DEFAULT '📌',
    status TEXT NOT NULL DEFAULT 'active' CHECK (status IN ('active', 'paused', 'completed')),
    achievable INTEGER NOT NULL DEFAULT 0,
    pause_until TEXT,
    archived INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    archived_at TEXT
);

CREATE TABLE IF NOT EXISTS tasks (
    id TEXT PRIMARY KEY,
    routine_id TEXT REFERENCES routines(id) ON DELETE SET NULL,
    title TEXT NOT NULL,
    notes TEXT,
    kind TEXT NOT NULL DEFAULT 'card' CHECK (kind IN ('card', 'checklist')),
    completed INTEGER NOT NULL DEFAULT 0,
    archived INTEGER NOT NULL DEFAULT 0,
    column_name TEXT NOT NULL DEFAULT 'today'
        CHECK (column_name IN ('today', 'tomorrow', 'this_week', 'horizon')),
    position INTEGER NOT NULL DEFAULT 0 CHECK (position >= 0),
    due_date TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    completed_at TEXT,
    archived_at TEXT
);

CREATE TABLE IF NOT EXISTS list_items (
    id TEXT PRIMARY KEY,
    task_id TEXT NOT NULL REFERENCES tasks(id) ON DELETE CASCADE,
    title TEXT NOT NULL,
    completed INTEGER NOT NULL DEFAULT 0,
    position INTEGER NOT NULL DEFAULT 0 CHECK (position >= 0),
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS notes (
    id TEXT PRIMARY KEY,
    title TEXT,
    content TEXT NOT NULL,
    author TEXT NOT NULL DEFAULT 'user' CHECK (author IN ('user', 'agent')),
    source TEXT NOT NULL DEFAULT 'manual'
        CHECK (source IN ('manual', 'voice', 'conversation', 'claude_api')),
    column_position INTEGER NOT NULL DEFAULT 1 CHECK (column_position BETWEEN 1 AND 4),
    task_id TEXT REFERENCES tasks(id) ON DELETE SET NULL,
    routine_id TEXT REFERENCES routines(id) ON DELETE SET NULL,
    archived INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    archived_at TEXT
);

CREATE TABLE IF NOT EXISTS audit_log (
    id TEXT PRIMARY KEY,
    actor TEXT NOT NULL CHECK (actor IN ('user', 'agent')),
    action TEXT NOT NULL,
    entity_type TEXT NOT NULL,
    entity_id TEXT NOT NULL,
    previous_state TEXT,
    new_state TEXT,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_tasks_column ON tasks (column_name, archived, position);
CREATE INDEX IF NOT EXISTS idx_tasks_routine ON tasks (routine_id);
CREATE INDEX IF NOT EXISTS idx_list_items_task ON list_items (task_id, position);
CREATE INDEX IF NOT EXISTS idx_notes_active ON notes (archived, column_position, created_at);
CREATE INDEX IF NOT EXISTS idx_audit_log_entity ON audit_log (entity_type, entity_id, created_at);
"""


def utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    return str(uuid.uuid4())


class Store:
    """Opens short-lived connections to one SQLite file."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()
        logger.info(f"Initialized store at {self.db_path}")

    def _connect(self) -> sqlite3.Connection:
        # isolation_level=None: transactions are opened explicitly in transaction()
        conn = sqlite3.connect(str(self.db_path), timeout=BUSY_TIMEOUT_SECONDS, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute("PRAGMA journal_mode = WAL")
        return conn

    def _init_schema(self) -> None:
        conn = self._connect()
        try:
            conn.executescript(SCHEMA)
        except sqlite3.Error as e:
            raise StoreError(f"Could not initialise schema: {e}") from e
        finally:
            conn.close()

    @contextmanager
    def connection(self):
        """Connection for reads outside of a write transaction."""
        conn = self._connect()
        try:
            yield conn
        except sqlite3.Error as e:
            raise StoreError(f"Database error: {e}") from e
        finally:
            conn.close()

    @contextmanager
    def transaction(self):
        """All-or-nothing unit of work.

        Commits when the block exits cleanly. Any exception rolls the whole
        transaction back; ``sqlite3.Error`` is re-raised as ``StoreError``,
        everything else propagates unchanged.
        """
        conn = self._connect()
        try:
            conn.execute("BEGIN IMMEDIATE")
            yield conn
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise StoreError(f"Database error: {e}") from e
        except BaseException:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
        finally:
            conn.close()


@lru_cache
def get_store() -> Store:
    return Store(get_settings().db_file)

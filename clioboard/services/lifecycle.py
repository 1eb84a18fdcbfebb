"""Completion and archive state shared by tasks, notes and routines.

``completed`` and ``archived`` are independent axes. Archiving never requires
completion, and restoring never touches ``completed`` (or a routine's
``status``). All transitions are idempotent and run on the connection of an
open ``Store.transaction()``.

Tasks additionally leave their column's ordering when archived and rejoin it
at the end when restored, so the active partition stays dense.
"""

import logging
import sqlite3
from dataclasses import dataclass

from clioboard.db import utcnow
from clioboard.exceptions import NotFoundError
from clioboard.services import ledger
from clioboard.services.ledger import Partition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Entity:
    name: str
    table: str


TASK = Entity("Task", "tasks")
NOTE = Entity("Note", "notes")
ROUTINE = Entity("Routine", "routines")


def fetch(conn: sqlite3.Connection, entity: Entity, entity_id: str) -> sqlite3.Row:
    row = conn.execute(f"SELECT * FROM {entity.table} WHERE id = ?", (entity_id,)).fetchone()
    if row is None:
        raise NotFoundError(f"{entity.name} {entity_id} not found")
    return row


def complete(conn: sqlite3.Connection, task_id: str) -> bool:
    """Mark a task completed. Returns False if it already was."""
    row = fetch(conn, TASK, task_id)
    if row["completed"]:
        return False
    now = utcnow()
    conn.execute(
        "UPDATE tasks SET completed = 1, completed_at = ?, updated_at = ? WHERE id = ?",
        (now, now, task_id),
    )
    return True


def reopen(conn: sqlite3.Connection, task_id: str) -> bool:
    """Put a completed task back to pending. Leaves ``archived`` alone."""
    row = fetch(conn, TASK, task_id)
    if not row["completed"]:
        return False
    conn.execute(
        "UPDATE tasks SET completed = 0, completed_at = NULL, updated_at = ? WHERE id = ?",
        (utcnow(), task_id),
    )
    return True


def archive(conn: sqlite3.Connection, entity: Entity, entity_id: str) -> bool:
    """Archive from any completion state. Returns False if already archived."""
    row = fetch(conn, entity, entity_id)
    if row["archived"]:
        return False
    now = utcnow()
    conn.execute(
        f"UPDATE {entity.table} SET archived = 1, archived_at = ?, updated_at = ? WHERE id = ?",
        (now, now, entity_id),
    )
    if entity is TASK:
        ledger.remove_from(conn, Partition.column(row["column_name"]), row["position"])
    return True


def restore(conn: sqlite3.Connection, entity: Entity, entity_id: str) -> bool:
    """Un-archive. Completion (and routine status) is preserved. Returns False if not archived."""
    row = fetch(conn, entity, entity_id)
    if not row["archived"]:
        return False
    now = utcnow()
    if entity is TASK:
        position = ledger.append(conn, Partition.column(row["column_name"]))
        conn.execute("UPDATE tasks SET position = ? WHERE id = ?", (position, entity_id))
    conn.execute(
        f"UPDATE {entity.table} SET archived = 0, archived_at = NULL, updated_at = ? WHERE id = ?",
        (now, entity_id),
    )
    return True

"""List items and the card/checklist kind they imply.

A task is a checklist exactly when it owns at least one list item. The kind
is flipped here, inside the caller's transaction, and nowhere else:

  card -> checklist   when the first item is inserted
  checklist -> card   when the last item is removed

Checking an item off never changes the kind.
"""

import logging
import sqlite3

from clioboard.db import new_id, utcnow
from clioboard.exceptions import NotFoundError, ValidationFailedError
from clioboard.models.tasks import ListItem, TaskKind
from clioboard.services import ledger
from clioboard.services.ledger import Partition

logger = logging.getLogger(__name__)


def _task_kind(conn: sqlite3.Connection, task_id: str) -> TaskKind:
    row = conn.execute("SELECT kind FROM tasks WHERE id = ?", (task_id,)).fetchone()
    if row is None:
        raise NotFoundError(f"Task {task_id} not found")
    return TaskKind(row["kind"])


def _set_kind(conn: sqlite3.Connection, task_id: str, kind: TaskKind) -> None:
    conn.execute(
        "UPDATE tasks SET kind = ?, updated_at = ? WHERE id = ?",
        (kind.value, utcnow(), task_id),
    )
    logger.debug(f"Task {task_id} is now a {kind.value}")


def _fetch_item(conn: sqlite3.Connection, task_id: str, item_id: str) -> sqlite3.Row:
    row = conn.execute(
        "SELECT * FROM list_items WHERE id = ? AND task_id = ?", (item_id, task_id)
    ).fetchone()
    if row is None:
        raise NotFoundError(f"Item {item_id} not found on task {task_id}")
    return row


def load_items(conn: sqlite3.Connection, task_id: str) -> list[ListItem]:
    rows = conn.execute(
        "SELECT * FROM list_items WHERE task_id = ? ORDER BY position", (task_id,)
    ).fetchall()
    return [ListItem(**dict(r)) for r in rows]


def add_item(conn: sqlite3.Connection, task_id: str, title: str) -> str:
    """Append an item to the task, turning a card into a checklist. Returns the item id."""
    title = title.strip()
    if not title:
        raise ValidationFailedError("Item title must not be blank")
    if _task_kind(conn, task_id) == TaskKind.CARD:
        _set_kind(conn, task_id, TaskKind.CHECKLIST)
    partition = Partition.checklist(task_id)
    item_id = new_id()
    conn.execute(
        "INSERT INTO list_items (id, task_id, title, completed, position, created_at) "
        "VALUES (?, ?, ?, 0, ?, ?)",
        (item_id, task_id, title, ledger.append(conn, partition), utcnow()),
    )
    return item_id


def update_item(conn: sqlite3.Connection, task_id: str, item_id: str, changes: dict) -> None:
    """Apply a title / completed / position patch to one item."""
    _task_kind(conn, task_id)
    row = _fetch_item(conn, task_id, item_id)
    if "title" in changes:
        title = (changes["title"] or "").strip()
        if not title:
            raise ValidationFailedError("Item title must not be blank")
        conn.execute("UPDATE list_items SET title = ? WHERE id = ?", (title, item_id))
    if changes.get("completed") is not None:
        conn.execute(
            "UPDATE list_items SET completed = ? WHERE id = ?",
            (int(changes["completed"]), item_id),
        )
    if changes.get("position") is not None:
        partition = Partition.checklist(task_id)
        old = row["position"]
        new = ledger.clamp(changes["position"], ledger.count(conn, partition) - 1)
        if new != old:
            ledger.shift_within(conn, partition, item_id, old, new)
            conn.execute("UPDATE list_items SET position = ? WHERE id = ?", (new, item_id))
            ledger.renumber(conn, partition)


def remove_item(conn: sqlite3.Connection, task_id: str, item_id: str) -> int:
    """Delete an item, turning the task back into a card if it was the last one.

    The recount and the flip happen in the caller's transaction, after the
    delete. Returns the number of items left.
    """
    kind = _task_kind(conn, task_id)
    row = _fetch_item(conn, task_id, item_id)
    partition = Partition.checklist(task_id)
    conn.execute("DELETE FROM list_items WHERE id = ?", (item_id,))
    ledger.remove_from(conn, partition, row["position"])
    remaining = ledger.count(conn, partition)
    if remaining == 0 and kind == TaskKind.CHECKLIST:
        _set_kind(conn, task_id, TaskKind.CARD)
    return remaining

import logging
import sqlite3
from datetime import date

from clioboard import audit
from clioboard.db import get_store, new_id, utcnow
from clioboard.exceptions import InvalidTransitionError, NotFoundError, ValidationFailedError
from clioboard.models.common import Actor, Column
from clioboard.models.tasks import Board, ListItem, Task, TaskKind
from clioboard.services import checklist, ledger, lifecycle
from clioboard.services.ledger import Partition

logger = logging.getLogger(__name__)


def _row_to_task(conn: sqlite3.Connection, row: sqlite3.Row) -> Task:
    task = Task(**dict(row))
    if task.kind == TaskKind.CHECKLIST:
        task.items = checklist.load_items(conn, task.id)
    return task


def load_task(conn: sqlite3.Connection, task_id: str) -> Task:
    return _row_to_task(conn, lifecycle.fetch(conn, lifecycle.TASK, task_id))


def _check_routine(conn: sqlite3.Connection, routine_id: str | None) -> None:
    if routine_id is None:
        return
    if conn.execute("SELECT 1 FROM routines WHERE id = ?", (routine_id,)).fetchone() is None:
        raise NotFoundError(f"Routine {routine_id} not found")


def _clean_title(title: str) -> str:
    title = title.strip()
    if not title:
        raise ValidationFailedError("Title must not be blank")
    return title


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value else None


def insert_task(
    conn: sqlite3.Connection,
    title: str,
    column_name: Column = Column.TODAY,
    notes: str | None = None,
    due_date: date | None = None,
    routine_id: str | None = None,
) -> str:
    """Write a new card at the end of its column. Returns the new task id."""
    column_name = Column(column_name)
    _check_routine(conn, routine_id)
    task_id = new_id()
    now = utcnow()
    conn.execute(
        "INSERT INTO tasks (id, routine_id, title, notes, kind, completed, archived, "
        "column_name, position, due_date, created_at, updated_at) "
        "VALUES (?, ?, ?, ?, 'card', 0, 0, ?, ?, ?, ?, ?)",
        (
            task_id, routine_id, _clean_title(title), notes, column_name.value,
            ledger.append(conn, Partition.column(column_name)), _iso(due_date), now, now,
        ),
    )
    return task_id


def _move(conn: sqlite3.Connection, task_id: str, column_name: Column, position: int | None) -> bool:
    """Reposition a task, possibly across columns. Returns False for a no-op.

    Cross-column moves open a gap at the destination, close the gap at the
    source, write the row, then renumber both columns.
    """
    row = lifecycle.fetch(conn, lifecycle.TASK, task_id)
    if row["archived"]:
        raise InvalidTransitionError(f"Task {task_id} is archived and cannot be moved")
    old_column, old_position = Column(row["column_name"]), row["position"]
    column_name = Column(column_name)
    source = Partition.column(old_column)

    if column_name == old_column:
        new_position = ledger.clamp(position, ledger.count(conn, source) - 1)
        if new_position == old_position:
            return False
        ledger.shift_within(conn, source, task_id, old_position, new_position)
        conn.execute(
            "UPDATE tasks SET position = ?, updated_at = ? WHERE id = ?",
            (new_position, utcnow(), task_id),
        )
        ledger.renumber(conn, source)
    else:
        destination = Partition.column(column_name)
        new_position = ledger.clamp(position, ledger.count(conn, destination))
        ledger.insert_at(conn, destination, new_position)
        ledger.remove_from(conn, source, old_position)
        conn.execute(
            "UPDATE tasks SET column_name = ?, position = ?, updated_at = ? WHERE id = ?",
            (column_name.value, new_position, utcnow(), task_id),
        )
        ledger.renumber(conn, destination)
        ledger.renumber(conn, source)

    logger.info(f"Moved task {task_id} from {old_column.value}[{old_position}] to {column_name.value}[{new_position}]")
    return True


# --- Reads ---


def get_task(task_id: str) -> Task:
    with get_store().connection() as conn:
        return load_task(conn, task_id)


def list_tasks(column_name: Column | None = None, routine_id: str | None = None) -> list[Task]:
    """Active tasks ordered by column, then position."""
    query = "SELECT * FROM tasks WHERE archived = 0"
    params: list = []
    if column_name:
        query += " AND column_name = ?"
        params.append(Column(column_name).value)
    if routine_id:
        query += " AND routine_id = ?"
        params.append(routine_id)
    query += " ORDER BY column_name, position"
    with get_store().connection() as conn:
        return [_row_to_task(conn, r) for r in conn.execute(query, params).fetchall()]


def list_archived_tasks(column_name: Column | None = None, routine_id: str | None = None) -> list[Task]:
    """Archived tasks, most recently archived first."""
    query = "SELECT * FROM tasks WHERE archived = 1"
    params: list = []
    if column_name:
        query += " AND column_name = ?"
        params.append(Column(column_name).value)
    if routine_id:
        query += " AND routine_id = ?"
        params.append(routine_id)
    query += " ORDER BY archived_at DESC"
    with get_store().connection() as conn:
        return [_row_to_task(conn, r) for r in conn.execute(query, params).fetchall()]


def get_board() -> Board:
    board = Board()
    for task in list_tasks():
        getattr(board, task.column_name.value).append(task)
    return board


def count_active_tasks() -> int:
    with get_store().connection() as conn:
        return conn.execute("SELECT COUNT(*) FROM tasks WHERE archived = 0").fetchone()[0]


# --- Mutations ---


def create_task(
    title: str,
    column_name: Column = Column.TODAY,
    notes: str | None = None,
    due_date: date | None = None,
    routine_id: str | None = None,
    actor: Actor = "user",
) -> Task:
    """Create a card at the end of the target column."""
    with get_store().transaction() as conn:
        task_id = insert_task(conn, title, column_name, notes, due_date, routine_id)
        task = load_task(conn, task_id)
    logger.info(f"Created task {task.id} in {task.column_name.value}[{task.position}]")
    audit.record(actor, "create_task", "task", task.id, None, task)
    return task


def update_task(task_id: str, changes: dict, actor: Actor = "user") -> Task:
    """Apply a patch of title, notes, due_date, routine_id, completed, column_name, position.

    Only keys present in ``changes`` are touched. Column or position changes
    go through the same reordering as move_task.
    """
    if not changes:
        raise ValidationFailedError("No valid fields to update")
    with get_store().transaction() as conn:
        before = load_task(conn, task_id)
        fields = {}
        if "title" in changes:
            fields["title"] = _clean_title(changes["title"] or "")
        if "notes" in changes:
            fields["notes"] = changes["notes"]
        if "due_date" in changes:
            fields["due_date"] = _iso(changes["due_date"])
        if "routine_id" in changes:
            _check_routine(conn, changes["routine_id"])
            fields["routine_id"] = changes["routine_id"]
        if fields:
            assignments = ", ".join(f"{name} = ?" for name in fields)
            conn.execute(
                f"UPDATE tasks SET {assignments}, updated_at = ? WHERE id = ?",
                (*fields.values(), utcnow(), task_id),
            )

        if changes.get("completed") is True:
            lifecycle.complete(conn, task_id)
        elif changes.get("completed") is False:
            lifecycle.reopen(conn, task_id)

        new_column = changes.get("column_name")
        new_position = changes.get("position")
        if new_position is not None or (new_column and Column(new_column) != before.column_name):
            _move(conn, task_id, new_column or before.column_name, new_position)

        task = load_task(conn, task_id)
    logger.info(f"Updated task {task_id}: {sorted(changes)}")
    audit.record(actor, "update_task", "task", task_id, before, task)
    return task


def move_task(task_id: str, column_name: Column, position: int | None = None, actor: Actor = "user") -> Task:
    """Move a task to ``position`` in ``column_name``, or to the end of it."""
    with get_store().transaction() as conn:
        before = load_task(conn, task_id)
        moved = _move(conn, task_id, column_name, position)
        task = load_task(conn, task_id)
    if moved:
        audit.record(actor, "move_task", "task", task_id, before, task)
    return task


def complete_task(task_id: str, actor: Actor = "user") -> Task:
    with get_store().transaction() as conn:
        before = load_task(conn, task_id)
        changed = lifecycle.complete(conn, task_id)
        task = load_task(conn, task_id)
    if changed:
        logger.info(f"Completed task {task_id}")
        audit.record(actor, "complete_task", "task", task_id, before, task)
    return task


def archive_task(task_id: str, actor: Actor = "user") -> Task:
    """Archive a task. Its list items stay attached and come back on restore."""
    with get_store().transaction() as conn:
        before = load_task(conn, task_id)
        changed = lifecycle.archive(conn, lifecycle.TASK, task_id)
        task = load_task(conn, task_id)
    if changed:
        logger.info(f"Archived task {task_id}")
        audit.record(actor, "archive_task", "task", task_id, before, task)
    return task


def restore_task(task_id: str, actor: Actor = "user") -> Task:
    """Restore a task to the end of its column. ``completed`` is left as it was."""
    with get_store().transaction() as conn:
        before = load_task(conn, task_id)
        changed = lifecycle.restore(conn, lifecycle.TASK, task_id)
        task = load_task(conn, task_id)
    if changed:
        logger.info(f"Restored task {task_id} to {task.column_name.value}[{task.position}]")
        audit.record(actor, "restore_task", "task", task_id, before, task)
    return task


# --- List items ---


def list_items(task_id: str) -> list[ListItem]:
    with get_store().connection() as conn:
        lifecycle.fetch(conn, lifecycle.TASK, task_id)
        return checklist.load_items(conn, task_id)


def add_item(task_id: str, title: str, actor: Actor = "user") -> Task:
    """Append a list item. The first item turns a card into a checklist."""
    with get_store().transaction() as conn:
        before = load_task(conn, task_id)
        item_id = checklist.add_item(conn, task_id, title)
        task = load_task(conn, task_id)
    logger.info(f"Added item {item_id} to task {task_id}")
    audit.record(actor, "add_item", "task", task_id, before, task)
    return task


def update_item(task_id: str, item_id: str, changes: dict, actor: Actor = "user") -> Task:
    """Rename, check off or reorder a list item. Never changes the task's kind."""
    if not changes:
        raise ValidationFailedError("No valid fields to update")
    with get_store().transaction() as conn:
        before = load_task(conn, task_id)
        checklist.update_item(conn, task_id, item_id, changes)
        task = load_task(conn, task_id)
    logger.info(f"Updated item {item_id} on task {task_id}: {sorted(changes)}")
    audit.record(actor, "update_item", "task", task_id, before, task)
    return task


def remove_item(task_id: str, item_id: str, actor: Actor = "user") -> Task:
    """Delete a list item. Removing the last one turns the checklist back into a card."""
    with get_store().transaction() as conn:
        before = load_task(conn, task_id)
        remaining = checklist.remove_item(conn, task_id, item_id)
        task = load_task(conn, task_id)
    logger.info(f"Removed item {item_id} from task {task_id} ({remaining} left)")
    audit.record(actor, "remove_item", "task", task_id, before, task)
    return task

import logging
import sqlite3
from datetime import date

from clioboard import audit
from clioboard.db import get_store, new_id, utcnow
from clioboard.exceptions import InvalidTransitionError, ValidationFailedError
from clioboard.models.common import Actor, Column
from clioboard.models.notes import ConvertNoteResult, Note, NoteSource
from clioboard.services import lifecycle
from clioboard.services import tasks as tasks_service

logger = logging.getLogger(__name__)

DEFAULT_TASK_TITLE = "Task from note"


def _load_note(conn: sqlite3.Connection, note_id: str) -> Note:
    return Note(**dict(lifecycle.fetch(conn, lifecycle.NOTE, note_id)))


def _check_routine(conn: sqlite3.Connection, routine_id: str | None) -> None:
    if routine_id is not None:
        lifecycle.fetch(conn, lifecycle.ROUTINE, routine_id)


def _check_column(column_position: int) -> int:
    if not 1 <= column_position <= 4:
        raise ValidationFailedError("Column position must be between 1 and 4")
    return column_position


def _check_not_converted(note: Note, action: str) -> None:
    if note.task_id is not None:
        raise InvalidTransitionError(
            f"Note {note.id} was converted to task {note.task_id} and cannot be {action}"
        )


def _mark_converted(conn: sqlite3.Connection, note_id: str, task_id: str) -> None:
    now = utcnow()
    conn.execute(
        "UPDATE notes SET archived = 1, archived_at = ?, task_id = ?, updated_at = ? WHERE id = ?",
        (now, task_id, now, note_id),
    )


# --- Reads ---


def get_note(note_id: str) -> Note:
    with get_store().connection() as conn:
        return _load_note(conn, note_id)


def list_notes(
    author: Actor | None = None,
    column_position: int | None = None,
    routine_id: str | None = None,
) -> list[Note]:
    query = "SELECT * FROM notes WHERE archived = 0"
    params: list = []
    if author:
        query += " AND author = ?"
        params.append(author)
    if column_position:
        query += " AND column_position = ?"
        params.append(column_position)
    if routine_id:
        query += " AND routine_id = ?"
        params.append(routine_id)
    query += " ORDER BY column_position, created_at DESC"
    with get_store().connection() as conn:
        return [Note(**dict(r)) for r in conn.execute(query, params).fetchall()]


def list_archived_notes() -> list[Note]:
    with get_store().connection() as conn:
        rows = conn.execute(
            "SELECT * FROM notes WHERE archived = 1 ORDER BY archived_at DESC, created_at DESC"
        ).fetchall()
    return [Note(**dict(r)) for r in rows]


# --- Mutations ---


def create_note(
    content: str,
    title: str | None = None,
    author: Actor | None = None,
    source: NoteSource = "manual",
    column_position: int | None = None,
    routine_id: str | None = None,
    actor: Actor = "user",
) -> Note:
    """Create a note. Agent notes default to column 3, user notes to column 1."""
    if not content.strip():
        raise ValidationFailedError("Note content must not be blank")
    author = author or actor
    if column_position is None:
        column_position = 3 if author == "agent" else 1
    now = utcnow()
    with get_store().transaction() as conn:
        _check_routine(conn, routine_id)
        note_id = new_id()
        conn.execute(
            "INSERT INTO notes (id, title, content, author, source, column_position, routine_id, "
            "archived, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?, 0, ?, ?)",
            (note_id, title, content, author, source, _check_column(column_position), routine_id, now, now),
        )
        note = _load_note(conn, note_id)
    logger.info(f"Created {author} note {note.id} in column {note.column_position}")
    audit.record(actor, "create_note", "note", note.id, None, note)
    return note


def update_note(note_id: str, changes: dict, actor: Actor = "user") -> Note:
    """Apply a patch of title, content, column_position, routine_id."""
    if not changes:
        raise ValidationFailedError("No valid fields to update")
    fields = {}
    if "title" in changes:
        fields["title"] = changes["title"]
    if "content" in changes:
        if not (changes["content"] or "").strip():
            raise ValidationFailedError("Note content must not be blank")
        fields["content"] = changes["content"]
    if changes.get("column_position") is not None:
        fields["column_position"] = _check_column(changes["column_position"])
    with get_store().transaction() as conn:
        before = _load_note(conn, note_id)
        if "routine_id" in changes:
            _check_routine(conn, changes["routine_id"])
            fields["routine_id"] = changes["routine_id"]
        if fields:
            assignments = ", ".join(f"{name} = ?" for name in fields)
            conn.execute(
                f"UPDATE notes SET {assignments}, updated_at = ? WHERE id = ?",
                (*fields.values(), utcnow(), note_id),
            )
        note = _load_note(conn, note_id)
    logger.info(f"Updated note {note_id}: {sorted(changes)}")
    audit.record(actor, "update_note", "note", note_id, before, note)
    return note


def move_note(note_id: str, column_position: int, actor: Actor = "user") -> Note:
    return update_note(note_id, {"column_position": column_position}, actor=actor)


def archive_note(note_id: str, actor: Actor = "user") -> Note:
    with get_store().transaction() as conn:
        before = _load_note(conn, note_id)
        changed = lifecycle.archive(conn, lifecycle.NOTE, note_id)
        note = _load_note(conn, note_id)
    if changed:
        logger.info(f"Archived note {note_id}")
        audit.record(actor, "archive_note", "note", note_id, before, note)
    return note


def restore_note(note_id: str, actor: Actor = "user") -> Note:
    with get_store().transaction() as conn:
        before = _load_note(conn, note_id)
        _check_not_converted(before, "restored")
        changed = lifecycle.restore(conn, lifecycle.NOTE, note_id)
        note = _load_note(conn, note_id)
    if changed:
        logger.info(f"Restored note {note_id}")
        audit.record(actor, "restore_note", "note", note_id, before, note)
    return note


def delete_note(note_id: str, actor: Actor = "user") -> None:
    """Permanently delete a note. Converted notes are kept as the record of their task."""
    with get_store().transaction() as conn:
        before = _load_note(conn, note_id)
        _check_not_converted(before, "deleted")
        conn.execute("DELETE FROM notes WHERE id = ?", (note_id,))
    logger.info(f"Deleted note {note_id}")
    audit.record(actor, "delete_note", "note", note_id, before, None)


def convert_note_to_task(
    note_id: str,
    title: str | None = None,
    column_name: Column = Column.TODAY,
    due_date: date | None = None,
    routine_id: str | None = None,
    actor: Actor = "user",
) -> ConvertNoteResult:
    """Turn a note into a new task and archive the note with a link to it.

    Both writes share one transaction: either the task exists and the note is
    archived pointing at it, or neither change is visible.
    """
    with get_store().transaction() as conn:
        note = _load_note(conn, note_id)
        _check_not_converted(note, "converted again")
        if note.archived:
            raise InvalidTransitionError(f"Note {note_id} is archived and cannot be converted")
        task_id = tasks_service.insert_task(
            conn,
            title=(title or note.title or "").strip() or DEFAULT_TASK_TITLE,
            column_name=column_name,
            notes=note.content,
            due_date=due_date,
            routine_id=routine_id or note.routine_id,
        )
        _mark_converted(conn, note_id, task_id)
        task = tasks_service.load_task(conn, task_id)
        converted = _load_note(conn, note_id)
    logger.info(f"Converted note {note_id} to task {task_id}")
    audit.record(actor, "convert_note", "note", note_id, note, converted)
    audit.record(actor, "create_task", "task", task_id, None, task)
    return ConvertNoteResult(task=task, note=converted)

import logging
import sqlite3
from datetime import datetime

from clioboard import audit
from clioboard.db import get_store, new_id, utcnow
from clioboard.exceptions import InvalidTransitionError, ValidationFailedError
from clioboard.models.common import Actor
from clioboard.models.routines import Routine, RoutineStatus
from clioboard.models.tasks import Task
from clioboard.services import lifecycle
from clioboard.services import tasks as tasks_service

logger = logging.getLogger(__name__)

# Task counts only look at tasks still on the board.
_SELECT_ROUTINE = """
    SELECT r.*,
           (SELECT COUNT(*) FROM tasks t
             WHERE t.routine_id = r.id AND t.archived = 0 AND t.completed = 0) AS pending_tasks,
           (SELECT COUNT(*) FROM tasks t
             WHERE t.routine_id = r.id AND t.archived = 0 AND t.completed = 1) AS completed_tasks
    FROM routines r
"""


def _load_routine(conn: sqlite3.Connection, routine_id: str) -> Routine:
    lifecycle.fetch(conn, lifecycle.ROUTINE, routine_id)
    row = conn.execute(_SELECT_ROUTINE + " WHERE r.id = ?", (routine_id,)).fetchone()
    return Routine(**dict(row))


def _set_status(conn: sqlite3.Connection, routine_id: str, status: RoutineStatus, pause_until: datetime | None = None) -> None:
    conn.execute(
        "UPDATE routines SET status = ?, pause_until = ?, updated_at = ? WHERE id = ?",
        (status.value, pause_until.isoformat() if pause_until else None, utcnow(), routine_id),
    )


# --- Reads ---


def get_routine(routine_id: str) -> Routine:
    with get_store().connection() as conn:
        return _load_routine(conn, routine_id)


def list_routines(status: RoutineStatus | None = None) -> list[Routine]:
    """Routines that are not archived, newest first."""
    query = _SELECT_ROUTINE + " WHERE r.archived = 0"
    params: list = []
    if status:
        query += " AND r.status = ?"
        params.append(RoutineStatus(status).value)
    query += " ORDER BY r.created_at DESC"
    with get_store().connection() as conn:
        return [Routine(**dict(r)) for r in conn.execute(query, params).fetchall()]


def list_archived_routines() -> list[Routine]:
    with get_store().connection() as conn:
        rows = conn.execute(_SELECT_ROUTINE + " WHERE r.archived = 1 ORDER BY r.archived_at DESC").fetchall()
    return [Routine(**dict(r)) for r in rows]


def list_routine_tasks(routine_id: str) -> list[Task]:
    """Every task linked to the routine, archived ones included."""
    with get_store().connection() as conn:
        lifecycle.fetch(conn, lifecycle.ROUTINE, routine_id)
        ids = conn.execute(
            "SELECT id FROM tasks WHERE routine_id = ? ORDER BY archived, column_name, position",
            (routine_id,),
        ).fetchall()
        return [tasks_service.load_task(conn, r["id"]) for r in ids]


# --- Mutations ---


def create_routine(
    title: str,
    description: str | None = None,
    color: str = "#3498db",
    icon: str = "📌",
    achievable: bool = False,
    actor: Actor = "user",
) -> Routine:
    title = title.strip()
    if not title:
        raise ValidationFailedError("Title must not be blank")
    now = utcnow()
    with get_store().transaction() as conn:
        routine_id = new_id()
        conn.execute(
            "INSERT INTO routines (id, title, description, color, icon, status, achievable, "
            "archived, created_at, updated_at) VALUES (?, ?, ?, ?, ?, 'active', ?, 0, ?, ?)",
            (routine_id, title, description, color, icon, int(achievable), now, now),
        )
        routine = _load_routine(conn, routine_id)
    logger.info(f"Created routine {routine.id}")
    audit.record(actor, "create_routine", "routine", routine.id, None, routine)
    return routine


def update_routine(routine_id: str, changes: dict, actor: Actor = "user") -> Routine:
    """Apply a patch of title, description, color, icon, achievable."""
    if not changes:
        raise ValidationFailedError("No valid fields to update")
    fields = {}
    for name in ("title", "description", "color", "icon"):
        if name in changes:
            fields[name] = changes[name]
    if "title" in fields and not (fields["title"] or "").strip():
        raise ValidationFailedError("Title must not be blank")
    if changes.get("achievable") is not None:
        fields["achievable"] = int(changes["achievable"])
    if not fields:
        raise ValidationFailedError("No valid fields to update")
    with get_store().transaction() as conn:
        before = _load_routine(conn, routine_id)
        assignments = ", ".join(f"{name} = ?" for name in fields)
        conn.execute(
            f"UPDATE routines SET {assignments}, updated_at = ? WHERE id = ?",
            (*fields.values(), utcnow(), routine_id),
        )
        routine = _load_routine(conn, routine_id)
    logger.info(f"Updated routine {routine_id}: {sorted(fields)}")
    audit.record(actor, "update_routine", "routine", routine_id, before, routine)
    return routine


def pause_routine(routine_id: str, pause_until: datetime | None = None, actor: Actor = "user") -> Routine:
    with get_store().transaction() as conn:
        before = _load_routine(conn, routine_id)
        if before.status == RoutineStatus.COMPLETED:
            raise InvalidTransitionError(f"Routine {routine_id} is completed and cannot be paused")
        _set_status(conn, routine_id, RoutineStatus.PAUSED, pause_until)
        routine = _load_routine(conn, routine_id)
    logger.info(f"Paused routine {routine_id} until {pause_until}")
    audit.record(actor, "pause_routine", "routine", routine_id, before, routine)
    return routine


def resume_routine(routine_id: str, actor: Actor = "user") -> Routine:
    with get_store().transaction() as conn:
        before = _load_routine(conn, routine_id)
        if before.status == RoutineStatus.COMPLETED:
            raise InvalidTransitionError(f"Routine {routine_id} is completed and cannot be resumed")
        _set_status(conn, routine_id, RoutineStatus.ACTIVE)
        routine = _load_routine(conn, routine_id)
    logger.info(f"Resumed routine {routine_id}")
    audit.record(actor, "resume_routine", "routine", routine_id, before, routine)
    return routine


def complete_routine(routine_id: str, actor: Actor = "user") -> Routine:
    """Only achievable routines can be completed."""
    with get_store().transaction() as conn:
        before = _load_routine(conn, routine_id)
        if not before.achievable:
            raise InvalidTransitionError(f"Routine {routine_id} is not marked as achievable")
        if before.status == RoutineStatus.COMPLETED:
            return before
        _set_status(conn, routine_id, RoutineStatus.COMPLETED)
        routine = _load_routine(conn, routine_id)
    logger.info(f"Completed routine {routine_id}")
    audit.record(actor, "complete_routine", "routine", routine_id, before, routine)
    return routine


def archive_routine(routine_id: str, actor: Actor = "user") -> Routine:
    """Archive a routine. Its tasks keep their reference and stay on the board."""
    with get_store().transaction() as conn:
        before = _load_routine(conn, routine_id)
        changed = lifecycle.archive(conn, lifecycle.ROUTINE, routine_id)
        routine = _load_routine(conn, routine_id)
    if changed:
        logger.info(f"Archived routine {routine_id}")
        audit.record(actor, "archive_routine", "routine", routine_id, before, routine)
    return routine


def restore_routine(routine_id: str, actor: Actor = "user") -> Routine:
    """Un-archive a routine. Its status is left as it was."""
    with get_store().transaction() as conn:
        before = _load_routine(conn, routine_id)
        changed = lifecycle.restore(conn, lifecycle.ROUTINE, routine_id)
        routine = _load_routine(conn, routine_id)
    if changed:
        logger.info(f"Restored routine {routine_id}")
        audit.record(actor, "restore_routine", "routine", routine_id, before, routine)
    return routine

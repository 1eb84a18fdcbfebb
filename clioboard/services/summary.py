"""Short, agent-sized views of the board.

Titles and bodies are cut at a word boundary so a whole response stays small
enough to drop into a model's context.
"""

import logging
import sqlite3
from datetime import date, datetime, timedelta
from typing import get_args

from clioboard.db import get_store
from clioboard.exceptions import NotFoundError, ValidationFailedError
from clioboard.models.common import Column
from clioboard.models.summary import (
    ChecklistEntry,
    NoteHit,
    RoutineHit,
    SearchResponse,
    SearchResults,
    SearchType,
    TaskBrief,
    TaskContext,
    TaskHit,
    TasksSummary,
)
from clioboard.services import checklist

logger = logging.getLogger(__name__)

SUMMARY_LIMIT = 5
FULL_LIMIT = 15
UNTITLED = "(Untitled)"


def truncate(text: str | None, max_len: int = 50) -> str | None:
    if not text or len(text) <= max_len:
        return text
    cut = text[:max_len]
    last_space = cut.rfind(" ")
    if last_space > max_len * 0.7:
        return cut[:last_space] + "..."
    return cut + "..."


def display_column(column: Column | str) -> str:
    """'this_week' -> 'This Week'."""
    return Column(column).value.replace("_", " ").title()


def _like(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _parse_columns(columns: list[str] | None) -> list[Column] | None:
    if not columns:
        return None
    try:
        return [Column(c.strip().lower().replace(" ", "_")) for c in columns]
    except ValueError:
        choices = ", ".join(c.value for c in Column)
        raise ValidationFailedError(f"Unknown column in {columns!r}; use one of {choices}") from None


# --- Search ---


def _search_tasks(conn: sqlite3.Connection, pattern: str, limit: int, summary: bool) -> list[TaskHit]:
    rows = conn.execute(
        """
        SELECT t.id, t.title, t.column_name, t.due_date, t.notes, t.updated_at,
               r.title AS routine_title
        FROM tasks t
        LEFT JOIN routines r ON t.routine_id = r.id
        WHERE t.archived = 0
          AND (t.title LIKE ? ESCAPE '\\' OR t.notes LIKE ? ESCAPE '\\')
        ORDER BY t.updated_at DESC
        LIMIT ?
        """,
        (pattern, pattern, limit),
    ).fetchall()
    hits = []
    for r in rows:
        fields = {"id": r["id"], "column": display_column(r["column_name"]), "routine": r["routine_title"]}
        if summary:
            hits.append(TaskHit(**fields, title=truncate(r["title"], 50)))
        else:
            hits.append(TaskHit(
                **fields, title=r["title"], due=r["due_date"], notes=r["notes"], updated_at=r["updated_at"],
            ))
    return hits


def _search_notes(conn: sqlite3.Connection, pattern: str, limit: int, summary: bool) -> list[NoteHit]:
    rows = conn.execute(
        """
        SELECT n.id, n.title, n.content, n.source, n.updated_at,
               r.title AS routine_title
        FROM notes n
        LEFT JOIN routines r ON n.routine_id = r.id
        WHERE n.archived = 0
          AND (n.title LIKE ? ESCAPE '\\' OR n.content LIKE ? ESCAPE '\\')
        ORDER BY n.updated_at DESC
        LIMIT ?
        """,
        (pattern, pattern, limit),
    ).fetchall()
    hits = []
    for r in rows:
        title = r["title"] or UNTITLED
        if summary:
            hits.append(NoteHit(
                id=r["id"], title=truncate(title, 40), routine=r["routine_title"],
                preview=truncate(r["content"], 50),
            ))
        else:
            hits.append(NoteHit(
                id=r["id"], title=title, routine=r["routine_title"],
                content=r["content"], source=r["source"], updated_at=r["updated_at"],
            ))
    return hits


def _search_routines(conn: sqlite3.Connection, pattern: str, limit: int, summary: bool) -> list[RoutineHit]:
    rows = conn.execute(
        """
        SELECT id, title, description, status, icon, updated_at
        FROM routines
        WHERE archived = 0
          AND (title LIKE ? ESCAPE '\\' OR description LIKE ? ESCAPE '\\')
        ORDER BY updated_at DESC
        LIMIT ?
        """,
        (pattern, pattern, limit),
    ).fetchall()
    if summary:
        return [RoutineHit(id=r["id"], name=r["title"], status=r["status"]) for r in rows]
    return [
        RoutineHit(
            id=r["id"], name=r["title"], status=r["status"],
            description=r["description"], icon=r["icon"], updated_at=r["updated_at"],
        )
        for r in rows
    ]


def search(
    query: str,
    type: SearchType | None = None,
    limit: int | None = None,
    summary: bool = False,
) -> SearchResponse:
    """Case-insensitive substring search over active tasks, notes and routines.

    ``limit`` applies per entity type and defaults to 15, or 5 in summary
    mode. Summary mode truncates titles and leaves out the long fields.
    """
    query = (query or "").strip()
    if not query:
        raise ValidationFailedError("Search query must not be blank")
    if type is not None and type not in get_args(SearchType):
        raise ValidationFailedError(f"Unknown search type {type!r}; use tasks, notes or routines")
    if limit is not None and limit < 1:
        raise ValidationFailedError("limit must be at least 1")
    limit = limit or (SUMMARY_LIMIT if summary else FULL_LIMIT)
    pattern = _like(query)

    results = SearchResults()
    with get_store().connection() as conn:
        if type in (None, "tasks"):
            results.tasks = _search_tasks(conn, pattern, limit, summary)
        if type in (None, "notes"):
            results.notes = _search_notes(conn, pattern, limit, summary)
        if type in (None, "routines"):
            results.routines = _search_routines(conn, pattern, limit, summary)
    total = len(results.tasks) + len(results.notes) + len(results.routines)
    logger.debug(f"Search {query!r} ({type or 'all'}) matched {total}")
    return SearchResponse(query=query, results=results, total_hits=total)


# --- Tasks ---


def tasks_summary(
    limit: int = 5,
    columns: list[str] | None = None,
    routine: str | None = None,
    today: date | None = None,
) -> TasksSummary:
    """Active tasks grouped by column, at most ``limit`` per column.

    ``routine`` matches a routine id exactly or its title as a substring.
    Overdue and due-this-week counts cover every matching task, not just the
    ones listed. Empty columns are left out.
    """
    if limit < 1:
        raise ValidationFailedError("limit must be at least 1")
    wanted = _parse_columns(columns)
    today = today or date.today()

    query = """
        SELECT t.id, t.title, t.column_name, t.due_date, r.title AS routine_title
        FROM tasks t
        LEFT JOIN routines r ON t.routine_id = r.id
        WHERE t.archived = 0
    """
    params: list = []
    if wanted:
        query += f" AND t.column_name IN ({', '.join('?' * len(wanted))})"
        params.extend(c.value for c in wanted)
    if routine:
        query += " AND (r.id = ? OR r.title LIKE ? ESCAPE '\\')"
        params.extend([routine, _like(routine)])
    query += " ORDER BY t.column_name, t.position"
    with get_store().connection() as conn:
        rows = conn.execute(query, params).fetchall()

    by_column: dict[str, list[TaskBrief]] = {}
    for column in Column:
        briefs = [
            TaskBrief(id=r["id"], title=truncate(r["title"], 60), due=r["due_date"], routine=r["routine_title"])
            for r in rows if r["column_name"] == column.value
        ][:limit]
        if briefs:
            by_column[display_column(column)] = briefs

    dues = [date.fromisoformat(r["due_date"]) for r in rows if r["due_date"]]
    week_end = today + timedelta(days=7)
    return TasksSummary(
        total=len(rows),
        by_column=by_column,
        overdue=sum(1 for d in dues if d < today),
        due_this_week=sum(1 for d in dues if today <= d <= week_end),
    )


def task_context(task_id: str) -> TaskContext:
    """One task, archived or not, with its checklist as text/done pairs."""
    with get_store().connection() as conn:
        row = conn.execute(
            "SELECT t.*, r.title AS routine_title FROM tasks t "
            "LEFT JOIN routines r ON t.routine_id = r.id WHERE t.id = ?",
            (task_id,),
        ).fetchone()
        if row is None:
            raise NotFoundError(f"Task {task_id} not found")
        items = checklist.load_items(conn, task_id)
    return TaskContext(
        id=row["id"],
        title=row["title"],
        description=row["notes"] or None,
        column=display_column(row["column_name"]),
        routine=row["routine_title"],
        due=row["due_date"],
        created=datetime.fromisoformat(row["created_at"]).date(),
        checklist=[ChecklistEntry(text=i.title, done=i.completed) for i in items],
    )

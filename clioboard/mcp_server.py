from datetime import date
from typing import get_args

from fastmcp import FastMCP

from clioboard.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    StoreError,
    ValidationFailedError,
)
from clioboard.models.common import Column
from clioboard.models.notes import NoteSource
from clioboard.services import notes as notes_service
from clioboard.services import routines as routines_service
from clioboard.services import summary as summary_service
from clioboard.services import tasks as tasks_service

mcp = FastMCP("Clio Board")

BoardError = (NotFoundError, InvalidTransitionError, ValidationFailedError, StoreError)


def _handle_mcp_error(e: Exception) -> dict:
    """Convert exceptions to agent-friendly error dicts."""
    if isinstance(e, NotFoundError):
        return {"error": "not_found", "message": str(e), "action": "Check the id with board_overview or note_list"}
    if isinstance(e, InvalidTransitionError):
        return {"error": "invalid_transition", "message": str(e)}
    if isinstance(e, ValidationFailedError):
        return {"error": "validation_failed", "message": str(e)}
    if isinstance(e, StoreError):
        return {"error": "store_failure", "message": str(e), "action": "Nothing was changed; retry once"}
    return {"error": "unknown_error", "message": str(e)}


def _column(value: str) -> Column:
    try:
        return Column(value)
    except ValueError:
        choices = ", ".join(c.value for c in Column)
        raise ValidationFailedError(f"Unknown column {value!r}; use one of {choices}") from None


def _due(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationFailedError(f"due_date must be YYYY-MM-DD, got {value!r}") from None


def _source(value: str) -> NoteSource:
    if value not in get_args(NoteSource):
        choices = ", ".join(get_args(NoteSource))
        raise ValidationFailedError(f"Unknown note source {value!r}; use one of {choices}")
    return value


# --- Board / task tools ---

@mcp.tool
def board_overview() -> dict:
    """Get every active task grouped by column (today, tomorrow, this_week, horizon), in board order.
    Checklist tasks include their items."""
    try:
        board = tasks_service.get_board()
        return {"board": board.model_dump(mode="json")}
    except BoardError as e:
        return _handle_mcp_error(e)


@mcp.tool
def task_get(task_id: str) -> dict:
    """Get a single task, including its checklist items."""
    try:
        return tasks_service.get_task(task_id).model_dump(mode="json")
    except BoardError as e:
        return _handle_mcp_error(e)


@mcp.tool
def task_create(
    title: str,
    column_name: str = "today",
    notes: str | None = None,
    due_date: str | None = None,
    routine_id: str | None = None,
) -> dict:
    """Create a task at the bottom of a column. column_name is one of today, tomorrow, this_week, horizon.
    due_date is YYYY-MM-DD. A task becomes a checklist automatically once items are added with task_add_item."""
    try:
        return tasks_service.create_task(
            title, _column(column_name), notes, _due(due_date), routine_id, actor="agent",
        ).model_dump(mode="json")
    except BoardError as e:
        return _handle_mcp_error(e)


@mcp.tool
def task_update(
    task_id: str,
    title: str | None = None,
    notes: str | None = None,
    completed: bool | None = None,
) -> dict:
    """Change a task's title, notes, or completion. Only the arguments you pass are changed.
    Use task_move to change column or position."""
    changes = {k: v for k, v in {"title": title, "notes": notes, "completed": completed}.items() if v is not None}
    try:
        return tasks_service.update_task(task_id, changes, actor="agent").model_dump(mode="json")
    except BoardError as e:
        return _handle_mcp_error(e)


@mcp.tool
def task_move(task_id: str, column_name: str, position: int | None = None) -> dict:
    """Move a task to another column and/or position (0 = top). Omit position to put it at the bottom."""
    try:
        return tasks_service.move_task(task_id, _column(column_name), position, actor="agent").model_dump(mode="json")
    except BoardError as e:
        return _handle_mcp_error(e)


@mcp.tool
def task_complete(task_id: str) -> dict:
    """Mark a task completed. It stays on the board until archived."""
    try:
        return tasks_service.complete_task(task_id, actor="agent").model_dump(mode="json")
    except BoardError as e:
        return _handle_mcp_error(e)


@mcp.tool
def task_archive(task_id: str) -> dict:
    """Archive a task (completed or not). Checklist items are kept."""
    try:
        return tasks_service.archive_task(task_id, actor="agent").model_dump(mode="json")
    except BoardError as e:
        return _handle_mcp_error(e)


@mcp.tool
def task_restore(task_id: str) -> dict:
    """Bring an archived task back to the bottom of its column. Completion is unchanged."""
    try:
        return tasks_service.restore_task(task_id, actor="agent").model_dump(mode="json")
    except BoardError as e:
        return _handle_mcp_error(e)


@mcp.tool
def task_add_item(task_id: str, title: str) -> dict:
    """Add a checklist item to a task. Returns the updated task."""
    try:
        return tasks_service.add_item(task_id, title, actor="agent").model_dump(mode="json")
    except BoardError as e:
        return _handle_mcp_error(e)


@mcp.tool
def task_check_item(task_id: str, item_id: str, completed: bool = True) -> dict:
    """Check (or uncheck) a checklist item. Returns the updated task."""
    try:
        return tasks_service.update_item(
            task_id, item_id, {"completed": completed}, actor="agent",
        ).model_dump(mode="json")
    except BoardError as e:
        return _handle_mcp_error(e)


@mcp.tool
def task_remove_item(task_id: str, item_id: str) -> dict:
    """Remove a checklist item. Removing the last item turns the task back into a plain card."""
    try:
        return tasks_service.remove_item(task_id, item_id, actor="agent").model_dump(mode="json")
    except BoardError as e:
        return _handle_mcp_error(e)


@mcp.tool
def board_summary(columns: list[str] | None = None, routine: str | None = None, limit: int = 5) -> dict:
    """Compact board overview: up to `limit` tasks per column, plus overdue and due-this-week counts.
    columns filters to e.g. ["today", "tomorrow"]; routine matches a routine id or part of its title."""
    try:
        return summary_service.tasks_summary(limit, columns, routine).model_dump(mode="json")
    except BoardError as e:
        return _handle_mcp_error(e)


@mcp.tool
def task_context(task_id: str) -> dict:
    """Everything about one task in a few lines: description, column, routine, due date, checklist."""
    try:
        return summary_service.task_context(task_id).model_dump(mode="json")
    except BoardError as e:
        return _handle_mcp_error(e)


# --- Note tools ---

@mcp.tool
def note_list(author: str | None = None) -> dict:
    """List active notes. Filter by author ('user' or 'agent')."""
    try:
        notes = notes_service.list_notes(author=author)
        return {"notes": [n.model_dump(mode="json") for n in notes], "count": len(notes)}
    except BoardError as e:
        return _handle_mcp_error(e)


@mcp.tool
def note_create(content: str, title: str | None = None, source: str = "claude_api") -> dict:
    """Write a note into the agent columns of the scratch area."""
    try:
        return notes_service.create_note(
            content, title=title, source=_source(source), actor="agent",
        ).model_dump(mode="json")
    except BoardError as e:
        return _handle_mcp_error(e)


@mcp.tool
def note_convert(
    note_id: str,
    title: str | None = None,
    column_name: str = "today",
    due_date: str | None = None,
    routine_id: str | None = None,
) -> dict:
    """Turn a note into a task. The note is archived and linked to the new task."""
    try:
        result = notes_service.convert_note_to_task(
            note_id, title, _column(column_name), _due(due_date), routine_id, actor="agent",
        )
        return result.model_dump(mode="json")
    except BoardError as e:
        return _handle_mcp_error(e)


@mcp.tool
def note_archive(note_id: str) -> dict:
    """Archive a note."""
    try:
        return notes_service.archive_note(note_id, actor="agent").model_dump(mode="json")
    except BoardError as e:
        return _handle_mcp_error(e)


# --- Search ---

@mcp.tool
def board_search(query: str, type: str | None = None, limit: int | None = None) -> dict:
    """Search active tasks, notes and routines by text. type narrows to "tasks", "notes" or "routines".
    Results are shortened; use task_get or task_context for the full task."""
    try:
        return summary_service.search(query, type, limit, summary=True).model_dump(mode="json")
    except BoardError as e:
        return _handle_mcp_error(e)


# --- Routine tools ---

@mcp.tool
def routine_list() -> dict:
    """List active (non-archived) routines with their pending/completed task counts."""
    try:
        routines = routines_service.list_routines()
        return {"routines": [r.model_dump(mode="json") for r in routines], "count": len(routines)}
    except BoardError as e:
        return _handle_mcp_error(e)


@mcp.tool
def routine_tasks(routine_id: str) -> dict:
    """List every task linked to a routine."""
    try:
        tasks = routines_service.list_routine_tasks(routine_id)
        return {"tasks": [t.model_dump(mode="json") for t in tasks], "count": len(tasks)}
    except BoardError as e:
        return _handle_mcp_error(e)

"""Compact read models for agent context: search hits, board summary, task context."""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel

from clioboard.models.notes import NoteSource
from clioboard.models.routines import RoutineStatus

SearchType = Literal["tasks", "notes", "routines"]


class TaskHit(BaseModel):
    id: str
    title: str
    column: str
    routine: str | None = None
    # full mode only
    due: date | None = None
    notes: str | None = None
    updated_at: datetime | None = None


class NoteHit(BaseModel):
    id: str
    title: str
    routine: str | None = None
    preview: str | None = None  # summary mode only
    content: str | None = None
    source: NoteSource | None = None
    updated_at: datetime | None = None


class RoutineHit(BaseModel):
    id: str
    name: str
    status: RoutineStatus
    description: str | None = None
    icon: str | None = None
    updated_at: datetime | None = None


class SearchResults(BaseModel):
    tasks: list[TaskHit] = []
    notes: list[NoteHit] = []
    routines: list[RoutineHit] = []


class SearchResponse(BaseModel):
    query: str
    results: SearchResults
    total_hits: int


class TaskBrief(BaseModel):
    id: str
    title: str
    due: date | None = None
    routine: str | None = None


class TasksSummary(BaseModel):
    total: int
    by_column: dict[str, list[TaskBrief]]
    overdue: int
    due_this_week: int


class ChecklistEntry(BaseModel):
    text: str
    done: bool


class TaskContext(BaseModel):
    id: str
    title: str
    description: str | None = None
    column: str
    routine: str | None = None
    due: date | None = None
    created: date
    checklist: list[ChecklistEntry] = []

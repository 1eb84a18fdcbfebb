from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

from clioboard.models.common import Actor, Column
from clioboard.models.tasks import TASK_TITLE_LIMIT, Task

NOTE_TITLE_LIMIT = 100
NOTE_CONTENT_LIMIT = 20000

NoteSource = Literal["manual", "voice", "conversation", "claude_api"]


class Note(BaseModel):
    id: str
    title: str | None = None
    content: str
    author: Actor = "user"
    source: NoteSource = "manual"
    column_position: int  # 1, 2 = user columns; 3, 4 = agent columns
    task_id: str | None = None
    routine_id: str | None = None
    archived: bool = False
    created_at: datetime
    updated_at: datetime
    archived_at: datetime | None = None


class CreateNoteRequest(BaseModel):
    title: str | None = Field(default=None, max_length=NOTE_TITLE_LIMIT)
    content: str = Field(min_length=1, max_length=NOTE_CONTENT_LIMIT)
    author: Actor | None = None
    source: NoteSource = "manual"
    column_position: int | None = Field(default=None, ge=1, le=4)
    routine_id: str | None = None


class UpdateNoteRequest(BaseModel):
    title: str | None = Field(default=None, max_length=NOTE_TITLE_LIMIT)
    content: str | None = Field(default=None, min_length=1, max_length=NOTE_CONTENT_LIMIT)
    column_position: int | None = Field(default=None, ge=1, le=4)
    routine_id: str | None = None


class MoveNoteRequest(BaseModel):
    column_position: int = Field(ge=1, le=4)


class ConvertNoteRequest(BaseModel):
    """Overrides applied to the task created from a note."""
    title: str | None = Field(default=None, min_length=1, max_length=TASK_TITLE_LIMIT)
    column_name: Column = Column.TODAY
    due_date: date | None = None
    routine_id: str | None = None


class ConvertNoteResult(BaseModel):
    task: Task
    note: Note

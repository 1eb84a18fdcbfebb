from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field

from clioboard.models.common import Column

TASK_TITLE_LIMIT = 100
TASK_NOTES_LIMIT = 20000
ITEM_TITLE_LIMIT = 100


class TaskKind(str, Enum):
    """Derived from list item count. Never accepted as input."""
    CARD = "card"
    CHECKLIST = "checklist"


class ListItem(BaseModel):
    id: str
    task_id: str
    title: str
    completed: bool = False
    position: int
    created_at: datetime


class Task(BaseModel):
    id: str
    title: str
    notes: str | None = None
    kind: TaskKind = TaskKind.CARD
    completed: bool = False
    archived: bool = False
    column_name: Column
    position: int
    due_date: date | None = None
    routine_id: str | None = None
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None
    archived_at: datetime | None = None
    items: list[ListItem] = []


class Board(BaseModel):
    today: list[Task] = []
    tomorrow: list[Task] = []
    this_week: list[Task] = []
    horizon: list[Task] = []


class CreateTaskRequest(BaseModel):
    title: str = Field(min_length=1, max_length=TASK_TITLE_LIMIT)
    notes: str | None = Field(default=None, max_length=TASK_NOTES_LIMIT)
    column_name: Column = Column.TODAY
    due_date: date | None = None
    routine_id: str | None = None


class UpdateTaskRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=TASK_TITLE_LIMIT)
    notes: str | None = Field(default=None, max_length=TASK_NOTES_LIMIT)
    due_date: date | None = None
    routine_id: str | None = None
    completed: bool | None = None
    column_name: Column | None = None
    position: int | None = None


class MoveTaskRequest(BaseModel):
    column_name: Column
    position: int | None = None


class AddItemRequest(BaseModel):
    title: str = Field(min_length=1, max_length=ITEM_TITLE_LIMIT)


class UpdateItemRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=ITEM_TITLE_LIMIT)
    completed: bool | None = None
    position: int | None = None

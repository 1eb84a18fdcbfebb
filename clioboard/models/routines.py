from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

ROUTINE_TITLE_LIMIT = 45
ROUTINE_DESCRIPTION_LIMIT = 100
ROUTINE_ICON_LIMIT = 10


class RoutineStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


class Routine(BaseModel):
    id: str
    title: str
    description: str | None = None
    color: str = "#3498db"
    icon: str = "📌"
    status: RoutineStatus = RoutineStatus.ACTIVE
    achievable: bool = False
    pause_until: datetime | None = None
    archived: bool = False
    created_at: datetime
    updated_at: datetime
    archived_at: datetime | None = None
    pending_tasks: int = 0
    completed_tasks: int = 0


class CreateRoutineRequest(BaseModel):
    title: str = Field(min_length=1, max_length=ROUTINE_TITLE_LIMIT)
    description: str | None = Field(default=None, max_length=ROUTINE_DESCRIPTION_LIMIT)
    color: str = Field(default="#3498db", pattern=r"^#[0-9a-fA-F]{6}$")
    icon: str = Field(default="📌", max_length=ROUTINE_ICON_LIMIT)
    achievable: bool = False


class UpdateRoutineRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=ROUTINE_TITLE_LIMIT)
    description: str | None = Field(default=None, max_length=ROUTINE_DESCRIPTION_LIMIT)
    color: str | None = Field(default=None, pattern=r"^#[0-9a-fA-F]{6}$")
    icon: str | None = Field(default=None, max_length=ROUTINE_ICON_LIMIT)
    achievable: bool | None = None


class PauseRoutineRequest(BaseModel):
    pause_until: datetime | None = None

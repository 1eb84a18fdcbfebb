from enum import Enum
from typing import Literal

from pydantic import BaseModel

Actor = Literal["user", "agent"]


class Column(str, Enum):
    TODAY = "today"
    TOMORROW = "tomorrow"
    THIS_WEEK = "this_week"
    HORIZON = "horizon"


class ErrorResponse(BaseModel):
    error_code: str
    message: str


class HealthResponse(BaseModel):
    status: str
    active_tasks: int

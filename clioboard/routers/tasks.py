from fastapi import APIRouter, Depends

from clioboard.auth import get_actor
from clioboard.models.common import Actor, Column
from clioboard.models.summary import TaskContext, TasksSummary
from clioboard.models.tasks import (
    AddItemRequest,
    Board,
    CreateTaskRequest,
    ListItem,
    MoveTaskRequest,
    Task,
    UpdateItemRequest,
    UpdateTaskRequest,
)
from clioboard.services import summary as summary_service
from clioboard.services import tasks as tasks_service

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


# --- Tasks ---


@router.get("")
def list_tasks(column_name: Column | None = None, routine_id: str | None = None) -> list[Task]:
    return tasks_service.list_tasks(column_name, routine_id)


@router.get("/board")
def get_board() -> Board:
    return tasks_service.get_board()


@router.get("/summary")
def tasks_summary(limit: int = 5, columns: str | None = None, routine: str | None = None) -> TasksSummary:
    wanted = [c for c in columns.split(",") if c.strip()] if columns else None
    return summary_service.tasks_summary(limit, wanted, routine)


@router.get("/archived")
def list_archived_tasks(column_name: Column | None = None, routine_id: str | None = None) -> list[Task]:
    return tasks_service.list_archived_tasks(column_name, routine_id)


@router.get("/{task_id}")
def get_task(task_id: str) -> Task:
    return tasks_service.get_task(task_id)


@router.get("/{task_id}/context")
def get_task_context(task_id: str) -> TaskContext:
    return summary_service.task_context(task_id)


@router.post("", status_code=201)
def create_task(request: CreateTaskRequest, actor: Actor = Depends(get_actor)) -> Task:
    return tasks_service.create_task(
        request.title, request.column_name, request.notes, request.due_date, request.routine_id, actor=actor,
    )


@router.patch("/{task_id}")
def update_task(task_id: str, request: UpdateTaskRequest, actor: Actor = Depends(get_actor)) -> Task:
    return tasks_service.update_task(task_id, request.model_dump(exclude_unset=True), actor=actor)


@router.put("/{task_id}/move")
def move_task(task_id: str, request: MoveTaskRequest, actor: Actor = Depends(get_actor)) -> Task:
    return tasks_service.move_task(task_id, request.column_name, request.position, actor=actor)


@router.post("/{task_id}/complete")
def complete_task(task_id: str, actor: Actor = Depends(get_actor)) -> Task:
    return tasks_service.complete_task(task_id, actor=actor)


@router.put("/{task_id}/archive")
def archive_task(task_id: str, actor: Actor = Depends(get_actor)) -> Task:
    return tasks_service.archive_task(task_id, actor=actor)


@router.put("/{task_id}/restore")
def restore_task(task_id: str, actor: Actor = Depends(get_actor)) -> Task:
    return tasks_service.restore_task(task_id, actor=actor)


# --- List items ---


@router.get("/{task_id}/items")
def list_items(task_id: str) -> list[ListItem]:
    return tasks_service.list_items(task_id)


@router.post("/{task_id}/items", status_code=201)
def add_item(task_id: str, request: AddItemRequest, actor: Actor = Depends(get_actor)) -> Task:
    return tasks_service.add_item(task_id, request.title, actor=actor)


@router.patch("/{task_id}/items/{item_id}")
def update_item(task_id: str, item_id: str, request: UpdateItemRequest, actor: Actor = Depends(get_actor)) -> Task:
    return tasks_service.update_item(task_id, item_id, request.model_dump(exclude_unset=True), actor=actor)


@router.delete("/{task_id}/items/{item_id}")
def remove_item(task_id: str, item_id: str, actor: Actor = Depends(get_actor)) -> Task:
    return tasks_service.remove_item(task_id, item_id, actor=actor)

from fastapi import APIRouter, Depends

from clioboard.auth import get_actor
from clioboard.models.common import Actor
from clioboard.models.routines import (
    CreateRoutineRequest,
    PauseRoutineRequest,
    Routine,
    RoutineStatus,
    UpdateRoutineRequest,
)
from clioboard.models.tasks import Task
from clioboard.services import routines as routines_service

router = APIRouter(prefix="/api/routines", tags=["routines"])


@router.get("")
def list_routines(status: RoutineStatus | None = None) -> list[Routine]:
    return routines_service.list_routines(status)


@router.get("/archived")
def list_archived_routines() -> list[Routine]:
    return routines_service.list_archived_routines()


@router.get("/{routine_id}")
def get_routine(routine_id: str) -> Routine:
    return routines_service.get_routine(routine_id)


@router.get("/{routine_id}/tasks")
def list_routine_tasks(routine_id: str) -> list[Task]:
    return routines_service.list_routine_tasks(routine_id)


@router.post("", status_code=201)
def create_routine(request: CreateRoutineRequest, actor: Actor = Depends(get_actor)) -> Routine:
    return routines_service.create_routine(
        request.title, request.description, request.color, request.icon, request.achievable, actor=actor,
    )


@router.patch("/{routine_id}")
def update_routine(routine_id: str, request: UpdateRoutineRequest, actor: Actor = Depends(get_actor)) -> Routine:
    return routines_service.update_routine(routine_id, request.model_dump(exclude_unset=True), actor=actor)


@router.put("/{routine_id}/pause")
def pause_routine(routine_id: str, request: PauseRoutineRequest | None = None, actor: Actor = Depends(get_actor)) -> Routine:
    pause_until = request.pause_until if request else None
    return routines_service.pause_routine(routine_id, pause_until, actor=actor)


@router.put("/{routine_id}/resume")
def resume_routine(routine_id: str, actor: Actor = Depends(get_actor)) -> Routine:
    return routines_service.resume_routine(routine_id, actor=actor)


@router.put("/{routine_id}/complete")
def complete_routine(routine_id: str, actor: Actor = Depends(get_actor)) -> Routine:
    return routines_service.complete_routine(routine_id, actor=actor)


@router.put("/{routine_id}/archive")
def archive_routine(routine_id: str, actor: Actor = Depends(get_actor)) -> Routine:
    return routines_service.archive_routine(routine_id, actor=actor)


@router.put("/{routine_id}/restore")
def restore_routine(routine_id: str, actor: Actor = Depends(get_actor)) -> Routine:
    return routines_service.restore_routine(routine_id, actor=actor)

from fastapi import APIRouter, Depends

from clioboard.auth import get_actor
from clioboard.models.common import Actor
from clioboard.models.notes import (
    ConvertNoteRequest,
    ConvertNoteResult,
    CreateNoteRequest,
    MoveNoteRequest,
    Note,
    UpdateNoteRequest,
)
from clioboard.services import notes as notes_service

router = APIRouter(prefix="/api/notes", tags=["notes"])


@router.get("")
def list_notes(author: Actor | None = None, column_position: int | None = None, routine_id: str | None = None) -> list[Note]:
    return notes_service.list_notes(author, column_position, routine_id)


@router.get("/archived")
def list_archived_notes() -> list[Note]:
    return notes_service.list_archived_notes()


@router.get("/{note_id}")
def get_note(note_id: str) -> Note:
    return notes_service.get_note(note_id)


@router.post("", status_code=201)
def create_note(request: CreateNoteRequest, actor: Actor = Depends(get_actor)) -> Note:
    return notes_service.create_note(
        request.content, request.title, request.author, request.source,
        request.column_position, request.routine_id, actor=actor,
    )


@router.patch("/{note_id}")
def update_note(note_id: str, request: UpdateNoteRequest, actor: Actor = Depends(get_actor)) -> Note:
    return notes_service.update_note(note_id, request.model_dump(exclude_unset=True), actor=actor)


@router.delete("/{note_id}", status_code=204)
def delete_note(note_id: str, actor: Actor = Depends(get_actor)):
    notes_service.delete_note(note_id, actor=actor)


@router.put("/{note_id}/move")
def move_note(note_id: str, request: MoveNoteRequest, actor: Actor = Depends(get_actor)) -> Note:
    return notes_service.move_note(note_id, request.column_position, actor=actor)


@router.put("/{note_id}/archive")
def archive_note(note_id: str, actor: Actor = Depends(get_actor)) -> Note:
    return notes_service.archive_note(note_id, actor=actor)


@router.put("/{note_id}/restore")
def restore_note(note_id: str, actor: Actor = Depends(get_actor)) -> Note:
    return notes_service.restore_note(note_id, actor=actor)


@router.post("/{note_id}/convert", status_code=201)
def convert_note(note_id: str, request: ConvertNoteRequest | None = None, actor: Actor = Depends(get_actor)) -> ConvertNoteResult:
    request = request or ConvertNoteRequest()
    return notes_service.convert_note_to_task(
        note_id, request.title, request.column_name, request.due_date, request.routine_id, actor=actor,
    )

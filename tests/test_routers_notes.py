import pytest

from clioboard.exceptions import InvalidTransitionError
from clioboard.models.common import Column
from clioboard.models.notes import ConvertNoteResult
from conftest import SAMPLE_NOTE, SAMPLE_TASK


@pytest.fixture
def client(mocker):
    mocker.patch("clioboard.routers.notes.notes_service")
    from clioboard.main import api
    from fastapi.testclient import TestClient
    return TestClient(api)


@pytest.fixture
def mock_svc(mocker):
    return mocker.patch("clioboard.routers.notes.notes_service")


class TestNotes:
    def test_list(self, client, mock_svc):
        mock_svc.list_notes.return_value = [SAMPLE_NOTE]
        resp = client.get("/api/notes?author=user")
        assert resp.status_code == 200
        assert resp.json()[0]["id"] == "note123"
        mock_svc.list_notes.assert_called_once_with("user", None, None)

    def test_create(self, client, mock_svc):
        mock_svc.create_note.return_value = SAMPLE_NOTE
        resp = client.post("/api/notes", json={"content": "buy milk"})
        assert resp.status_code == 201
        mock_svc.create_note.assert_called_once_with("buy milk", None, None, "manual", None, None, actor="user")

    def test_create_bad_column(self, client, mock_svc):
        resp = client.post("/api/notes", json={"content": "x", "column_position": 7})
        assert resp.status_code == 400
        mock_svc.create_note.assert_not_called()

    def test_move(self, client, mock_svc):
        mock_svc.move_note.return_value = SAMPLE_NOTE
        client.put("/api/notes/note123/move", json={"column_position": 2})
        mock_svc.move_note.assert_called_once_with("note123", 2, actor="user")

    def test_delete(self, client, mock_svc):
        resp = client.delete("/api/notes/note123")
        assert resp.status_code == 204
        mock_svc.delete_note.assert_called_once_with("note123", actor="user")


class TestConvert:
    def test_without_body(self, client, mock_svc):
        archived = SAMPLE_NOTE.model_copy(update={"archived": True, "task_id": "task123"})
        mock_svc.convert_note_to_task.return_value = ConvertNoteResult(task=SAMPLE_TASK, note=archived)
        resp = client.post("/api/notes/note123/convert")
        assert resp.status_code == 201
        data = resp.json()
        assert data["task"]["id"] == "task123"
        assert data["note"]["task_id"] == "task123"
        mock_svc.convert_note_to_task.assert_called_once_with(
            "note123", None, Column.TODAY, None, None, actor="user",
        )

    def test_with_overrides(self, client, mock_svc):
        mock_svc.convert_note_to_task.return_value = ConvertNoteResult(task=SAMPLE_TASK, note=SAMPLE_NOTE)
        client.post("/api/notes/note123/convert", json={"title": "Buy milk", "column_name": "horizon"})
        args = mock_svc.convert_note_to_task.call_args.args
        assert args[1] == "Buy milk"
        assert args[2] == Column.HORIZON

    def test_archived_note(self, client, mock_svc):
        mock_svc.convert_note_to_task.side_effect = InvalidTransitionError("Note note123 is archived")
        resp = client.post("/api/notes/note123/convert")
        assert resp.status_code == 409

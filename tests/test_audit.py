from clioboard import audit
from clioboard.exceptions import StoreError
from clioboard.services import notes as notes_service
from clioboard.services import tasks as tasks_service


class TestRecord:
    def test_create_is_recorded(self, store):
        task = tasks_service.create_task("Buy milk")
        entries = audit.list_entries(task.id)
        assert len(entries) == 1
        assert entries[0].action == "create_task"
        assert entries[0].actor == "user"
        assert entries[0].previous_state is None
        assert entries[0].new_state["title"] == "Buy milk"

    def test_move_records_before_and_after(self, store):
        task = tasks_service.create_task("Buy milk")
        tasks_service.move_task(task.id, "horizon", actor="agent")
        latest = audit.list_entries(task.id)[0]
        assert latest.action == "move_task"
        assert latest.actor == "agent"
        assert latest.previous_state["column_name"] == "today"
        assert latest.new_state["column_name"] == "horizon"

    def test_noop_not_recorded(self, store):
        task = tasks_service.create_task("Buy milk")
        tasks_service.restore_task(task.id)
        tasks_service.move_task(task.id, "today", 0)
        assert [e.action for e in audit.list_entries(task.id)] == ["create_task"]

    def test_convert_records_both_entities(self, store):
        note = notes_service.create_note("buy milk")
        result = notes_service.convert_note_to_task(note.id)
        assert audit.list_entries(note.id)[0].action == "convert_note"
        assert audit.list_entries(result.task.id)[0].action == "create_task"

    def test_limit(self, store):
        for n in range(3):
            tasks_service.create_task(f"Task {n}")
        assert len(audit.list_entries(limit=2)) == 2


class TestAuditFailure:
    def test_does_not_undo_change(self, store, mocker):
        broken = mocker.patch("clioboard.audit.get_store")
        broken.return_value.transaction.side_effect = StoreError("audit table locked")
        task = tasks_service.create_task("Still created")
        assert tasks_service.get_task(task.id).title == "Still created"

    def test_logs_warning(self, store, mocker, caplog):
        broken = mocker.patch("clioboard.audit.get_store")
        broken.return_value.transaction.side_effect = StoreError("audit table locked")
        audit.record("user", "create_task", "task", "task123")
        assert "Failed to write audit entry create_task" in caplog.text

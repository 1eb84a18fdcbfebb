from datetime import date

import pytest

from clioboard.exceptions import InvalidTransitionError, NotFoundError, ValidationFailedError
from clioboard.models.common import Column
from clioboard.models.tasks import Task, TaskKind
from clioboard.services import ledger
from clioboard.services import routines as routines_service
from clioboard.services import tasks as tasks_service
from clioboard.services.ledger import Partition
from conftest import column_titles


def _seed(column: str, *titles: str) -> list[Task]:
    return [tasks_service.create_task(t, column) for t in titles]


def _assert_dense(store):
    with store.connection() as conn:
        for column in Column:
            assert ledger.is_dense(conn, Partition.column(column)), column


class TestCreateTask:
    def test_first_task_in_empty_column(self, store):
        task = tasks_service.create_task("Buy milk", "today")
        assert isinstance(task, Task)
        assert task.position == 0
        assert task.kind == TaskKind.CARD
        assert task.completed is False
        assert task.archived is False

    def test_appends_after_last(self, store):
        _seed("today", "A", "B")
        task = tasks_service.create_task("C", "today")
        assert task.position == 2

    def test_defaults_to_today(self, store):
        assert tasks_service.create_task("Anything").column_name == Column.TODAY

    def test_stores_optional_fields(self, store):
        routine = routines_service.create_routine("Errands")
        task = tasks_service.create_task(
            "Dry cleaning", "this_week", notes="blue shirts", due_date=date(2025, 3, 1), routine_id=routine.id,
        )
        fetched = tasks_service.get_task(task.id)
        assert fetched.notes == "blue shirts"
        assert fetched.due_date == date(2025, 3, 1)
        assert fetched.routine_id == routine.id

    def test_unknown_routine(self, store):
        with pytest.raises(NotFoundError):
            tasks_service.create_task("Orphan", routine_id="missing")
        assert column_titles(store, "today") == []

    def test_blank_title(self, store):
        with pytest.raises(ValidationFailedError):
            tasks_service.create_task("   ")


class TestGetTask:
    def test_not_found(self, store):
        with pytest.raises(NotFoundError):
            tasks_service.get_task("nope")


class TestMoveTask:
    def test_across_columns(self, store):
        today = _seed("today", "T0", "T1", "T2")
        _seed("tomorrow", "M0", "M1")
        moved = tasks_service.move_task(today[0].id, "tomorrow", 0)
        assert moved.column_name == Column.TOMORROW
        assert moved.position == 0
        assert column_titles(store, "today") == [("T1", 0), ("T2", 1)]
        assert column_titles(store, "tomorrow") == [("T0", 0), ("M0", 1), ("M1", 2)]

    def test_into_empty_column(self, store):
        today = _seed("today", "T0", "T1", "T2")
        tasks_service.move_task(today[0].id, "tomorrow", 0)
        assert column_titles(store, "today") == [("T1", 0), ("T2", 1)]
        assert column_titles(store, "tomorrow") == [("T0", 0)]

    def test_without_position_appends(self, store):
        today = _seed("today", "T0")
        _seed("horizon", "H0", "H1")
        moved = tasks_service.move_task(today[0].id, "horizon")
        assert moved.position == 2

    def test_position_past_end_clamps_to_append(self, store):
        today = _seed("today", "T0")
        _seed("horizon", "H0")
        moved = tasks_service.move_task(today[0].id, "horizon", 40)
        assert moved.position == 1

    def test_negative_position(self, store):
        today = _seed("today", "T0", "T1")
        with pytest.raises(InvalidTransitionError):
            tasks_service.move_task(today[0].id, "tomorrow", -1)
        assert column_titles(store, "today") == [("T0", 0), ("T1", 1)]
        assert column_titles(store, "tomorrow") == []

    def test_same_column_up(self, store):
        today = _seed("today", "A", "B", "C", "D")
        tasks_service.move_task(today[3].id, "today", 1)
        assert column_titles(store, "today") == [("A", 0), ("D", 1), ("B", 2), ("C", 3)]

    def test_same_column_down(self, store):
        today = _seed("today", "A", "B", "C", "D")
        tasks_service.move_task(today[0].id, "today", 2)
        assert column_titles(store, "today") == [("B", 0), ("C", 1), ("A", 2), ("D", 3)]

    def test_same_column_past_end_goes_last(self, store):
        today = _seed("today", "A", "B", "C")
        moved = tasks_service.move_task(today[0].id, "today", 10)
        assert moved.position == 2
        assert column_titles(store, "today") == [("B", 0), ("C", 1), ("A", 2)]

    def test_same_slot_is_noop(self, store):
        today = _seed("today", "A", "B")
        moved = tasks_service.move_task(today[1].id, "today", 1)
        assert moved.updated_at == today[1].updated_at
        assert column_titles(store, "today") == [("A", 0), ("B", 1)]

    def test_archived_task_cannot_move(self, store):
        today = _seed("today", "A")
        tasks_service.archive_task(today[0].id)
        with pytest.raises(InvalidTransitionError):
            tasks_service.move_task(today[0].id, "tomorrow", 0)

    def test_not_found(self, store):
        with pytest.raises(NotFoundError):
            tasks_service.move_task("nope", "today", 0)

    def test_columns_stay_dense_through_a_sequence(self, store):
        tasks = _seed("today", "A", "B", "C") + _seed("tomorrow", "D", "E") + _seed("horizon", "F")
        steps = [
            (0, "tomorrow", 1), (4, "today", 0), (5, "this_week", None), (1, "today", 9),
            (2, "horizon", 0), (3, "this_week", 0), (0, "today", 0), (4, "tomorrow", 0),
        ]
        for index, column, position in steps:
            tasks_service.move_task(tasks[index].id, column, position)
            _assert_dense(store)
        tasks_service.archive_task(tasks[1].id)
        _assert_dense(store)
        tasks_service.restore_task(tasks[1].id)
        _assert_dense(store)


class TestUpdateTask:
    def test_patches_only_given_fields(self, store):
        task = tasks_service.create_task("Old", notes="keep me")
        updated = tasks_service.update_task(task.id, {"title": "New"})
        assert updated.title == "New"
        assert updated.notes == "keep me"

    def test_clears_routine(self, store):
        routine = routines_service.create_routine("Errands")
        task = tasks_service.create_task("Linked", routine_id=routine.id)
        updated = tasks_service.update_task(task.id, {"routine_id": None})
        assert updated.routine_id is None

    def test_uncomplete_leaves_archive_alone(self, store):
        task = tasks_service.create_task("Done")
        tasks_service.complete_task(task.id)
        tasks_service.archive_task(task.id)
        updated = tasks_service.update_task(task.id, {"completed": False})
        assert updated.completed is False
        assert updated.completed_at is None
        assert updated.archived is True

    def test_complete_through_patch(self, store):
        task = tasks_service.create_task("Do it")
        updated = tasks_service.update_task(task.id, {"completed": True})
        assert updated.completed is True
        assert updated.completed_at is not None

    def test_column_change_reorders(self, store):
        today = _seed("today", "A", "B")
        _seed("tomorrow", "C")
        updated = tasks_service.update_task(today[0].id, {"column_name": Column.TOMORROW, "position": 0})
        assert updated.position == 0
        assert column_titles(store, "today") == [("B", 0)]
        assert column_titles(store, "tomorrow") == [("A", 0), ("C", 1)]

    def test_same_column_without_position_stays_put(self, store):
        today = _seed("today", "A", "B")
        tasks_service.update_task(today[0].id, {"column_name": "today", "title": "A2"})
        assert column_titles(store, "today") == [("A2", 0), ("B", 1)]

    def test_empty_patch(self, store):
        task = tasks_service.create_task("A")
        with pytest.raises(ValidationFailedError):
            tasks_service.update_task(task.id, {})

    def test_failure_rolls_back_every_field(self, store):
        task = tasks_service.create_task("Keep")
        with pytest.raises(NotFoundError):
            tasks_service.update_task(task.id, {"title": "Changed", "routine_id": "missing"})
        assert tasks_service.get_task(task.id).title == "Keep"


class TestListings:
    def test_list_tasks_in_board_order(self, store):
        _seed("tomorrow", "C")
        _seed("today", "A", "B")
        titles = [t.title for t in tasks_service.list_tasks(column_name="today")]
        assert titles == ["A", "B"]

    def test_archived_not_listed(self, store):
        a, b = _seed("today", "A", "B")
        tasks_service.archive_task(a.id)
        assert [t.title for t in tasks_service.list_tasks()] == ["B"]
        assert [t.title for t in tasks_service.list_archived_tasks()] == ["A"]

    def test_board_groups_columns(self, store):
        _seed("today", "A")
        _seed("horizon", "H")
        board = tasks_service.get_board()
        assert [t.title for t in board.today] == ["A"]
        assert [t.title for t in board.horizon] == ["H"]
        assert board.tomorrow == []

    def test_count_active(self, store):
        a, _ = _seed("today", "A", "B")
        tasks_service.archive_task(a.id)
        assert tasks_service.count_active_tasks() == 1

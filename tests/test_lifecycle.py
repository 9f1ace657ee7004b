"""Tests for TaskLifecycleManager."""

from __future__ import annotations

import itertools

import pytest

from hkops.core.errors import (
    InvalidTransitionError,
    StoreUnavailableError,
    TaskNotFoundError,
    ValidationFailedError,
)
from hkops.core.lifecycle import TRANSITIONS, TaskLifecycleManager, can_transition
from hkops.models.enums import TaskAction, TaskPriority, TaskStatus, TaskType
from hkops.models.task import Task, TaskInput, TaskUpdate
from hkops.store.memory import InMemoryTaskStore
from tests.conftest import NOW, FlakyStore, make_task


def _valid_input(**overrides: object) -> dict[str, object]:
    data: dict[str, object] = {
        "room_id": "R1",
        "task_type": TaskType.CLEANING,
        "priority": TaskPriority.HIGH,
        "estimated_time": 45,
    }
    data.update(overrides)
    return data


async def _apply(lifecycle: TaskLifecycleManager, action: TaskAction, task_id: str) -> Task:
    if action == TaskAction.START:
        return await lifecycle.start(task_id)
    if action == TaskAction.COMPLETE:
        return await lifecycle.complete(task_id)
    return await lifecycle.cancel(task_id)


class TestTransitionTable:
    def test_terminal_statuses_allow_nothing(self) -> None:
        for status, action in itertools.product(
            (TaskStatus.COMPLETED, TaskStatus.CANCELLED), TaskAction
        ):
            assert not can_transition(status, action)

    def test_in_progress_cannot_start_again(self) -> None:
        assert not can_transition(TaskStatus.IN_PROGRESS, TaskAction.START)

    def test_direct_completion_from_pending(self) -> None:
        assert TRANSITIONS[(TaskStatus.PENDING, TaskAction.COMPLETE)] == TaskStatus.COMPLETED

    @pytest.mark.parametrize(
        ("status", "action"), list(itertools.product(TaskStatus, TaskAction))
    )
    async def test_guarded_verbs_follow_table(
        self, store: InMemoryTaskStore, status: TaskStatus, action: TaskAction
    ) -> None:
        store.add_task(make_task("t1", status=status))
        lifecycle = TaskLifecycleManager(store)

        if can_transition(status, action):
            task = await _apply(lifecycle, action, "t1")
            assert task.status == TRANSITIONS[(status, action)]
        else:
            with pytest.raises(InvalidTransitionError) as exc_info:
                await _apply(lifecycle, action, "t1")
            assert exc_info.value.status == status
            assert exc_info.value.action == action
            unchanged = await store.get_task("t1")
            assert unchanged is not None
            assert unchanged.status == status

    @pytest.mark.parametrize(
        ("status", "target"), list(itertools.product(TaskStatus, TaskStatus))
    )
    async def test_update_fields_never_checks_transitions(
        self, store: InMemoryTaskStore, status: TaskStatus, target: TaskStatus
    ) -> None:
        store.add_task(make_task("t1", status=status))
        lifecycle = TaskLifecycleManager(store)

        task = await lifecycle.update_fields("t1", TaskUpdate(status=target))

        assert task.status == target


class TestCreate:
    async def test_creates_pending_task(self, store: InMemoryTaskStore) -> None:
        lifecycle = TaskLifecycleManager(store)
        task = await lifecycle.create(TaskInput.model_validate(_valid_input(notes="fresh towels")))

        assert task.status == TaskStatus.PENDING
        assert task.room_id == "R1"
        assert task.room_number == "101"
        assert task.created_at == NOW
        assert task.completed_at is None
        assert task.notes == "fresh towels"

    async def test_accepts_mapping(self, store: InMemoryTaskStore) -> None:
        lifecycle = TaskLifecycleManager(store)
        task = await lifecycle.create(
            {"room_id": "R2", "task_type": "INSPECTION", "priority": "LOW", "estimated_time": 10}
        )
        assert task.task_type == TaskType.INSPECTION

    async def test_reports_every_missing_field(self, store: InMemoryTaskStore) -> None:
        lifecycle = TaskLifecycleManager(store)
        with pytest.raises(ValidationFailedError) as exc_info:
            await lifecycle.create(TaskInput())
        assert set(exc_info.value.errors) == {
            "room_id",
            "task_type",
            "priority",
            "estimated_time",
        }

    @pytest.mark.parametrize("estimated", [0, -5])
    async def test_rejects_non_positive_estimate(
        self, store: InMemoryTaskStore, estimated: int
    ) -> None:
        lifecycle = TaskLifecycleManager(store)
        with pytest.raises(ValidationFailedError) as exc_info:
            await lifecycle.create(_valid_input(estimated_time=estimated))
        assert "estimated_time" in exc_info.value.errors

    async def test_unknown_enum_value_is_validation_error(
        self, store: InMemoryTaskStore
    ) -> None:
        lifecycle = TaskLifecycleManager(store)
        with pytest.raises(ValidationFailedError) as exc_info:
            await lifecycle.create(_valid_input(task_type="LAUNDRY"))
        assert "task_type" in exc_info.value.errors

    async def test_validation_happens_before_store_call(self, flaky_store: FlakyStore) -> None:
        lifecycle = TaskLifecycleManager(flaky_store)
        with pytest.raises(ValidationFailedError):
            await lifecycle.create(_valid_input(room_id=""))
        assert "create_task" not in flaky_store.calls


class TestGuardedVerbs:
    async def test_start_then_complete(self, store: InMemoryTaskStore) -> None:
        store.add_task(make_task("t1"))
        lifecycle = TaskLifecycleManager(store)

        started = await lifecycle.start("t1")
        assert started.status == TaskStatus.IN_PROGRESS
        assert started.completed_at is None

        done = await lifecycle.complete("t1", actual_time=38, notes="all good")
        assert done.status == TaskStatus.COMPLETED
        assert done.completed_at == NOW
        assert done.actual_time == 38
        assert done.notes == "all good"

    async def test_complete_without_actual_time(self, store: InMemoryTaskStore) -> None:
        store.add_task(make_task("t1"))
        lifecycle = TaskLifecycleManager(store)
        done = await lifecycle.complete("t1")
        assert done.actual_time is None
        assert done.completed_at == NOW

    async def test_complete_rejects_non_positive_actual_time(
        self, store: InMemoryTaskStore
    ) -> None:
        store.add_task(make_task("t1"))
        lifecycle = TaskLifecycleManager(store)
        with pytest.raises(ValidationFailedError):
            await lifecycle.complete("t1", actual_time=0)

    async def test_cancel_in_progress(self, store: InMemoryTaskStore) -> None:
        store.add_task(make_task("t1", status=TaskStatus.IN_PROGRESS))
        lifecycle = TaskLifecycleManager(store)
        cancelled = await lifecycle.cancel("t1")
        assert cancelled.status == TaskStatus.CANCELLED

    async def test_unknown_task(self, store: InMemoryTaskStore) -> None:
        lifecycle = TaskLifecycleManager(store)
        for action in TaskAction:
            with pytest.raises(TaskNotFoundError):
                await _apply(lifecycle, action, "missing")

    async def test_store_failure_propagates(self, flaky_store: FlakyStore) -> None:
        flaky_store.add_task(make_task("t1"))
        flaky_store.fail("update_task")
        lifecycle = TaskLifecycleManager(flaky_store)
        with pytest.raises(StoreUnavailableError):
            await lifecycle.start("t1")


class TestUpdateFields:
    async def test_reopening_clears_completed_at(self, store: InMemoryTaskStore) -> None:
        store.add_task(make_task("t1", status=TaskStatus.COMPLETED, actual_time=20))
        lifecycle = TaskLifecycleManager(store)

        task = await lifecycle.update_fields("t1", {"status": TaskStatus.PENDING})

        assert task.status == TaskStatus.PENDING
        assert task.completed_at is None

    async def test_setting_completed_stamps_completed_at(self, store: InMemoryTaskStore) -> None:
        store.add_task(make_task("t1"))
        lifecycle = TaskLifecycleManager(store)
        task = await lifecycle.update_fields("t1", {"status": "COMPLETED"})
        assert task.completed_at == NOW

    async def test_completing_routes_through_complete_task(self, flaky_store: FlakyStore) -> None:
        flaky_store.add_task(make_task("t1", status=TaskStatus.IN_PROGRESS))
        lifecycle = TaskLifecycleManager(flaky_store)

        task = await lifecycle.update_fields(
            "t1", {"status": "COMPLETED", "actual_time": 25, "notes": "done", "assigned_to": None}
        )

        assert task.status == TaskStatus.COMPLETED
        assert task.completed_at == NOW
        assert task.actual_time == 25
        assert task.notes == "done"
        assert flaky_store.calls == ["get_task", "complete_task", "update_task"]

    async def test_actual_time_editable_on_any_status(self, store: InMemoryTaskStore) -> None:
        store.add_task(make_task("t1", status=TaskStatus.IN_PROGRESS))
        lifecycle = TaskLifecycleManager(store)
        task = await lifecycle.update_fields("t1", {"actual_time": 15})
        assert task.actual_time == 15
        assert task.status == TaskStatus.IN_PROGRESS

    async def test_clears_assignee(self, store: InMemoryTaskStore) -> None:
        store.add_task(make_task("t1", assigned_to="maria"))
        lifecycle = TaskLifecycleManager(store)
        task = await lifecycle.update_fields("t1", {"assigned_to": None})
        assert task.assigned_to is None

    async def test_ignores_none_for_required_fields(self, store: InMemoryTaskStore) -> None:
        store.add_task(make_task("t1"))
        lifecycle = TaskLifecycleManager(store)
        task = await lifecycle.update_fields("t1", {"priority": None, "notes": "x"})
        assert task.priority == TaskPriority.MEDIUM
        assert task.notes == "x"

    async def test_empty_update_rejected(self, store: InMemoryTaskStore) -> None:
        store.add_task(make_task("t1"))
        lifecycle = TaskLifecycleManager(store)
        with pytest.raises(ValidationFailedError):
            await lifecycle.update_fields("t1", TaskUpdate())

    async def test_rejects_non_positive_times(self, store: InMemoryTaskStore) -> None:
        store.add_task(make_task("t1"))
        lifecycle = TaskLifecycleManager(store)
        with pytest.raises(ValidationFailedError) as exc_info:
            await lifecycle.update_fields("t1", {"estimated_time": 0, "actual_time": -1})
        assert set(exc_info.value.errors) == {"estimated_time", "actual_time"}

    async def test_unknown_task(self, store: InMemoryTaskStore) -> None:
        lifecycle = TaskLifecycleManager(store)
        with pytest.raises(TaskNotFoundError):
            await lifecycle.update_fields("missing", {"notes": "x"})


class TestDelete:
    async def test_delete_any_status(self, store: InMemoryTaskStore) -> None:
        store.add_task(make_task("t1", status=TaskStatus.COMPLETED))
        lifecycle = TaskLifecycleManager(store)
        await lifecycle.delete("t1")
        assert await store.get_task("t1") is None

    async def test_delete_unknown(self, store: InMemoryTaskStore) -> None:
        lifecycle = TaskLifecycleManager(store)
        with pytest.raises(TaskNotFoundError):
            await lifecycle.delete("missing")


class TestReads:
    async def test_list_filters(self, store: InMemoryTaskStore) -> None:
        store.add_task(make_task("t1", room_id="R1"))
        store.add_task(make_task("t2", room_id="R2", status=TaskStatus.COMPLETED))
        lifecycle = TaskLifecycleManager(store)

        assert [t.id for t in await lifecycle.list_tasks(room_id="R2")] == ["t2"]
        assert [t.id for t in await lifecycle.list_tasks(status=TaskStatus.PENDING)] == ["t1"]

    async def test_get_unknown(self, store: InMemoryTaskStore) -> None:
        lifecycle = TaskLifecycleManager(store)
        with pytest.raises(TaskNotFoundError):
            await lifecycle.get("missing")

"""Tests for the Pydantic data models."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from hkops.models.config import HousekeepingConfig, RetryPolicy
from hkops.models.enums import RoomStatus, TaskPriority, TaskStatus, TaskType
from hkops.models.framework_event import FrameworkEvent
from hkops.models.room import Room
from hkops.models.snapshot import Snapshot
from hkops.models.stats import HousekeepingStats
from hkops.models.task import Task, TaskInput, TaskUpdate
from tests.conftest import NOW


class TestTask:
    def test_defaults(self) -> None:
        task = Task(
            id="t1",
            room_id="R1",
            task_type=TaskType.CLEANING,
            priority=TaskPriority.LOW,
            estimated_time=30,
        )
        assert task.status == TaskStatus.PENDING
        assert task.completed_at is None
        assert task.created_at.tzinfo is not None

    def test_estimated_time_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            Task(
                id="t1",
                room_id="R1",
                task_type=TaskType.CLEANING,
                priority=TaskPriority.LOW,
                estimated_time=0,
            )

    def test_from_strings(self) -> None:
        task = Task.model_validate(
            {
                "id": "t1",
                "room_id": "R1",
                "task_type": "REPAIR",
                "status": "IN_PROGRESS",
                "priority": "URGENT",
                "estimated_time": 60,
            }
        )
        assert task.task_type == TaskType.REPAIR
        assert task.status == TaskStatus.IN_PROGRESS

    def test_actual_time_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            Task(
                id="t1",
                room_id="R1",
                task_type=TaskType.CLEANING,
                priority=TaskPriority.LOW,
                estimated_time=30,
                actual_time=0,
            )

    def test_naive_timestamps_are_utc(self) -> None:
        naive = datetime(2024, 6, 15, 9, 30)
        task = Task(
            id="t1",
            room_id="R1",
            task_type=TaskType.CLEANING,
            priority=TaskPriority.LOW,
            estimated_time=30,
            status=TaskStatus.COMPLETED,
            created_at=naive,
            completed_at=naive,
        )
        assert task.created_at == NOW.replace(hour=9, minute=30)
        assert task.completed_at is not None
        assert task.completed_at.tzinfo is not None


class TestTaskInput:
    def test_all_optional(self) -> None:
        data = TaskInput()
        assert data.room_id is None
        assert data.estimated_time is None

    def test_rejects_unknown_priority(self) -> None:
        with pytest.raises(ValidationError):
            TaskInput.model_validate({"priority": "CRITICAL"})


class TestTaskUpdate:
    def test_only_set_fields(self) -> None:
        assert TaskUpdate(notes="x").changes() == {"notes": "x"}

    def test_explicit_none_clears_nullable(self) -> None:
        changes = TaskUpdate(assigned_to=None, actual_time=None).changes()
        assert changes == {"assigned_to": None, "actual_time": None}

    def test_explicit_none_ignored_for_required(self) -> None:
        update = TaskUpdate(status=None, priority=None, estimated_time=None, notes=None)
        assert update.changes() == {"notes": None}

    def test_empty(self) -> None:
        assert TaskUpdate().changes() == {}


class TestRoom:
    def test_defaults(self) -> None:
        room = Room(id="R1", number="101", type="SINGLE")
        assert room.status == RoomStatus.AVAILABLE
        assert room.price == 0.0


class TestSnapshot:
    def test_sequence_is_highest_half(self) -> None:
        snapshot = Snapshot(tasks_sequence=4, rooms_sequence=7, fetched_at=NOW)
        assert snapshot.sequence == 7

    def test_empty(self) -> None:
        snapshot = Snapshot()
        assert snapshot.tasks == []
        assert snapshot.rooms == []
        assert snapshot.sequence == 0


class TestHousekeepingStats:
    def test_defaults_are_zero(self) -> None:
        stats = HousekeepingStats()
        assert stats.total_tasks == 0
        assert stats.average_cleaning_time == 0.0

    def test_rejects_negative_counts(self) -> None:
        with pytest.raises(ValidationError):
            HousekeepingStats(total_tasks=-1)


class TestConfig:
    def test_housekeeping_defaults(self) -> None:
        cfg = HousekeepingConfig()
        assert cfg.poll_interval_seconds == 30.0
        assert cfg.overdue_after == timedelta(hours=2)
        assert cfg.recent_window == timedelta(minutes=30)
        assert cfg.max_alerts == 10

    def test_interval_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            HousekeepingConfig(poll_interval_seconds=0)

    def test_retry_policy_defaults(self) -> None:
        policy = RetryPolicy()
        assert policy.max_retries == 3
        assert policy.base_delay_seconds == 1.0


class TestFrameworkEvent:
    def test_defaults(self) -> None:
        event = FrameworkEvent(type="snapshot_applied")
        assert event.data == {}
        assert event.task_id is None
        assert event.timestamp.tzinfo is not None

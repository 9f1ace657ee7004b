"""Stats aggregation over a task snapshot."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from hkops.models.enums import TaskStatus
from hkops.models.stats import HousekeepingStats
from hkops.models.task import Task

__all__ = ["aggregate"]


def _same_day(moment: datetime, now: datetime) -> bool:
    """Compare calendar days in *now*'s timezone."""
    if now.tzinfo is not None and moment.tzinfo is not None:
        moment = moment.astimezone(now.tzinfo)
    return moment.date() == now.date()


def aggregate(tasks: Iterable[Task], now: datetime) -> HousekeepingStats:
    """Derive housekeeping counts and the average cleaning time.

    Pure: no I/O and the input tasks are not modified. The average is taken
    over COMPLETED tasks that carry an ``actual_time`` and is 0.0 when there
    are none.
    """
    total = pending = in_progress = completed = today = 0
    durations: list[int] = []

    for task in tasks:
        total += 1
        if task.status == TaskStatus.PENDING:
            pending += 1
        elif task.status == TaskStatus.IN_PROGRESS:
            in_progress += 1
        elif task.status == TaskStatus.COMPLETED:
            completed += 1
            if task.completed_at is not None and _same_day(task.completed_at, now):
                today += 1
            if task.actual_time is not None:
                durations.append(task.actual_time)

    average = sum(durations) / len(durations) if durations else 0.0

    return HousekeepingStats(
        total_tasks=total,
        pending_cleaning=pending,
        in_progress=in_progress,
        total_cleaned=completed,
        cleaned_today=today,
        average_cleaning_time=average,
    )

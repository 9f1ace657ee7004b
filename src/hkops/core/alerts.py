"""Alert derivation and read-state.

``derive_alerts`` is a pure function of (tasks, rooms, now) plus the prior
read flags. ``AlertReadState`` owns which alert ids have been read or
dismissed; the derivation pass only reads it. Keeping the two apart is what
stops already-read alerts from coming back as unread after the next poll.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Mapping
from datetime import datetime, timedelta

from hkops.models.alert import Alert
from hkops.models.enums import (
    AlertCategory,
    AlertPriority,
    AlertType,
    RoomStatus,
    TaskPriority,
    TaskStatus,
)
from hkops.models.room import Room
from hkops.models.task import Task

__all__ = [
    "DEFAULT_MAX_ALERTS",
    "DEFAULT_OVERDUE_AFTER",
    "DEFAULT_RECENT_WINDOW",
    "AlertReadState",
    "alert_id",
    "derive_alerts",
    "filter_alerts",
    "unread_count",
]

DEFAULT_OVERDUE_AFTER = timedelta(hours=2)
DEFAULT_RECENT_WINDOW = timedelta(minutes=30)
DEFAULT_MAX_ALERTS = 10

_ID_PREFIX: dict[AlertCategory, str] = {
    AlertCategory.URGENT_TASK: "urgent-task",
    AlertCategory.OVERDUE_TASK: "overdue-task",
    AlertCategory.COMPLETED_TASK: "completed-task",
    AlertCategory.MAINTENANCE_ROOM: "maintenance-room",
}


def alert_id(category: AlertCategory, entity_id: str) -> str:
    """Stable alert id for a task or room, e.g. ``urgent-task-42``."""
    return f"{_ID_PREFIX[category]}-{entity_id}"


def _humanize(task_type: str) -> str:
    return task_type.replace("_", " ")


def derive_alerts(
    tasks: Iterable[Task],
    rooms: Iterable[Room],
    now: datetime,
    prior_read: Mapping[str, bool] | None = None,
    *,
    dismissed: Collection[str] = (),
    overdue_after: timedelta = DEFAULT_OVERDUE_AFTER,
    recent_window: timedelta = DEFAULT_RECENT_WINDOW,
    limit: int = DEFAULT_MAX_ALERTS,
) -> list[Alert]:
    """Compute the current alerts, newest first, capped to *limit*.

    Rules:

    * urgent pending task -> ``urgent-task-{id}`` (high)
    * task pending for longer than *overdue_after* -> ``overdue-task-{id}`` (medium)
    * task completed within *recent_window* -> ``completed-task-{id}`` (info)
    * room in MAINTENANCE -> ``maintenance-room-{id}`` (medium, stamped *now*)

    Ties on timestamp are broken by priority rank. ``is_read`` comes from
    *prior_read*; ids never seen before are unread. Ids in *dismissed* are
    dropped before the cap is applied.
    """
    room_list = list(rooms)
    room_numbers = {room.id: room.number for room in room_list}
    read = prior_read or {}
    alerts: list[Alert] = []

    def room_label(task: Task) -> str:
        return room_numbers.get(task.room_id) or task.room_number or task.room_id

    for task in tasks:
        if task.status == TaskStatus.PENDING:
            if task.priority == TaskPriority.URGENT:
                alerts.append(
                    Alert(
                        id=alert_id(AlertCategory.URGENT_TASK, task.id),
                        category=AlertCategory.URGENT_TASK,
                        type=AlertType.URGENT,
                        title="Urgent Task Pending",
                        message=f"Room {room_label(task)} - {_humanize(task.task_type)}",
                        timestamp=task.created_at,
                        priority=AlertPriority.HIGH,
                        task_id=task.id,
                        room_id=task.room_id,
                    )
                )
            if now - task.created_at > overdue_after:
                hours = overdue_after.total_seconds() / 3600
                alerts.append(
                    Alert(
                        id=alert_id(AlertCategory.OVERDUE_TASK, task.id),
                        category=AlertCategory.OVERDUE_TASK,
                        type=AlertType.WARNING,
                        title="Overdue Task",
                        message=(
                            f"Room {room_label(task)} task has been pending "
                            f"for over {hours:g} hours"
                        ),
                        timestamp=task.created_at,
                        priority=AlertPriority.MEDIUM,
                        task_id=task.id,
                        room_id=task.room_id,
                    )
                )
        elif (
            task.status == TaskStatus.COMPLETED
            and task.completed_at is not None
            and now - task.completed_at < recent_window
        ):
            alerts.append(
                Alert(
                    id=alert_id(AlertCategory.COMPLETED_TASK, task.id),
                    category=AlertCategory.COMPLETED_TASK,
                    type=AlertType.SUCCESS,
                    title="Task Completed",
                    message=(
                        f"Room {room_label(task)} "
                        f"{_humanize(task.task_type).lower()} completed"
                    ),
                    timestamp=task.completed_at,
                    priority=AlertPriority.INFO,
                    task_id=task.id,
                    room_id=task.room_id,
                )
            )

    for room in room_list:
        if room.status == RoomStatus.MAINTENANCE:
            alerts.append(
                Alert(
                    id=alert_id(AlertCategory.MAINTENANCE_ROOM, room.id),
                    category=AlertCategory.MAINTENANCE_ROOM,
                    type=AlertType.WARNING,
                    title="Room in Maintenance",
                    message=f"Room {room.number} is currently under maintenance",
                    timestamp=now,
                    priority=AlertPriority.MEDIUM,
                    room_id=room.id,
                )
            )

    if dismissed:
        alerts = [a for a in alerts if a.id not in dismissed]
    alerts.sort(key=lambda a: (a.timestamp, a.priority.rank), reverse=True)
    alerts = alerts[:limit]
    for alert in alerts:
        alert.is_read = read.get(alert.id, False)
    return alerts


class AlertReadState:
    """Read and dismissed alert ids, kept across derivation cycles.

    This is the only mutable state the alert pipeline owns. It is changed
    solely through ``mark_as_read``, ``mark_all_as_read`` and ``remove``.
    """

    def __init__(self) -> None:
        self._read: dict[str, bool] = {}
        self._dismissed: set[str] = set()

    def mark_as_read(self, alert_id: str) -> None:
        self._read[alert_id] = True

    def mark_all_as_read(self, alert_ids: Iterable[str]) -> None:
        for aid in alert_ids:
            self._read[aid] = True

    def remove(self, alert_id: str) -> None:
        """Dismiss an alert so later derivations no longer return it."""
        self._dismissed.add(alert_id)
        self._read.pop(alert_id, None)

    def is_read(self, alert_id: str) -> bool:
        return self._read.get(alert_id, False)

    def read_map(self) -> dict[str, bool]:
        return dict(self._read)

    @property
    def dismissed(self) -> frozenset[str]:
        return frozenset(self._dismissed)


def unread_count(alerts: Iterable[Alert]) -> int:
    return sum(1 for a in alerts if not a.is_read)


def filter_alerts(
    alerts: Iterable[Alert],
    *,
    category: AlertCategory | None = None,
    unread_only: bool = False,
) -> list[Alert]:
    return [
        a
        for a in alerts
        if (category is None or a.category == category) and not (unread_only and a.is_read)
    ]

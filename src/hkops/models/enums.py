"""All string enums for hkops."""

from __future__ import annotations

from enum import StrEnum, unique


@unique
class TaskType(StrEnum):
    CLEANING = "CLEANING"
    MAINTENANCE = "MAINTENANCE"
    INSPECTION = "INSPECTION"
    REPAIR = "REPAIR"
    RESTOCKING = "RESTOCKING"


@unique
class TaskStatus(StrEnum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.CANCELLED)


@unique
class TaskPriority(StrEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


@unique
class TaskAction(StrEnum):
    """Guarded lifecycle verbs."""

    START = "start"
    COMPLETE = "complete"
    CANCEL = "cancel"


@unique
class RoomStatus(StrEnum):
    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"
    MAINTENANCE = "MAINTENANCE"
    CLEANING = "CLEANING"


@unique
class AlertCategory(StrEnum):
    URGENT_TASK = "urgent_task"
    OVERDUE_TASK = "overdue_task"
    COMPLETED_TASK = "completed_task"
    MAINTENANCE_ROOM = "maintenance_room"


@unique
class AlertType(StrEnum):
    URGENT = "urgent"
    WARNING = "warning"
    SUCCESS = "success"
    INFO = "info"


@unique
class AlertPriority(StrEnum):
    URGENT = "urgent"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"

    @property
    def rank(self) -> int:
        """Ordering weight, higher sorts first."""
        return _ALERT_PRIORITY_RANK[self]


_ALERT_PRIORITY_RANK: dict[AlertPriority, int] = {
    AlertPriority.URGENT: 4,
    AlertPriority.HIGH: 3,
    AlertPriority.MEDIUM: 2,
    AlertPriority.LOW: 1,
    AlertPriority.INFO: 0,
}


@unique
class QuickActionKind(StrEnum):
    CHECKOUT = "checkout"
    MAINTENANCE = "maintenance"
    CLEAN = "clean"

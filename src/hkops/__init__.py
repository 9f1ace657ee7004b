"""hkops - housekeeping operations engine for the hotel back-office dashboard."""

from hkops._version import __version__
from hkops.core.alerts import AlertReadState, derive_alerts, filter_alerts, unread_count
from hkops.core.engine import FrameworkEventHandler, HousekeepingEngine
from hkops.core.errors import (
    HousekeepingError,
    InvalidTransitionError,
    NotFoundError,
    PartialCompoundFailureError,
    QuickActionBusyError,
    RoomNotFoundError,
    StoreUnavailableError,
    TaskNotFoundError,
    ValidationFailedError,
)
from hkops.core.lifecycle import TRANSITIONS, TaskLifecycleManager, can_transition
from hkops.core.poller import SnapshotPoller
from hkops.core.quick_actions import (
    QUICK_ACTIONS,
    QuickActionOrchestrator,
    QuickActionPlan,
    QuickActionResult,
)
from hkops.core.retry import retry_with_backoff
from hkops.core.stats import aggregate
from hkops.models.alert import Alert
from hkops.models.config import GraphQLStoreConfig, HousekeepingConfig, RetryPolicy
from hkops.models.enums import (
    AlertCategory,
    AlertPriority,
    AlertType,
    QuickActionKind,
    RoomStatus,
    TaskAction,
    TaskPriority,
    TaskStatus,
    TaskType,
)
from hkops.models.framework_event import FrameworkEvent
from hkops.models.room import Room
from hkops.models.snapshot import Snapshot
from hkops.models.stats import HousekeepingStats
from hkops.models.task import Task, TaskInput, TaskUpdate
from hkops.store.base import TaskStore
from hkops.store.graphql import GraphQLTaskStore
from hkops.store.memory import InMemoryTaskStore

__all__ = [
    "QUICK_ACTIONS",
    "TRANSITIONS",
    "Alert",
    "AlertCategory",
    "AlertPriority",
    "AlertReadState",
    "AlertType",
    "FrameworkEvent",
    "FrameworkEventHandler",
    "GraphQLStoreConfig",
    "GraphQLTaskStore",
    "HousekeepingConfig",
    "HousekeepingEngine",
    "HousekeepingError",
    "HousekeepingStats",
    "InMemoryTaskStore",
    "InvalidTransitionError",
    "NotFoundError",
    "PartialCompoundFailureError",
    "QuickActionBusyError",
    "QuickActionKind",
    "QuickActionOrchestrator",
    "QuickActionPlan",
    "QuickActionResult",
    "RetryPolicy",
    "Room",
    "RoomNotFoundError",
    "RoomStatus",
    "Snapshot",
    "SnapshotPoller",
    "StoreUnavailableError",
    "Task",
    "TaskAction",
    "TaskInput",
    "TaskLifecycleManager",
    "TaskNotFoundError",
    "TaskPriority",
    "TaskStatus",
    "TaskStore",
    "TaskType",
    "TaskUpdate",
    "ValidationFailedError",
    "__version__",
    "aggregate",
    "can_transition",
    "derive_alerts",
    "filter_alerts",
    "retry_with_backoff",
    "unread_count",
]

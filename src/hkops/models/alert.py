"""Alert model."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from hkops.models.enums import AlertCategory, AlertPriority, AlertType


class Alert(BaseModel):
    """A derived urgency signal.

    Alerts are never persisted. They are recomputed from every snapshot and
    only ``is_read`` is carried across cycles, keyed by ``id``.
    """

    id: str
    category: AlertCategory
    type: AlertType
    title: str
    message: str
    timestamp: datetime
    priority: AlertPriority
    is_read: bool = False
    task_id: str | None = None
    room_id: str | None = None

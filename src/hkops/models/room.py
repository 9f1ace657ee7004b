"""Room model."""

from __future__ import annotations

from pydantic import BaseModel

from hkops.models.enums import RoomStatus


class Room(BaseModel):
    """A hotel room as seen by housekeeping."""

    id: str
    number: str
    type: str
    status: RoomStatus = RoomStatus.AVAILABLE
    price: float = 0.0

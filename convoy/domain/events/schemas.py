"""Event domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel


class EventResponse(BaseModel):
    """Schema for event response"""

    id: Optional[int] = None
    truckersmpId: str
    title: str
    description: str
    startDate: datetime
    endDate: Optional[datetime] = None
    route: str
    server: str
    meetingPoint: str
    departurePoint: str
    arrivalPoint: str
    banner: Optional[str] = None
    map: Optional[str] = None
    status: str
    attendances: Optional[dict[str, Any]] = None
    voiceLink: Optional[str] = None
    externalLink: Optional[str] = None
    rule: Optional[str] = None
    dlcs: dict[str, str] = {}
    url: Optional[str] = None
    slotCount: int = 0


class SyncStats(BaseModel):
    totalReceived: int
    totalProcessed: int
    totalDeleted: int
    totalInDatabase: int


class EventListResponse(BaseModel):
    response: list[EventResponse]
    stats: SyncStats


class EventStatusUpdate(BaseModel):
    """Schema for a manual event status override"""

    status: Literal["upcoming", "ongoing", "completed", "cancelled"]

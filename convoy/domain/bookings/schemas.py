"""Booking domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class BookingListItem(BaseModel):
    """Flattened booking row for the admin dashboard"""

    id: int
    slotId: int
    eventId: str
    eventTitle: str
    server: Optional[str] = None
    startDate: Optional[datetime] = None
    imageUrl: str
    imageNumber: int
    slotNumber: int
    name: str
    vtcName: str
    vtcRole: Optional[str] = None
    vtcLink: Optional[str] = None
    playerCount: int
    discordUsername: Optional[str] = None
    status: str
    notes: Optional[str] = None
    createdAt: datetime

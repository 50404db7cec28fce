"""Slot domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import require_text


class SubSlotCreate(BaseModel):
    number: int = Field(..., ge=1)


class SlotImageCreate(BaseModel):
    """One slot image and the sub-slot numbers it shows"""

    imageUrl: str
    slots: list[SubSlotCreate]

    @field_validator("slots")
    @classmethod
    def validate_slots(cls, v):
        if not v:
            raise ValueError("Each slot image must have at least one slot number")
        return v


class SlotBatchCreate(BaseModel):
    """Schema for publishing slot images for an event"""

    slots: list[SlotImageCreate]

    @field_validator("slots")
    @classmethod
    def validate_images(cls, v):
        if not v:
            raise ValueError("At least one slot image is required")
        return v


class SlotUpdate(BaseModel):
    imageUrl: str


class SlotRequestCreate(BaseModel):
    """Schema for a VTC requesting one sub-slot"""

    slotNumber: int
    name: str
    vtcName: str
    vtcRole: Optional[str] = None
    vtcLink: Optional[str] = None
    playercount: int = Field(..., ge=1)
    discordUsername: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return require_text(v, "Name")

    @field_validator("vtcName")
    @classmethod
    def validate_vtc_name(cls, v):
        return require_text(v, "VTC name")

    @field_validator("vtcRole", "vtcLink", "discordUsername")
    @classmethod
    def strip_optional(cls, v):
        if v is None:
            return v
        return v.strip() or None


class BookingStatusUpdate(BaseModel):
    """Schema for an admin decision on a pending booking"""

    status: Literal["approved", "rejected"]
    notes: Optional[str] = None


class BookingResponse(BaseModel):
    id: int
    name: str
    vtcName: str
    vtcRole: Optional[str] = None
    vtcLink: Optional[str] = None
    playerCount: int
    discordUsername: Optional[str] = None
    status: str
    notes: Optional[str] = None
    reviewedBy: Optional[str] = None
    createdAt: datetime


class SubSlotResponse(BaseModel):
    id: int
    number: int
    isAvailable: bool
    booking: Optional[BookingResponse] = None


class SlotResponse(BaseModel):
    """Schema for a slot image with its sub-slots"""

    id: int
    eventId: str
    imageUrl: str
    imageNumber: int
    slots: list[SubSlotResponse]
    createdAt: Optional[datetime] = None


class SlotBatchResponse(BaseModel):
    message: str
    slots: list[SlotResponse]


class SlotRequestResponse(BaseModel):
    message: str
    slotId: int
    slotNumber: int
    booking: BookingResponse


class BookingStatusResponse(BaseModel):
    message: str
    status: str
    slotId: int
    slotNumber: int
    isAvailable: bool
    booking: Optional[BookingResponse] = None

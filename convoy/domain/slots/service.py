"""Slot service - Slot images and the booking state of their sub-slots"""

import logging
from collections import Counter
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...config import ALLOWED_IMAGE_HOSTS
from ...models import Booking, Slot, SubSlot, User
from ...services.discord_service import BookingNotice
from ...shared.validators import is_allowed_image_url
from ..events.repository import EventRepository
from .repository import SlotRepository
from .schemas import (
    BookingResponse,
    BookingStatusUpdate,
    SlotBatchCreate,
    SlotRequestCreate,
    SlotResponse,
    SubSlotResponse,
)

logger = logging.getLogger(__name__)


def booking_to_response(booking: Booking) -> BookingResponse:
    return BookingResponse(
        id=booking.id,
        name=booking.name,
        vtcName=booking.vtc_name,
        vtcRole=booking.vtc_role,
        vtcLink=booking.vtc_link,
        playerCount=booking.player_count,
        discordUsername=booking.discord_username,
        status=booking.status,
        notes=booking.notes,
        reviewedBy=booking.reviewed_by.username if booking.reviewed_by else None,
        createdAt=booking.created_at,
    )


def sub_slot_to_response(sub_slot: SubSlot) -> SubSlotResponse:
    return SubSlotResponse(
        id=sub_slot.id,
        number=sub_slot.number,
        isAvailable=sub_slot.is_available,
        booking=booking_to_response(sub_slot.booking) if sub_slot.booking else None,
    )


def slot_to_response(slot: Slot) -> SlotResponse:
    return SlotResponse(
        id=slot.id,
        eventId=slot.event_id,
        imageUrl=slot.image_url,
        imageNumber=slot.image_number,
        slots=[sub_slot_to_response(s) for s in slot.sub_slots],
        createdAt=slot.created_at,
    )


def build_notice(booking: Booking, sub_slot: SubSlot, event_title: str, status: Optional[str] = None) -> BookingNotice:
    return BookingNotice(
        event_title=event_title,
        slot_number=sub_slot.number,
        vtc_name=booking.vtc_name,
        name=booking.name,
        status=status or booking.status,
        vtc_role=booking.vtc_role,
        vtc_link=booking.vtc_link,
        discord_username=booking.discord_username,
    )


def _event_title(slot: Slot) -> str:
    return slot.event.title if slot.event else "Unknown Event"


class SlotService:
    """Service layer for slot images and bookings"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SlotRepository()
        self.events = EventRepository()

    # ------------------------------------------------------------------
    # Slot images
    # ------------------------------------------------------------------

    def get_slot(self, slot_id: int) -> Slot:
        slot = self.repo.get_slot(self.db, slot_id)
        if not slot:
            raise HTTPException(status_code=404, detail="Slot not found")
        return slot

    def get_event_slots(self, event_id: str) -> list[Slot]:
        if not self.events.get_by_truckersmp_id(self.db, event_id):
            raise HTTPException(status_code=404, detail="Event not found")
        return self.repo.get_event_slots(self.db, event_id)

    def create_slots(self, event_id: str, data: SlotBatchCreate, user: User) -> list[Slot]:
        """
        Publish slot images for an event.
        Sub-slot numbers must be unique within the request and across the event's existing images.
        """
        event = self.events.get_by_truckersmp_id(self.db, event_id)
        if not event:
            raise HTTPException(status_code=404, detail="Event not found")

        for image in data.slots:
            if not is_allowed_image_url(image.imageUrl):
                raise HTTPException(
                    status_code=400,
                    detail=f"Invalid image URL. Must be from {', '.join(ALLOWED_IMAGE_HOSTS)}",
                )

        new_numbers = [sub.number for image in data.slots for sub in image.slots]
        existing_numbers = self.repo.get_event_slot_numbers(self.db, event_id)
        duplicates = {number for number, count in Counter(new_numbers).items() if count > 1}
        duplicates |= existing_numbers.intersection(new_numbers)
        if duplicates:
            raise HTTPException(
                status_code=400,
                detail=f"Duplicate slot numbers found: {', '.join(str(n) for n in sorted(duplicates))}",
            )

        # Numbers are never reused, even after an earlier image was deleted
        first_number = self.repo.max_image_number(self.db, event_id) + 1
        try:
            slots = self.repo.create_slots(
                self.db,
                event_id,
                [(image.imageUrl.strip(), [sub.number for sub in image.slots]) for image in data.slots],
                first_number,
            )
        except IntegrityError as e:
            self.db.rollback()
            raise HTTPException(status_code=400, detail="Duplicate slot numbers found") from e

        logger.info(
            f"✅ {user.username} published {len(slots)} slot image(s) "
            f"with {len(new_numbers)} slots for event {event_id}"
        )
        return slots

    def update_slot(self, slot_id: int, image_url: str) -> Slot:
        slot = self.get_slot(slot_id)
        if not is_allowed_image_url(image_url):
            raise HTTPException(
                status_code=400,
                detail=f"Invalid image URL. Must be from {', '.join(ALLOWED_IMAGE_HOSTS)}",
            )
        return self.repo.update_image_url(self.db, slot, image_url.strip())

    def delete_slot(self, slot_id: int, user: User) -> None:
        """Delete a slot image unless one of its sub-slots holds an approved booking"""
        slot = self.get_slot(slot_id)
        if any(s.booking and s.booking.status == "approved" for s in slot.sub_slots):
            raise HTTPException(
                status_code=400, detail="Cannot delete a slot image with approved bookings"
            )
        self.repo.delete_slot(self.db, slot)
        logger.info(f"🗑️ {user.username} deleted slot image {slot_id}")

    # ------------------------------------------------------------------
    # Booking state
    # ------------------------------------------------------------------

    def _get_sub_slot(self, slot: Slot, number: int) -> SubSlot:
        sub_slot = self.repo.get_sub_slot(self.db, slot.id, number)
        if not sub_slot:
            raise HTTPException(status_code=404, detail="Slot number not found")
        return sub_slot

    def request_slot(self, slot_id: int, data: SlotRequestCreate) -> tuple[SubSlot, BookingNotice]:
        """
        Book one sub-slot for a VTC.
        The sub-slot becomes unavailable and carries a pending booking.
        """
        slot = self.get_slot(slot_id)
        sub_slot = self._get_sub_slot(slot, data.slotNumber)

        if not sub_slot.is_available:
            raise HTTPException(status_code=400, detail="This slot is already booked")

        # Conditional update: only one concurrent request can flip is_available
        if not self.repo.claim_sub_slot(self.db, sub_slot.id):
            self.db.rollback()
            raise HTTPException(status_code=400, detail="This slot is already booked")

        booking = Booking(
            sub_slot=sub_slot,
            name=data.name,
            vtc_name=data.vtcName,
            vtc_role=data.vtcRole,
            vtc_link=data.vtcLink,
            player_count=data.playercount,
            discord_username=data.discordUsername,
            status="pending",
        )
        self.db.add(booking)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise HTTPException(status_code=400, detail="This slot is already booked") from e

        self.db.refresh(sub_slot)
        logger.info(
            f"📥 Slot #{sub_slot.number} of image {slot.id} requested by {booking.vtc_name} ({booking.name})"
        )
        return sub_slot, build_notice(booking, sub_slot, _event_title(slot))

    def _transition(
        self, sub_slot: SubSlot, data: BookingStatusUpdate, reviewer: User
    ) -> tuple[SubSlot, Optional[Booking], BookingNotice]:
        booking = sub_slot.booking
        if booking.status != "pending":
            raise HTTPException(
                status_code=400, detail=f"Booking is already {booking.status}"
            )

        notice = build_notice(booking, sub_slot, _event_title(sub_slot.slot), status=data.status)

        if data.status == "approved":
            booking.status = "approved"
            booking.reviewed_by_id = reviewer.id
            if data.notes:
                booking.notes = data.notes
        else:
            # Rejection frees the sub-slot for another request
            self.repo.release_sub_slot(self.db, sub_slot)

        self.db.commit()
        self.db.refresh(sub_slot)
        logger.info(
            f"📝 {reviewer.username} {data.status} slot #{sub_slot.number} of image {sub_slot.slot_id}"
        )
        return sub_slot, sub_slot.booking, notice

    def update_booking_status(
        self, slot_id: int, number: int, data: BookingStatusUpdate, reviewer: User
    ) -> tuple[SubSlot, Optional[Booking], BookingNotice]:
        """Approve or reject the booking on a sub-slot addressed by image and number"""
        slot = self.get_slot(slot_id)
        sub_slot = self._get_sub_slot(slot, number)
        if not sub_slot.booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        return self._transition(sub_slot, data, reviewer)

    def update_booking_status_by_id(
        self, booking_id: int, data: BookingStatusUpdate, reviewer: User
    ) -> tuple[SubSlot, Optional[Booking], BookingNotice]:
        """Approve or reject a booking addressed by its own ID"""
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        return self._transition(booking.sub_slot, data, reviewer)

    def cancel_booking(self, slot_id: int, number: int, user: User) -> SubSlot:
        """Remove any booking, approved ones included, and free the sub-slot"""
        slot = self.get_slot(slot_id)
        sub_slot = self._get_sub_slot(slot, number)
        if not sub_slot.booking:
            raise HTTPException(status_code=404, detail="Booking not found")

        previous = sub_slot.booking.status
        self.repo.release_sub_slot(self.db, sub_slot)
        self.db.commit()
        self.db.refresh(sub_slot)
        logger.info(f"🗑️ {user.username} removed {previous} booking on slot #{number} of image {slot_id}")
        return sub_slot

"""Booking router - admin views and decisions on slot requests"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_admin
from ...database import get_db
from ...models import Booking, User
from ...services.discord_service import DiscordNotifier, get_notifier
from ...services.notification_service import schedule_status_changed
from ..slots.router import get_slot_service
from ..slots.schemas import BookingStatusResponse, BookingStatusUpdate
from ..slots.service import SlotService, booking_to_response
from .repository import BookingRepository
from .schemas import BookingListItem

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])


def booking_to_list_item(booking: Booking) -> BookingListItem:
    sub_slot = booking.sub_slot
    slot = sub_slot.slot
    event = slot.event
    return BookingListItem(
        id=booking.id,
        slotId=slot.id,
        eventId=slot.event_id,
        eventTitle=event.title if event else "Unknown Event",
        server=event.server if event else None,
        startDate=event.start_date if event else None,
        imageUrl=slot.image_url,
        imageNumber=slot.image_number,
        slotNumber=sub_slot.number,
        name=booking.name,
        vtcName=booking.vtc_name,
        vtcRole=booking.vtc_role,
        vtcLink=booking.vtc_link,
        playerCount=booking.player_count,
        discordUsername=booking.discord_username,
        status=booking.status,
        notes=booking.notes,
        createdAt=booking.created_at,
    )


@router.get("", response_model=list[BookingListItem])
async def list_bookings(
    eventId: Optional[str] = Query(None),
    status: Optional[Literal["pending", "approved", "rejected", "all"]] = Query(None),
    current_user: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    """Get all bookings, newest first (admin only)"""
    bookings = BookingRepository.search_bookings(db, eventId, status)
    logger.info(f"📋 Found {len(bookings)} bookings")
    return [booking_to_list_item(booking) for booking in bookings]


@router.patch("/{booking_id}/status", response_model=BookingStatusResponse)
async def update_booking_status(
    booking_id: int,
    data: BookingStatusUpdate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_admin),
    service: SlotService = Depends(get_slot_service),
    notifier: DiscordNotifier = Depends(get_notifier),
):
    """Approve or reject a pending booking by its ID (admin only)"""
    sub_slot, booking, notice = service.update_booking_status_by_id(
        booking_id, data, current_user
    )
    schedule_status_changed(background_tasks, notifier, notice)
    return BookingStatusResponse(
        message="Booking status updated successfully",
        status=data.status,
        slotId=sub_slot.slot_id,
        slotNumber=sub_slot.number,
        isAvailable=sub_slot.is_available,
        booking=booking_to_response(booking) if booking else None,
    )

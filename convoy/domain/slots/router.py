"""Slot router - FastAPI endpoints for slot images and slot requests"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_admin
from ...database import get_db
from ...models import User
from ...schemas import MessageResponse
from ...services.discord_service import DiscordNotifier, get_notifier
from ...services.notification_service import schedule_booking_created, schedule_status_changed
from .schemas import (
    BookingStatusResponse,
    BookingStatusUpdate,
    SlotBatchCreate,
    SlotBatchResponse,
    SlotRequestCreate,
    SlotRequestResponse,
    SlotResponse,
    SlotUpdate,
)
from .service import SlotService, booking_to_response, slot_to_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Slots"])


def get_slot_service(db: Session = Depends(get_db)) -> SlotService:
    """Dependency injection for SlotService"""
    return SlotService(db)


# ============================================================================
# SLOT IMAGES
# ============================================================================


@router.post("/events/{event_id}/slots", response_model=SlotBatchResponse, status_code=201)
async def create_event_slots(
    event_id: str,
    data: SlotBatchCreate,
    current_user: User = Depends(get_current_admin),
    service: SlotService = Depends(get_slot_service),
):
    """Publish one or more slot images for an event (admin only)"""
    slots = service.create_slots(event_id, data, current_user)
    return SlotBatchResponse(
        message="Slots created successfully",
        slots=[slot_to_response(slot) for slot in slots],
    )


@router.get("/events/{event_id}/slots", response_model=list[SlotResponse])
async def get_event_slots(event_id: str, service: SlotService = Depends(get_slot_service)):
    """Get all slot images of an event"""
    return [slot_to_response(slot) for slot in service.get_event_slots(event_id)]


@router.get("/slots/{slot_id}", response_model=SlotResponse)
async def get_slot(slot_id: int, service: SlotService = Depends(get_slot_service)):
    """Get a single slot image with its sub-slots"""
    return slot_to_response(service.get_slot(slot_id))


@router.patch("/slots/{slot_id}", response_model=SlotResponse)
async def update_slot(
    slot_id: int,
    data: SlotUpdate,
    current_user: User = Depends(get_current_admin),
    service: SlotService = Depends(get_slot_service),
):
    """Replace a slot image URL (admin only)"""
    return slot_to_response(service.update_slot(slot_id, data.imageUrl))


@router.delete("/slots/{slot_id}", response_model=MessageResponse)
async def delete_slot(
    slot_id: int,
    current_user: User = Depends(get_current_admin),
    service: SlotService = Depends(get_slot_service),
):
    """Delete a slot image without approved bookings (admin only)"""
    service.delete_slot(slot_id, current_user)
    return MessageResponse(message="Slot deleted successfully")


# ============================================================================
# SLOT REQUESTS
# ============================================================================


@router.post("/slots/{slot_id}/request", response_model=SlotRequestResponse)
async def request_slot(
    slot_id: int,
    data: SlotRequestCreate,
    background_tasks: BackgroundTasks,
    service: SlotService = Depends(get_slot_service),
    notifier: DiscordNotifier = Depends(get_notifier),
):
    """Request a numbered slot for a VTC"""
    sub_slot, notice = service.request_slot(slot_id, data)
    schedule_booking_created(background_tasks, notifier, notice)
    return SlotRequestResponse(
        message="Slot request submitted successfully",
        slotId=slot_id,
        slotNumber=sub_slot.number,
        booking=booking_to_response(sub_slot.booking),
    )


@router.patch(
    "/slots/{slot_id}/bookings/{slot_number}/status", response_model=BookingStatusResponse
)
async def update_booking_status(
    slot_id: int,
    slot_number: int,
    data: BookingStatusUpdate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_admin),
    service: SlotService = Depends(get_slot_service),
    notifier: DiscordNotifier = Depends(get_notifier),
):
    """Approve or reject a pending slot request (admin only)"""
    sub_slot, booking, notice = service.update_booking_status(
        slot_id, slot_number, data, current_user
    )
    schedule_status_changed(background_tasks, notifier, notice)
    return BookingStatusResponse(
        message="Booking status updated successfully",
        status=data.status,
        slotId=slot_id,
        slotNumber=sub_slot.number,
        isAvailable=sub_slot.is_available,
        booking=booking_to_response(booking) if booking else None,
    )


@router.delete("/slots/{slot_id}/bookings/{slot_number}", response_model=MessageResponse)
async def cancel_booking(
    slot_id: int,
    slot_number: int,
    current_user: User = Depends(get_current_admin),
    service: SlotService = Depends(get_slot_service),
):
    """Remove a booking, approved ones included, and free the slot (admin only)"""
    service.cancel_booking(slot_id, slot_number, current_user)
    return MessageResponse(message="Booking removed successfully")

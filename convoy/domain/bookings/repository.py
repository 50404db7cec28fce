"""Booking repository - Read queries across slots, sub-slots and events"""

from typing import Optional

from sqlalchemy.orm import Session, contains_eager

from ...models import Booking, Slot, SubSlot


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def search_bookings(
        db: Session, event_id: Optional[str] = None, status: Optional[str] = None
    ) -> list[Booking]:
        """Get bookings with their sub-slot, image and event, newest first"""
        query = (
            db.query(Booking)
            .join(Booking.sub_slot)
            .join(SubSlot.slot)
            .outerjoin(Slot.event)
            .options(
                contains_eager(Booking.sub_slot)
                .contains_eager(SubSlot.slot)
                .contains_eager(Slot.event)
            )
        )
        if event_id:
            query = query.filter(Slot.event_id == event_id)
        if status and status != "all":
            query = query.filter(Booking.status == status)
        return query.order_by(Booking.created_at.desc(), Booking.id.desc()).all()


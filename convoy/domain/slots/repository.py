"""Slot repository - Database operations for slot images, sub-slots and bookings"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload

from ...models import Booking, Slot, SubSlot


class SlotRepository:
    """Repository for slot database operations"""

    @staticmethod
    def get_slot(db: Session, slot_id: int) -> Optional[Slot]:
        return (
            db.query(Slot)
            .options(selectinload(Slot.sub_slots).joinedload(SubSlot.booking))
            .filter(Slot.id == slot_id)
            .first()
        )

    @staticmethod
    def get_event_slots(db: Session, event_id: str) -> list[Slot]:
        """Get all slot images of an event ordered by image number"""
        return (
            db.query(Slot)
            .options(selectinload(Slot.sub_slots).joinedload(SubSlot.booking))
            .filter(Slot.event_id == event_id)
            .order_by(Slot.image_number.asc())
            .all()
        )

    @staticmethod
    def get_event_slot_numbers(db: Session, event_id: str) -> set[int]:
        rows = (
            db.query(SubSlot.number)
            .join(Slot, SubSlot.slot_id == Slot.id)
            .filter(Slot.event_id == event_id)
            .all()
        )
        return {row[0] for row in rows}

    @staticmethod
    def max_image_number(db: Session, event_id: str) -> int:
        """Highest image number used by the event, 0 when it has none"""
        return db.query(func.coalesce(func.max(Slot.image_number), 0)).filter(Slot.event_id == event_id).scalar()

    @staticmethod
    def get_sub_slot(db: Session, slot_id: int, number: int) -> Optional[SubSlot]:
        return (
            db.query(SubSlot)
            .options(joinedload(SubSlot.booking))
            .filter(SubSlot.slot_id == slot_id, SubSlot.number == number)
            .first()
        )

    @staticmethod
    def get_booking(db: Session, booking_id: int) -> Optional[Booking]:
        return (
            db.query(Booking)
            .options(joinedload(Booking.sub_slot).joinedload(SubSlot.slot))
            .filter(Booking.id == booking_id)
            .first()
        )

    @staticmethod
    def create_slots(db: Session, event_id: str, images: list[tuple[str, list[int]]], first_number: int) -> list[Slot]:
        """Create slot images with all sub-slots available"""
        created = []
        for index, (image_url, numbers) in enumerate(images):
            slot = Slot(
                event_id=event_id,
                image_url=image_url,
                image_number=first_number + index,
                sub_slots=[SubSlot(number=number, is_available=True) for number in numbers],
            )
            db.add(slot)
            created.append(slot)
        db.commit()
        for slot in created:
            db.refresh(slot)
        return created

    @staticmethod
    def update_image_url(db: Session, slot: Slot, image_url: str) -> Slot:
        slot.image_url = image_url
        db.commit()
        db.refresh(slot)
        return slot

    @staticmethod
    def delete_slot(db: Session, slot: Slot) -> None:
        db.delete(slot)
        db.commit()

    @staticmethod
    def claim_sub_slot(db: Session, sub_slot_id: int) -> bool:
        """
        Atomically mark a sub-slot unavailable.
        Returns False when another request already holds it.
        """
        claimed = (
            db.query(SubSlot)
            .filter(SubSlot.id == sub_slot_id, SubSlot.is_available.is_(True))
            .update({SubSlot.is_available: False}, synchronize_session=False)
        )
        return claimed == 1

    @staticmethod
    def release_sub_slot(db: Session, sub_slot: SubSlot) -> None:
        """Remove the booking and make the sub-slot available again (not committed)"""
        # delete-orphan cascade removes the booking row on flush
        sub_slot.booking = None
        sub_slot.is_available = True

"""Event repository - Database operations for events"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Event


class EventRepository:
    """Repository for event database operations"""

    @staticmethod
    def get_events(db: Session) -> list[Event]:
        """Get all events, soonest first"""
        return db.query(Event).order_by(Event.start_date.asc()).all()

    @staticmethod
    def get_by_truckersmp_id(db: Session, truckersmp_id: str) -> Optional[Event]:
        return db.query(Event).filter(Event.truckersmp_id == truckersmp_id).first()

    @staticmethod
    def get_events_not_in(db: Session, truckersmp_ids: list[str]) -> list[Event]:
        """Get local events whose TruckersMP ID is absent from the given list"""
        query = db.query(Event)
        if truckersmp_ids:
            query = query.filter(Event.truckersmp_id.notin_(truckersmp_ids))
        return query.all()

    @staticmethod
    def count_events(db: Session) -> int:
        return db.query(func.count(Event.id)).scalar()

    @staticmethod
    def upsert_event(db: Session, truckersmp_id: str, **event_data) -> tuple[Event, bool]:
        """
        Create or update the event keyed by its TruckersMP ID.
        Returns (event, created)
        """
        event = EventRepository.get_by_truckersmp_id(db, truckersmp_id)
        created = event is None
        if created:
            event = Event(truckersmp_id=truckersmp_id)
            db.add(event)

        for key, value in event_data.items():
            if getattr(event, key) != value:
                setattr(event, key, value)

        db.commit()
        db.refresh(event)
        return event, created

    @staticmethod
    def delete_event(db: Session, event: Event) -> None:
        """Delete an event; its slots, sub-slots and bookings cascade"""
        db.delete(event)
        db.commit()

    @staticmethod
    def update_status(db: Session, event: Event, status: str) -> Event:
        event.status = status
        db.commit()
        db.refresh(event)
        return event

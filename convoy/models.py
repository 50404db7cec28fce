from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

EVENT_STATUSES = ("upcoming", "ongoing", "completed", "cancelled")
BOOKING_STATUSES = ("pending", "approved", "rejected")
PRIVILEGED_ROLES = ("admin", "eventteam")


def default_attendances():
    return {"confirmed": 0, "vtcs": 0, "confirmed_vtcs": [], "confirmed_users": []}


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)  # bcrypt hash, never plaintext
    role = Column(String(20), default="member", nullable=False)  # admin, eventteam, member
    vtc_name = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    @property
    def is_privileged(self) -> bool:
        return self.role in PRIVILEGED_ROLES


class Event(Base):
    """Local mirror of a TruckersMP event"""

    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    truckersmp_id = Column(String(50), unique=True, index=True, nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=True)
    route = Column(String(255), nullable=False)
    server = Column(String(255), nullable=False)
    meeting_point = Column(String(255), nullable=False)
    departure_point = Column(String(255), nullable=False)
    arrival_point = Column(String(255), nullable=False)
    banner = Column(String(500), nullable=True)
    map = Column(String(500), nullable=True)
    status = Column(String(20), default="upcoming", nullable=False)  # upcoming, ongoing, completed, cancelled
    attendances = Column(JSON, default=default_attendances, nullable=True)  # mirrored from TruckersMP
    voice_link = Column(String(500), nullable=True)
    external_link = Column(String(500), nullable=True)
    rule = Column(Text, nullable=True)
    dlcs = Column(JSON, default=dict, nullable=True)  # {dlc_id: name}
    url = Column(String(500), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    slots = relationship(
        "Slot",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="Slot.image_number",
    )

    @property
    def confirmed_attendance(self) -> int:
        return (self.attendances or {}).get("confirmed") or 0


class Slot(Base):
    """One uploaded slot image holding a set of numbered sub-slots"""

    __tablename__ = "slots"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(
        String(50),
        ForeignKey("events.truckersmp_id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    image_url = Column(String(500), nullable=False)
    image_number = Column(Integer, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    event = relationship("Event", back_populates="slots")
    sub_slots = relationship(
        "SubSlot",
        back_populates="slot",
        cascade="all, delete-orphan",
        order_by="SubSlot.number",
    )


class SubSlot(Base):
    __tablename__ = "sub_slots"
    __table_args__ = (UniqueConstraint("slot_id", "number", name="uq_sub_slot_number"),)

    id = Column(Integer, primary_key=True, index=True)
    slot_id = Column(Integer, ForeignKey("slots.id", ondelete="CASCADE"), index=True, nullable=False)
    number = Column(Integer, nullable=False)
    # False exactly when a booking is attached
    is_available = Column(Boolean, default=True, nullable=False)

    slot = relationship("Slot", back_populates="sub_slots")
    booking = relationship(
        "Booking",
        back_populates="sub_slot",
        uselist=False,
        cascade="all, delete-orphan",
    )


class Booking(Base):
    """A VTC's request to occupy one sub-slot"""

    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    # Unique: a sub-slot can never hold two bookings
    sub_slot_id = Column(
        Integer,
        ForeignKey("sub_slots.id", ondelete="CASCADE"),
        unique=True,
        index=True,
        nullable=False,
    )
    name = Column(String(255), nullable=False)
    vtc_name = Column(String(255), nullable=False)
    vtc_role = Column(String(255), nullable=True)
    vtc_link = Column(String(500), nullable=True)
    player_count = Column(Integer, nullable=False)
    discord_username = Column(String(100), nullable=True)
    status = Column(String(20), default="pending", nullable=False)  # pending, approved, rejected
    notes = Column(Text, nullable=True)
    reviewed_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    sub_slot = relationship("SubSlot", back_populates="booking")
    reviewed_by = relationship("User")

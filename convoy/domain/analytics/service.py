"""Analytics service - read-only aggregation and CSV export over slots and events"""

import csv
import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from io import StringIO
from typing import Any, Optional

from fastapi import HTTPException
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session, selectinload

from ...models import Event, Slot, SubSlot
from ...shared.validators import slugify_filename

logger = logging.getLogger(__name__)

RECENT_BOOKINGS_LIMIT = 10
TOP_VTC_LIMIT = 10

APPROVED_EXPORT_COLUMNS = ["eventId", "slotNumber", "vtcName", "contactPerson", "playerCount", "bookingDate"]
EVENT_SUMMARY_COLUMNS = [
    "eventId",
    "eventTitle",
    "totalSlots",
    "approvedBookings",
    "pendingBookings",
    "rejectedBookings",
    "availableSlots",
    "truckersmpAttendance",
]
EVENT_BOOKINGS_COLUMNS = ["eventTitle", "slotNumber", "vtcName", "contactPerson", "playerCount", "bookingDate"]


@dataclass
class SlotCounts:
    total: int = 0
    approved: int = 0
    pending: int = 0
    rejected: int = 0
    available: int = 0

    def add(self, sub_slot: SubSlot) -> None:
        self.total += 1
        if sub_slot.booking is None:
            self.available += 1
            return
        status = (sub_slot.booking.status or "").lower()
        if status == "approved":
            self.approved += 1
        elif status == "pending":
            self.pending += 1
        elif status == "rejected":
            self.rejected += 1


def percent(part: int, total: int) -> int:
    """Percentage rounded half up"""
    if not total:
        return 0
    return (part * 200 + total) // (total * 2)


def format_booking_date(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else ""


def csv_response(columns: list[str], rows: list[dict[str, Any]], filename: str) -> StreamingResponse:
    output = StringIO()
    writer = csv.DictWriter(output, fieldnames=columns, extrasaction="ignore")
    writer.writeheader()
    writer.writerows(rows)
    output.seek(0)
    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename={filename}",
            "Cache-Control": "no-cache",
        },
    )


class AnalyticsService:
    """Service layer for dashboard analytics and exports"""

    def __init__(self, db: Session):
        self.db = db

    def _events(self) -> list[Event]:
        return self.db.query(Event).order_by(Event.start_date.asc()).all()

    def _slots(self, event_id: Optional[str] = None) -> list[Slot]:
        query = self.db.query(Slot).options(
            selectinload(Slot.sub_slots).selectinload(SubSlot.booking)
        )
        if event_id:
            query = query.filter(Slot.event_id == event_id)
        return query.order_by(Slot.event_id, Slot.image_number).all()

    def _counts_by_event(self, slots: list[Slot]) -> dict[str, SlotCounts]:
        counts: dict[str, SlotCounts] = {}
        for slot in slots:
            event_counts = counts.setdefault(slot.event_id, SlotCounts())
            for sub_slot in slot.sub_slots:
                event_counts.add(sub_slot)
        return counts

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    def get_dashboard(self) -> dict[str, Any]:
        events = self._events()
        slots = self._slots()
        sub_slots = [s for slot in slots for s in slot.sub_slots]
        bookings = [s.booking for s in sub_slots if s.booking]

        event_attendance = sorted(
            ({"name": e.title, "attendance": e.confirmed_attendance} for e in events),
            key=lambda item: item["attendance"],
            reverse=True,
        )

        status_totals = Counter((b.status or "").lower() for b in bookings)
        booking_patterns = [
            {"name": "Approved", "value": status_totals["approved"]},
            {"name": "Pending", "value": status_totals["pending"]},
            {"name": "Rejected", "value": status_totals["rejected"]},
        ]

        vtc_counts = Counter(b.vtc_name for b in bookings if b.status == "approved" and b.vtc_name)
        # Ties keep first-seen order
        vtc_participation = [
            {"name": name, "value": value}
            for name, value in sorted(vtc_counts.items(), key=lambda item: -item[1])[:TOP_VTC_LIMIT]
        ]

        counts_by_event = self._counts_by_event(slots)
        slot_utilization = []
        event_summaries = []
        for event in events:
            counts = counts_by_event.get(event.truckersmp_id, SlotCounts())
            event_summaries.append(self._event_summary(event, counts))
            if counts.total > 0:
                slot_utilization.append(
                    {
                        "name": event.title,
                        "approved": percent(counts.approved, counts.total),
                        "pending": percent(counts.pending, counts.total),
                        "rejected": percent(counts.rejected, counts.total),
                        "available": percent(counts.available, counts.total),
                    }
                )

        logger.info(
            f"📊 Analytics prepared: {len(events)} events, {len(sub_slots)} slots, {len(bookings)} bookings"
        )
        return {
            "eventAttendance": event_attendance,
            "bookingPatterns": booking_patterns,
            "vtcParticipation": vtc_participation,
            "slotUtilization": slot_utilization,
            "eventSummaries": event_summaries,
        }

    @staticmethod
    def _event_summary(event: Event, counts: SlotCounts) -> dict[str, Any]:
        return {
            "eventId": event.truckersmp_id,
            "eventTitle": event.title,
            "totalSlots": counts.total,
            "approvedBookings": counts.approved,
            "pendingBookings": counts.pending,
            "rejectedBookings": counts.rejected,
            "availableSlots": counts.available,
            "truckersmpAttendance": event.confirmed_attendance,
        }

    def get_recent_bookings(self, limit: int = RECENT_BOOKINGS_LIMIT) -> list[dict[str, Any]]:
        """Most recent bookings across all events, newest first"""
        titles = {event.truckersmp_id: event.title for event in self._events()}
        feed = [
            {
                "id": s.booking.id,
                "eventId": slot.event_id,
                "eventTitle": titles.get(slot.event_id, "Unknown"),
                "vtcName": s.booking.vtc_name,
                "slotNumber": s.number,
                "status": s.booking.status,
                "createdAt": s.booking.created_at,
                "discordUsername": s.booking.discord_username or "",
            }
            for slot in self._slots()
            for s in slot.sub_slots
            if s.booking
        ]
        feed.sort(key=lambda item: item["createdAt"], reverse=True)
        return feed[:limit]

    # ------------------------------------------------------------------
    # CSV exports
    # ------------------------------------------------------------------

    def approved_booking_rows(self, event_id: Optional[str] = None) -> list[dict[str, Any]]:
        """One row per sub-slot whose booking is approved"""
        titles = {event.truckersmp_id: event.title for event in self._events()}
        return [
            {
                "eventId": slot.event_id,
                "eventTitle": titles.get(slot.event_id, "Unknown"),
                "slotNumber": s.number,
                "vtcName": s.booking.vtc_name,
                "contactPerson": s.booking.name,
                "playerCount": s.booking.player_count,
                "bookingDate": format_booking_date(s.booking.created_at),
            }
            for slot in self._slots(event_id)
            for s in slot.sub_slots
            if s.booking and s.booking.status == "approved"
        ]

    def export_approved_bookings(self, event_id: Optional[str] = None) -> StreamingResponse:
        if event_id and not self.db.query(Event).filter(Event.truckersmp_id == event_id).first():
            raise HTTPException(status_code=404, detail="Event not found")
        rows = self.approved_booking_rows(event_id)
        logger.info(f"✅ Exporting {len(rows)} approved bookings")
        return csv_response(APPROVED_EXPORT_COLUMNS, rows, "approved-bookings.csv")

    def export_event_summaries(self) -> StreamingResponse:
        counts_by_event = self._counts_by_event(self._slots())
        rows = [
            self._event_summary(event, counts_by_event.get(event.truckersmp_id, SlotCounts()))
            for event in self._events()
        ]
        logger.info(f"✅ Exporting slot summary for {len(rows)} events")
        return csv_response(EVENT_SUMMARY_COLUMNS, rows, "event-slot-bookings.csv")

    def export_event_bookings(self, event_id: str) -> StreamingResponse:
        event = self.db.query(Event).filter(Event.truckersmp_id == event_id).first()
        if not event:
            raise HTTPException(status_code=404, detail="Event not found")
        rows = self.approved_booking_rows(event_id)
        filename = f"{slugify_filename(event.title)}_slot_bookings.csv"
        logger.info(f"✅ Exporting {len(rows)} approved bookings for event {event_id}")
        return csv_response(EVENT_BOOKINGS_COLUMNS, rows, filename)

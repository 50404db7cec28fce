"""Event service - TruckersMP event mirroring and lookups"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Event, default_attendances
from ...services.truckersmp_service import TruckersMPError, TruckersMPService
from .repository import EventRepository
from .schemas import EventResponse

logger = logging.getLogger(__name__)


def parse_upstream_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse a TruckersMP timestamp ("2025-01-10 18:00:00", ISO 8601) as naive UTC"""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"⚠️ Unparseable TruckersMP timestamp: {value}")
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def compute_event_status(
    start: Optional[datetime], end: Optional[datetime], now: Optional[datetime] = None
) -> str:
    """
    Derive the lifecycle status from the current time.
    Before start: upcoming, between start and end (inclusive): ongoing, after: completed.
    A missing end is treated as equal to the start.
    """
    now = now or datetime.utcnow()
    if start is None:
        return "completed"
    end = end or start
    if now < start:
        return "upcoming"
    if now <= end:
        return "ongoing"
    return "completed"


def normalize_dlcs(value: Any) -> dict[str, str]:
    """TruckersMP sends DLCs as an {id: name} map, or an empty list when there are none"""
    if isinstance(value, dict):
        return {str(key): str(name) for key, name in value.items()}
    return {}


def map_upstream_event(
    item: dict[str, Any], now: Optional[datetime] = None, existing: Optional[Event] = None
) -> dict[str, Any]:
    """
    Map a TruckersMP event payload to local Event fields, with defaults for missing data.

    With an existing record, missing upstream times keep the stored ones and a
    manual cancellation is kept.
    """
    departure = item.get("departure") or {}
    arrival = item.get("arrive") or {}
    server = item.get("server") or {}
    start = parse_upstream_datetime(item.get("start_at"))
    end = parse_upstream_datetime(item.get("end_at"))
    if existing is not None:
        start = start or existing.start_date
        end = end or existing.end_date
    start_date = start or now or datetime.utcnow()

    if existing is not None and existing.status == "cancelled":
        status = "cancelled"
    else:
        status = compute_event_status(start_date, end, now)

    if item.get("departure") and item.get("arrive"):
        route = f"{departure.get('city') or 'Unknown'} → {arrival.get('city') or 'Unknown'}"
    else:
        route = "Route not specified"

    return {
        "title": item.get("name") or "Untitled Event",
        "description": item.get("description") or "No description available",
        "start_date": start_date,
        "end_date": end,
        "route": route,
        "server": server.get("name") or "Server not specified",
        "meeting_point": departure.get("location") or "Meeting point not specified",
        "departure_point": departure.get("city") or "Departure point not specified",
        "arrival_point": arrival.get("city") or "Arrival point not specified",
        "banner": item.get("banner") or "",
        "map": item.get("map") or "",
        "status": status,
        "attendances": item.get("attendances") or default_attendances(),
        "voice_link": item.get("voice_link") or "",
        "external_link": item.get("external_link") or "",
        "rule": item.get("rule") or "",
        "dlcs": normalize_dlcs(item.get("dlcs")),
        "url": item.get("url") or f"https://truckersmp.com/events/{item.get('id')}",
    }


def event_to_response(event: Event) -> EventResponse:
    return EventResponse(
        id=event.id,
        truckersmpId=event.truckersmp_id,
        title=event.title,
        description=event.description,
        startDate=event.start_date,
        endDate=event.end_date,
        route=event.route,
        server=event.server,
        meetingPoint=event.meeting_point,
        departurePoint=event.departure_point,
        arrivalPoint=event.arrival_point,
        banner=event.banner,
        map=event.map,
        status=event.status,
        attendances=event.attendances,
        voiceLink=event.voice_link,
        externalLink=event.external_link,
        rule=event.rule,
        dlcs=normalize_dlcs(event.dlcs),
        url=event.url,
        slotCount=len(event.slots),
    )


def mapped_event_to_response(truckersmp_id: str, data: dict[str, Any]) -> EventResponse:
    """Response for an upstream event that has no local record"""
    return EventResponse(
        truckersmpId=truckersmp_id,
        title=data["title"],
        description=data["description"],
        startDate=data["start_date"],
        endDate=data["end_date"],
        route=data["route"],
        server=data["server"],
        meetingPoint=data["meeting_point"],
        departurePoint=data["departure_point"],
        arrivalPoint=data["arrival_point"],
        banner=data["banner"],
        map=data["map"],
        status=data["status"],
        attendances=data["attendances"],
        voiceLink=data["voice_link"],
        externalLink=data["external_link"],
        rule=data["rule"],
        dlcs=data["dlcs"],
        url=data["url"],
    )


@dataclass
class SyncResult:
    events: list[Event] = field(default_factory=list)
    total_received: int = 0
    deleted: int = 0
    total_in_database: int = 0

    @property
    def total_processed(self) -> int:
        return len(self.events)


class EventService:
    """Service layer for event business logic"""

    def __init__(self, db: Session, truckersmp: TruckersMPService):
        self.db = db
        self.truckersmp = truckersmp
        self.repo = EventRepository()

    async def sync_events(self, now: Optional[datetime] = None) -> SyncResult:
        """
        Mirror the VTC's TruckersMP events into the database.

        Local events absent upstream are deleted together with their slots.
        Each upstream item is upserted independently; a failing item is logged
        and skipped without aborting the batch.
        """
        upstream = await self.truckersmp.get_vtc_events()
        result = SyncResult(total_received=len(upstream))

        upstream_ids = [str(item["id"]) for item in upstream if item.get("id") is not None]

        for stale in self.repo.get_events_not_in(self.db, upstream_ids):
            stale_id = stale.truckersmp_id
            try:
                self.repo.delete_event(self.db, stale)
                result.deleted += 1
                logger.info(f"🗑️ Deleted event {stale_id} and its slots (no longer on TruckersMP)")
            except Exception as e:
                self.db.rollback()
                logger.error(f"❌ Error deleting event {stale_id}: {e}")

        for item in upstream:
            if item.get("id") is None:
                logger.warning("⚠️ Skipping TruckersMP event without ID")
                continue
            truckersmp_id = str(item["id"])
            try:
                existing = self.repo.get_by_truckersmp_id(self.db, truckersmp_id)
                event, created = self.repo.upsert_event(
                    self.db, truckersmp_id, **map_upstream_event(item, now, existing)
                )
                if created:
                    logger.info(f"🆕 Created event {truckersmp_id}: {event.title}")
                result.events.append(event)
            except Exception as e:
                self.db.rollback()
                logger.error(f"❌ Error processing event {truckersmp_id}: {e}")

        result.total_in_database = self.repo.count_events(self.db)
        logger.info(
            f"✅ Synced {result.total_processed}/{result.total_received} events "
            f"({result.deleted} deleted, {result.total_in_database} in database)"
        )
        return result

    async def get_event(self, truckersmp_id: str) -> EventResponse:
        """Get an event from the database, falling back to TruckersMP"""
        event = self.repo.get_by_truckersmp_id(self.db, truckersmp_id)
        if event:
            return event_to_response(event)

        try:
            item = await self.truckersmp.get_event(truckersmp_id)
        except TruckersMPError as e:
            if e.status_code == 404:
                raise HTTPException(status_code=404, detail="Event not found") from e
            raise
        if not item:
            raise HTTPException(status_code=404, detail="Event not found")
        return mapped_event_to_response(str(item.get("id", truckersmp_id)), map_upstream_event(item))

    def require_event(self, truckersmp_id: str) -> Event:
        event = self.repo.get_by_truckersmp_id(self.db, truckersmp_id)
        if not event:
            raise HTTPException(status_code=404, detail="Event not found")
        return event

    def update_status(self, truckersmp_id: str, status: str) -> Event:
        """Manually override an event's status (e.g. cancelled)"""
        event = self.require_event(truckersmp_id)
        logger.info(f"📝 Event {truckersmp_id} status {event.status} -> {status}")
        return self.repo.update_status(self.db, event, status)

"""Event router - FastAPI endpoints for event operations"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_admin
from ...database import get_db
from ...models import User
from ...services.truckersmp_service import TruckersMPService, get_truckersmp_service
from .schemas import EventListResponse, EventResponse, EventStatusUpdate, SyncStats
from .service import EventService, event_to_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/events", tags=["Events"])


def get_event_service(
    db: Session = Depends(get_db),
    truckersmp: TruckersMPService = Depends(get_truckersmp_service),
) -> EventService:
    """Dependency injection for EventService"""
    return EventService(db, truckersmp)


@router.get("", response_model=EventListResponse)
async def list_events(service: EventService = Depends(get_event_service)):
    """Sync events from TruckersMP and return the mirrored list"""
    result = await service.sync_events()
    return EventListResponse(
        response=[event_to_response(event) for event in result.events],
        stats=SyncStats(
            totalReceived=result.total_received,
            totalProcessed=result.total_processed,
            totalDeleted=result.deleted,
            totalInDatabase=result.total_in_database,
        ),
    )


@router.get("/attending")
async def list_attending_events(
    truckersmp: TruckersMPService = Depends(get_truckersmp_service),
):
    """Events the VTC attends, proxied from TruckersMP"""
    return await truckersmp.get_attending_events()


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(event_id: str, service: EventService = Depends(get_event_service)):
    """Get a single event by its TruckersMP ID"""
    return await service.get_event(event_id)


@router.patch("/{event_id}/status", response_model=EventResponse)
async def update_event_status(
    event_id: str,
    data: EventStatusUpdate,
    current_user: User = Depends(get_current_admin),
    service: EventService = Depends(get_event_service),
):
    """Manually override an event's status (admin only)"""
    event = service.update_status(event_id, data.status)
    return event_to_response(event)

"""Analytics router - dashboard data and CSV exports (admin only)"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_admin
from ...database import get_db
from ...models import User
from .service import AnalyticsService

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])


def get_analytics_service(db: Session = Depends(get_db)) -> AnalyticsService:
    """Dependency injection for AnalyticsService"""
    return AnalyticsService(db)


@router.get("/dashboard")
async def get_dashboard(
    current_user: User = Depends(get_current_admin),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Attendance, booking status totals, top VTCs and slot utilization"""
    return service.get_dashboard()


@router.get("/recent-bookings")
async def get_recent_bookings(
    current_user: User = Depends(get_current_admin),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """The 10 most recent bookings"""
    return {"bookings": service.get_recent_bookings()}


@router.get("/export")
async def export_approved_bookings(
    eventId: Optional[str] = Query(None),
    current_user: User = Depends(get_current_admin),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Export approved bookings as CSV, optionally for one event"""
    return service.export_approved_bookings(eventId)


@router.get("/export-event-slots")
async def export_event_slots(
    current_user: User = Depends(get_current_admin),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Export per-event slot counts as CSV"""
    return service.export_event_summaries()


@router.get("/export-event-slots/{event_id}")
async def export_event_bookings(
    event_id: str,
    current_user: User = Depends(get_current_admin),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Export the approved bookings of one event as CSV"""
    return service.export_event_bookings(event_id)

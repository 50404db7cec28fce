"""Tests for mirroring TruckersMP events into the database."""

from datetime import datetime, timedelta

import pytest

from convoy.domain.events.service import (
    compute_event_status,
    map_upstream_event,
    parse_upstream_datetime,
)
from convoy.models import Booking, Event, Slot, SubSlot
from tests.conftest import IMAGE_URL, slot_request, upstream_event


class TestEventStatus:
    """Tests for compute_event_status."""

    now = datetime(2025, 6, 1, 12, 0)

    def test_upcoming(self):
        assert compute_event_status(self.now + timedelta(hours=1), None, self.now) == "upcoming"

    def test_ongoing(self):
        start = self.now - timedelta(hours=1)
        assert compute_event_status(start, self.now + timedelta(hours=1), self.now) == "ongoing"

    def test_ongoing_at_end_boundary(self):
        assert compute_event_status(self.now - timedelta(hours=1), self.now, self.now) == "ongoing"

    def test_completed(self):
        start = self.now - timedelta(hours=3)
        assert compute_event_status(start, start + timedelta(hours=1), self.now) == "completed"

    def test_missing_end_uses_start(self):
        """Without an end time the event is over once it has started."""
        assert compute_event_status(self.now, None, self.now) == "ongoing"
        assert compute_event_status(self.now - timedelta(seconds=1), None, self.now) == "completed"


class TestMapping:
    def test_parse_formats(self):
        assert parse_upstream_datetime("2025-01-10 18:00:00") == datetime(2025, 1, 10, 18, 0)
        assert parse_upstream_datetime("2025-01-10T18:00:00Z") == datetime(2025, 1, 10, 18, 0)
        assert parse_upstream_datetime("2025-01-10T20:00:00+02:00") == datetime(2025, 1, 10, 18, 0)
        assert parse_upstream_datetime("soon") is None
        assert parse_upstream_datetime(None) is None

    def test_defaults_for_missing_fields(self):
        """Absent upstream fields fall back to descriptive placeholders."""
        now = datetime(2025, 6, 1)
        mapped = map_upstream_event({"id": 7}, now)
        assert mapped["title"] == "Untitled Event"
        assert mapped["description"] == "No description available"
        assert mapped["route"] == "Route not specified"
        assert mapped["server"] == "Server not specified"
        assert mapped["meeting_point"] == "Meeting point not specified"
        assert mapped["departure_point"] == "Departure point not specified"
        assert mapped["arrival_point"] == "Arrival point not specified"
        assert mapped["attendances"]["confirmed"] == 0
        assert mapped["url"] == "https://truckersmp.com/events/7"
        assert mapped["start_date"] == now
        assert mapped["dlcs"] == {}

    def test_route_from_cities(self):
        mapped = map_upstream_event(upstream_event(1))
        assert mapped["route"] == "Berlin → Prague"
        assert mapped["meeting_point"] == "Parking"
        assert mapped["server"] == "Simulation 1"


class TestSyncEvents:
    """Tests for GET /api/events."""

    def test_sync_creates_events(self, client, truckersmp, db):
        truckersmp.events = [upstream_event(1, "First"), upstream_event(2, "Second")]
        response = client.get("/api/events")
        assert response.status_code == 200
        body = response.json()
        assert body["stats"] == {
            "totalReceived": 2,
            "totalProcessed": 2,
            "totalDeleted": 0,
            "totalInDatabase": 2,
        }
        assert {e["truckersmpId"] for e in body["response"]} == {"1", "2"}
        assert body["response"][0]["status"] == "upcoming"

    def test_sync_is_idempotent(self, client, truckersmp, db):
        """Repeated syncs neither duplicate, delete nor change events."""
        without_times = upstream_event(2)
        del without_times["start_at"]
        del without_times["end_at"]
        truckersmp.events = [upstream_event(1), without_times]
        first = client.get("/api/events").json()
        second = client.get("/api/events").json()
        # Status follows the clock, everything else must not drift
        for event in first["response"] + second["response"]:
            event.pop("status")
        assert second["response"] == first["response"]
        assert second["stats"]["totalInDatabase"] == 2
        assert second["stats"]["totalDeleted"] == 0
        db.expire_all()
        assert db.query(Event).count() == 2

    def test_sync_updates_changed_fields(self, client, truckersmp, db):
        truckersmp.events = [upstream_event(1, "Old Title")]
        client.get("/api/events")
        truckersmp.events = [upstream_event(1, "New Title")]
        body = client.get("/api/events").json()
        assert body["response"][0]["title"] == "New Title"

    def test_sync_deletes_missing_events_with_slots(self, client, truckersmp, admin_headers, db):
        """Events gone upstream are removed with their slots and bookings."""
        truckersmp.events = [upstream_event(1), upstream_event(2)]
        client.get("/api/events")
        slot = client.post(
            "/api/events/2/slots",
            json={"slots": [{"imageUrl": IMAGE_URL, "slots": [{"number": 1}]}]},
            headers=admin_headers,
        ).json()["slots"][0]
        client.post(f"/api/slots/{slot['id']}/request", json=slot_request(1))

        truckersmp.events = [upstream_event(1)]
        body = client.get("/api/events").json()
        assert body["stats"]["totalDeleted"] == 1
        assert body["stats"]["totalInDatabase"] == 1

        db.expire_all()
        assert db.query(Slot).count() == 0
        assert db.query(SubSlot).count() == 0
        assert db.query(Booking).count() == 0

    def test_sync_keeps_slots_of_surviving_events(self, client, truckersmp, admin_headers, db):
        truckersmp.events = [upstream_event(1)]
        client.get("/api/events")
        client.post(
            "/api/events/1/slots",
            json={"slots": [{"imageUrl": IMAGE_URL, "slots": [{"number": 1}]}]},
            headers=admin_headers,
        )
        body = client.get("/api/events").json()
        assert body["response"][0]["slotCount"] == 1

    def test_sync_skips_items_without_id(self, client, truckersmp, db):
        truckersmp.events = [upstream_event(1), {"name": "No ID"}]
        body = client.get("/api/events").json()
        assert body["stats"]["totalReceived"] == 2
        assert body["stats"]["totalProcessed"] == 1

    def test_sync_continues_after_failing_item(self, client, truckersmp, db, monkeypatch):
        """One failing upsert does not abort the batch."""
        from convoy.domain.events.repository import EventRepository

        real_upsert = EventRepository.upsert_event

        def flaky_upsert(session, truckersmp_id, **data):
            if truckersmp_id == "2":
                raise RuntimeError("boom")
            return real_upsert(session, truckersmp_id, **data)

        monkeypatch.setattr(EventRepository, "upsert_event", staticmethod(flaky_upsert))
        truckersmp.events = [upstream_event(1), upstream_event(2), upstream_event(3)]
        body = client.get("/api/events").json()
        assert body["stats"]["totalProcessed"] == 2
        assert {e["truckersmpId"] for e in body["response"]} == {"1", "3"}

    def test_upstream_failure(self, client, truckersmp, db):
        """TruckersMP errors surface as a server error without a traceback."""
        from convoy.services.truckersmp_service import TruckersMPError

        async def failing(vtc_id=None):
            raise TruckersMPError("TruckersMP request failed: /vtc/70030/events", status_code=503)

        truckersmp.get_vtc_events = failing
        response = client.get("/api/events")
        assert response.status_code == 503
        assert "Traceback" not in response.text


    def test_sync_keeps_manual_cancellation(self, client, truckersmp, admin_headers, db):
        """A cancelled event stays cancelled across later syncs."""
        truckersmp.events = [upstream_event(1)]
        client.get("/api/events")
        response = client.patch(
            "/api/events/1/status", json={"status": "cancelled"}, headers=admin_headers
        )
        assert response.json()["status"] == "cancelled"

        body = client.get("/api/events").json()
        assert body["response"][0]["status"] == "cancelled"

    def test_sync_keeps_stored_times_when_upstream_omits_them(self, client, truckersmp, db):
        start = datetime(2030, 5, 1, 18, 0)
        truckersmp.events = [upstream_event(1, start=start)]
        client.get("/api/events")

        without_times = upstream_event(1, start=start)
        del without_times["start_at"]
        del without_times["end_at"]
        truckersmp.events = [without_times]
        event = client.get("/api/events").json()["response"][0]
        assert event["startDate"] == "2030-05-01T18:00:00"
        assert event["endDate"] == "2030-05-01T20:00:00"

    def test_sync_stores_dlc_map(self, client, truckersmp, db):
        """DLCs keep both id and name."""
        truckersmp.events = [upstream_event(1, dlcs={"304212": "Going East!", "531130": "Vive la France !"})]
        event = client.get("/api/events").json()["response"][0]
        assert event["dlcs"] == {"304212": "Going East!", "531130": "Vive la France !"}


class TestGetEvent:
    def test_local_event(self, client, event):
        response = client.get("/api/events/12345")
        assert response.status_code == 200
        assert response.json()["id"] == event.id

    def test_falls_back_to_upstream(self, client, truckersmp, db):
        truckersmp.event_details["77"] = upstream_event(77, "Remote Convoy")
        response = client.get("/api/events/77")
        assert response.status_code == 200
        assert response.json()["title"] == "Remote Convoy"
        assert response.json()["id"] is None

    def test_missing_everywhere(self, client, db):
        assert client.get("/api/events/404404").status_code == 404

    def test_attending(self, client, truckersmp):
        truckersmp.attending = [{"id": 5, "name": "Partner Convoy"}]
        assert client.get("/api/events/attending").json() == [{"id": 5, "name": "Partner Convoy"}]


class TestEventStatusOverride:
    @pytest.mark.parametrize("status", ["cancelled", "completed"])
    def test_override(self, client, admin_headers, event, status):
        response = client.patch(
            "/api/events/12345/status", json={"status": status}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == status

    def test_invalid_status(self, client, admin_headers, event):
        response = client.patch(
            "/api/events/12345/status", json={"status": "postponed"}, headers=admin_headers
        )
        assert response.status_code == 400

    def test_requires_admin(self, client, member_headers, event):
        response = client.patch(
            "/api/events/12345/status", json={"status": "cancelled"}, headers=member_headers
        )
        assert response.status_code == 403

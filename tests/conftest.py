"""Pytest configuration and shared fixtures."""

import os

# Required settings must exist before the convoy package is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-convoy-tests")
os.environ["DISCORD_WEBHOOK_URL"] = ""
os.environ["DISCORD_BOT_TOKEN"] = ""

from datetime import datetime, timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from convoy.database import Base, get_db  # noqa: E402
from convoy.main import app  # noqa: E402
from convoy.models import Event, User  # noqa: E402
from convoy.security_utils import create_access_token, hash_password  # noqa: E402
from convoy.services.discord_service import get_notifier  # noqa: E402
from convoy.services.truckersmp_service import TruckersMPError, get_truckersmp_service  # noqa: E402

ADMIN_PASSWORD = "Admin@12345"
IMAGE_URL = "https://i.imgur.com/route.png"

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeNotifier:
    """Records notifications instead of calling Discord"""

    def __init__(self):
        self.calls = []

    async def send_booking_notification(self, notice):
        self.calls.append(("created", notice))
        return True

    async def send_booking_status_update(self, notice):
        self.calls.append(("status", notice))
        return True

    async def send_status_direct_message(self, notice):
        self.calls.append(("dm", notice))
        return True

    def kinds(self):
        return [kind for kind, _ in self.calls]


class FailingNotifier(FakeNotifier):
    """Every delivery raises, as an unreachable Discord would"""

    async def send_booking_notification(self, notice):
        raise RuntimeError("Discord is down")

    async def send_booking_status_update(self, notice):
        raise RuntimeError("Discord is down")

    async def send_status_direct_message(self, notice):
        raise RuntimeError("Discord is down")


class FakeTruckersMP:
    """In-memory stand-in for the TruckersMP API"""

    def __init__(self):
        self.events = []
        self.event_details = {}
        self.attending = []
        self.servers = []
        self.members = {}
        self.roles = {}
        self.partners = []

    async def get_vtc_events(self, vtc_id=None):
        return list(self.events)

    async def get_attending_events(self, vtc_id=None):
        return list(self.attending)

    async def get_event(self, event_id):
        if event_id not in self.event_details:
            raise TruckersMPError("TruckersMP request failed", status_code=404)
        return self.event_details[event_id]

    async def get_servers(self):
        return list(self.servers)

    async def get_vtc_members(self, vtc_id):
        return self.members.get(vtc_id, [])

    async def get_vtc_roles(self, vtc_id):
        return self.roles.get(vtc_id, [])

    async def get_member_details(self, vtc_id, member_id):
        return {"id": int(member_id), "vtcId": int(vtc_id)}

    async def get_partners_info(self, vtc_ids=None):
        return list(self.partners)

    async def get_processed_vtc_data(self, vtc_id):
        from convoy.services.truckersmp_service import build_vtc_overview

        return build_vtc_overview(self.members.get(vtc_id, []), self.roles.get(vtc_id, []))


def upstream_event(event_id, name="Sunday Convoy", start=None, **overrides):
    """A TruckersMP event payload"""
    start = start or datetime.utcnow() + timedelta(days=3)
    item = {
        "id": event_id,
        "name": name,
        "description": "Join us",
        "start_at": start.strftime("%Y-%m-%d %H:%M:%S"),
        "end_at": (start + timedelta(hours=2)).strftime("%Y-%m-%d %H:%M:%S"),
        "server": {"name": "Simulation 1"},
        "departure": {"city": "Berlin", "location": "Parking"},
        "arrive": {"city": "Prague"},
        "attendances": {"confirmed": 12, "vtcs": 3},
        "dlcs": [],
        "url": f"/events/{event_id}",
    }
    item.update(overrides)
    return item


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def truckersmp():
    return FakeTruckersMP()


@pytest.fixture
def client(db, notifier, truckersmp):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_truckersmp_service] = lambda: truckersmp
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_user(db):
    user = User(
        username="admin",
        email="admin@example.com",
        password_hash=hash_password(ADMIN_PASSWORD),
        role="admin",
        vtc_name="Convoy Admin",
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def member_user(db):
    user = User(
        username="driver",
        email="driver@example.com",
        password_hash=hash_password("Driver@12345"),
        role="member",
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin_headers(admin_user):
    return {"Authorization": f"Bearer {create_access_token(admin_user.id)}"}


@pytest.fixture
def member_headers(member_user):
    return {"Authorization": f"Bearer {create_access_token(member_user.id)}"}


@pytest.fixture
def event(db):
    event = Event(
        truckersmp_id="12345",
        title="Sunday Convoy",
        description="Join us",
        start_date=datetime.utcnow() + timedelta(days=3),
        end_date=datetime.utcnow() + timedelta(days=3, hours=2),
        route="Berlin → Prague",
        server="Simulation 1",
        meeting_point="Parking",
        departure_point="Berlin",
        arrival_point="Prague",
        status="upcoming",
        attendances={"confirmed": 12, "vtcs": 3, "confirmed_vtcs": [], "confirmed_users": []},
        dlcs=[],
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


@pytest.fixture
def slot_image(client, admin_headers, event):
    """One published slot image with sub-slots 1, 2 and 3"""
    response = client.post(
        f"/api/events/{event.truckersmp_id}/slots",
        json={"slots": [{"imageUrl": IMAGE_URL, "slots": [{"number": 1}, {"number": 2}, {"number": 3}]}]},
        headers=admin_headers,
    )
    assert response.status_code == 201
    return response.json()["slots"][0]


def slot_request(number=1, **overrides):
    body = {
        "slotNumber": number,
        "name": "John",
        "vtcName": "Road Kings",
        "vtcRole": "Driver",
        "vtcLink": "https://truckersmp.com/vtc/1",
        "playercount": 4,
        "discordUsername": "john#1234",
    }
    body.update(overrides)
    return body

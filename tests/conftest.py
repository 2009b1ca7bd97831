import threading
from datetime import date, time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from dealroom.database import Base, get_db
from dealroom.domain.availability.schemas import SlotCreateRequest, SlotEntry
from dealroom.domain.availability.service import AvailabilityService
from dealroom.domain.meetings.booking import BookingService
from dealroom.domain.meetings.schemas import OfferPayload
from dealroom.domain.meetings.service import MeetingService
from dealroom.main import app
from dealroom.services.notification_service import NotificationEmitter

OWNER = "owner-1"
INVESTOR = "investor-1"
OTHER_INVESTOR = "investor-2"
RESOURCE = "mvp-1"
SLOT_DAY = date(2030, 1, 15)


class RecordingEmitter(NotificationEmitter):
    """Keeps every emitted event in memory"""

    def __init__(self):
        self.events = []
        self._lock = threading.Lock()

    def emit(self, event):
        with self._lock:
            self.events.append(event)

    def kinds(self):
        return [event.kind for event in self.events]


class FailingEmitter(NotificationEmitter):
    def __init__(self):
        self.calls = 0

    def emit(self, event):
        self.calls += 1
        raise RuntimeError("SMTP relay down")


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def emitter():
    return RecordingEmitter()


@pytest.fixture
def availability(db):
    return AvailabilityService(db)


@pytest.fixture
def booking(db, emitter):
    return BookingService(db, emitter)


@pytest.fixture
def meetings(db, emitter):
    return MeetingService(db, emitter)


@pytest.fixture
def economic_offer():
    return OfferPayload(offer_type="economic", offer_amount=5000, offer_equity_percent=10)


def make_slot(availability, day=SLOT_DAY, start=time(10, 0), end=time(11, 0), tz="UTC",
              resource_id=RESOURCE, owner_id=OWNER):
    created = availability.create_slots(
        owner_id,
        SlotCreateRequest(
            resource_id=resource_id,
            slots=[SlotEntry(date=day, start_time=start, end_time=end, timezone=tz)],
        ),
    )
    assert len(created) == 1
    return created[0]


@pytest.fixture
def slot(availability):
    return make_slot(availability)


@pytest.fixture
def pending_meeting(booking, slot, economic_offer):
    return booking.book_slot(slot.id, INVESTOR, "video_call", "Looking forward", economic_offer)


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

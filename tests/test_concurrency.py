"""Concurrent bookings against a file-backed database, one session per thread"""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from dealroom.database import Base
from dealroom.domain.availability.service import AvailabilityService
from dealroom.domain.meetings.booking import BookingService
from dealroom.domain.meetings.schemas import OfferPayload
from dealroom.errors import SchedulingError
from dealroom.models import AvailabilitySlot, Meeting

from .conftest import OWNER, RecordingEmitter, make_slot

WORKERS = 8


@pytest.fixture
def file_session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


def race(session_factory, jobs):
    """Run (slot_id, requester_id) bookings at once; return 'ok' or the error code per job"""
    barrier = threading.Barrier(len(jobs))
    emitter = RecordingEmitter()
    offer = OfferPayload(offer_type="economic", offer_amount=1000, offer_equity_percent=5)

    def attempt(job):
        slot_id, requester_id = job
        db = session_factory()
        try:
            barrier.wait(timeout=10)
            BookingService(db, emitter).book_slot(slot_id, requester_id, "video_call", None, offer)
            return "ok"
        except SchedulingError as e:
            return e.code
        finally:
            db.close()

    with ThreadPoolExecutor(max_workers=len(jobs)) as pool:
        return list(pool.map(attempt, jobs)), emitter


def test_exactly_one_booking_wins(file_session_factory):
    db = file_session_factory()
    try:
        slot_id = make_slot(AvailabilityService(db)).id
    finally:
        db.close()

    results, emitter = race(
        file_session_factory, [(slot_id, f"investor-{i}") for i in range(WORKERS)]
    )

    assert results.count("ok") == 1
    assert set(results) - {"ok"} <= {"slot_unavailable", "already_claimed"}

    db = file_session_factory()
    try:
        [meeting] = db.query(Meeting).all()
        slot = db.get(AvailabilitySlot, slot_id)
        assert slot.claimed is True
        assert slot.meeting_id == meeting.id
        assert slot.claimed_by == meeting.requester_id
    finally:
        db.close()

    # Only the winner notifies the owner
    assert len(emitter.events) == 2


def test_same_requester_racing_for_two_slots(file_session_factory):
    db = file_session_factory()
    try:
        availability = AvailabilityService(db)
        first = make_slot(availability).id
        second = make_slot(availability, start=time(14, 0), end=time(15, 0)).id
    finally:
        db.close()

    results, _ = race(file_session_factory, [(first, "investor-1"), (second, "investor-1")])

    assert sorted(results) == ["conflict", "ok"]

    db = file_session_factory()
    try:
        assert db.query(Meeting).count() == 1
        assert db.query(AvailabilitySlot).filter(AvailabilitySlot.claimed.is_(True)).count() == 1
    finally:
        db.close()


def test_owner_is_unaffected_by_losers(file_session_factory):
    db = file_session_factory()
    try:
        slot_id = make_slot(AvailabilityService(db)).id
    finally:
        db.close()

    race(file_session_factory, [(slot_id, f"investor-{i}") for i in range(WORKERS)])

    db = file_session_factory()
    try:
        meeting = db.query(Meeting).one()
        assert meeting.owner_id == OWNER
        assert meeting.status == "pending"
    finally:
        db.close()

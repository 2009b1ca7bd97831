from datetime import date, time, timezone

import pytest

from dealroom.domain.availability.repository import SlotRepository
from dealroom.domain.availability.schemas import (
    BulkSlotCreateRequest,
    DefaultAvailabilityRequest,
    SlotCreateRequest,
    SlotEntry,
    TimeWindow,
)
from dealroom.errors import AlreadyClaimed, Conflict, Forbidden, NotFound
from dealroom.models import AvailabilitySlot

from .conftest import OWNER, RESOURCE, SLOT_DAY, make_slot


def entry(day, start, end, **kwargs):
    return SlotEntry(date=day, start_time=start, end_time=end, **kwargs)


class TestCreateSlots:

    def test_duplicates_are_skipped_silently(self, availability, db):
        make_slot(availability)
        created = availability.create_slots(
            OWNER,
            SlotCreateRequest(
                resource_id=RESOURCE,
                slots=[
                    entry(SLOT_DAY, time(10, 0), time(10, 30)),  # same start as existing
                    entry(SLOT_DAY, time(12, 0), time(13, 0)),
                    entry(SLOT_DAY, time(12, 0), time(12, 45)),  # duplicate within batch
                ],
            ),
        )

        assert [(s.start_time, s.end_time) for s in created] == [(time(12, 0), time(13, 0))]
        assert db.query(AvailabilitySlot).count() == 2

    def test_same_start_on_another_resource_is_fine(self, availability):
        make_slot(availability)
        other = make_slot(availability, resource_id="mvp-2")
        assert other.resource_id == "mvp-2"

    def test_defaults(self, availability):
        slot = make_slot(availability)
        assert slot.timezone == "UTC"
        assert slot.claimed is False
        assert slot.claimed_by is None
        assert slot.meeting_id is None

    def test_other_owner_cannot_add_to_resource(self, availability):
        make_slot(availability)
        with pytest.raises(Forbidden):
            make_slot(availability, day=date(2030, 1, 16), owner_id="intruder")

    def test_end_must_follow_start(self):
        with pytest.raises(ValueError):
            entry(SLOT_DAY, time(11, 0), time(10, 0))

    def test_offset_times_are_rejected(self):
        with pytest.raises(ValueError):
            entry(SLOT_DAY, time(10, 0, tzinfo=timezone.utc), time(11, 0))
        with pytest.raises(ValueError):
            TimeWindow(start_time=time(9, 0), end_time=time(10, 0, tzinfo=timezone.utc))

    def test_bulk_cross_product_is_idempotent(self, availability):
        request = BulkSlotCreateRequest(
            resource_id=RESOURCE,
            dates=[date(2030, 1, 14), date(2030, 1, 15), date(2030, 1, 16)],
            time_slots=[
                TimeWindow(start_time=time(9, 0), end_time=time(10, 0)),
                TimeWindow(start_time=time(14, 0), end_time=time(15, 0)),
            ],
            timezone="Europe/Madrid",
            notes="Office hours",
        )

        created, total = availability.create_bulk(OWNER, request)
        assert total == 6
        assert len(created) == 6
        assert {s.timezone for s in created} == {"Europe/Madrid"}
        assert {s.notes for s in created} == {"Office hours"}

        created_again, total_again = availability.create_bulk(OWNER, request)
        assert created_again == []
        assert total_again == 6

    def test_default_agenda_uses_next_business_days(self, availability):
        # 2030-01-18 is a Friday
        created = availability.create_default(
            OWNER, DefaultAvailabilityRequest(resource_id=RESOURCE), today=date(2030, 1, 18)
        )

        days = sorted({s.date for s in created})
        assert days == [
            date(2030, 1, 18),
            date(2030, 1, 21),
            date(2030, 1, 22),
            date(2030, 1, 23),
            date(2030, 1, 24),
            date(2030, 1, 25),
            date(2030, 1, 28),
        ]
        assert len(created) == 14
        assert {(s.start_time, s.end_time) for s in created} == {
            (time(10, 0), time(11, 0)),
            (time(15, 0), time(16, 0)),
        }


class TestListSlots:

    @pytest.fixture
    def published(self, availability):
        availability.create_slots(
            OWNER,
            SlotCreateRequest(
                resource_id=RESOURCE,
                slots=[
                    entry(date(2030, 1, 16), time(9, 0), time(10, 0)),
                    entry(date(2030, 1, 15), time(15, 0), time(16, 0)),
                    entry(date(2030, 1, 15), time(8, 0), time(9, 0)),
                    entry(date(2030, 1, 17), time(9, 0), time(10, 0)),
                ],
            ),
        )
        make_slot(availability, resource_id="mvp-2")

    def test_ordered_by_date_then_start(self, availability, published):
        slots = list(availability.list_resource_slots(RESOURCE))
        assert [(s.date.day, s.start_time.hour) for s in slots] == [
            (15, 8),
            (15, 15),
            (16, 9),
            (17, 9),
        ]

    def test_listing_is_lazy(self, availability, published):
        result = availability.list_resource_slots(RESOURCE)
        assert iter(result) is result
        assert next(result).start_time == time(8, 0)

    def test_date_bounds_are_inclusive(self, availability, published):
        slots = list(
            availability.list_resource_slots(
                RESOURCE, from_date=date(2030, 1, 16), to_date=date(2030, 1, 17)
            )
        )
        assert [s.date.day for s in slots] == [16, 17]

    def test_unclaimed_only(self, availability, db, published):
        first = list(availability.list_resource_slots(RESOURCE))[0]
        SlotRepository.claim(db, first.id, "investor-9", "meeting-9")
        db.commit()

        slots = list(availability.list_resource_slots(RESOURCE, unclaimed_only=True))
        assert first.id not in {s.id for s in slots}
        assert len(slots) == 3

    def test_owner_listing_spans_resources(self, availability, published):
        assert len(availability.list_owner_slots(OWNER)) == 5
        assert len(availability.list_owner_slots(OWNER, resource_id="mvp-2")) == 1
        assert availability.list_owner_slots("someone-else") == []


class TestClaimAndRelease:

    def test_claim_sets_all_claim_fields(self, db, slot):
        SlotRepository.claim(db, slot.id, "investor-9", "meeting-9")
        db.commit()
        db.refresh(slot)

        assert slot.claimed is True
        assert slot.claimed_by == "investor-9"
        assert slot.meeting_id == "meeting-9"

    def test_second_claim_fails(self, db, slot):
        SlotRepository.claim(db, slot.id, "investor-9", "meeting-9")
        db.commit()

        with pytest.raises(AlreadyClaimed):
            SlotRepository.claim(db, slot.id, "investor-8", "meeting-8")

    def test_claim_missing_slot(self, db):
        with pytest.raises(NotFound):
            SlotRepository.claim(db, "missing", "investor-9", "meeting-9")

    def test_release_clears_claim(self, db, slot):
        SlotRepository.claim(db, slot.id, "investor-9", "meeting-9")
        db.commit()

        assert SlotRepository.release(db, slot.id) is True
        db.commit()
        db.refresh(slot)
        assert (slot.claimed, slot.claimed_by, slot.meeting_id) == (False, None, None)

    def test_release_is_a_noop_when_free_or_missing(self, db, slot):
        assert SlotRepository.release(db, slot.id) is False
        assert SlotRepository.release(db, "missing") is False
        assert SlotRepository.release(db, None) is False

    def test_release_only_clears_the_matching_meeting(self, db, slot):
        SlotRepository.claim(db, slot.id, "investor-9", "meeting-9")
        db.commit()

        assert SlotRepository.release(db, slot.id, meeting_id="meeting-other") is False
        assert SlotRepository.release(db, slot.id, meeting_id="meeting-9") is True


class TestDeleteSlot:

    def test_owner_deletes_free_slot(self, availability, db, slot):
        result = availability.delete_slot(slot.id, OWNER)
        assert result["message"]
        assert db.query(AvailabilitySlot).count() == 0

    def test_only_owner_can_delete(self, availability, slot):
        with pytest.raises(Forbidden):
            availability.delete_slot(slot.id, "investor-1")

    def test_claimed_slot_cannot_be_deleted(self, availability, db, slot):
        SlotRepository.claim(db, slot.id, "investor-9", "meeting-9")
        db.commit()

        with pytest.raises(Conflict):
            availability.delete_slot(slot.id, OWNER)
        assert db.query(AvailabilitySlot).count() == 1

    def test_missing_slot(self, availability):
        with pytest.raises(NotFound):
            availability.delete_slot("missing", OWNER)

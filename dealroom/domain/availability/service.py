"""Availability service - Business logic for publishing and managing slots"""

import logging
from datetime import date
from typing import Iterator, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...config import (
    DEFAULT_AVAILABILITY_BUSINESS_DAYS,
    DEFAULT_AVAILABILITY_NOTE,
    DEFAULT_AVAILABILITY_WINDOWS,
    DEFAULT_TIMEZONE,
)
from ...database import unit_of_work
from ...errors import Conflict, Forbidden
from ...models import AvailabilitySlot
from ...shared.timeutils import next_business_days, parse_time_window
from .repository import SlotRepository
from .schemas import BulkSlotCreateRequest, DefaultAvailabilityRequest, SlotCreateRequest

logger = logging.getLogger(__name__)


class AvailabilityService:
    """Service layer for availability slots"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SlotRepository()

    def create_slots(self, owner_id: str, data: SlotCreateRequest) -> list[AvailabilitySlot]:
        """Publish individual slots; entries colliding with existing slots are skipped"""
        entries = [
            {
                "date": slot.date,
                "start_time": slot.start_time,
                "end_time": slot.end_time,
                "timezone": slot.timezone or DEFAULT_TIMEZONE,
                "notes": slot.notes,
            }
            for slot in data.slots
        ]
        return self._insert(data.resource_id, owner_id, entries)

    def create_bulk(
        self, owner_id: str, data: BulkSlotCreateRequest
    ) -> tuple[list[AvailabilitySlot], int]:
        """
        Publish every combination of the given dates and time windows.

        Returns:
            (created slots, number of combinations requested)
        """
        entries = [
            {
                "date": day,
                "start_time": window.start_time,
                "end_time": window.end_time,
                "timezone": data.timezone,
                "notes": data.notes,
            }
            for day in data.dates
            for window in data.time_slots
        ]
        return self._insert(data.resource_id, owner_id, entries), len(entries)

    def create_default(
        self, owner_id: str, data: DefaultAvailabilityRequest, today: Optional[date] = None
    ) -> list[AvailabilitySlot]:
        """Seed the default agenda: the next business days x the configured windows"""
        windows = [
            parse_time_window(window)
            for window in DEFAULT_AVAILABILITY_WINDOWS.split(",")
            if window.strip()
        ]
        days = next_business_days(today or date.today(), DEFAULT_AVAILABILITY_BUSINESS_DAYS)
        entries = [
            {
                "date": day,
                "start_time": start,
                "end_time": end,
                "timezone": data.timezone,
                "notes": DEFAULT_AVAILABILITY_NOTE,
            }
            for day in days
            for start, end in windows
        ]
        return self._insert(data.resource_id, owner_id, entries)

    def list_resource_slots(
        self,
        resource_id: str,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        unclaimed_only: bool = False,
    ) -> Iterator[AvailabilitySlot]:
        return self.repo.list_slots(self.db, resource_id, from_date, to_date, unclaimed_only)

    def list_owner_slots(
        self,
        owner_id: str,
        resource_id: Optional[str] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> list[AvailabilitySlot]:
        return self.repo.get_owner_slots(self.db, owner_id, resource_id, from_date, to_date)

    def delete_slot(self, slot_id: str, owner_id: str) -> dict:
        with unit_of_work(self.db):
            self.repo.delete(self.db, slot_id, owner_id)
        logger.info(f"🗑️ Slot {slot_id} deleted by owner {owner_id}")
        return {"message": "Slot deleted successfully"}

    def _insert(self, resource_id: str, owner_id: str, entries: list[dict]) -> list[AvailabilitySlot]:
        current_owner = self.repo.get_resource_owner(self.db, resource_id)
        if current_owner and current_owner != owner_id:
            logger.warning(f"⚠️ User {owner_id} tried to add slots to resource {resource_id}")
            raise Forbidden("You do not have permission to manage this resource")

        # A concurrent insert of the same start time fails the unique constraint;
        # retrying re-reads the taken keys and skips it.
        for attempt in range(2):
            try:
                with unit_of_work(self.db):
                    created = self.repo.create_slots(self.db, resource_id, owner_id, entries)
                break
            except IntegrityError:
                logger.warning(
                    f"⚠️ Slot insert for resource {resource_id} raced another writer "
                    f"(attempt {attempt + 1})"
                )
        else:
            raise Conflict("Slots could not be created, please retry")

        for slot in created:
            self.db.refresh(slot)
        logger.info(
            f"📅 Created {len(created)}/{len(entries)} slots for resource {resource_id}"
        )
        return created

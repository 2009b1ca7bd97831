"""Availability repository - the slot store

Writes here never commit; callers wrap them in unit_of_work so a claim or a
release lands in the same transaction as the meeting change that caused it.
"""

from datetime import date
from typing import Iterable, Iterator, Optional

from sqlalchemy.orm import Session

from ...errors import AlreadyClaimed, Conflict, Forbidden, NotFound
from ...models import AvailabilitySlot


class SlotRepository:
    """Repository for availability slot database operations"""

    @staticmethod
    def get_slot(db: Session, slot_id: str) -> Optional[AvailabilitySlot]:
        return db.query(AvailabilitySlot).filter(AvailabilitySlot.id == slot_id).first()

    @staticmethod
    def get_resource_owner(db: Session, resource_id: str) -> Optional[str]:
        """Owner of the slots already published for a resource, if any"""
        row = (
            db.query(AvailabilitySlot.owner_id)
            .filter(AvailabilitySlot.resource_id == resource_id)
            .first()
        )
        return row[0] if row else None

    @staticmethod
    def create_slots(
        db: Session, resource_id: str, owner_id: str, entries: Iterable[dict]
    ) -> list[AvailabilitySlot]:
        """
        Insert slots, skipping any whose (resource, date, start_time) is taken.

        Duplicates within the batch are skipped too, first entry wins.
        Returns only the slots actually added.
        """
        entries = list(entries)
        if not entries:
            return []

        dates = {entry["date"] for entry in entries}
        taken = {
            (row.date, row.start_time)
            for row in db.query(AvailabilitySlot.date, AvailabilitySlot.start_time).filter(
                AvailabilitySlot.resource_id == resource_id,
                AvailabilitySlot.date.in_(dates),
            )
        }

        created = []
        for entry in entries:
            key = (entry["date"], entry["start_time"])
            if key in taken:
                continue
            taken.add(key)

            slot = AvailabilitySlot(
                resource_id=resource_id,
                owner_id=owner_id,
                date=entry["date"],
                start_time=entry["start_time"],
                end_time=entry["end_time"],
                timezone=entry["timezone"],
                notes=entry.get("notes"),
                claimed=False,
            )
            db.add(slot)
            created.append(slot)

        db.flush()
        return created

    @staticmethod
    def list_slots(
        db: Session,
        resource_id: str,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        unclaimed_only: bool = False,
    ) -> Iterator[AvailabilitySlot]:
        """Lazily iterate a resource's slots ordered by date then start time"""
        query = db.query(AvailabilitySlot).filter(AvailabilitySlot.resource_id == resource_id)

        if from_date:
            query = query.filter(AvailabilitySlot.date >= from_date)
        if to_date:
            query = query.filter(AvailabilitySlot.date <= to_date)
        if unclaimed_only:
            query = query.filter(AvailabilitySlot.claimed.is_(False))

        query = query.order_by(AvailabilitySlot.date.asc(), AvailabilitySlot.start_time.asc())
        yield from query.yield_per(100)

    @staticmethod
    def get_owner_slots(
        db: Session,
        owner_id: str,
        resource_id: Optional[str] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> list[AvailabilitySlot]:
        """All slots published by an owner, optionally narrowed to one resource"""
        query = db.query(AvailabilitySlot).filter(AvailabilitySlot.owner_id == owner_id)

        if resource_id:
            query = query.filter(AvailabilitySlot.resource_id == resource_id)
        if from_date:
            query = query.filter(AvailabilitySlot.date >= from_date)
        if to_date:
            query = query.filter(AvailabilitySlot.date <= to_date)

        return query.order_by(AvailabilitySlot.date.asc(), AvailabilitySlot.start_time.asc()).all()

    @staticmethod
    def claim(db: Session, slot_id: str, requester_id: str, meeting_id: str) -> None:
        """
        Compare-and-set an unclaimed slot to claimed.

        Raises:
            NotFound: The slot does not exist
            AlreadyClaimed: Another transaction claimed it first
        """
        updated = (
            db.query(AvailabilitySlot)
            .filter(AvailabilitySlot.id == slot_id, AvailabilitySlot.claimed.is_(False))
            .update(
                {
                    AvailabilitySlot.claimed: True,
                    AvailabilitySlot.claimed_by: requester_id,
                    AvailabilitySlot.meeting_id: meeting_id,
                },
                synchronize_session=False,
            )
        )
        if updated:
            return

        exists = db.query(AvailabilitySlot.id).filter(AvailabilitySlot.id == slot_id).first()
        if not exists:
            raise NotFound("Slot not found")
        raise AlreadyClaimed()

    @staticmethod
    def release(db: Session, slot_id: Optional[str], meeting_id: Optional[str] = None) -> bool:
        """
        Clear a slot's claim. Missing or already free slots are a no-op.

        When meeting_id is given, only a claim held by that meeting is cleared.

        Returns:
            True if a claimed slot was released
        """
        if not slot_id:
            return False
        query = db.query(AvailabilitySlot).filter(
            AvailabilitySlot.id == slot_id, AvailabilitySlot.claimed.is_(True)
        )
        if meeting_id:
            query = query.filter(AvailabilitySlot.meeting_id == meeting_id)
        updated = (
            query.update(
                {
                    AvailabilitySlot.claimed: False,
                    AvailabilitySlot.claimed_by: None,
                    AvailabilitySlot.meeting_id: None,
                },
                synchronize_session=False,
            )
        )
        return bool(updated)

    @staticmethod
    def delete(db: Session, slot_id: str, requesting_owner_id: str) -> None:
        """
        Delete an unclaimed slot owned by the requester.

        Raises:
            NotFound: The slot does not exist
            Forbidden: The requester does not own the slot
            Conflict: The slot is claimed
        """
        slot = SlotRepository.get_slot(db, slot_id)
        if not slot:
            raise NotFound("Slot not found")
        if slot.owner_id != requesting_owner_id:
            raise Forbidden("You do not have permission to delete this slot")
        if slot.claimed:
            raise Conflict("You cannot delete a slot that is already booked")

        # Conditional delete so a claim committed after the read still wins
        deleted = (
            db.query(AvailabilitySlot)
            .filter(AvailabilitySlot.id == slot_id, AvailabilitySlot.claimed.is_(False))
            .delete(synchronize_session=False)
        )
        if not deleted:
            raise Conflict("You cannot delete a slot that is already booked")

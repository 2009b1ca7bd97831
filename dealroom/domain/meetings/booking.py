"""
Booking transaction - turns "requester wants this slot" into a pending
meeting plus a claimed slot, or fails with nothing written.
"""

import logging
from typing import Optional

from fastapi import Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from ...database import get_db, unit_of_work
from ...errors import Conflict, InvalidOffer, InvalidOperation, NotFound, SlotUnavailable
from ...models import OFFER_ECONOMIC, STATUS_PENDING, Meeting, generate_id
from ...services.notification_service import (
    MEETING_REQUESTED,
    OFFER_PENDING_REVIEW,
    DatabaseNotificationEmitter,
    NotificationEmitter,
    NotificationEvent,
    NullNotificationEmitter,
    emit_safely,
)
from ...shared.timeutils import local_to_utc, minutes_between
from ...shared.validators import parse_finite_number, summarize_offer
from ..availability.repository import SlotRepository
from .repository import MeetingRepository
from .schemas import OfferPayload

logger = logging.getLogger(__name__)

ACTIVE_REQUEST_MESSAGE = "You already have an active meeting request for this resource"


def get_notification_emitter(db: Session = Depends(get_db)) -> NotificationEmitter:
    """Dependency injection for the in-app notification emitter, bound to the request's database"""
    return DatabaseNotificationEmitter(sessionmaker(bind=db.get_bind()))


class BookingService:
    """Single entry point for booking an availability slot"""

    def __init__(self, db: Session, emitter: Optional[NotificationEmitter] = None):
        self.db = db
        self.emitter = emitter or NullNotificationEmitter()
        self.slots = SlotRepository()
        self.meetings = MeetingRepository()

    def book_slot(
        self,
        slot_id: str,
        requester_id: str,
        meeting_type: str,
        notes: Optional[str],
        offer: OfferPayload,
    ) -> Meeting:
        """
        Book a slot on behalf of a requester.

        Raises:
            InvalidOffer: The offer breaks the offer rules
            NotFound: The slot does not exist
            SlotUnavailable: The slot is already claimed
            InvalidOperation: The requester owns the slot
            Conflict: The requester already has an active meeting for this resource
            AlreadyClaimed: Another booking claimed the slot while this one was running
        """
        verdict = offer.check()
        if not verdict.valid:
            logger.warning(f"⚠️ Rejected offer from {requester_id} for slot {slot_id}: {verdict.reason}")
            raise InvalidOffer(verdict.reason)

        meeting_id = generate_id()
        try:
            with unit_of_work(self.db):
                slot = self.slots.get_slot(self.db, slot_id)
                if not slot:
                    raise NotFound("Slot not found")
                if slot.claimed:
                    raise SlotUnavailable()
                if slot.owner_id == requester_id:
                    raise InvalidOperation("You cannot book your own availability")
                if self.meetings.has_active_meeting(self.db, slot.resource_id, requester_id):
                    raise Conflict(ACTIVE_REQUEST_MESSAGE)

                economic = offer.offer_type == OFFER_ECONOMIC
                meeting = self.meetings.create_meeting(
                    self.db,
                    id=meeting_id,
                    resource_id=slot.resource_id,
                    requester_id=requester_id,
                    owner_id=slot.owner_id,
                    status=STATUS_PENDING,
                    scheduled_at=local_to_utc(slot.date, slot.start_time, slot.timezone),
                    duration_minutes=minutes_between(slot.start_time, slot.end_time),
                    meeting_type=meeting_type,
                    timezone=slot.timezone,
                    requester_notes=notes,
                    availability_slot_id=slot.id,
                    offer_type=offer.offer_type,
                    offer_amount=parse_finite_number(offer.offer_amount) if economic else None,
                    offer_equity_percent=(
                        parse_finite_number(offer.offer_equity_percent) if economic else None
                    ),
                    offer_note=offer.offer_note,
                    offer_status="pending_review",
                )
                self.slots.claim(self.db, slot.id, requester_id, meeting_id)
        except IntegrityError as e:
            # The partial unique index caught a concurrent active request
            logger.warning(f"⚠️ Duplicate active request by {requester_id} for slot {slot_id}")
            raise Conflict(ACTIVE_REQUEST_MESSAGE) from e

        self.db.refresh(meeting)
        logger.info(
            f"📅 Meeting {meeting.id} requested by {requester_id} on slot {slot_id} "
            f"(resource {meeting.resource_id})"
        )
        self._notify_owner(meeting)
        return meeting

    def _notify_owner(self, meeting: Meeting) -> None:
        context = {
            "meeting_id": meeting.id,
            "resource_id": meeting.resource_id,
            "slot_id": meeting.availability_slot_id,
            "href": "/calendar",
        }
        when = meeting.scheduled_at.strftime("%Y-%m-%d %H:%M") if meeting.scheduled_at else "TBD"
        emit_safely(
            self.emitter,
            NotificationEvent(
                recipient_id=meeting.owner_id,
                kind=MEETING_REQUESTED,
                summary=f"An investor requested a meeting on {when} UTC.",
                context=context,
            ),
        )
        emit_safely(
            self.emitter,
            NotificationEvent(
                recipient_id=meeting.owner_id,
                kind=OFFER_PENDING_REVIEW,
                summary=summarize_offer(
                    meeting.offer_type,
                    meeting.offer_amount,
                    meeting.offer_equity_percent,
                    meeting.offer_note,
                ),
                context=context,
            ),
        )

"""
Meeting service - the negotiation state machine

Statuses and who may move them:

    pending ──confirm(owner)──────────────────────────────► confirmed
    counterproposal_investor ──confirm(owner)─────────────► confirmed
    counterproposal_entrepreneur ──confirm(requester)─────► confirmed
    any active ──counterpropose(owner)────────────────────► counterproposal_entrepreneur
    any active ──counterpropose(requester)────────────────► counterproposal_investor
    any active ──reject(either)───────────────────────────► rejected
    any active ──cancel(requester)────────────────────────► cancelled

A counterproposal status names who spoke last, so the other party answers.
Leaving for rejected, cancelled or a counterproposal frees the bound slot in
the same transaction as the status change.
"""

import logging
from datetime import date, datetime, time
from typing import Optional

from sqlalchemy.orm import Session

from ...config import DEFAULT_CANCELLATION_REASON, DEFAULT_REJECTION_REASON
from ...database import unit_of_work
from ...errors import Forbidden, InvalidOperation, InvalidState, NotFound
from ...models import (
    ACTIVE_MEETING_STATUSES,
    MEETING_STATUSES,
    STATUS_CANCELLED,
    STATUS_CONFIRMED,
    STATUS_COUNTERPROPOSAL_ENTREPRENEUR,
    STATUS_COUNTERPROPOSAL_INVESTOR,
    STATUS_PENDING,
    STATUS_REJECTED,
    Meeting,
)
from ...services.notification_service import (
    MEETING_CANCELLED,
    MEETING_CONFIRMED,
    MEETING_COUNTERPROPOSAL,
    MEETING_REJECTED,
    NotificationEmitter,
    NotificationEvent,
    NullNotificationEmitter,
    emit_safely,
)
from ...shared.timeutils import local_to_utc, minutes_between, utcnow
from ..availability.repository import SlotRepository
from .repository import MeetingRepository

logger = logging.getLogger(__name__)

OWNER = "owner"
REQUESTER = "requester"

# How each role is named to the other party
ROLE_LABELS = {OWNER: "entrepreneur", REQUESTER: "investor"}

CONFIRMABLE_FROM = {
    OWNER: (STATUS_PENDING, STATUS_COUNTERPROPOSAL_INVESTOR),
    REQUESTER: (STATUS_COUNTERPROPOSAL_ENTREPRENEUR,),
}

COUNTERPROPOSAL_STATUS = {
    OWNER: STATUS_COUNTERPROPOSAL_ENTREPRENEUR,
    REQUESTER: STATUS_COUNTERPROPOSAL_INVESTOR,
}

# Fields that only make sense while a counterproposal is open
CLEARED_COUNTERPROPOSAL = {"counterproposal_by": None, "counterproposal_notes": None}


class MeetingService:
    """Service layer for meeting transitions and queries"""

    def __init__(self, db: Session, emitter: Optional[NotificationEmitter] = None):
        self.db = db
        self.emitter = emitter or NullNotificationEmitter()
        self.repo = MeetingRepository()
        self.slots = SlotRepository()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_meeting(self, meeting_id: str, actor_id: str) -> Meeting:
        """Get a meeting the actor participates in"""
        meeting, _role = self._load(meeting_id, actor_id)
        return meeting

    def get_my_meetings(
        self,
        user_id: str,
        status: Optional[str] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
    ) -> list[tuple[Meeting, str]]:
        """Meetings for the user paired with the user's role label in each"""
        if status and status != "all" and status not in MEETING_STATUSES:
            raise InvalidOperation(f"Unknown meeting status: {status}")
        meetings = self.repo.get_user_meetings(self.db, user_id, status, from_date, to_date)
        return [
            (m, ROLE_LABELS[OWNER] if m.owner_id == user_id else ROLE_LABELS[REQUESTER])
            for m in meetings
        ]

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def confirm(
        self,
        meeting_id: str,
        actor_id: str,
        meeting_url: Optional[str] = None,
        owner_notes: Optional[str] = None,
    ) -> Meeting:
        """Accept the meeting as currently proposed. Only the party whose turn it is may confirm."""
        with unit_of_work(self.db):
            meeting, role = self._load(meeting_id, actor_id)
            if meeting.status not in CONFIRMABLE_FROM[role]:
                raise InvalidState(
                    f"The {ROLE_LABELS[role]} cannot confirm a meeting in status '{meeting.status}'"
                )

            updates = {"status": STATUS_CONFIRMED, "confirmed_at": utcnow(), **CLEARED_COUNTERPROPOSAL}
            if meeting_url:
                updates["meeting_url"] = meeting_url
            if owner_notes and role == OWNER:
                updates["owner_notes"] = owner_notes
            self._transition(meeting, updates, release_slot=False)

        when = self._format_when(meeting)
        return self._finish(
            meeting,
            role,
            MEETING_CONFIRMED,
            f"The {ROLE_LABELS[role]} confirmed the meeting for {when}.",
        )

    def reject(self, meeting_id: str, actor_id: str, reason: Optional[str] = None) -> Meeting:
        """Either party ends the negotiation"""
        reason = (reason or "").strip() or DEFAULT_REJECTION_REASON
        with unit_of_work(self.db):
            meeting, role = self._load(meeting_id, actor_id)
            self._require_active(meeting, "reject")
            self._transition(
                meeting,
                {
                    "status": STATUS_REJECTED,
                    "rejected_at": utcnow(),
                    "rejection_reason": reason,
                    **CLEARED_COUNTERPROPOSAL,
                },
                release_slot=True,
            )

        return self._finish(
            meeting,
            role,
            MEETING_REJECTED,
            f"The {ROLE_LABELS[role]} rejected the meeting. Reason: {reason}",
        )

    def counterpropose(
        self,
        meeting_id: str,
        actor_id: str,
        proposed_date: date,
        proposed_start_time: time,
        proposed_end_time: time,
        notes: Optional[str] = None,
    ) -> Meeting:
        """
        Propose a new time and hand the turn to the other party.

        The new time is free-form, so the meeting detaches from its slot and
        the slot becomes bookable again. A non-positive duration keeps the
        previous one.
        """
        with unit_of_work(self.db):
            meeting, role = self._load(meeting_id, actor_id)
            self._require_active(meeting, "counterpropose on")

            duration = minutes_between(proposed_start_time, proposed_end_time)
            if duration <= 0:
                logger.warning(
                    f"⚠️ Counterproposal on meeting {meeting.id} has non-positive duration "
                    f"({duration} min), keeping {meeting.duration_minutes} min"
                )
                duration = meeting.duration_minutes

            self._transition(
                meeting,
                {
                    "status": COUNTERPROPOSAL_STATUS[role],
                    "scheduled_at": local_to_utc(
                        proposed_date, proposed_start_time, meeting.timezone
                    ),
                    "duration_minutes": duration,
                    "counterproposal_by": actor_id,
                    "counterproposal_notes": notes,
                },
                release_slot=True,
            )

        summary = (
            f"The {ROLE_LABELS[role]} proposed a new time: {proposed_date.isoformat()} "
            f"{proposed_start_time.strftime('%H:%M')}-{proposed_end_time.strftime('%H:%M')} "
            f"({meeting.timezone})."
        )
        if notes:
            summary += f" Note: {notes}"
        return self._finish(meeting, role, MEETING_COUNTERPROPOSAL, summary)

    def cancel(self, meeting_id: str, actor_id: str, reason: Optional[str] = None) -> Meeting:
        """The requester withdraws the request"""
        reason = (reason or "").strip() or DEFAULT_CANCELLATION_REASON
        with unit_of_work(self.db):
            meeting, role = self._load(meeting_id, actor_id)
            if role != REQUESTER:
                raise Forbidden("Only the requester can cancel a meeting")
            self._require_active(meeting, "cancel")
            self._transition(
                meeting,
                {
                    "status": STATUS_CANCELLED,
                    "cancelled_at": utcnow(),
                    "cancelled_by": actor_id,
                    "cancellation_reason": reason,
                    **CLEARED_COUNTERPROPOSAL,
                },
                release_slot=True,
            )

        return self._finish(
            meeting,
            role,
            MEETING_CANCELLED,
            f"The {ROLE_LABELS[role]} cancelled the meeting. Reason: {reason}",
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _load(self, meeting_id: str, actor_id: str) -> tuple[Meeting, str]:
        meeting = self.repo.get_meeting(self.db, meeting_id)
        if not meeting:
            raise NotFound("Meeting not found")
        if actor_id == meeting.owner_id:
            return meeting, OWNER
        if actor_id == meeting.requester_id:
            return meeting, REQUESTER
        logger.warning(f"⚠️ User {actor_id} tried to act on meeting {meeting_id}")
        raise Forbidden("You are not a participant in this meeting")

    @staticmethod
    def _require_active(meeting: Meeting, action: str) -> None:
        if meeting.status not in ACTIVE_MEETING_STATUSES:
            raise InvalidState(f"Cannot {action} a meeting in status '{meeting.status}'")

    def _transition(self, meeting: Meeting, updates: dict, release_slot: bool) -> None:
        slot_id = meeting.availability_slot_id
        if release_slot:
            updates["availability_slot_id"] = None

        if not self.repo.transition(self.db, meeting.id, meeting.status, **updates):
            raise InvalidState("The meeting was updated by another request, reload and try again")

        if release_slot and slot_id:
            if self.slots.release(self.db, slot_id, meeting_id=meeting.id):
                logger.info(f"🔓 Slot {slot_id} released by meeting {meeting.id}")

    def _finish(self, meeting: Meeting, role: str, kind: str, summary: str) -> Meeting:
        self.db.refresh(meeting)
        logger.info(f"✅ Meeting {meeting.id} is now {meeting.status} ({ROLE_LABELS[role]} acted)")

        recipient = meeting.requester_id if role == OWNER else meeting.owner_id
        emit_safely(
            self.emitter,
            NotificationEvent(
                recipient_id=recipient,
                kind=kind,
                summary=summary,
                context={
                    "meeting_id": meeting.id,
                    "resource_id": meeting.resource_id,
                    "status": meeting.status,
                    "actor_role": ROLE_LABELS[role],
                    "href": "/calendar",
                },
            ),
        )
        return meeting

    @staticmethod
    def _format_when(meeting: Meeting) -> str:
        if not meeting.scheduled_at:
            return "a time to be defined"
        return meeting.scheduled_at.strftime("%Y-%m-%d %H:%M") + " UTC"

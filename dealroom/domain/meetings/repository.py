"""Meeting repository - Database operations for meetings"""

from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import ACTIVE_MEETING_STATUSES, Meeting


class MeetingRepository:
    """Repository for meeting database operations. Writes never commit."""

    @staticmethod
    def get_meeting(db: Session, meeting_id: str) -> Optional[Meeting]:
        return db.query(Meeting).filter(Meeting.id == meeting_id).first()

    @staticmethod
    def has_active_meeting(db: Session, resource_id: str, requester_id: str) -> bool:
        """Whether the requester already has a non-terminal meeting for the resource"""
        return (
            db.query(Meeting.id)
            .filter(
                Meeting.resource_id == resource_id,
                Meeting.requester_id == requester_id,
                Meeting.status.in_(ACTIVE_MEETING_STATUSES),
            )
            .first()
            is not None
        )

    @staticmethod
    def create_meeting(db: Session, **meeting_data) -> Meeting:
        meeting = Meeting(**meeting_data)
        db.add(meeting)
        db.flush()
        return meeting

    @staticmethod
    def transition(db: Session, meeting_id: str, expected_status: str, **updates) -> bool:
        """
        Compare-and-set update keyed on the status the caller read.

        Returns:
            False if the meeting moved to another status in the meantime
        """
        updated = (
            db.query(Meeting)
            .filter(Meeting.id == meeting_id, Meeting.status == expected_status)
            .update(updates, synchronize_session=False)
        )
        return bool(updated)

    @staticmethod
    def get_user_meetings(
        db: Session,
        user_id: str,
        status: Optional[str] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
    ) -> list[Meeting]:
        """Meetings where the user is requester or owner, soonest first"""
        query = db.query(Meeting).filter(
            or_(Meeting.requester_id == user_id, Meeting.owner_id == user_id)
        )

        if status and status != "all":
            query = query.filter(Meeting.status == status)
        if from_date:
            query = query.filter(Meeting.scheduled_at >= from_date)
        if to_date:
            query = query.filter(Meeting.scheduled_at <= to_date)

        return query.order_by(Meeting.scheduled_at.asc(), Meeting.created_at.asc()).all()

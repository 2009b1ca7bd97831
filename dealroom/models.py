import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_id():
    """Generate an opaque identifier for slots, meetings and notifications"""
    return str(uuid.uuid4())


# Meeting status workflow:
# pending → confirmed
# pending/confirmed → counterproposal_entrepreneur ⇄ counterproposal_investor → confirmed
# any active status → rejected / cancelled
# completed is only set administratively
STATUS_PENDING = "pending"
STATUS_CONFIRMED = "confirmed"
STATUS_REJECTED = "rejected"
STATUS_CANCELLED = "cancelled"
STATUS_COMPLETED = "completed"
# Owner proposed a new time, requester must answer
STATUS_COUNTERPROPOSAL_ENTREPRENEUR = "counterproposal_entrepreneur"
# Requester proposed a new time, owner must answer
STATUS_COUNTERPROPOSAL_INVESTOR = "counterproposal_investor"

ACTIVE_MEETING_STATUSES = (
    STATUS_PENDING,
    STATUS_CONFIRMED,
    STATUS_COUNTERPROPOSAL_ENTREPRENEUR,
    STATUS_COUNTERPROPOSAL_INVESTOR,
)
TERMINAL_MEETING_STATUSES = (STATUS_REJECTED, STATUS_CANCELLED, STATUS_COMPLETED)
MEETING_STATUSES = ACTIVE_MEETING_STATUSES + TERMINAL_MEETING_STATUSES

OFFER_ECONOMIC = "economic"
OFFER_NON_ECONOMIC = "non_economic"

_ACTIVE_STATUS_SQL = "status IN ({})".format(
    ", ".join(f"'{status}'" for status in ACTIVE_MEETING_STATUSES)
)


class AvailabilitySlot(Base):
    """A bookable time window published by a resource owner"""

    __tablename__ = "availability_slots"
    __table_args__ = (
        UniqueConstraint("resource_id", "date", "start_time", name="uq_slot_resource_start"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    resource_id = Column(String(36), nullable=False, index=True)
    owner_id = Column(String(36), nullable=False, index=True)

    # Local wall clock, interpreted in `timezone`
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    timezone = Column(String(64), nullable=False, default="UTC")
    notes = Column(Text, nullable=True)

    # Claim state: all three are set together or cleared together
    claimed = Column(Boolean, default=False, nullable=False, index=True)
    claimed_by = Column(String(36), nullable=True)
    meeting_id = Column(String(36), nullable=True)  # Back reference, no FK to avoid a cycle

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Meeting(Base):
    """A meeting request between a resource owner and a requester"""

    __tablename__ = "meetings"
    __table_args__ = (
        # At most one active request per (resource, requester), checked at commit time
        Index(
            "uq_meetings_active_request",
            "resource_id",
            "requester_id",
            unique=True,
            sqlite_where=text(_ACTIVE_STATUS_SQL),
            postgresql_where=text(_ACTIVE_STATUS_SQL),
        ),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    resource_id = Column(String(36), nullable=False, index=True)
    requester_id = Column(String(36), nullable=False, index=True)
    owner_id = Column(String(36), nullable=False, index=True)
    status = Column(String(50), default=STATUS_PENDING, nullable=False, index=True)

    # Scheduling (scheduled_at is stored as naive UTC)
    scheduled_at = Column(DateTime, nullable=True)
    duration_minutes = Column(Integer, nullable=False, default=60)
    meeting_type = Column(String(20), nullable=False, default="video_call")
    timezone = Column(String(64), nullable=False, default="UTC")
    meeting_url = Column(String(500), nullable=True)

    # Notes from each party
    requester_notes = Column(Text, nullable=True)
    owner_notes = Column(Text, nullable=True)

    # Originating slot, cleared once the slot is released
    availability_slot_id = Column(
        String(36), ForeignKey("availability_slots.id", ondelete="SET NULL"), nullable=True
    )

    # Counterproposal metadata, only set while in a counterproposal state
    counterproposal_by = Column(String(36), nullable=True)
    counterproposal_notes = Column(Text, nullable=True)

    # Transition audit trail
    confirmed_at = Column(DateTime, nullable=True)
    rejected_at = Column(DateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    cancelled_by = Column(String(36), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    # Offer, written once at booking time
    offer_type = Column(String(20), nullable=False)
    offer_amount = Column(Float, nullable=True)
    offer_equity_percent = Column(Float, nullable=True)
    offer_note = Column(Text, nullable=True)
    offer_status = Column(String(30), nullable=False, default="pending_review")

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    availability_slot = relationship("AvailabilitySlot", foreign_keys=[availability_slot_id])


class Notification(Base):
    """In-app notification delivered to a participant"""

    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), nullable=False, index=True)
    type = Column(String(50), nullable=False)  # meeting_requested, meeting_confirmed, ...
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    data = Column(JSON, nullable=True)  # meeting_id, resource_id, href
    read = Column(Boolean, default=False, nullable=False, index=True)
    read_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), index=True)

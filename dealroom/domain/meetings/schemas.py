"""Meeting domain schemas - Pydantic models for validation"""

import datetime as dt
from typing import Literal, Optional, Union

from pydantic import BaseModel, field_validator

from ...shared.timeutils import ensure_naive
from ...shared.validators import OfferValidation, validate_offer

MeetingType = Literal["video_call", "phone_call", "in_person"]


class OfferPayload(BaseModel):
    """
    Offer attached to a booking request.

    Only the shape is checked here; the business rules live in
    validate_offer so every caller applies the same ones.
    """

    offer_type: Optional[str] = None
    offer_amount: Optional[Union[float, str]] = None
    offer_equity_percent: Optional[Union[float, str]] = None
    offer_note: Optional[str] = None

    def check(self) -> OfferValidation:
        return validate_offer(
            self.offer_type, self.offer_amount, self.offer_equity_percent, self.offer_note
        )


class BookingRequest(OfferPayload):
    """Request body for booking a slot; offer fields are flattened into it"""

    notes: Optional[str] = None
    meeting_type: MeetingType = "video_call"

    def offer(self) -> OfferPayload:
        return OfferPayload(
            offer_type=self.offer_type,
            offer_amount=self.offer_amount,
            offer_equity_percent=self.offer_equity_percent,
            offer_note=self.offer_note,
        )


class OfferValidationResponse(BaseModel):
    valid: bool
    reason: Optional[str] = None


class ConfirmRequest(BaseModel):
    meeting_url: Optional[str] = None
    owner_notes: Optional[str] = None


class RejectRequest(BaseModel):
    rejection_reason: Optional[str] = None


class CancelRequest(BaseModel):
    cancellation_reason: Optional[str] = None


class CounterproposalRequest(BaseModel):
    proposed_date: dt.date
    proposed_start_time: dt.time
    proposed_end_time: dt.time
    notes: Optional[str] = None

    @field_validator("proposed_start_time", "proposed_end_time")
    @classmethod
    def validate_wall_clock(cls, v):
        return ensure_naive(v)


class MeetingResponse(BaseModel):
    id: str
    resource_id: str
    requester_id: str
    owner_id: str
    status: str
    scheduled_at: Optional[dt.datetime] = None
    duration_minutes: int
    meeting_type: str
    timezone: str
    meeting_url: Optional[str] = None
    requester_notes: Optional[str] = None
    owner_notes: Optional[str] = None
    availability_slot_id: Optional[str] = None
    counterproposal_by: Optional[str] = None
    counterproposal_notes: Optional[str] = None
    confirmed_at: Optional[dt.datetime] = None
    rejected_at: Optional[dt.datetime] = None
    rejection_reason: Optional[str] = None
    cancelled_at: Optional[dt.datetime] = None
    cancelled_by: Optional[str] = None
    cancellation_reason: Optional[str] = None
    offer_type: str
    offer_amount: Optional[float] = None
    offer_equity_percent: Optional[float] = None
    offer_note: Optional[str] = None
    offer_status: str
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True


class MyMeetingResponse(MeetingResponse):
    user_role: Literal["entrepreneur", "investor"]

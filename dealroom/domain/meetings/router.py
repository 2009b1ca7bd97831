"""Meeting router - FastAPI endpoints for the meeting negotiation"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user_id
from ...database import get_db
from .booking import get_notification_emitter
from .schemas import (
    CancelRequest,
    ConfirmRequest,
    CounterproposalRequest,
    MeetingResponse,
    MyMeetingResponse,
    OfferPayload,
    OfferValidationResponse,
    RejectRequest,
)
from .service import MeetingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/meetings", tags=["Meetings"])


def get_meeting_service(
    db: Session = Depends(get_db), emitter=Depends(get_notification_emitter)
) -> MeetingService:
    """Dependency injection for MeetingService"""
    return MeetingService(db, emitter)


@router.post("/offers/validate", response_model=OfferValidationResponse)
async def validate_offer_payload(data: OfferPayload):
    """Check an offer before submitting it (same rules the booking applies)"""
    verdict = data.check()
    return OfferValidationResponse(valid=verdict.valid, reason=verdict.reason)


@router.get("/my-meetings")
async def get_my_meetings(
    status: Optional[str] = Query(None),
    from_date: Optional[datetime] = Query(None),
    to_date: Optional[datetime] = Query(None),
    current_user_id: str = Depends(get_current_user_id),
    service: MeetingService = Depends(get_meeting_service),
):
    """Meetings where the caller is requester or owner"""
    rows = service.get_my_meetings(current_user_id, status, from_date, to_date)
    data = [
        MyMeetingResponse.model_validate(
            {**MeetingResponse.model_validate(meeting).model_dump(), "user_role": role}
        )
        for meeting, role in rows
    ]
    return {"data": data, "count": len(data)}


@router.get("/{meeting_id}", response_model=MeetingResponse)
async def get_meeting(
    meeting_id: str,
    current_user_id: str = Depends(get_current_user_id),
    service: MeetingService = Depends(get_meeting_service),
):
    return service.get_meeting(meeting_id, current_user_id)


@router.post("/{meeting_id}/confirm")
async def confirm_meeting(
    meeting_id: str,
    data: Optional[ConfirmRequest] = None,
    current_user_id: str = Depends(get_current_user_id),
    service: MeetingService = Depends(get_meeting_service),
):
    data = data or ConfirmRequest()
    meeting = service.confirm(meeting_id, current_user_id, data.meeting_url, data.owner_notes)
    return {"data": MeetingResponse.model_validate(meeting), "message": "Meeting confirmed"}


@router.post("/{meeting_id}/reject")
async def reject_meeting(
    meeting_id: str,
    data: Optional[RejectRequest] = None,
    current_user_id: str = Depends(get_current_user_id),
    service: MeetingService = Depends(get_meeting_service),
):
    data = data or RejectRequest()
    meeting = service.reject(meeting_id, current_user_id, data.rejection_reason)
    return {"data": MeetingResponse.model_validate(meeting), "message": "Meeting rejected"}


@router.post("/{meeting_id}/counterproposal")
async def counterpropose_meeting(
    meeting_id: str,
    data: CounterproposalRequest,
    current_user_id: str = Depends(get_current_user_id),
    service: MeetingService = Depends(get_meeting_service),
):
    meeting = service.counterpropose(
        meeting_id,
        current_user_id,
        data.proposed_date,
        data.proposed_start_time,
        data.proposed_end_time,
        data.notes,
    )
    return {"data": MeetingResponse.model_validate(meeting), "message": "Counterproposal sent"}


@router.post("/{meeting_id}/cancel")
async def cancel_meeting(
    meeting_id: str,
    data: Optional[CancelRequest] = None,
    current_user_id: str = Depends(get_current_user_id),
    service: MeetingService = Depends(get_meeting_service),
):
    data = data or CancelRequest()
    meeting = service.cancel(meeting_id, current_user_id, data.cancellation_reason)
    return {"data": MeetingResponse.model_validate(meeting), "message": "Meeting cancelled"}

"""Availability router - FastAPI endpoints for slots and booking"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user_id
from ...database import get_db
from ..meetings.booking import BookingService, get_notification_emitter
from ..meetings.schemas import BookingRequest, MeetingResponse
from .schemas import (
    BulkSlotCreateRequest,
    DefaultAvailabilityRequest,
    SlotCreateRequest,
    SlotResponse,
)
from .service import AvailabilityService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/availability", tags=["Availability"])


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    """Dependency injection for AvailabilityService"""
    return AvailabilityService(db)


def get_booking_service(
    db: Session = Depends(get_db), emitter=Depends(get_notification_emitter)
) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db, emitter)


# ============================================================================
# PUBLISHING
# ============================================================================


@router.post("", status_code=201)
async def create_availability(
    data: SlotCreateRequest,
    current_user_id: str = Depends(get_current_user_id),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Publish availability slots for a resource"""
    created = service.create_slots(current_user_id, data)
    return {
        "data": [SlotResponse.model_validate(slot) for slot in created],
        "count": len(created),
        "message": f"{len(created)} slots created",
    }


@router.post("/bulk", status_code=201)
async def create_bulk_availability(
    data: BulkSlotCreateRequest,
    current_user_id: str = Depends(get_current_user_id),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Publish every combination of dates and time windows"""
    created, total = service.create_bulk(current_user_id, data)
    return {
        "data": [SlotResponse.model_validate(slot) for slot in created],
        "count": len(created),
        "total_combinations": total,
        "message": f"{len(created)} slots created",
    }


@router.post("/default", status_code=201)
async def create_default_availability(
    data: DefaultAvailabilityRequest,
    current_user_id: str = Depends(get_current_user_id),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Seed the default agenda for a resource"""
    created = service.create_default(current_user_id, data)
    return {
        "data": [SlotResponse.model_validate(slot) for slot in created],
        "count": len(created),
        "message": f"{len(created)} slots created",
    }


# ============================================================================
# QUERIES
# ============================================================================


@router.get("/resource/{resource_id}")
async def get_resource_availability(
    resource_id: str,
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    available_only: bool = Query(False),
    current_user_id: str = Depends(get_current_user_id),
    service: AvailabilityService = Depends(get_availability_service),
):
    """List a resource's slots ordered by date and start time"""
    slots = [
        SlotResponse.model_validate(slot)
        for slot in service.list_resource_slots(resource_id, from_date, to_date, available_only)
    ]
    return {"data": slots, "count": len(slots)}


@router.get("/my-slots")
async def get_my_availability(
    resource_id: Optional[str] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    current_user_id: str = Depends(get_current_user_id),
    service: AvailabilityService = Depends(get_availability_service),
):
    """List the caller's own slots"""
    slots = [
        SlotResponse.model_validate(slot)
        for slot in service.list_owner_slots(current_user_id, resource_id, from_date, to_date)
    ]
    return {"data": slots, "count": len(slots)}


# ============================================================================
# SLOT ACTIONS
# ============================================================================


@router.delete("/{slot_id}")
async def delete_availability_slot(
    slot_id: str,
    current_user_id: str = Depends(get_current_user_id),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Delete an unbooked slot"""
    return service.delete_slot(slot_id, current_user_id)


@router.post("/{slot_id}/book", status_code=201)
async def book_availability_slot(
    slot_id: str,
    data: BookingRequest,
    current_user_id: str = Depends(get_current_user_id),
    service: BookingService = Depends(get_booking_service),
):
    """Request a meeting on a slot, attaching an offer"""
    meeting = service.book_slot(
        slot_id=slot_id,
        requester_id=current_user_id,
        meeting_type=data.meeting_type,
        notes=data.notes,
        offer=data.offer(),
    )
    return {
        "data": MeetingResponse.model_validate(meeting),
        "message": "Meeting requested. The owner must confirm it.",
    }

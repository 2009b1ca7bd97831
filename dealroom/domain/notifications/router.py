"""Notification router - in-app notifications for meeting participants"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user_id
from ...database import get_db
from .schemas import NotificationResponse
from .service import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    """Dependency injection for NotificationService"""
    return NotificationService(db)


@router.get("")
async def get_my_notifications(
    limit: int = Query(10),
    unread_only: bool = Query(False),
    current_user_id: str = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
):
    """Latest notifications for the caller plus the unread count"""
    notifications, unread = service.list_notifications(current_user_id, limit, unread_only)
    return {
        "data": [NotificationResponse.model_validate(n) for n in notifications],
        "count": len(notifications),
        "unread_count": unread,
    }


@router.patch("/read-all")
async def mark_all_notifications_read(
    current_user_id: str = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
):
    updated = service.mark_all_read(current_user_id)
    return {"message": "All notifications marked as read", "updated": updated}


@router.patch("/{notification_id}/read")
async def mark_notification_read(
    notification_id: str,
    current_user_id: str = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
):
    notification = service.mark_read(notification_id, current_user_id)
    return {
        "data": NotificationResponse.model_validate(notification),
        "message": "Notification marked as read",
    }

"""Notification repository - Database operations for in-app notifications"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Notification
from ...shared.timeutils import utcnow


class NotificationRepository:
    """Repository for in-app notification database operations. Writes never commit."""

    @staticmethod
    def get_notifications(
        db: Session, user_id: str, limit: int, unread_only: bool = False
    ) -> list[Notification]:
        query = db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.read.is_(False))
        return (
            query.order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def count_unread(db: Session, user_id: str) -> int:
        return (
            db.query(func.count(Notification.id))
            .filter(Notification.user_id == user_id, Notification.read.is_(False))
            .scalar()
        )

    @staticmethod
    def mark_read(db: Session, notification_id: str, user_id: str) -> Optional[Notification]:
        """Mark one of the user's notifications read; None if it is not theirs or missing"""
        notification = (
            db.query(Notification)
            .filter(Notification.id == notification_id, Notification.user_id == user_id)
            .first()
        )
        if not notification:
            return None
        if not notification.read:
            notification.read = True
            notification.read_at = utcnow()
            db.flush()
        return notification

    @staticmethod
    def mark_all_read(db: Session, user_id: str) -> int:
        return (
            db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.read.is_(False))
            .update({"read": True, "read_at": utcnow()}, synchronize_session=False)
        )

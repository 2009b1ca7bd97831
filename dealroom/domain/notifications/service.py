"""Notification service - Business logic for the caller's in-app inbox"""

import logging

from sqlalchemy.orm import Session

from ...database import unit_of_work
from ...errors import NotFound
from ...models import Notification
from .repository import NotificationRepository

logger = logging.getLogger(__name__)

MAX_LIMIT = 50


class NotificationService:
    """Service layer for reading and acknowledging notifications"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = NotificationRepository()

    def list_notifications(
        self, user_id: str, limit: int = 10, unread_only: bool = False
    ) -> tuple[list[Notification], int]:
        """
        Latest notifications for the user, newest first.

        Returns:
            (notifications, unread count); limit is clamped to 1..MAX_LIMIT
        """
        limit = min(max(limit, 1), MAX_LIMIT)
        notifications = self.repo.get_notifications(self.db, user_id, limit, unread_only)
        return notifications, self.repo.count_unread(self.db, user_id)

    def mark_read(self, notification_id: str, user_id: str) -> Notification:
        with unit_of_work(self.db):
            notification = self.repo.mark_read(self.db, notification_id, user_id)
            if not notification:
                raise NotFound("Notification not found")
        self.db.refresh(notification)
        return notification

    def mark_all_read(self, user_id: str) -> int:
        with unit_of_work(self.db):
            updated = self.repo.mark_all_read(self.db, user_id)
        if updated:
            logger.info(f"📬 Marked {updated} notifications read for {user_id}")
        return updated

"""
Notification Service
Boundary between the scheduling core and notification delivery.

The core only builds NotificationEvent objects and hands them to an injected
NotificationEmitter. Delivery is best effort: emit_safely logs and swallows
every failure so a notification can never roll back or block a state
transition that already committed.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..config import FRONTEND_URL
from ..models import Notification

logger = logging.getLogger(__name__)

# Event kinds
MEETING_REQUESTED = "meeting_requested"
OFFER_PENDING_REVIEW = "offer_pending_review"
MEETING_CONFIRMED = "meeting_confirmed"
MEETING_REJECTED = "meeting_rejected"
MEETING_COUNTERPROPOSAL = "meeting_counterproposal"
MEETING_CANCELLED = "meeting_cancelled"

NOTIFICATION_TITLES = {
    MEETING_REQUESTED: "New meeting request",
    OFFER_PENDING_REVIEW: "Offer pending review",
    MEETING_CONFIRMED: "Meeting confirmed",
    MEETING_REJECTED: "Meeting rejected",
    MEETING_COUNTERPROPOSAL: "New counterproposal",
    MEETING_CANCELLED: "Meeting cancelled",
}


class NotificationEvent(BaseModel):
    """A request to notify one participant about something that happened to a meeting"""

    recipient_id: str
    kind: str
    summary: str
    context: dict[str, Any] = Field(default_factory=dict)


class NotificationEmitter(ABC):
    """Interface for notification delivery; implementations may raise freely"""

    @abstractmethod
    def emit(self, event: NotificationEvent) -> None:
        ...


class NullNotificationEmitter(NotificationEmitter):
    def emit(self, event: NotificationEvent) -> None:
        logger.debug(f"ℹ️ Dropping {event.kind} notification for {event.recipient_id}")


class DatabaseNotificationEmitter(NotificationEmitter):
    """
    Stores events as in-app notifications.

    Uses its own session so a failed insert never touches the caller's
    transaction.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def emit(self, event: NotificationEvent) -> None:
        data = dict(event.context)
        data.setdefault("href", "/calendar")
        data.setdefault("url", f"{FRONTEND_URL}{data['href']}")

        db = self.session_factory()
        try:
            db.add(
                Notification(
                    user_id=event.recipient_id,
                    type=event.kind,
                    title=NOTIFICATION_TITLES.get(event.kind, "Notification"),
                    message=event.summary,
                    data=data,
                )
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


def emit_safely(emitter: Optional[NotificationEmitter], event: NotificationEvent) -> bool:
    """
    Fire-and-forget emission.

    Returns:
        True if the emitter accepted the event, False if it failed or no emitter is set
    """
    if emitter is None:
        return False
    try:
        emitter.emit(event)
        logger.info(f"✅ {event.kind} notification emitted to {event.recipient_id}")
        return True
    except Exception as e:
        logger.error(f"❌ Failed to emit {event.kind} notification to {event.recipient_id}: {e}")
        return False

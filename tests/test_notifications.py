import pytest

from dealroom.domain.notifications.repository import NotificationRepository
from dealroom.domain.notifications.service import NotificationService
from dealroom.errors import NotFound
from dealroom.models import Notification
from dealroom.services.notification_service import (
    MEETING_CONFIRMED,
    MEETING_REQUESTED,
    DatabaseNotificationEmitter,
    NotificationEmitter,
    NotificationEvent,
)

from .conftest import INVESTOR, OWNER


@pytest.fixture
def inbox(session_factory):
    emitter = DatabaseNotificationEmitter(session_factory)
    for i in range(3):
        emitter.emit(
            NotificationEvent(
                recipient_id=OWNER,
                kind=MEETING_REQUESTED,
                summary=f"Request {i}",
                context={"meeting_id": f"meeting-{i}"},
            )
        )
    emitter.emit(
        NotificationEvent(recipient_id=INVESTOR, kind=MEETING_CONFIRMED, summary="Confirmed")
    )


@pytest.fixture
def notifications(db):
    return NotificationService(db)


class TestDatabaseEmitter:

    def test_event_becomes_notification(self, db, inbox):
        stored = db.query(Notification).filter(Notification.user_id == INVESTOR).one()
        assert stored.type == MEETING_CONFIRMED
        assert stored.title == "Meeting confirmed"
        assert stored.message == "Confirmed"
        assert stored.data["href"] == "/calendar"
        assert stored.data["url"].endswith("/calendar")
        assert stored.read is False


class TestNotificationService:

    def test_list_with_unread_count(self, notifications, inbox):
        items, unread = notifications.list_notifications(OWNER)
        assert len(items) == 3
        assert unread == 3

    @pytest.mark.parametrize("limit, expected", [(0, 1), (-5, 1), (2, 2), (500, 3)])
    def test_limit_is_clamped(self, notifications, inbox, limit, expected):
        items, _ = notifications.list_notifications(OWNER, limit=limit)
        assert len(items) == expected

    def test_mark_read(self, notifications, inbox):
        [first, *_] = notifications.list_notifications(OWNER)[0]
        marked = notifications.mark_read(first.id, OWNER)

        assert marked.read is True
        assert marked.read_at is not None
        assert notifications.list_notifications(OWNER)[1] == 2

    def test_mark_read_is_scoped_to_recipient(self, notifications, inbox):
        [first, *_] = notifications.list_notifications(OWNER)[0]
        with pytest.raises(NotFound):
            notifications.mark_read(first.id, INVESTOR)
        with pytest.raises(NotFound):
            notifications.mark_read("missing", OWNER)

    def test_mark_all_read(self, notifications, inbox):
        assert notifications.mark_all_read(OWNER) == 3
        assert notifications.mark_all_read(OWNER) == 0
        assert notifications.list_notifications(OWNER, unread_only=True) == ([], 0)
        assert notifications.list_notifications(INVESTOR)[1] == 1


class TestNotificationRepository:

    def test_writes_are_left_to_the_caller(self, db, inbox):
        assert NotificationRepository.mark_all_read(db, OWNER) == 3
        db.rollback()
        assert NotificationRepository.count_unread(db, OWNER) == 3

    def test_mark_read_does_not_commit(self, db, inbox):
        [first, *_] = NotificationRepository.get_notifications(db, OWNER, limit=10)
        NotificationRepository.mark_read(db, first.id, OWNER)
        db.rollback()
        assert NotificationRepository.count_unread(db, OWNER) == 3


def test_emitter_without_emit_cannot_be_created():
    class Incomplete(NotificationEmitter):
        pass

    with pytest.raises(TypeError):
        Incomplete()

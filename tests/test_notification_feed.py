"""Tests for listing notifications and mutating their read state."""
from datetime import date, datetime, timedelta

import pytest

from app.models import Notification
from app.services.notification_service import NotificationService, unread_count


@pytest.fixture
def service(session):
    return NotificationService(session)


@pytest.fixture
def make_notification(session):
    def _make(document, owner_id=None, read=False, created_at=None, message="This Week: reminder"):
        notification = Notification(
            owner_id=owner_id or document.owner_id,
            document_id=document.id,
            message=message,
            type="due_date",
            priority=7,
            due_on=date(2024, 3, 20),
            read=read,
            created_at=created_at or datetime(2024, 3, 14, 9, 0),
        )
        session.add(notification)
        session.commit()
        session.refresh(notification)
        return notification
    return _make


def test_mark_all_read_then_unread_count_is_zero(service, make_document, make_notification):
    document = make_document()
    make_notification(document)
    make_notification(document, read=True)
    make_notification(document)

    changed = service.mark_all_read("user-1")

    assert changed == 2
    assert service.count_unread("user-1") == 0
    assert unread_count(service.list_notifications("user-1")) == 0


def test_mark_all_read_with_nothing_unread(service, make_document, make_notification):
    make_notification(make_document(), read=True)

    assert service.mark_all_read("user-1") == 0
    assert service.mark_all_read("nobody") == 0


def test_mark_all_read_leaves_other_owners_alone(service, make_document, make_notification):
    make_notification(make_document())
    other = make_notification(make_document(owner_id="user-2"))

    service.mark_all_read("user-1")

    assert service.count_unread("user-2") == 1
    assert other.read is False


def test_mark_read(service, make_document, make_notification):
    notification = make_notification(make_document())

    assert service.mark_read(notification.id, "user-1") is True
    assert notification.read is True
    assert service.count_unread("user-1") == 0


def test_mark_read_other_owner_leaves_flag_unchanged(service, session, make_document, make_notification):
    notification = make_notification(make_document(owner_id="user-2"))

    assert service.mark_read(notification.id, "user-1") is False

    session.refresh(notification)
    assert notification.read is False


def test_mark_read_unknown_id(service):
    assert service.mark_read("does-not-exist", "user-1") is False


def test_list_is_newest_first_with_document_snapshot(service, make_document, make_notification):
    document = make_document(title="Rent Contract", category="Real Estate", due_date="2024-03-20")
    start = datetime(2024, 3, 1, 8, 0)
    oldest = make_notification(document, created_at=start)
    newest = make_notification(document, created_at=start + timedelta(days=2))
    middle = make_notification(document, created_at=start + timedelta(days=1))

    feed = service.list_notifications("user-1")

    assert [n["id"] for n in feed] == [newest.id, middle.id, oldest.id]
    assert feed[0]["document"] == {
        "title": "Rent Contract",
        "category": "Real Estate",
        "due_date": "2024-03-20",
    }


def test_list_reflects_current_document_title(service, session, make_document, make_notification):
    document = make_document(title="Old Title")
    make_notification(document)

    document.title = "New Title"
    session.add(document)
    session.commit()

    assert service.list_notifications("user-1")[0]["document"]["title"] == "New Title"


def test_list_respects_limit(service, make_document, make_notification):
    document = make_document()
    start = datetime(2024, 3, 1, 8, 0)
    for minutes in range(5):
        make_notification(document, created_at=start + timedelta(minutes=minutes))

    feed = service.list_notifications("user-1", limit=3)

    assert len(feed) == 3
    assert feed[0]["created_at"] == start + timedelta(minutes=4)


def test_list_is_scoped_to_owner(service, make_document, make_notification):
    make_notification(make_document(owner_id="user-2"))

    assert service.list_notifications("user-1") == []


def test_delete_notification(service, make_document, make_notification):
    notification = make_notification(make_document())

    assert service.delete_notification(notification.id, "user-2") is False
    assert service.delete_notification(notification.id, "user-1") is True
    assert service.list_notifications("user-1") == []


def test_unread_count_accepts_rows_and_dicts(make_document, make_notification):
    document = make_document()
    rows = [make_notification(document), make_notification(document, read=True)]

    assert unread_count(rows) == 1
    assert unread_count([{"read": False}, {"read": False}, {"read": True}]) == 2
    assert unread_count([]) == 0


def test_count_unread_counts_only_unread_of_owner(service, make_document, make_notification):
    document = make_document()
    make_notification(document)
    make_notification(document)
    make_notification(document, read=True)
    make_notification(make_document(owner_id="user-2"))

    assert service.count_unread("user-1") == 2
    assert service.count_unread("nobody") == 0


def test_naive_utc_timestamps_are_stored_unchanged(session, make_document, make_notification):
    created_at = datetime(2024, 3, 14, 9, 30, 15)
    notification = make_notification(make_document(), created_at=created_at)

    session.expire_all()
    stored = session.get(Notification, notification.id)

    assert stored.created_at == created_at
    assert stored.created_at.tzinfo is None

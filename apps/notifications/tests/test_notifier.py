from datetime import timedelta

import pytest
from django.utils import timezone

from apps.notifications.models import (
    Notification,
    NotificationTemplate,
    NotificationType,
)
from apps.notifications.services.notification_service import Notifier
from apps.notifications.tasks import cleanup_read_notifications, send_notification_task

PAYLOAD = {"offer_id": 1, "listing_id": 1, "listing_title": "Desk", "amount": "40.00"}


@pytest.mark.django_db
class TestNotifier:
    def test_offer_templates_are_seeded(self):
        names = set(NotificationTemplate.objects.values_list("name", flat=True))
        assert set(NotificationType.values) <= names

    def test_notify_waits_for_commit(self, buyer, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks() as callbacks:
            Notifier.notify(buyer.id, NotificationType.OFFER, PAYLOAD)

        assert len(callbacks) == 1
        assert not Notification.objects.exists()

    def test_delivers_rendered_template(
        self, buyer, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            Notifier.notify(buyer.id, NotificationType.OFFER_EXPIRED, PAYLOAD)

        notification = Notification.objects.get(recipient=buyer)
        assert notification.title == "Offer Expired"
        assert notification.message == 'The $40.00 offer on "Desk" has expired'
        assert notification.data == PAYLOAD
        assert notification.delivered_at is not None

    def test_missing_template_is_skipped(
        self, buyer, django_capture_on_commit_callbacks
    ):
        NotificationTemplate.objects.filter(name=NotificationType.OFFER).delete()

        with django_capture_on_commit_callbacks(execute=True):
            Notifier.notify(buyer.id, NotificationType.OFFER, PAYLOAD)

        assert not Notification.objects.exists()

    def test_bad_payload_never_raises(self, buyer, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            Notifier.notify(buyer.id, NotificationType.OFFER, {"amount": "1.00"})

        assert not Notification.objects.exists()


@pytest.mark.django_db
class TestNotificationTasks:
    def test_send_is_idempotent(self, buyer):
        notification = Notification.objects.create(
            recipient=buyer, message="hello", notification_type=NotificationType.OFFER
        )

        send_notification_task(notification.id)
        notification.refresh_from_db()
        first_delivery = notification.delivered_at

        send_notification_task(notification.id)
        notification.refresh_from_db()
        assert notification.delivered_at == first_delivery

    def test_send_missing_notification(self):
        assert send_notification_task(987654) is None

    def test_cleanup_read_notifications(self, buyer):
        old_read = Notification.objects.create(
            recipient=buyer, message="old", notification_type="OFFER", is_read=True
        )
        Notification.objects.filter(id=old_read.id).update(
            created_at=timezone.now() - timedelta(days=45)
        )
        Notification.objects.create(
            recipient=buyer, message="unread", notification_type="OFFER"
        )

        assert cleanup_read_notifications(days=30) == 1
        assert Notification.objects.count() == 1

import logging
from datetime import timedelta

from celery import shared_task
from django.utils import timezone

from apps.core.tasks import BaseTaskWithRetry
from apps.notifications.models import Notification

logger = logging.getLogger(__name__)


@shared_task(bind=True, base=BaseTaskWithRetry)
def send_notification_task(self, notification_id: int):
    """
    Deliver a stored notification. Push delivery is provided by an external
    gateway; here the notification is stamped as handed off.
    """
    try:
        notification = Notification.objects.get(id=notification_id)
    except Notification.DoesNotExist:
        logger.warning(f"Notification {notification_id} no longer exists")
        return None

    if notification.delivered_at is not None:
        return notification.id

    notification.delivered_at = timezone.now()
    notification.save(update_fields=["delivered_at"])

    logger.info(
        f"Sent {notification.notification_type} notification {notification.id} "
        f"to user {notification.recipient_id}"
    )
    return notification.id


@shared_task(bind=True, base=BaseTaskWithRetry)
def cleanup_read_notifications(self, days: int = 30):
    """Delete read notifications older than `days` days."""
    cutoff = timezone.now() - timedelta(days=days)
    deleted, _ = Notification.objects.filter(
        is_read=True, created_at__lt=cutoff
    ).delete()

    logger.info(f"Deleted {deleted} read notifications older than {days} days")
    return deleted

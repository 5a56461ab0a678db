import logging
from typing import Any, Dict

from django.db import transaction

from apps.notifications.models import Notification, NotificationTemplate

logger = logging.getLogger(__name__)


class Notifier:
    """
    Fire-and-forget delivery of user notifications.

    `notify` never raises and never joins the caller's transaction: the
    notification is created after the surrounding transaction commits (or
    immediately when there is none) and handed to a Celery task for delivery.
    """

    @staticmethod
    def notify(user_id, notification_type: str, payload: Dict[str, Any]) -> None:
        transaction.on_commit(
            lambda: Notifier._deliver(user_id, notification_type, payload)
        )

    @staticmethod
    def _deliver(user_id, notification_type: str, payload: Dict[str, Any]):
        from apps.notifications.tasks import send_notification_task

        try:
            template = NotificationTemplate.objects.filter(
                name=notification_type
            ).first()
            if template is None:
                logger.warning(
                    f"No notification template for '{notification_type}', "
                    f"skipping notification to user {user_id}"
                )
                return None

            notification = Notification.objects.create(
                recipient_id=user_id,
                title=template.subject.format(**payload),
                message=template.body.format(**payload),
                notification_type=notification_type,
                data=payload,
            )

            send_notification_task.delay(notification.id)
            return notification

        except Exception:
            # Delivery problems are never allowed to reach the caller
            logger.exception(
                f"Failed to send '{notification_type}' notification to user {user_id}"
            )
            return None


# apps/notifications/models.py
from django.db import models
from django.conf import settings


class NotificationType(models.TextChoices):
    OFFER = "OFFER", "New offer"
    OFFER_ACCEPTED = "OFFER_ACCEPTED", "Offer accepted"
    OFFER_DECLINED = "OFFER_DECLINED", "Offer declined"
    OFFER_COUNTERED = "OFFER_COUNTERED", "Offer countered"
    OFFER_WITHDRAWN = "OFFER_WITHDRAWN", "Offer withdrawn"
    OFFER_EXPIRED = "OFFER_EXPIRED", "Offer expired"


class Notification(models.Model):
    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="notifications"
    )
    title = models.CharField(max_length=255, blank=True)
    message = models.TextField()
    notification_type = models.CharField(max_length=50, db_index=True)
    is_read = models.BooleanField(default=False, db_index=True)
    data = models.JSONField(default=dict, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"Notification for {self.recipient.email} - {self.notification_type}"


class NotificationTemplate(models.Model):
    name = models.CharField(max_length=100, unique=True)
    subject = models.CharField(max_length=255)
    body = models.TextField()
    channel = models.CharField(
        max_length=20,
        choices=[("email", "Email"), ("push", "Push"), ("in_app", "In-App")],
        default="push",
    )

    def __str__(self):
        return self.name

from django.db import migrations

OFFER_TEMPLATES = [
    (
        "OFFER",
        "New Offer Received",
        'You received a ${amount} offer on "{listing_title}"',
    ),
    (
        "OFFER_ACCEPTED",
        "Offer Accepted!",
        'The offer on "{listing_title}" was accepted at ${amount}',
    ),
    (
        "OFFER_DECLINED",
        "Offer Declined",
        'The ${amount} offer on "{listing_title}" was declined',
    ),
    (
        "OFFER_COUNTERED",
        "Counter Offer Received",
        'Seller countered with ${amount} for "{listing_title}"',
    ),
    (
        "OFFER_WITHDRAWN",
        "Offer Withdrawn",
        'The ${amount} offer on "{listing_title}" was withdrawn',
    ),
    (
        "OFFER_EXPIRED",
        "Offer Expired",
        'The ${amount} offer on "{listing_title}" has expired',
    ),
]


def create_offer_notification_templates(apps, schema_editor):
    NotificationTemplate = apps.get_model("notifications", "NotificationTemplate")
    for name, subject, body in OFFER_TEMPLATES:
        NotificationTemplate.objects.update_or_create(
            name=name, defaults={"subject": subject, "body": body}
        )


def remove_offer_notification_templates(apps, schema_editor):
    NotificationTemplate = apps.get_model("notifications", "NotificationTemplate")
    NotificationTemplate.objects.filter(
        name__in=[name for name, _, _ in OFFER_TEMPLATES]
    ).delete()


class Migration(migrations.Migration):

    dependencies = [
        ("notifications", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(
            create_offer_notification_templates, remove_offer_notification_templates
        ),
    ]

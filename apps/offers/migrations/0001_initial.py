import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

OFFER_STATUS_CHOICES = [
    ("PENDING", "Pending"),
    ("COUNTERED", "Countered"),
    ("ACCEPTED", "Accepted"),
    ("DECLINED", "Declined"),
    ("WITHDRAWN", "Withdrawn"),
    ("EXPIRED", "Expired"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("listings", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Offer",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=10)),
                (
                    "counter_amount",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=10, null=True
                    ),
                ),
                (
                    "original_price",
                    models.DecimalField(decimal_places=2, max_digits=10),
                ),
                (
                    "status",
                    models.CharField(
                        choices=OFFER_STATUS_CHOICES,
                        db_index=True,
                        default="PENDING",
                        max_length=20,
                    ),
                ),
                ("message", models.TextField(blank=True, default="")),
                ("expires_at", models.DateTimeField()),
                ("responded_at", models.DateTimeField(blank=True, null=True)),
                (
                    "status_changed_at",
                    models.DateTimeField(
                        db_index=True, default=django.utils.timezone.now
                    ),
                ),
                (
                    "buyer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="offers_made",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "listing",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="offers",
                        to="listings.listing",
                    ),
                ),
                (
                    "seller",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="offers_received",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["status", "expires_at"],
                        name="offer_status_expiry_idx",
                    ),
                    models.Index(
                        fields=["listing", "status"],
                        name="offer_listing_status_idx",
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status__in", ["PENDING", "COUNTERED"])),
                        fields=("listing", "buyer"),
                        name="unique_active_offer_per_buyer",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("amount__gt", 0)),
                        name="offer_amount_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="OfferHistory",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("CREATE", "Offer made"),
                            ("UPDATE", "Offer updated"),
                            ("ACCEPT", "Offer accepted"),
                            ("REJECT", "Offer rejected"),
                            ("COUNTER", "Counter offer made"),
                            ("ACCEPT_COUNTER", "Counter offer accepted"),
                            ("DECLINE_COUNTER", "Counter offer declined"),
                            ("WITHDRAW", "Offer withdrawn"),
                            ("EXPIRE", "Offer expired"),
                            ("SUPERSEDE", "Declined, another offer was accepted"),
                        ],
                        max_length=30,
                    ),
                ),
                (
                    "from_status",
                    models.CharField(
                        blank=True, choices=OFFER_STATUS_CHOICES, max_length=20
                    ),
                ),
                (
                    "to_status",
                    models.CharField(choices=OFFER_STATUS_CHOICES, max_length=20),
                ),
                (
                    "amount",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=10, null=True
                    ),
                ),
                (
                    "counter_amount",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=10, null=True
                    ),
                ),
                ("notes", models.TextField(blank=True, default="")),
                (
                    "timestamp",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                (
                    "actor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "offer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="history",
                        to="offers.offer",
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "Offer histories",
                "ordering": ["-timestamp", "-id"],
            },
        ),
    ]

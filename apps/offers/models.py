from django.db import models
from django.db.models import Q
from django.conf import settings
from django.utils import timezone

from apps.core.models import BaseModel


class OfferStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    COUNTERED = "COUNTERED", "Countered"
    ACCEPTED = "ACCEPTED", "Accepted"
    DECLINED = "DECLINED", "Declined"
    WITHDRAWN = "WITHDRAWN", "Withdrawn"
    EXPIRED = "EXPIRED", "Expired"


ACTIVE_OFFER_STATUSES = (OfferStatus.PENDING, OfferStatus.COUNTERED)


class OfferEvent(models.TextChoices):
    """Everything that can happen to an offer, as recorded in its history."""

    CREATE = "CREATE", "Offer made"
    UPDATE = "UPDATE", "Offer updated"
    ACCEPT = "ACCEPT", "Offer accepted"
    REJECT = "REJECT", "Offer rejected"
    COUNTER = "COUNTER", "Counter offer made"
    ACCEPT_COUNTER = "ACCEPT_COUNTER", "Counter offer accepted"
    DECLINE_COUNTER = "DECLINE_COUNTER", "Counter offer declined"
    WITHDRAW = "WITHDRAW", "Offer withdrawn"
    EXPIRE = "EXPIRE", "Offer expired"
    SUPERSEDE = "SUPERSEDE", "Declined, another offer was accepted"


class OfferQuerySet(models.QuerySet):
    def active(self):
        return self.filter(status__in=ACTIVE_OFFER_STATUSES)

    def involving(self, user_id):
        return self.filter(Q(buyer_id=user_id) | Q(seller_id=user_id))


class Offer(BaseModel):
    """
    A buyer's proposed price on a listing, and the seller's counter to it.

    `seller` is copied from the listing when the offer is made and never
    changes afterwards. `counter_amount` only has meaning while the offer is
    COUNTERED; use `current_counter_amount` to read it.
    """

    listing = models.ForeignKey(
        "listings.Listing", on_delete=models.CASCADE, related_name="offers"
    )
    buyer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="offers_made",
    )
    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="offers_received",
    )

    amount = models.DecimalField(max_digits=10, decimal_places=2)
    counter_amount = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True
    )
    original_price = models.DecimalField(max_digits=10, decimal_places=2)

    status = models.CharField(
        max_length=20,
        choices=OfferStatus.choices,
        default=OfferStatus.PENDING,
        db_index=True,
    )
    message = models.TextField(blank=True, default="")
    expires_at = models.DateTimeField()
    responded_at = models.DateTimeField(null=True, blank=True)
    status_changed_at = models.DateTimeField(default=timezone.now, db_index=True)

    objects = OfferQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["status", "expires_at"], name="offer_status_expiry_idx"
            ),
            models.Index(fields=["listing", "status"], name="offer_listing_status_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["listing", "buyer"],
                condition=Q(status__in=["PENDING", "COUNTERED"]),
                name="unique_active_offer_per_buyer",
            ),
            models.CheckConstraint(
                condition=Q(amount__gt=0), name="offer_amount_positive"
            ),
        ]

    def __str__(self):
        return f"Offer #{self.id} - listing {self.listing_id} - {self.status}"

    @property
    def is_active(self):
        return self.status in ACTIVE_OFFER_STATUSES

    @property
    def current_counter_amount(self):
        if self.status == OfferStatus.COUNTERED:
            return self.counter_amount
        return None

    def has_elapsed(self, now=None):
        return self.expires_at < (now or timezone.now())


class OfferHistory(models.Model):
    """Append-only log of every change made to an offer."""

    offer = models.ForeignKey(Offer, on_delete=models.CASCADE, related_name="history")
    action = models.CharField(max_length=30, choices=OfferEvent.choices)
    # Null for system actions (expiry sweep, settlement of a sibling offer)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True
    )
    from_status = models.CharField(
        max_length=20, choices=OfferStatus.choices, blank=True
    )
    to_status = models.CharField(max_length=20, choices=OfferStatus.choices)
    amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    counter_amount = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True
    )
    notes = models.TextField(blank=True, default="")
    timestamp = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-timestamp", "-id"]
        verbose_name_plural = "Offer histories"

    def __str__(self):
        return f"{self.action} on offer {self.offer_id} at {self.timestamp:%Y-%m-%d}"

from django.db import models
from django.conf import settings

from apps.core.models import BaseModel


class ListingStatus(models.TextChoices):
    """Listing lifecycle status choices"""

    DRAFT = "DRAFT", "Draft"
    PENDING = "PENDING", "Pending review"
    ACTIVE = "ACTIVE", "Active"
    SOLD = "SOLD", "Sold"
    REJECTED = "REJECTED", "Rejected"
    ARCHIVED = "ARCHIVED", "Archived"


class Listing(BaseModel):
    """
    A fixed-price item put up for sale by a seller.

    Listings are created and moderated elsewhere; the offer engine only
    reads them and moves an ACTIVE listing to SOLD during settlement.
    """

    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="listings",
    )
    title = models.CharField(max_length=255)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    status = models.CharField(
        max_length=20,
        choices=ListingStatus.choices,
        default=ListingStatus.DRAFT,
        db_index=True,
    )
    sold_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.title} ({self.status})"

    @property
    def is_active(self):
        return self.status == ListingStatus.ACTIVE

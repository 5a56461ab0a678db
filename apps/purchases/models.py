from django.db import models
from django.conf import settings


class Purchase(models.Model):
    """
    Immutable settlement record: the price a buyer and seller agreed on
    for a listing. One per listing, one per accepted offer.
    """

    buyer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="purchases",
    )
    listing = models.OneToOneField(
        "listings.Listing",
        on_delete=models.PROTECT,
        related_name="purchase",
    )
    offer = models.OneToOneField(
        "offers.Offer",
        on_delete=models.PROTECT,
        related_name="purchase",
    )
    final_price = models.DecimalField(max_digits=10, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"Purchase #{self.id} - listing {self.listing_id} at {self.final_price}"

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValueError("Purchase records are immutable once created")
        super().save(*args, **kwargs)

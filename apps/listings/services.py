import logging

from django.db import transaction
from django.utils import timezone

from apps.core.exceptions import ConflictError, NotFoundError
from apps.listings.models import Listing, ListingStatus

logger = logging.getLogger(__name__)


class ListingProvider:
    """Read and settle access to listings for the offer engine."""

    @staticmethod
    def get_listing_for_offer(listing_id, lock: bool = False) -> Listing:
        """
        Fetch the listing an offer refers to.

        With lock=True the row is locked until the surrounding transaction
        ends, which serialises offer creation and settlement on the listing.
        """
        queryset = Listing.objects.all()
        if lock:
            queryset = queryset.select_for_update()
        try:
            return queryset.get(id=listing_id)
        except Listing.DoesNotExist:
            raise NotFoundError("Listing not found")

    @staticmethod
    def mark_sold(listing_id) -> None:
        """
        Flip an ACTIVE listing to SOLD. Must run inside the settlement
        transaction; a listing that is no longer ACTIVE is a lost race.
        """
        if not transaction.get_connection().in_atomic_block:
            raise RuntimeError("mark_sold must be called inside a transaction")

        now = timezone.now()
        updated = Listing.objects.filter(
            id=listing_id, status=ListingStatus.ACTIVE
        ).update(status=ListingStatus.SOLD, sold_at=now, updated_at=now)

        if updated == 0:
            logger.warning(f"Listing {listing_id} was no longer active at settlement")
            raise ConflictError("Listing has already been sold or withdrawn")

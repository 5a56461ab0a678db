import logging
from decimal import Decimal

from django.db import IntegrityError, transaction

from apps.core.exceptions import ConflictError
from apps.purchases.models import Purchase

logger = logging.getLogger(__name__)


class PurchaseRecorder:
    """Append-only writer for settlement records"""

    @staticmethod
    def record(offer, final_price: Decimal) -> Purchase:
        """
        Create the purchase for a winning offer. Runs inside the settlement
        transaction; a second purchase for the same listing or offer is a
        lost race and surfaces as ConflictError.
        """
        try:
            with transaction.atomic():
                purchase = Purchase.objects.create(
                    buyer_id=offer.buyer_id,
                    listing_id=offer.listing_id,
                    offer=offer,
                    final_price=final_price,
                )
        except IntegrityError:
            logger.warning(
                f"Duplicate purchase rejected for listing {offer.listing_id} "
                f"(offer {offer.id})"
            )
            raise ConflictError("A purchase already exists for this listing")

        logger.info(
            f"Purchase {purchase.id} recorded for listing {offer.listing_id} "
            f"at {final_price}"
        )
        return purchase

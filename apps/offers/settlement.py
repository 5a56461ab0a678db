import logging

from django.db import transaction
from django.utils import timezone

from apps.core.exceptions import InvalidStateError
from apps.listings.models import ListingStatus
from apps.listings.services import ListingProvider
from apps.offers.models import OfferEvent, OfferStatus
from apps.offers.state_machine import resolve_transition
from apps.offers.store import OfferStore
from apps.offers.utils.notifications import OfferNotificationService
from apps.purchases.services import PurchaseRecorder

logger = logging.getLogger("offers_performance")

SETTLEMENT_EVENTS = (OfferEvent.ACCEPT, OfferEvent.ACCEPT_COUNTER)


class SettlementService:
    """
    Turns one offer into a sale. Everything below happens in a single
    transaction: the winning offer, every sibling offer, the listing and the
    purchase change together or not at all.
    """

    @staticmethod
    def settle(offer_id, actor_id, event):
        if event not in SETTLEMENT_EVENTS:
            raise InvalidStateError(f"{event} does not settle an offer")

        start_time = timezone.now()

        with transaction.atomic():
            # Listing first, then offer, so every writer locks in one order
            listing_id = OfferStore.get(offer_id).listing_id
            listing = ListingProvider.get_listing_for_offer(listing_id, lock=True)
            offer = OfferStore.get(offer_id, lock=True)

            now = timezone.now()
            resolve_transition(offer, event, actor_id, now=now)

            if listing.status != ListingStatus.ACTIVE:
                raise InvalidStateError("This listing is no longer available")

            from_status = offer.status
            changes = {"responded_at": now}
            if event == OfferEvent.ACCEPT_COUNTER:
                # The buyer agreed to the seller's number
                changes["amount"] = offer.counter_amount
            # A seller accepting a COUNTERED offer settles at the buyer's amount
            final_price = changes.get("amount", offer.amount)

            OfferStore.compare_and_set(
                offer, from_status, OfferStatus.ACCEPTED, now, **changes
            )
            OfferStore.record_history(
                offer, event, actor_id, from_status, timestamp=now
            )

            declined = OfferStore.decline_siblings(offer, now)
            OfferStore.record_bulk_history(
                declined,
                OfferEvent.SUPERSEDE,
                now,
                notes=f"Offer {offer.id} was accepted",
            )

            ListingProvider.mark_sold(listing.id)
            purchase = PurchaseRecorder.record(offer, final_price)

            # Registered on commit; nothing is sent if the transaction rolls back
            notify_user_id = (
                offer.buyer_id if event == OfferEvent.ACCEPT else offer.seller_id
            )
            OfferNotificationService.offer_accepted(
                offer, listing.title, final_price, notify_user_id
            )
            OfferNotificationService.siblings_declined(declined, listing.title)

        duration = (timezone.now() - start_time).total_seconds() * 1000
        logger.info(
            f"Offer {offer.id} settled at {final_price} "
            f"({len(declined)} sibling offers declined) in {duration:.2f}ms"
        )
        return purchase

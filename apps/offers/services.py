import logging
from datetime import timedelta
from decimal import Decimal
from typing import Dict, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from apps.core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    InvalidStateError,
)
from apps.listings.models import ListingStatus
from apps.listings.services import ListingProvider
from apps.offers.models import Offer, OfferEvent, OfferStatus
from apps.offers.settlement import SettlementService
from apps.offers.state_machine import resolve_transition
from apps.offers.store import OfferStore
from apps.offers.utils.notifications import OfferNotificationService
from apps.users.services.block_list import BlockListService

logger = logging.getLogger("offers_performance")
sweeper_logger = logging.getLogger("offer_sweeper")


def offer_ttl() -> timedelta:
    return timedelta(hours=settings.OFFER_SETTINGS.get("OFFER_TTL_HOURS", 48))


def _validate_amount(amount, label="Offer amount") -> Decimal:
    if amount is None:
        raise InvalidInputError(f"{label} is required")
    amount = Decimal(str(amount))
    if amount <= 0:
        raise InvalidInputError(f"{label} must be greater than zero")
    return amount


class OfferService:
    """Core negotiation business logic service"""

    @staticmethod
    def create_offer(
        buyer_id, listing_id, amount, message: Optional[str] = None
    ) -> Offer:
        """
        Make a new PENDING offer on an ACTIVE listing.

        The listing row stays locked until commit, so creation and settlement
        on the same listing never interleave.
        """
        start_time = timezone.now()
        amount = _validate_amount(amount)

        with transaction.atomic():
            listing = ListingProvider.get_listing_for_offer(listing_id, lock=True)

            if listing.seller_id == buyer_id:
                raise InvalidStateError("You cannot make an offer on your own listing")

            if listing.status != ListingStatus.ACTIVE:
                raise InvalidStateError("This listing is not available for offers")

            if BlockListService.is_blocked(listing.seller_id, buyer_id):
                raise ForbiddenError("You cannot make an offer to this seller")

            if OfferStore.get_active(listing.id, buyer_id) is not None:
                raise ConflictError("You already have an active offer on this listing")

            now = timezone.now()
            offer = OfferStore.create(
                listing=listing,
                buyer_id=buyer_id,
                seller_id=listing.seller_id,
                amount=amount,
                original_price=listing.price,
                message=message or "",
                status=OfferStatus.PENDING,
                expires_at=now + offer_ttl(),
                status_changed_at=now,
            )
            OfferStore.record_history(
                offer,
                OfferEvent.CREATE,
                buyer_id,
                from_status=None,
                notes=f"Buyer offered ${amount}",
                timestamp=now,
            )
            OfferNotificationService.new_offer(offer, listing.title)

        duration = (timezone.now() - start_time).total_seconds() * 1000
        logger.info(f"Offer {offer.id} created in {duration:.2f}ms")
        return offer

    @staticmethod
    def update_offer(
        offer_id, actor_id, amount=None, message: Optional[str] = None
    ) -> Offer:
        """Change the amount or note on a PENDING offer."""
        with transaction.atomic():
            offer = OfferStore.get(offer_id, lock=True)
            now = timezone.now()
            resolve_transition(offer, OfferEvent.UPDATE, actor_id, now=now)

            changes = {}
            if amount is not None:
                changes["amount"] = _validate_amount(amount)
            if message is not None:
                changes["message"] = message
            if not changes:
                return offer

            OfferStore.compare_and_set(
                offer, OfferStatus.PENDING, OfferStatus.PENDING, now, **changes
            )
            OfferStore.record_history(
                offer, OfferEvent.UPDATE, actor_id, OfferStatus.PENDING, timestamp=now
            )

        logger.info(f"Offer {offer.id} updated by buyer {actor_id}")
        return offer

    @staticmethod
    def accept_offer(offer_id, actor_id):
        """Seller accepts. Returns the Purchase."""
        return SettlementService.settle(offer_id, actor_id, OfferEvent.ACCEPT)

    @staticmethod
    def accept_counter(offer_id, actor_id):
        """Buyer accepts the seller's counter. Returns the Purchase."""
        return SettlementService.settle(offer_id, actor_id, OfferEvent.ACCEPT_COUNTER)

    @staticmethod
    def reject_offer(offer_id, actor_id) -> Offer:
        return OfferService._respond(
            offer_id,
            actor_id,
            OfferEvent.REJECT,
            stamp_response=True,
            notify=lambda offer, title: OfferNotificationService.offer_declined(
                offer, title, offer.buyer_id
            ),
        )

    @staticmethod
    def counter_offer(offer_id, actor_id, amount) -> Offer:
        """
        Seller proposes a different price. Every counter gives the buyer a
        fresh response window.
        """
        start_time = timezone.now()
        counter_amount = _validate_amount(amount, label="Counter amount")

        with transaction.atomic():
            offer = OfferStore.get(offer_id, lock=True)
            now = timezone.now()
            resolve_transition(offer, OfferEvent.COUNTER, actor_id, now=now)

            OfferStore.compare_and_set(
                offer,
                OfferStatus.PENDING,
                OfferStatus.COUNTERED,
                now,
                counter_amount=counter_amount,
                responded_at=now,
                expires_at=now + offer_ttl(),
            )
            OfferStore.record_history(
                offer,
                OfferEvent.COUNTER,
                actor_id,
                OfferStatus.PENDING,
                notes=f"Seller countered with ${counter_amount}",
                timestamp=now,
            )
            OfferNotificationService.counter_received(offer, offer.listing.title)

        duration = (timezone.now() - start_time).total_seconds() * 1000
        logger.info(
            f"Offer {offer.id} countered at {counter_amount} in {duration:.2f}ms"
        )
        return offer

    @staticmethod
    def decline_counter(offer_id, actor_id) -> Offer:
        return OfferService._respond(
            offer_id,
            actor_id,
            OfferEvent.DECLINE_COUNTER,
            stamp_response=True,
            notify=lambda offer, title: OfferNotificationService.offer_declined(
                offer, title, offer.seller_id
            ),
        )

    @staticmethod
    def cancel_offer(offer_id, actor_id) -> Offer:
        """Buyer withdraws a PENDING or COUNTERED offer."""
        return OfferService._respond(
            offer_id,
            actor_id,
            OfferEvent.WITHDRAW,
            notify=OfferNotificationService.offer_withdrawn,
        )

    @staticmethod
    def _respond(
        offer_id, actor_id, event, stamp_response=False, notify=None
    ) -> Offer:
        """Apply a non-settling transition to a single offer."""
        with transaction.atomic():
            offer = OfferStore.get(offer_id, lock=True)
            now = timezone.now()
            transition = resolve_transition(offer, event, actor_id, now=now)

            from_status = offer.status
            changes = {"responded_at": now} if stamp_response else {}
            OfferStore.compare_and_set(
                offer, from_status, transition.to_status, now, **changes
            )
            OfferStore.record_history(
                offer, event, actor_id, from_status, timestamp=now
            )

            if notify is not None:
                notify(offer, offer.listing.title)

        logger.info(
            f"Offer {offer.id} moved {from_status} -> {offer.status} "
            f"({event}) by user {actor_id}"
        )
        return offer

    @staticmethod
    def get_offer(offer_id, actor_id) -> Offer:
        offer = OfferStore.get(offer_id)
        if actor_id not in (offer.buyer_id, offer.seller_id):
            raise ForbiddenError("You do not have access to this offer")
        return offer

    @staticmethod
    def list_offers_for_user(
        user_id, role: str = "all", status: Optional[str] = None
    ) -> QuerySet:
        try:
            return OfferStore.list_for_user(user_id, role=role, status=status)
        except ValueError as e:
            raise InvalidInputError(str(e))

    @staticmethod
    def list_offers_for_listing(listing_id, actor_id) -> QuerySet:
        listing = ListingProvider.get_listing_for_offer(listing_id)
        if listing.seller_id != actor_id:
            raise ForbiddenError("Only the seller can view offers on this listing")
        return OfferStore.list_for_listing(listing.id)

    @staticmethod
    def get_offer_stats(user_id) -> Dict[str, Dict]:
        sent = OfferStore.status_counts(Offer.objects.filter(buyer_id=user_id))
        received = OfferStore.status_counts(Offer.objects.filter(seller_id=user_id))
        return {
            "sent": {
                "total": sum(sent[s] for s in OfferStatus.values),
                "active": sent.pop("active"),
                "by_status": sent,
            },
            "received": {
                "total": sum(received[s] for s in OfferStatus.values),
                "active": received.pop("active"),
                "by_status": received,
            },
        }

    @staticmethod
    def sweep_expired_offers(now=None) -> int:
        """
        Expire every active offer whose response window has closed.

        Safe to run repeatedly and concurrently: the UPDATE is guarded by
        status, so offers already moved are left alone.
        """
        start_time = timezone.now()
        now = now or start_time

        with transaction.atomic():
            expired = OfferStore.expire_elapsed(now)
            OfferStore.record_bulk_history(expired, OfferEvent.EXPIRE, now)

            if expired and settings.OFFER_SETTINGS.get("NOTIFY_EXPIRATION", True):
                offer_ids = [offer.id for offer in expired]
                transaction.on_commit(lambda: _queue_expiry_notifications(offer_ids))

        duration = (timezone.now() - start_time).total_seconds() * 1000
        sweeper_logger.info(f"Expired {len(expired)} offers in {duration:.2f}ms")
        return len(expired)


def _queue_expiry_notifications(offer_ids):
    from apps.offers.tasks import notify_expired_offers

    try:
        notify_expired_offers.delay(offer_ids)
    except Exception:
        sweeper_logger.exception(
            f"Could not queue expiry notifications for {len(offer_ids)} offers"
        )

from datetime import timedelta
from decimal import Decimal
from unittest import mock

import pytest
from django.utils import timezone

from apps.core.exceptions import ConflictError, ForbiddenError, InvalidStateError
from apps.listings.models import Listing, ListingStatus
from apps.notifications.models import Notification, NotificationType
from apps.offers.models import Offer, OfferEvent, OfferHistory, OfferStatus
from apps.offers.services import OfferService
from apps.offers.settlement import SettlementService
from apps.purchases.models import Purchase


def make_offer(buyer, listing, amount):
    return OfferService.create_offer(buyer.id, listing.id, Decimal(amount))


@pytest.mark.django_db
class TestAcceptOffer:
    def test_accepting_one_offer_declines_the_rest(
        self, buyer, other_buyer, seller, listing
    ):
        offer_a = make_offer(buyer, listing, "80.00")
        offer_b = make_offer(other_buyer, listing, "85.00")

        purchase = OfferService.accept_offer(offer_a.id, seller.id)

        offer_a.refresh_from_db()
        offer_b.refresh_from_db()
        listing.refresh_from_db()

        assert offer_a.status == OfferStatus.ACCEPTED
        assert offer_a.responded_at is not None
        assert offer_b.status == OfferStatus.DECLINED
        assert offer_b.responded_at == offer_a.responded_at
        assert listing.status == ListingStatus.SOLD
        assert listing.sold_at is not None

        assert purchase.final_price == Decimal("80.00")
        assert purchase.buyer_id == buyer.id
        assert purchase.offer_id == offer_a.id
        assert Purchase.objects.count() == 1

        superseded = offer_b.history.get(action=OfferEvent.SUPERSEDE)
        assert superseded.action == OfferEvent.SUPERSEDE
        assert superseded.actor is None
        assert superseded.from_status == OfferStatus.PENDING

    def test_sibling_cannot_be_accepted_afterwards(
        self, buyer, other_buyer, seller, listing
    ):
        offer_a = make_offer(buyer, listing, "80.00")
        offer_b = make_offer(other_buyer, listing, "85.00")
        OfferService.accept_offer(offer_a.id, seller.id)

        with pytest.raises(InvalidStateError):
            OfferService.accept_offer(offer_b.id, seller.id)
        assert Purchase.objects.count() == 1

    def test_countered_sibling_is_declined_and_counter_hidden(
        self, buyer, other_buyer, seller, listing
    ):
        offer_a = make_offer(buyer, listing, "80.00")
        offer_b = make_offer(other_buyer, listing, "70.00")
        OfferService.counter_offer(offer_b.id, seller.id, Decimal("90.00"))

        OfferService.accept_offer(offer_a.id, seller.id)

        offer_b.refresh_from_db()
        assert offer_b.status == OfferStatus.DECLINED
        assert offer_b.current_counter_amount is None
        superseded = offer_b.history.get(action=OfferEvent.SUPERSEDE)
        assert superseded.from_status == OfferStatus.COUNTERED

    def test_terminal_siblings_are_untouched(
        self, buyer, other_buyer, seller, listing
    ):
        withdrawn = make_offer(other_buyer, listing, "60.00")
        OfferService.cancel_offer(withdrawn.id, other_buyer.id)
        winner = make_offer(buyer, listing, "80.00")

        OfferService.accept_offer(winner.id, seller.id)

        withdrawn.refresh_from_db()
        assert withdrawn.status == OfferStatus.WITHDRAWN
        assert withdrawn.responded_at is None

    def test_buyer_cannot_accept(self, buyer, listing):
        offer = make_offer(buyer, listing, "80.00")
        with pytest.raises(ForbiddenError):
            OfferService.accept_offer(offer.id, buyer.id)

    def test_listing_no_longer_active(self, buyer, seller, listing):
        offer = make_offer(buyer, listing, "80.00")
        listing.status = ListingStatus.ARCHIVED
        listing.save()

        with pytest.raises(InvalidStateError):
            OfferService.accept_offer(offer.id, seller.id)

        offer.refresh_from_db()
        assert offer.status == OfferStatus.PENDING

    def test_elapsed_offer_cannot_be_accepted(self, buyer, seller, listing):
        offer = make_offer(buyer, listing, "80.00")
        Offer.objects.filter(id=offer.id).update(
            expires_at=timezone.now() - timedelta(minutes=5)
        )

        with pytest.raises(InvalidStateError):
            OfferService.accept_offer(offer.id, seller.id)
        assert not Purchase.objects.exists()

    def test_seller_accepting_counter_uses_offer_amount(
        self, buyer, seller, listing
    ):
        offer = make_offer(buyer, listing, "80.00")
        OfferService.counter_offer(offer.id, seller.id, Decimal("90.00"))

        purchase = OfferService.accept_offer(offer.id, seller.id)
        assert purchase.final_price == Decimal("80.00")

    def test_failure_rolls_everything_back(
        self, buyer, other_buyer, seller, listing
    ):
        offer_a = make_offer(buyer, listing, "80.00")
        offer_b = make_offer(other_buyer, listing, "85.00")

        with mock.patch(
            "apps.offers.settlement.ListingProvider.mark_sold",
            side_effect=ConflictError("Listing has already been sold or withdrawn"),
        ):
            with pytest.raises(ConflictError):
                OfferService.accept_offer(offer_a.id, seller.id)

        offer_a.refresh_from_db()
        offer_b.refresh_from_db()
        listing.refresh_from_db()
        assert offer_a.status == OfferStatus.PENDING
        assert offer_b.status == OfferStatus.PENDING
        assert listing.status == ListingStatus.ACTIVE
        assert not Purchase.objects.exists()
        assert not OfferHistory.objects.filter(
            action__in=[OfferEvent.ACCEPT, OfferEvent.SUPERSEDE]
        ).exists()

    def test_notifications_only_after_commit(
        self, buyer, other_buyer, seller, listing, django_capture_on_commit_callbacks
    ):
        offer_a = make_offer(buyer, listing, "80.00")
        make_offer(other_buyer, listing, "85.00")

        with django_capture_on_commit_callbacks(execute=True):
            OfferService.accept_offer(offer_a.id, seller.id)

        accepted = Notification.objects.get(
            notification_type=NotificationType.OFFER_ACCEPTED
        )
        assert accepted.recipient_id == buyer.id
        declined = Notification.objects.get(
            notification_type=NotificationType.OFFER_DECLINED
        )
        assert declined.recipient_id == other_buyer.id

    def test_notifier_failure_does_not_undo_settlement(
        self, buyer, seller, listing, django_capture_on_commit_callbacks
    ):
        offer = make_offer(buyer, listing, "80.00")

        with mock.patch.object(
            Notification.objects,
            "create",
            side_effect=RuntimeError("push gateway down"),
        ):
            with django_capture_on_commit_callbacks(execute=True):
                purchase = OfferService.accept_offer(offer.id, seller.id)

        assert Purchase.objects.filter(id=purchase.id).exists()
        offer.refresh_from_db()
        assert offer.status == OfferStatus.ACCEPTED


@pytest.mark.django_db
class TestAcceptCounter:
    def test_settles_at_counter_amount(self, buyer, seller, listing):
        offer = make_offer(buyer, listing, "80.00")
        OfferService.counter_offer(offer.id, seller.id, Decimal("90.00"))

        purchase = OfferService.accept_counter(offer.id, buyer.id)

        offer.refresh_from_db()
        assert purchase.final_price == Decimal("90.00")
        assert offer.amount == Decimal("90.00")
        assert offer.status == OfferStatus.ACCEPTED
        listing.refresh_from_db()
        assert listing.status == ListingStatus.SOLD

    def test_seller_cannot_accept_own_counter(self, buyer, seller, listing):
        offer = make_offer(buyer, listing, "80.00")
        OfferService.counter_offer(offer.id, seller.id, Decimal("90.00"))

        with pytest.raises(ForbiddenError):
            OfferService.accept_counter(offer.id, seller.id)

    def test_requires_counter(self, buyer, listing):
        offer = make_offer(buyer, listing, "80.00")
        with pytest.raises(InvalidStateError):
            OfferService.accept_counter(offer.id, buyer.id)

    def test_notifies_seller(
        self, buyer, seller, listing, django_capture_on_commit_callbacks
    ):
        offer = make_offer(buyer, listing, "80.00")
        OfferService.counter_offer(offer.id, seller.id, Decimal("90.00"))

        with django_capture_on_commit_callbacks(execute=True):
            OfferService.accept_counter(offer.id, buyer.id)

        notification = Notification.objects.get(
            notification_type=NotificationType.OFFER_ACCEPTED
        )
        assert notification.recipient_id == seller.id
        assert notification.data["amount"] == "90.00"


@pytest.mark.django_db(transaction=True)
class TestRacingSettlements:
    """
    A second settlement that read the listing or the offer before the first
    one committed must fail without writing anything.
    """

    def test_stale_offer_loses_to_committed_settlement(
        self, buyer, other_buyer, seller, listing
    ):
        offer_a = make_offer(buyer, listing, "80.00")
        offer_b = make_offer(other_buyer, listing, "85.00")
        stale_listing = Listing.objects.get(id=listing.id)
        stale_b = Offer.objects.get(id=offer_b.id)

        SettlementService.settle(offer_a.id, seller.id, OfferEvent.ACCEPT)

        with mock.patch(
            "apps.offers.settlement.ListingProvider.get_listing_for_offer",
            return_value=stale_listing,
        ), mock.patch("apps.offers.settlement.OfferStore.get", return_value=stale_b):
            with pytest.raises(ConflictError):
                SettlementService.settle(offer_b.id, seller.id, OfferEvent.ACCEPT)

        offer_b.refresh_from_db()
        assert offer_b.status == OfferStatus.DECLINED
        assert Purchase.objects.get().offer_id == offer_a.id
        assert not offer_b.history.filter(action=OfferEvent.ACCEPT).exists()

    def test_listing_sold_underneath_rolls_back(
        self, buyer, other_buyer, seller, listing
    ):
        offer = make_offer(buyer, listing, "80.00")
        rival = make_offer(other_buyer, listing, "85.00")
        stale_listing = Listing.objects.get(id=listing.id)
        Listing.objects.filter(id=listing.id).update(status=ListingStatus.SOLD)

        with mock.patch(
            "apps.offers.settlement.ListingProvider.get_listing_for_offer",
            return_value=stale_listing,
        ):
            with pytest.raises(ConflictError):
                SettlementService.settle(offer.id, seller.id, OfferEvent.ACCEPT)

        offer.refresh_from_db()
        rival.refresh_from_db()
        assert offer.status == OfferStatus.PENDING
        assert offer.responded_at is None
        assert rival.status == OfferStatus.PENDING
        assert not Purchase.objects.exists()
        assert not OfferHistory.objects.filter(
            action__in=[OfferEvent.ACCEPT, OfferEvent.SUPERSEDE]
        ).exists()

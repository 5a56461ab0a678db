from datetime import timedelta
from decimal import Decimal
from io import StringIO

import pytest
from django.core.management import call_command
from django.utils import timezone

from apps.core.exceptions import InvalidStateError
from apps.notifications.models import Notification, NotificationType
from apps.offers.models import Offer, OfferEvent, OfferHistory, OfferStatus
from apps.offers.services import OfferService
from apps.offers.tasks import sweep_expired_offers


def make_offer(buyer, listing, amount="80.00"):
    return OfferService.create_offer(buyer.id, listing.id, Decimal(amount))


@pytest.mark.django_db
class TestSweepExpiredOffers:
    def test_expires_elapsed_offers_only(self, buyer, other_buyer, seller, listing):
        stale = make_offer(buyer, listing)
        fresh = make_offer(other_buyer, listing, "85.00")
        Offer.objects.filter(id=stale.id).update(
            expires_at=timezone.now() - timedelta(hours=1)
        )

        assert OfferService.sweep_expired_offers() == 1

        stale.refresh_from_db()
        fresh.refresh_from_db()
        assert stale.status == OfferStatus.EXPIRED
        assert fresh.status == OfferStatus.PENDING

        history = stale.history.get(action=OfferEvent.EXPIRE)
        assert history.actor is None
        assert history.from_status == OfferStatus.PENDING
        assert history.to_status == OfferStatus.EXPIRED

    def test_second_run_is_a_no_op(self, buyer, listing):
        make_offer(buyer, listing)
        later = timezone.now() + timedelta(hours=49)

        assert OfferService.sweep_expired_offers(now=later) == 1
        assert OfferService.sweep_expired_offers(now=later) == 0
        assert OfferHistory.objects.filter(action=OfferEvent.EXPIRE).count() == 1

    def test_terminal_offers_are_not_touched(self, buyer, seller, listing):
        offer = make_offer(buyer, listing)
        OfferService.reject_offer(offer.id, seller.id)

        assert (
            OfferService.sweep_expired_offers(now=timezone.now() + timedelta(days=5))
            == 0
        )
        offer.refresh_from_db()
        assert offer.status == OfferStatus.DECLINED

    def test_countered_offer_expires(self, buyer, seller, listing):
        offer = make_offer(buyer, listing)
        OfferService.counter_offer(offer.id, seller.id, Decimal("90.00"))

        OfferService.sweep_expired_offers(now=timezone.now() + timedelta(hours=49))

        offer.refresh_from_db()
        assert offer.status == OfferStatus.EXPIRED
        assert offer.current_counter_amount is None
        history = offer.history.get(action=OfferEvent.EXPIRE)
        assert history.from_status == OfferStatus.COUNTERED

    def test_accept_after_sweep_fails_and_buyer_can_offer_again(
        self, buyer, seller, listing
    ):
        offer = make_offer(buyer, listing)
        OfferService.sweep_expired_offers(now=timezone.now() + timedelta(hours=49))

        with pytest.raises(InvalidStateError):
            OfferService.accept_offer(offer.id, seller.id)

        again = make_offer(buyer, listing, "82.00")
        assert again.status == OfferStatus.PENDING

    def test_notifies_both_parties(
        self, buyer, seller, listing, django_capture_on_commit_callbacks
    ):
        make_offer(buyer, listing)

        with django_capture_on_commit_callbacks(execute=True):
            OfferService.sweep_expired_offers(
                now=timezone.now() + timedelta(hours=49)
            )

        recipients = set(
            Notification.objects.filter(
                notification_type=NotificationType.OFFER_EXPIRED
            ).values_list("recipient_id", flat=True)
        )
        assert recipients == {buyer.id, seller.id}

    def test_expiry_notifications_can_be_disabled(
        self, buyer, listing, settings, django_capture_on_commit_callbacks
    ):
        settings.OFFER_SETTINGS = {**settings.OFFER_SETTINGS, "NOTIFY_EXPIRATION": False}
        make_offer(buyer, listing)

        with django_capture_on_commit_callbacks(execute=True):
            OfferService.sweep_expired_offers(
                now=timezone.now() + timedelta(hours=49)
            )

        assert not Notification.objects.filter(
            notification_type=NotificationType.OFFER_EXPIRED
        ).exists()


@pytest.mark.django_db
class TestSweepTriggers:
    def test_celery_task(self, buyer, listing):
        offer = make_offer(buyer, listing)
        Offer.objects.filter(id=offer.id).update(
            expires_at=timezone.now() - timedelta(minutes=1)
        )

        result = sweep_expired_offers.delay()

        assert result.get() == {"expired": 1}
        offer.refresh_from_db()
        assert offer.status == OfferStatus.EXPIRED

    def test_management_command(self, buyer, listing):
        offer = make_offer(buyer, listing)
        Offer.objects.filter(id=offer.id).update(
            expires_at=timezone.now() - timedelta(minutes=1)
        )
        out = StringIO()

        call_command("sweep_expired_offers", stdout=out)

        assert "Expired 1 offer(s)" in out.getvalue()
        out = StringIO()
        call_command("sweep_expired_offers", stdout=out)
        assert "No offers to expire" in out.getvalue()

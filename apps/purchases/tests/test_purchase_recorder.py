from decimal import Decimal

import pytest

from apps.core.exceptions import ConflictError
from apps.offers.services import OfferService
from apps.purchases.models import Purchase
from apps.purchases.serializers import PurchaseSerializer
from apps.purchases.services import PurchaseRecorder


@pytest.fixture
def offer(buyer, listing):
    return OfferService.create_offer(buyer.id, listing.id, Decimal("75.00"))


@pytest.mark.django_db
class TestPurchaseRecorder:
    def test_record(self, buyer, listing, offer):
        purchase = PurchaseRecorder.record(offer, Decimal("75.00"))

        assert purchase.buyer_id == buyer.id
        assert purchase.listing_id == listing.id
        assert purchase.final_price == Decimal("75.00")

    def test_one_purchase_per_listing(self, offer):
        PurchaseRecorder.record(offer, Decimal("75.00"))
        with pytest.raises(ConflictError):
            PurchaseRecorder.record(offer, Decimal("75.00"))
        assert Purchase.objects.count() == 1

    def test_purchases_are_immutable(self, offer):
        purchase = PurchaseRecorder.record(offer, Decimal("75.00"))
        purchase.final_price = Decimal("1.00")

        with pytest.raises(ValueError):
            purchase.save()

    def test_serializer(self, offer, listing):
        purchase = PurchaseRecorder.record(offer, Decimal("1250.00"))
        data = PurchaseSerializer(purchase).data

        assert data["formatted_final_price"] == "$1,250.00"
        assert data["listing_title"] == listing.title

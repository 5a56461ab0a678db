from django.urls import path, include
from rest_framework.routers import DefaultRouter

from apps.offers.views import OfferViewSet

router = DefaultRouter()
router.register(r"offers", OfferViewSet, basename="offer")

urlpatterns = [
    path("", include(router.urls)),
]

"""
Endpoints:

POST   /offers/                          make an offer {"listing_id", "amount", "message"}
GET    /offers/?role=buyer&status=PENDING list my offers
GET    /offers/stats/                    counts of sent and received offers
GET    /offers/listing/{listing_id}/     offers on one of my listings (seller only)
GET    /offers/{id}/                     offer detail with history
PATCH  /offers/{id}/                     buyer changes amount or message (PENDING only)
POST   /offers/{id}/accept/              seller accepts, returns the purchase
POST   /offers/{id}/reject/              seller rejects
POST   /offers/{id}/counter/             seller counters {"amount"}
POST   /offers/{id}/accept-counter/      buyer accepts the counter, returns the purchase
POST   /offers/{id}/decline-counter/     buyer declines the counter
POST   /offers/{id}/cancel/              buyer withdraws
"""

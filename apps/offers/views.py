import logging

from django.utils import timezone
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated

from apps.core.views import BaseResponseMixin
from apps.offers.models import Offer
from apps.offers.schema import (
    ACCEPT_COUNTER_SCHEMA,
    ACCEPT_OFFER_SCHEMA,
    COUNTER_OFFER_SCHEMA,
    CREATE_OFFER_SCHEMA,
    LIST_OFFERS_SCHEMA,
    LISTING_OFFERS_SCHEMA,
    OFFER_ACTION_SCHEMA,
    OFFER_STATS_SCHEMA,
    UPDATE_OFFER_SCHEMA,
)
from apps.offers.serializers import (
    CounterOfferSerializer,
    CreateOfferSerializer,
    OfferDetailSerializer,
    OfferListQuerySerializer,
    OfferSerializer,
    OfferStatsSerializer,
    UpdateOfferSerializer,
)
from apps.offers.services import OfferService
from apps.offers.utils.filters import OfferFilter
from apps.offers.utils.rate_limiting import (
    OfferCreateRateThrottle,
    OfferRateThrottle,
    OfferRespondRateThrottle,
)
from apps.purchases.serializers import PurchaseSerializer

logger = logging.getLogger("offers_performance")


class OfferViewSet(BaseResponseMixin, viewsets.GenericViewSet):
    """
    Offers made and received by the current user. Every state change goes
    through OfferService; domain errors are rendered by the project-wide
    exception handler.
    """

    queryset = Offer.objects.none()
    serializer_class = OfferSerializer
    permission_classes = [IsAuthenticated]
    throttle_classes = [OfferRateThrottle]
    filter_backends = [DjangoFilterBackend]
    filterset_class = OfferFilter
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        if not self.request.user.is_authenticated:
            return Offer.objects.none()
        return OfferService.list_offers_for_user(self.request.user.id)

    def get_serializer_class(self):
        if self.action == "retrieve":
            return OfferDetailSerializer
        return OfferSerializer

    def _offer_response(self, offer, message, status_code=status.HTTP_200_OK):
        serializer = OfferSerializer(offer, context={"request": self.request})
        return self.success_response(
            data=serializer.data, message=message, status_code=status_code
        )

    def _purchase_response(self, purchase, message):
        serializer = PurchaseSerializer(purchase, context={"request": self.request})
        return self.success_response(data=serializer.data, message=message)

    @LIST_OFFERS_SCHEMA
    def list(self, request):
        query = OfferListQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return self.error_response(
                message=query.errors, status_code=status.HTTP_400_BAD_REQUEST
            )

        queryset = OfferService.list_offers_for_user(
            request.user.id,
            role=query.validated_data["role"],
            status=query.validated_data.get("status"),
        )
        queryset = self.filter_queryset(queryset)

        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = OfferSerializer(page, many=True, context={"request": request})
            return self.get_paginated_response(serializer.data)

        serializer = OfferSerializer(queryset, many=True, context={"request": request})
        return self.success_response(data=serializer.data)

    def retrieve(self, request, pk=None):
        offer = OfferService.get_offer(pk, request.user.id)
        serializer = OfferDetailSerializer(offer, context={"request": request})
        return self.success_response(data=serializer.data)

    @CREATE_OFFER_SCHEMA
    def create(self, request):
        """Make an offer on a listing."""
        start_time = timezone.now()

        serializer = CreateOfferSerializer(data=request.data)
        if not serializer.is_valid():
            return self.error_response(
                message=serializer.errors, status_code=status.HTTP_400_BAD_REQUEST
            )

        offer = OfferService.create_offer(
            buyer_id=request.user.id,
            listing_id=serializer.validated_data["listing_id"],
            amount=serializer.validated_data["amount"],
            message=serializer.validated_data.get("message"),
        )

        duration = (timezone.now() - start_time).total_seconds() * 1000
        logger.info(f"Offer create request handled in {duration:.2f}ms")

        return self._offer_response(
            offer, "Offer sent successfully", status_code=status.HTTP_201_CREATED
        )

    def get_throttles(self):
        if self.action == "create":
            return [OfferCreateRateThrottle()]
        return super().get_throttles()

    @UPDATE_OFFER_SCHEMA
    def partial_update(self, request, pk=None):
        serializer = UpdateOfferSerializer(data=request.data)
        if not serializer.is_valid():
            return self.error_response(
                message=serializer.errors, status_code=status.HTTP_400_BAD_REQUEST
            )

        offer = OfferService.update_offer(
            pk,
            request.user.id,
            amount=serializer.validated_data.get("amount"),
            message=serializer.validated_data.get("message"),
        )
        return self._offer_response(offer, "Offer updated")

    @ACCEPT_OFFER_SCHEMA
    @action(
        detail=True, methods=["post"], throttle_classes=[OfferRespondRateThrottle]
    )
    def accept(self, request, pk=None):
        purchase = OfferService.accept_offer(pk, request.user.id)
        return self._purchase_response(purchase, "Offer accepted")

    @OFFER_ACTION_SCHEMA
    @action(
        detail=True, methods=["post"], throttle_classes=[OfferRespondRateThrottle]
    )
    def reject(self, request, pk=None):
        offer = OfferService.reject_offer(pk, request.user.id)
        return self._offer_response(offer, "Offer rejected")

    @COUNTER_OFFER_SCHEMA
    @action(
        detail=True, methods=["post"], throttle_classes=[OfferRespondRateThrottle]
    )
    def counter(self, request, pk=None):
        serializer = CounterOfferSerializer(data=request.data)
        if not serializer.is_valid():
            return self.error_response(
                message=serializer.errors, status_code=status.HTTP_400_BAD_REQUEST
            )

        offer = OfferService.counter_offer(
            pk, request.user.id, serializer.validated_data["amount"]
        )
        return self._offer_response(offer, "Counter offer sent")

    @ACCEPT_COUNTER_SCHEMA
    @action(
        detail=True,
        methods=["post"],
        url_path="accept-counter",
        throttle_classes=[OfferRespondRateThrottle],
    )
    def accept_counter(self, request, pk=None):
        purchase = OfferService.accept_counter(pk, request.user.id)
        return self._purchase_response(purchase, "Counter offer accepted")

    @OFFER_ACTION_SCHEMA
    @action(
        detail=True,
        methods=["post"],
        url_path="decline-counter",
        throttle_classes=[OfferRespondRateThrottle],
    )
    def decline_counter(self, request, pk=None):
        offer = OfferService.decline_counter(pk, request.user.id)
        return self._offer_response(offer, "Counter offer declined")

    @OFFER_ACTION_SCHEMA
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        offer = OfferService.cancel_offer(pk, request.user.id)
        return self._offer_response(offer, "Offer withdrawn")

    @OFFER_STATS_SCHEMA
    @action(detail=False, methods=["get"])
    def stats(self, request):
        stats = OfferService.get_offer_stats(request.user.id)
        return self.success_response(data=OfferStatsSerializer(stats).data)

    @LISTING_OFFERS_SCHEMA
    @action(detail=False, methods=["get"], url_path=r"listing/(?P<listing_id>\d+)")
    def listing_offers(self, request, listing_id=None):
        """All offers on one of the current user's listings."""
        queryset = OfferService.list_offers_for_listing(
            int(listing_id), request.user.id
        )

        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = OfferSerializer(page, many=True, context={"request": request})
            return self.get_paginated_response(serializer.data)

        serializer = OfferSerializer(queryset, many=True, context={"request": request})
        return self.success_response(data=serializer.data)

from drf_spectacular.utils import OpenApiParameter, OpenApiTypes, extend_schema

from apps.offers.serializers import (
    CounterOfferSerializer,
    CreateOfferSerializer,
    OfferSerializer,
    OfferStatsSerializer,
    UpdateOfferSerializer,
)
from apps.purchases.serializers import PurchaseSerializer

LIST_OFFERS_SCHEMA = extend_schema(
    summary="List my offers",
    parameters=[
        OpenApiParameter(
            name="role",
            description="buyer, seller or all (default)",
            required=False,
            type=OpenApiTypes.STR,
            location=OpenApiParameter.QUERY,
        ),
        OpenApiParameter(
            name="status",
            description="Only offers in this status",
            required=False,
            type=OpenApiTypes.STR,
            location=OpenApiParameter.QUERY,
        ),
    ],
    responses={200: OfferSerializer(many=True)},
)

CREATE_OFFER_SCHEMA = extend_schema(
    summary="Make an offer on a listing",
    request=CreateOfferSerializer,
    responses={201: OfferSerializer},
)

UPDATE_OFFER_SCHEMA = extend_schema(
    summary="Change the amount or message of a pending offer",
    request=UpdateOfferSerializer,
    responses={200: OfferSerializer},
)

ACCEPT_OFFER_SCHEMA = extend_schema(
    summary="Accept an offer (seller)",
    request=None,
    responses={200: PurchaseSerializer},
)

ACCEPT_COUNTER_SCHEMA = extend_schema(
    summary="Accept the seller's counter offer (buyer)",
    request=None,
    responses={200: PurchaseSerializer},
)

COUNTER_OFFER_SCHEMA = extend_schema(
    summary="Counter an offer (seller)",
    request=CounterOfferSerializer,
    responses={200: OfferSerializer},
)

OFFER_ACTION_SCHEMA = extend_schema(request=None, responses={200: OfferSerializer})

OFFER_STATS_SCHEMA = extend_schema(
    summary="Counts of my sent and received offers",
    responses={200: OfferStatsSerializer},
)

LISTING_OFFERS_SCHEMA = extend_schema(
    summary="Offers on one of my listings",
    parameters=[
        OpenApiParameter(
            name="listing_id",
            description="ID of the listing",
            required=True,
            type=OpenApiTypes.INT,
            location=OpenApiParameter.PATH,
        )
    ],
    responses={200: OfferSerializer(many=True)},
)

from django_filters import rest_framework as filters

from apps.offers.models import Offer


class OfferFilter(filters.FilterSet):
    # Search filters
    search = filters.CharFilter(field_name="listing__title", lookup_expr="icontains")

    listing = filters.NumberFilter(field_name="listing_id")

    # Amount range filters
    min_amount = filters.NumberFilter(field_name="amount", lookup_expr="gte")
    max_amount = filters.NumberFilter(field_name="amount", lookup_expr="lte")

    # Date filters
    created_after = filters.DateTimeFilter(field_name="created_at", lookup_expr="gte")
    created_before = filters.DateTimeFilter(field_name="created_at", lookup_expr="lte")
    expires_before = filters.DateTimeFilter(field_name="expires_at", lookup_expr="lte")

    class Meta:
        model = Offer
        fields = ["listing", "amount", "created_at", "expires_at"]

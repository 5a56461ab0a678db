from rest_framework import serializers

from apps.listings.models import Listing


class ListingSummarySerializer(serializers.ModelSerializer):
    """Short listing representation embedded in offers and purchases."""

    formatted_price = serializers.SerializerMethodField()

    class Meta:
        model = Listing
        fields = ["id", "title", "price", "formatted_price", "status"]

    def get_formatted_price(self, obj) -> str:
        return f"${obj.price:,.2f}"

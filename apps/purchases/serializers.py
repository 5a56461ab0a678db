from rest_framework import serializers

from apps.purchases.models import Purchase


class PurchaseSerializer(serializers.ModelSerializer):
    """Settlement record returned by accept operations"""

    formatted_final_price = serializers.SerializerMethodField()
    listing_title = serializers.CharField(source="listing.title", read_only=True)

    class Meta:
        model = Purchase
        fields = [
            "id",
            "buyer",
            "listing",
            "listing_title",
            "offer",
            "final_price",
            "formatted_final_price",
            "created_at",
        ]
        read_only_fields = fields

    def get_formatted_final_price(self, obj) -> str:
        return f"${obj.final_price:,.2f}"

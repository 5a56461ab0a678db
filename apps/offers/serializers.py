from decimal import Decimal

from django.utils import timezone
from rest_framework import serializers

from apps.core.serializers import TimestampedModelSerializer, UserShortSerializer
from apps.listings.serializers import ListingSummarySerializer
from apps.offers.models import Offer, OfferHistory, OfferStatus
from apps.offers.store import USER_ROLES


class OfferHistorySerializer(serializers.ModelSerializer):
    """Serializer for offer history"""

    actor = UserShortSerializer(read_only=True)
    action_display = serializers.CharField(source="get_action_display", read_only=True)
    time_ago = serializers.SerializerMethodField()

    class Meta:
        model = OfferHistory
        fields = [
            "id",
            "action",
            "action_display",
            "actor",
            "from_status",
            "to_status",
            "amount",
            "counter_amount",
            "notes",
            "timestamp",
            "time_ago",
        ]

    def get_time_ago(self, obj) -> str:
        """Human readable time difference"""
        diff = timezone.now() - obj.timestamp

        if diff.days > 0:
            return f"{diff.days} day{'s' if diff.days > 1 else ''} ago"
        elif diff.seconds > 3600:
            hours = diff.seconds // 3600
            return f"{hours} hour{'s' if hours > 1 else ''} ago"
        elif diff.seconds > 60:
            minutes = diff.seconds // 60
            return f"{minutes} minute{'s' if minutes > 1 else ''} ago"
        return "Just now"


class OfferSerializer(TimestampedModelSerializer):
    """Main serializer for offers"""

    listing = ListingSummarySerializer(read_only=True)
    buyer = UserShortSerializer(read_only=True)
    seller = UserShortSerializer(read_only=True)
    counter_amount = serializers.DecimalField(
        source="current_counter_amount",
        max_digits=10,
        decimal_places=2,
        read_only=True,
    )

    formatted_amount = serializers.SerializerMethodField()
    formatted_original_price = serializers.SerializerMethodField()
    discount_percentage = serializers.SerializerMethodField()
    time_remaining = serializers.SerializerMethodField()
    can_respond = serializers.SerializerMethodField()

    status_display = serializers.CharField(source="get_status_display", read_only=True)

    class Meta:
        model = Offer
        fields = [
            "id",
            "listing",
            "buyer",
            "seller",
            "amount",
            "formatted_amount",
            "counter_amount",
            "original_price",
            "formatted_original_price",
            "discount_percentage",
            "status",
            "status_display",
            "message",
            "expires_at",
            "time_remaining",
            "responded_at",
            "can_respond",
            "created_at",
            "updated_at",
        ]

    def get_formatted_amount(self, obj) -> str:
        return f"${obj.amount:,.2f}"

    def get_formatted_original_price(self, obj) -> str:
        return f"${obj.original_price:,.2f}"

    def get_discount_percentage(self, obj) -> float:
        price = obj.current_counter_amount or obj.amount
        if obj.original_price > 0:
            return float(
                round(((obj.original_price - price) / obj.original_price) * 100, 2)
            )
        return 0.0

    def get_time_remaining(self, obj) -> str | None:
        """Time left before the offer lapses"""
        if not obj.is_active:
            return None

        diff = obj.expires_at - timezone.now()
        if diff.total_seconds() <= 0:
            return "Expired"
        if diff.days > 0:
            return f"{diff.days} days remaining"
        elif diff.seconds > 3600:
            return f"{diff.seconds // 3600} hours remaining"
        return f"{diff.seconds // 60} minutes remaining"

    def get_can_respond(self, obj) -> bool:
        """Check if current user is the one expected to act next"""
        request = self.context.get("request")
        if not request or not request.user.is_authenticated:
            return False

        if request.user.id == obj.seller_id:
            return obj.status == OfferStatus.PENDING
        if request.user.id == obj.buyer_id:
            return obj.status == OfferStatus.COUNTERED
        return False


class OfferDetailSerializer(OfferSerializer):
    history = OfferHistorySerializer(many=True, read_only=True)

    class Meta(OfferSerializer.Meta):
        fields = OfferSerializer.Meta.fields + ["history"]


class CreateOfferSerializer(serializers.Serializer):
    """Serializer for making an offer"""

    listing_id = serializers.IntegerField(min_value=1)
    amount = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        max_value=Decimal("99999999.99"),
        min_value=Decimal("0.01"),
    )
    message = serializers.CharField(max_length=500, required=False, allow_blank=True)


class UpdateOfferSerializer(serializers.Serializer):
    amount = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        max_value=Decimal("99999999.99"),
        min_value=Decimal("0.01"),
        required=False,
    )
    message = serializers.CharField(max_length=500, required=False, allow_blank=True)

    def validate(self, data):
        if "amount" not in data and "message" not in data:
            raise serializers.ValidationError(
                "Provide an amount or a message to update"
            )
        return data


class CounterOfferSerializer(serializers.Serializer):
    amount = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        max_value=Decimal("99999999.99"),
        min_value=Decimal("0.01"),
    )


class OfferListQuerySerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=USER_ROLES, required=False, default="all")
    status = serializers.ChoiceField(choices=OfferStatus.choices, required=False)


class OfferStatsBucketSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    active = serializers.IntegerField()
    by_status = serializers.DictField(child=serializers.IntegerField())


class OfferStatsSerializer(serializers.Serializer):
    """Serializer for a user's offer statistics"""

    sent = OfferStatsBucketSerializer()
    received = OfferStatsBucketSerializer()

from django.conf import settings
from rest_framework import serializers

from payments.models import Payment
from studio.serializers import SessionSerializer
from .models import Booking


class BookingPaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = ["id", "amount_cents", "currency", "status", "provider", "price_type", "created_at"]
        read_only_fields = fields


class BookingSerializer(serializers.ModelSerializer):
    session = SessionSerializer(read_only=True)
    payment = BookingPaymentSerializer(read_only=True)
    redeemed_pass = serializers.PrimaryKeyRelatedField(read_only=True)
    is_paid = serializers.BooleanField(read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "user",
            "session",
            "status",
            "payment",
            "redeemed_pass",
            "is_paid",
            "cancelled_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BookingCreateSerializer(serializers.Serializer):
    session_id = serializers.IntegerField(min_value=1)


class BookingStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Booking.STATUSES)


class BookingListFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Booking.STATUSES, required=False)
    session = serializers.IntegerField(min_value=1, required=False)
    start = serializers.DateTimeField(required=False)
    end = serializers.DateTimeField(required=False)


class CheckoutRequestSerializer(serializers.Serializer):
    price_type = serializers.CharField(default="DROPIN")
    success_url = serializers.URLField(required=False)
    cancel_url = serializers.URLField(required=False)

    def validate_price_type(self, value):
        if value not in settings.STUDIO_PRICES:
            raise serializers.ValidationError(
                f"Choose one of: {', '.join(sorted(settings.STUDIO_PRICES))}."
            )
        return value


class CheckoutSessionSerializer(serializers.Serializer):
    id = serializers.CharField()
    url = serializers.CharField()
    amount_cents = serializers.IntegerField()
    currency = serializers.CharField()


class RedeemPassSerializer(serializers.Serializer):
    pass_id = serializers.IntegerField(min_value=1)

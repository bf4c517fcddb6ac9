from django.utils import timezone
from rest_framework import serializers

from .models import Pass, Payment


class PassSerializer(serializers.ModelSerializer):
    is_active = serializers.SerializerMethodField()

    class Meta:
        model = Pass
        fields = [
            "id",
            "pass_type",
            "credits_remaining",
            "starts_at",
            "expires_at",
            "is_active",
            "created_at",
        ]
        read_only_fields = fields

    def get_is_active(self, obj: Pass) -> bool:
        return obj.is_usable(timezone.now())


class PaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = [
            "id",
            "amount_cents",
            "currency",
            "status",
            "provider",
            "price_type",
            "external_session_id",
            "created_at",
        ]
        read_only_fields = fields


class MockPaymentConfirmSerializer(serializers.Serializer):
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    booking_id = serializers.IntegerField(min_value=1)
    session_id = serializers.CharField(max_length=255)
    amount = serializers.IntegerField(min_value=0)
    currency = serializers.CharField(max_length=10, default="usd")
    price_type = serializers.CharField(max_length=20, required=False, allow_blank=True)
    outcome = serializers.ChoiceField(choices=[SUCCEEDED, FAILED], default=SUCCEEDED)

from django.contrib import admin

from .models import Pass, Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("external_session_id", "user", "amount_cents", "currency", "status", "provider", "created_at")
    list_filter = ("status", "provider", "price_type")
    search_fields = ("external_session_id", "external_intent_id", "user__email")
    readonly_fields = (
        "user",
        "amount_cents",
        "currency",
        "provider",
        "price_type",
        "external_session_id",
        "external_intent_id",
        "created_at",
        "updated_at",
    )


@admin.register(Pass)
class PassAdmin(admin.ModelAdmin):
    list_display = ("user", "pass_type", "credits_remaining", "starts_at", "expires_at")
    list_filter = ("pass_type",)
    search_fields = ("user__email",)
    raw_id_fields = ("user", "payment")

from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ("session", "user", "status", "payment", "redeemed_pass", "created_at")
    list_filter = ("status", "session__class_type")
    search_fields = ("user__email", "user__name", "session__class_type__name")
    raw_id_fields = ("user", "session", "payment", "redeemed_pass")
    readonly_fields = ("cancelled_at", "created_at", "updated_at")

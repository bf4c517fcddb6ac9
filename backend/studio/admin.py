from django.contrib import admin

from bookings.models import Booking
from .models import ClassSession, ClassType, Instructor


@admin.register(ClassType)
class ClassTypeAdmin(admin.ModelAdmin):
    list_display = ("name", "duration_minutes", "default_capacity", "difficulty", "is_active")
    list_filter = ("is_active", "difficulty")
    search_fields = ("name",)


@admin.register(Instructor)
class InstructorAdmin(admin.ModelAdmin):
    list_display = ("name", "email", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "email")


class BookingInline(admin.TabularInline):
    model = Booking
    extra = 0
    fields = ("user", "status", "payment", "redeemed_pass", "created_at")
    readonly_fields = ("created_at",)
    raw_id_fields = ("user", "payment", "redeemed_pass")


@admin.register(ClassSession)
class ClassSessionAdmin(admin.ModelAdmin):
    list_display = ("class_type", "instructor", "starts_at", "ends_at", "capacity", "location")
    list_filter = ("class_type", "instructor")
    search_fields = ("class_type__name", "instructor__name", "location")
    date_hierarchy = "starts_at"
    inlines = [BookingInline]

import django_filters
from django.db.models import F

from .models import ClassSession


class SessionFilter(django_filters.FilterSet):
    date = django_filters.DateFilter(field_name="starts_at", lookup_expr="date")
    start = django_filters.IsoDateTimeFilter(field_name="starts_at", lookup_expr="gte")
    end = django_filters.IsoDateTimeFilter(field_name="starts_at", lookup_expr="lte")
    location = django_filters.CharFilter(lookup_expr="icontains")
    available_only = django_filters.BooleanFilter(method="filter_available_only")

    class Meta:
        model = ClassSession
        fields = ["class_type", "instructor"]

    def filter_available_only(self, queryset, name, value):
        # Relies on the with_booked_count() annotation.
        if value:
            return queryset.filter(booked_count__lt=F("capacity"))
        return queryset

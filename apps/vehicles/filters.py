"""FilterSet definitions for the vehicle listing."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Vehicle


class VehicleFilterSet(django_filters.FilterSet):
    location = django_filters.CharFilter(field_name="location", lookup_expr="icontains")
    available_on = django_filters.DateFilter(method="filter_available_on")

    class Meta:
        model = Vehicle
        fields = ["location"]

    def filter_available_on(self, queryset, name, value):  # type: ignore
        return queryset.filter(available_from__lte=value, available_to__gte=value)

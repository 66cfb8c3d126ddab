"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "vehicle",
        "requester",
        "status",
        "start_date",
        "end_date",
        "decided_at",
        "created_at",
    )
    list_filter = ("status", "start_date", "end_date")
    search_fields = ("vehicle__location", "requester__username")
    # Status changes go through the API so overlap checks apply
    readonly_fields = ("status", "decided_at", "created_at", "updated_at")

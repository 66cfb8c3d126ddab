"""Admin registration for vehicles."""

from __future__ import annotations

from django.contrib import admin

from .models import Vehicle


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    list_display = ("id", "location", "owner", "available_from", "available_to", "created_at")
    list_filter = ("available_from", "available_to")
    search_fields = ("location", "owner__username")
    readonly_fields = ("created_at", "updated_at")

"""Admin registration for push subscriptions."""

from __future__ import annotations

from django.contrib import admin

from .models import PushSubscription


@admin.register(PushSubscription)
class PushSubscriptionAdmin(admin.ModelAdmin):
    list_display = ("user", "endpoint", "created_at", "updated_at")
    search_fields = ("user__username", "endpoint")
    readonly_fields = ("p256dh", "auth", "created_at", "updated_at")

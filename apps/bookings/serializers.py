"""Serializers for the booking domain."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import serializers  # type: ignore

from apps.vehicles.serializers import VehicleSerializer
from shared.infrastructure.fields import CalendarDateField

from .models import Booking

DECIDABLE_STATUSES = (Booking.Status.APPROVED, Booking.Status.REJECTED)


class BookingCreateSerializer(serializers.Serializer):
    """A renter's request: vehicle plus an inclusive range of days."""

    vehicle_id = serializers.IntegerField(required=False, allow_null=True)
    start_date = CalendarDateField(required=False, allow_null=True)
    end_date = CalendarDateField(required=False, allow_null=True)

    def validate(self, attrs):  # type: ignore
        if any(attrs.get(name) is None for name in ("vehicle_id", "start_date", "end_date")):
            raise serializers.ValidationError("All fields are required.")
        return attrs


class BookingStatusSerializer(serializers.Serializer):
    """Owner decision on a pending booking."""

    status = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate(self, attrs):  # type: ignore
        if attrs.get("status") not in DECIDABLE_STATUSES:
            raise serializers.ValidationError("Status must be approved or rejected.")
        return attrs


class RequesterSerializer(serializers.ModelSerializer):
    class Meta:
        model = get_user_model()
        fields = ["id", "username", "email"]
        read_only_fields = fields


class BookingSerializer(serializers.ModelSerializer):
    """Detailed booking representation."""

    vehicle_id = serializers.ReadOnlyField(source="vehicle.id")
    requester_id = serializers.ReadOnlyField(source="requester.id")

    class Meta:
        model = Booking
        fields = [
            "id",
            "vehicle_id",
            "requester_id",
            "start_date",
            "end_date",
            "status",
            "decided_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class RequesterBookingSerializer(BookingSerializer):
    """A requester's own booking with the vehicle embedded."""

    vehicle = VehicleSerializer(read_only=True)

    class Meta(BookingSerializer.Meta):
        fields = BookingSerializer.Meta.fields + ["vehicle"]
        read_only_fields = fields


class OwnerBookingSerializer(BookingSerializer):
    """A booking on the caller's vehicle with the requester embedded."""

    requester = RequesterSerializer(read_only=True)

    class Meta(BookingSerializer.Meta):
        fields = BookingSerializer.Meta.fields + ["requester"]
        read_only_fields = fields

"""Serializers for the vehicle domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from shared.infrastructure.fields import CalendarDateField

from .media import InvalidImage, MediaStore
from .models import Vehicle


class AvailabilityWindowSerializer(serializers.Serializer):
    start_date = serializers.DateField(source="available_from")
    end_date = serializers.DateField(source="available_to")


class VehicleSerializer(serializers.ModelSerializer):
    """Read representation of a vehicle."""

    owner_id = serializers.ReadOnlyField(source="owner.id")
    availability = AvailabilityWindowSerializer(source="*", read_only=True)

    class Meta:
        model = Vehicle
        fields = [
            "id",
            "owner_id",
            "image_url",
            "location",
            "availability",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class VehicleWriteSerializer(serializers.ModelSerializer):
    """Create/update a vehicle from a multipart upload.

    On update every field is optional; missing fields keep their stored
    values and the image is only replaced when a new one is sent.
    """

    image = serializers.FileField(write_only=True, required=False)
    available_from = CalendarDateField()
    available_to = CalendarDateField()

    class Meta:
        model = Vehicle
        fields = ["image", "location", "available_from", "available_to"]

    def get_fields(self):  # type: ignore
        fields = super().get_fields()
        if self.instance is not None:
            for field in fields.values():
                field.required = False
        return fields

    def validate(self, attrs):  # type: ignore
        if self.instance is None and not attrs.get("image"):
            raise serializers.ValidationError({"image": ["Image is required."]})

        start = attrs.get("available_from", getattr(self.instance, "available_from", None))
        end = attrs.get("available_to", getattr(self.instance, "available_to", None))
        if start and end and start > end:
            raise serializers.ValidationError(
                {"available_to": ["Availability end date must not be before its start date."]}
            )
        return attrs

    def _media_store(self) -> MediaStore:
        return self.context.get("media_store") or MediaStore()

    def _store_image(self, upload) -> str:
        data = upload.read()
        try:
            return self._media_store().store(data)
        except InvalidImage as exc:
            raise serializers.ValidationError({"image": [str(exc)]})

    def create(self, validated_data):  # type: ignore
        upload = validated_data.pop("image")
        validated_data["image_url"] = self._store_image(upload)
        validated_data["owner"] = self.context["request"].user
        return super().create(validated_data)

    def update(self, instance, validated_data):  # type: ignore
        upload = validated_data.pop("image", None)
        if upload is not None:
            validated_data["image_url"] = self._store_image(upload)
        return super().update(instance, validated_data)


class AvailabilityBookingSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    status = serializers.CharField()


class VehicleAvailabilitySerializer(serializers.Serializer):
    """Calendar projection: the window plus pending and approved bookings."""

    vehicle_id = serializers.IntegerField()
    availability = serializers.DictField(child=serializers.DateField())
    bookings = AvailabilityBookingSerializer(many=True)
